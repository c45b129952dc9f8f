import json
import logging
import os
from typing import Any, Dict, Optional

from math_tasks import DEFAULT_DIFFICULTY, normalise_difficulty

logger = logging.getLogger(__name__)

# Datei, in der die Einstellungen zwischen Sitzungen liegen.
DEFAULT_SETTINGS_FILE = "lumoland_settings.json"
SETTINGS_ENV = "LUMOLAND_SETTINGS_FILE"

DEFAULTS: Dict[str, Any] = {
    "grade": DEFAULT_DIFFICULTY,
    "mute": False,
    "tts_auto": True,
}
BOOL_KEYS = ("mute", "tts_auto")


def resolve_settings_path(path: Optional[str] = None) -> str:
    """Reihenfolge: expliziter Pfad, Umgebungsvariable, DEFAULT_SETTINGS_FILE."""

    return path or os.environ.get(SETTINGS_ENV) or DEFAULT_SETTINGS_FILE


class Settings:
    """Einfacher Key/Value-Speicher, als JSON-Datei persistiert."""

    def __init__(self, path: Optional[str] = None):
        self.path = resolve_settings_path(path)
        self.state: Dict[str, Any] = dict(DEFAULTS)
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Einstellungen aus %s verworfen: %s", self.path, exc)
            self.state = dict(DEFAULTS)
            return

        if not isinstance(data, dict):
            logger.warning("Einstellungen in %s sind kein Objekt, nutze Standardwerte", self.path)
            self.state = dict(DEFAULTS)
            return
        self.state = {**DEFAULTS, **data}
        self.state["grade"] = normalise_difficulty(self.state.get("grade"))
        for key in BOOL_KEYS:
            if not isinstance(self.state[key], bool):
                logger.warning("Ungültiger Wert für %s in %s: %r", key, self.path, self.state[key])
                self.state[key] = DEFAULTS[key]

    def save(self) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self.state, f, ensure_ascii=False, indent=2)
        except OSError as exc:
            logger.warning("Einstellungen konnten nicht gespeichert werden: %s", exc)

    def get(self, key: str, default: Any = None) -> Any:
        return self.state.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if key == "grade":
            value = normalise_difficulty(value)
        self.state[key] = value
        self.save()

    @property
    def grade(self) -> str:
        return normalise_difficulty(self.state.get("grade"))
