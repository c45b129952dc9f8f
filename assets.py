import logging
import os

import pygame

logger = logging.getLogger(__name__)

DEFAULT_ASSET_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "assets")
ASSET_ENV = "LUMOLAND_ASSET_DIR"
COMPLETION_IMAGE = "lumigluewuermchenfreundschaft.png"


def background_name(tier):
    # Stufe 1 hat kein Suffix: forest-night.png, forest-night2.png, ...
    suffix = "" if tier == 1 else str(tier)
    return f"forest-night{suffix}.png"


class ImageAsset:
    def __init__(self, path):
        self.path = path
        self.surface = None
        self.ready = False
        self._scaled = None

    def load(self):
        try:
            self.surface = pygame.image.load(self.path)
        except (pygame.error, OSError) as exc:
            logger.warning("Bild %s nicht geladen: %s", self.path, exc)
            self.surface = None
            self.ready = False
            return False
        self.ready = True
        self._scaled = None
        return True

    def scaled(self, size):
        if not self.ready:
            return None
        if self._scaled is None or self._scaled.get_size() != tuple(size):
            self._scaled = pygame.transform.smoothscale(self.surface, size)
        return self._scaled


class AssetStore:
    """Löst Hintergrundstufen und das Abschlussbild zu Dateien auf."""

    def __init__(self, root=None):
        self.root = root or os.environ.get(ASSET_ENV) or DEFAULT_ASSET_DIR
        self._cache = {}
        self.background = None

    def get(self, name):
        asset = self._cache.get(name)
        if asset is None:
            asset = ImageAsset(os.path.join(self.root, name))
            asset.load()
            self._cache[name] = asset
        return asset

    def request_background(self, tier):
        self.background = self.get(background_name(tier))
        logger.debug("Hintergrundstufe %d (%s)", tier, "bereit" if self.background.ready else "fehlt")
        return self.background

    def completion(self):
        return self.get(COMPLETION_IMAGE)
