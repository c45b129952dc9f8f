import logging
import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from math_tasks import TaskDescriptor

logger = logging.getLogger(__name__)

# Weltgröße (ohne HUD-Leiste)
WORLD_W = 960
GROUND_Y = 380
GROUND_H = 40

# Sprungbogen der Spielfigur – die Generierung verlässt sich darauf.
GRAVITY = 620.0
JUMP_STRENGTH = 320.0
MOVE_SPEED = 140.0
MAX_JUMP_RISE = JUMP_STRENGTH * JUMP_STRENGTH / (2 * GRAVITY)  # ~82 px

PLATFORM_H = 18
MIN_PLATFORMS, MAX_PLATFORMS = 5, 7
MIN_WIDTH, MAX_WIDTH = 110, 190
MIN_VERTICAL_GAP = 40
STEP_Y = 44
FIRST_RISE = 64
MIN_PLATFORM_Y = 48
MIN_STEP_X, MAX_STEP_X = 100, 180
MAX_EDGE_GAP = 100      # horizontale Lücke zwischen Kanten, sicher springbar
NUDGE_X = 120
EDGE_MARGIN = 40

MAX_TIER = 8


@dataclass(eq=False)
class Platform:
    x: float
    y: float
    width: float
    height: float = PLATFORM_H
    unlocked: bool = False
    task: Optional[TaskDescriptor] = None

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def centerx(self) -> float:
        return self.x + self.width / 2


def edge_gap(a: Platform, b: Platform) -> float:
    """Horizontaler Abstand zwischen zwei Plattformen (0 bei Überlappung)."""
    return max(0.0, b.x - a.right, a.x - b.right)


class PlatformSequence:
    """Kette aus Plattformen, die nacheinander per Aufgabe freigeschaltet werden.

    Nur die erste Plattform ist anfangs frei. Der Boden ist immer solide und
    gehört nicht zur Fortschrittsliste.
    """

    def __init__(self, rng: Optional[random.Random] = None,
                 on_tier_change: Optional[Callable[[int], None]] = None):
        self.rng = rng or random.Random()
        self.on_tier_change = on_tier_change
        self.platforms, self.ground = self.generate()
        self.tier = 1
        self.update_tier()

    def generate(self) -> Tuple[List[Platform], Platform]:
        rng = self.rng
        count = rng.randint(MIN_PLATFORMS, MAX_PLATFORMS)
        ground = Platform(0, GROUND_Y, WORLD_W, GROUND_H, unlocked=True)

        platforms: List[Platform] = []
        base_y = GROUND_Y - FIRST_RISE
        last_y = GROUND_Y
        last_x = EDGE_MARGIN + rng.random() * (WORLD_W - 2 * EDGE_MARGIN - MAX_WIDTH)
        direction = 1 if rng.random() > 0.5 else -1
        prev = None

        for i in range(count):
            if i > 0 and rng.random() > 0.6:
                direction *= -1
            width = rng.uniform(MIN_WIDTH, MAX_WIDTH)
            step_x = rng.uniform(MIN_STEP_X, MAX_STEP_X)
            x_max = WORLD_W - EDGE_MARGIN - width
            x = _clamp(last_x + direction * step_x + (rng.random() - 0.5) * 40, EDGE_MARGIN, x_max)

            target_y = base_y - i * STEP_Y + (rng.random() - 0.5) * 8
            y = min(_clamp(target_y, MIN_PLATFORM_Y, base_y), last_y - MIN_VERTICAL_GAP)

            # zu nah an der Vorgängerin -> in Laufrichtung wegschieben
            if abs(x - last_x) < 100 and abs(y - last_y) < MIN_VERTICAL_GAP + 6:
                x = _clamp(x + direction * NUDGE_X, EDGE_MARGIN, x_max)
                y = min(y, last_y - MIN_VERTICAL_GAP)

            platform = Platform(x, y, width, PLATFORM_H, unlocked=(i == 0))
            if prev is not None:
                _pull_within_reach(platform, prev)
            platforms.append(platform)
            prev = platform
            last_x, last_y = platform.x, platform.y

        return platforms, ground

    def get_solid_platforms(self) -> List[Platform]:
        return [self.ground] + [p for p in self.platforms if p.unlocked]

    def get_next_locked_platform(self) -> Optional[Platform]:
        for platform in self.platforms:
            if not platform.unlocked:
                return platform
        return None

    def get_spawn_platform(self) -> Platform:
        return self.ground

    @property
    def final_platform(self) -> Optional[Platform]:
        return self.platforms[-1] if self.platforms else None

    @property
    def unlocked_count(self) -> int:
        return sum(1 for p in self.platforms if p.unlocked)

    def unlock_platform(self, platform: Optional[Platform]) -> None:
        if platform is None:
            return
        platform.unlocked = True
        platform.task = None
        logger.info("Plattform %d freigeschaltet", self.platforms.index(platform) + 1)
        self.update_tier()

    def update_tier(self) -> int:
        self.tier = int(_clamp(self.unlocked_count, 1, MAX_TIER))
        if self.on_tier_change:
            self.on_tier_change(self.tier)
        return self.tier


def _clamp(v, a, b):
    return a if v < a else b if v > b else v


def _pull_within_reach(platform: Platform, prev: Platform) -> None:
    # Lücke zu groß -> Richtung Vorgängerin ziehen (bleibt dabei im Rand)
    gap = edge_gap(prev, platform)
    if gap <= MAX_EDGE_GAP:
        return
    shift = gap - MAX_EDGE_GAP
    platform.x += -shift if platform.x > prev.x else shift
