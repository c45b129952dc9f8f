"""Tests for fireflies, confetti and the light progress."""
import random

import pygame
import pytest

from app import (
    CONFETTI_COUNT,
    LIGHT_FLOOR,
    LIGHT_STEP,
    ConfettiField,
    Firefly,
    FireflyField,
    ProgressTracker,
)


class StillRng:
    """Never retargets a firefly."""

    def random(self):
        return 0.99


def test_confetti_burst_and_decay():
    """A burst spawns a fixed count that decays to nothing."""
    field = ConfettiField(random.Random(1))
    field.burst(100, 100)
    assert len(field) == CONFETTI_COUNT

    field.update(0.033)
    assert len(field) == CONFETTI_COUNT

    for _ in range(30):
        field.update(0.033)
    assert len(field) == 0


def test_confetti_flies_up_and_out():
    """Initial velocities point outward and upward."""
    field = ConfettiField(random.Random(2))
    field.burst(0, 0)
    assert all(p.vy <= 0 for p in field.particles)
    assert all(-100 <= p.vx <= 100 for p in field.particles)
    assert all(p.life == 1.0 for p in field.particles)


def test_firefly_spawn_inside_rect():
    """Fireflies and their targets start inside the spawn area."""
    field = FireflyField(random.Random(3))
    rect = pygame.Rect(200, 160, 500, 120)
    field.spawn(5, rect, 0.5)
    assert len(field) == 5
    for fly in field.fireflies:
        assert rect.x <= fly.x <= rect.right
        assert rect.y <= fly.y <= rect.bottom
        assert rect.x <= fly.target_x <= rect.right
        assert fly.light_boost == pytest.approx(0.8 + 0.4 * 0.5)


def test_firefly_eases_toward_target():
    """Each tick moves a firefly part of the way to its target."""
    fly = Firefly(0, 0, 6, 0.8, 100, 50, 1.0)
    fly.update(0.1, StillRng())
    assert fly.x == pytest.approx(100 * 0.15)
    assert fly.y == pytest.approx(50 * 0.15)


def test_firefly_clear():
    """Clearing empties the field."""
    field = FireflyField(random.Random(4))
    field.spawn(3, pygame.Rect(0, 0, 10, 10), 0.1)
    field.clear()
    assert len(field) == 0


def test_progress_increase_by_step():
    """A solved task raises the target by the fixed step."""
    progress = ProgressTracker()
    assert progress.current == LIGHT_FLOOR
    progress.increase_target()
    assert progress.target == pytest.approx(0.25)
    assert progress.current == LIGHT_FLOOR


def test_progress_target_clamped_to_one():
    """The target never goes past full light."""
    progress = ProgressTracker()
    for _ in range(20):
        progress.increase_target()
    assert progress.target == 1.0


def test_progress_converges_monotonically():
    """current rises toward target and reaches it in bounded ticks."""
    progress = ProgressTracker()
    progress.increase_target()
    previous = progress.current
    for _ in range(200):
        progress.update(1 / 60)
        assert progress.current >= previous
        previous = progress.current
    assert progress.current == progress.target

    for _ in range(10):
        progress.update(1 / 60)
        assert progress.current == progress.target


def test_progress_reduced_motion_snaps():
    """With reduced motion the light jumps straight to the target."""
    progress = ProgressTracker(reduced_motion=True)
    progress.increase_target()
    assert progress.current == progress.target == pytest.approx(LIGHT_FLOOR + LIGHT_STEP)
