import os
import random

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest

from app import Session, SessionContext
from math_tasks import TaskDescriptor
from settings_io import Settings


class FakeAudio:
    def __init__(self):
        self.events = []

    def play(self, event):
        self.events.append(event)

    def set_mute(self, muted):
        self.events.append(("mute", muted))


class FakeSpeech:
    def __init__(self, available=True):
        self.available = available
        self.spoken = []

    def speak(self, text):
        if not self.available:
            return False
        self.spoken.append(text)
        return True

    def cancel(self):
        pass


class FakeTasks:
    def __init__(self, tasks):
        self.tasks = list(tasks)
        self.calls = 0

    def create_task(self, difficulty=None):
        task = self.tasks[min(self.calls, len(self.tasks) - 1)]
        self.calls += 1
        return task


class ManualClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeAssets:
    def __init__(self):
        self.tiers = []
        self.background = None

    def request_background(self, tier):
        self.tiers.append(tier)

    def completion(self):
        return None


SEVEN = TaskDescriptor("3 + 4", 7, "3 plus 4")


@pytest.fixture
def settings(tmp_path):
    return Settings(str(tmp_path / "settings.json"))


@pytest.fixture
def make_ctx(settings):
    def _make(tasks=None, reduced_motion=False, seed=7, **overrides):
        for key, value in overrides.items():
            settings.set(key, value)
        navigations = []
        ctx = SessionContext(
            settings=settings,
            audio=FakeAudio(),
            speech=FakeSpeech(),
            tasks=tasks or FakeTasks([SEVEN]),
            rng=random.Random(seed),
            clock=ManualClock(),
            reduced_motion=reduced_motion,
            navigate=lambda: navigations.append(True),
            assets=FakeAssets(),
        )
        ctx.navigations = navigations
        return ctx
    return _make


@pytest.fixture
def session(make_ctx):
    return Session(make_ctx())


def move_near(session, platform):
    p = session.player
    p.x = platform.x
    p.y = platform.y + 40


def move_away(session, platform):
    session.player.x = 20 if platform.centerx > 480 else 900


def solve_all(session):
    gate = session.gate
    while True:
        nxt = session.level.get_next_locked_platform()
        if nxt is None:
            return
        move_near(session, nxt)
        gate.update()
        assert gate.submit(str(gate.current_task.answer))
