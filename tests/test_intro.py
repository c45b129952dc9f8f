"""Tests for the start screen."""
import random

import pygame
import pytest

from conftest import FakeAudio, FakeSpeech
from intro import IntroScreen
from math_tasks import DIFFICULTIES, MathEngine
from sound import TTS_MISSING, TTS_MUTED


@pytest.fixture
def intro(settings):
    screen = IntroScreen(settings, FakeSpeech(), MathEngine(lambda: settings.grade, random.Random(1)), FakeAudio())
    yield screen
    pygame.quit()


def test_chip_click_selects_and_saves(intro, settings):
    intro._handle_click(intro.chips["3-4"].center)
    assert settings.grade == "3-4"
    assert len(intro.samples) == 3


def test_tab_cycles_grades(intro, settings):
    grades = list(DIFFICULTIES)
    intro._cycle_selection(1)
    assert settings.grade == grades[1]
    intro._cycle_selection(-1)
    intro._cycle_selection(-1)
    assert settings.grade == grades[-1]


def test_listen_speaks_sample(intro):
    intro._handle_click(intro.listen_buttons[0].center)
    assert intro.speech.spoken == [intro.samples[0][1]]


def test_listen_without_tts(settings):
    screen = IntroScreen(settings, FakeSpeech(available=False), MathEngine("pre", random.Random(2)))
    assert screen.note == TTS_MISSING
    screen._listen(0)
    assert screen.note == TTS_MISSING
    pygame.quit()


def test_mute_button(intro, settings):
    intro._handle_click(intro.mute_button.center)
    assert settings.get("mute") is True
    assert ("mute", True) in intro.audio.events


def test_about_overlay_and_start(intro):
    assert intro._handle_click(intro.about_button.center) is None
    assert intro.show_about
    intro.draw()
    # erster Klick schließt nur das Overlay
    assert intro._handle_click(intro.start_button.center) is None
    assert not intro.show_about
    assert intro._handle_click(intro.start_button.center) == "game"
    intro.draw()


def test_run_starts_game_on_enter(intro):
    pygame.event.clear()
    pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_RETURN, unicode="\r", mod=0))
    assert intro.run() == "game"


def test_listen_while_muted_shows_mute_hint(intro):
    intro._toggle_mute()
    intro._listen(0)
    assert intro.note == TTS_MUTED
    assert intro.speech.spoken == []

    intro._toggle_mute()
    assert intro.note != TTS_MUTED
    intro._listen(0)
    assert intro.speech.spoken == [intro.samples[0][1]]
