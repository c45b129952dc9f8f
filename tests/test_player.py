"""Tests for Lumi's physics."""
import pytest

from app import (
    AIR_FRAMES,
    FLOOR_Y,
    RUN_FRAME_TIME,
    X_MAX,
    InputState,
    Player,
    RESPAWN_Y,
)
from conftest import FakeAudio
from level_gen import GRAVITY, JUMP_STRENGTH, Platform


def make_player(x=300.0, y=0.0):
    player = Player(FakeAudio())
    player.x, player.y = x, y
    return player


def test_free_fall_matches_integration():
    """Without input and without platforms, gravity is the only force."""
    player = make_player()
    dt = 1 / 60
    vy, y = 0.0, 0.0
    for _ in range(10):
        player.update(dt, InputState(), [], None)
        vy += GRAVITY * dt
        y += vy * dt
        assert player.vx == 0
        assert player.x == 300.0
        assert player.vy == pytest.approx(vy)
        assert player.y == pytest.approx(y)
    assert not player.on_ground


def test_lands_on_platform_when_falling():
    """Falling into the top band snaps Lumi onto the platform."""
    platform = Platform(250, 200, 150)
    player = make_player(y=200 - player_h() - 2)
    player.vy = 200
    player.update(1 / 60, InputState(), [platform], None)
    assert player.on_ground
    assert player.vy == 0
    assert player.bottom == platform.y


def test_passes_through_platform_while_rising():
    """Platforms only catch Lumi from above."""
    platform = Platform(250, 200, 150)
    player = make_player(y=200 - player_h() + 5)
    player.vy = -300
    player.update(1 / 60, InputState(), [platform], None)
    assert not player.on_ground
    assert player.vy < 0


def test_jump_only_from_ground():
    """Jumping needs solid footing and plays the jump cue."""
    ground = Platform(0, 380, 960, 40)
    player = make_player()
    player.place_on(ground)
    player.update(1 / 60, InputState(jump=True), [ground], None)
    assert player.vy == pytest.approx(-JUMP_STRENGTH + GRAVITY / 60)
    assert not player.on_ground
    assert player.audio.events == ["jump"]

    player.update(1 / 60, InputState(jump=True), [ground], None)
    assert player.audio.events == ["jump"]


def test_horizontal_input_sets_velocity_and_clamps():
    """Input direction times speed, clamped to the world."""
    ground = Platform(0, 380, 960, 40)
    player = make_player(x=X_MAX - 1)
    player.place_on(ground, 0.0)
    player.x = X_MAX - 1
    for _ in range(30):
        player.update(1 / 30, InputState(right=True), [ground], None)
    assert player.vx > 0
    assert player.x == X_MAX
    player.update(1 / 30, InputState(left=True, right=True), [ground], None)
    assert player.vx == 0


def test_respawns_on_spawn_platform_after_fall():
    """Falling far below the world puts Lumi back on the spawn platform."""
    ground = Platform(0, 380, 960, 40)
    player = make_player(y=RESPAWN_Y + 10)
    player.update(1 / 60, InputState(), [], ground)
    assert player.on_ground
    assert player.bottom == ground.y
    assert player.x == pytest.approx(ground.width * 0.3)


def test_floor_clamp_without_spawn():
    """Without spawn platform the floor height catches Lumi."""
    player = make_player(y=FLOOR_Y + 30)
    player.update(1 / 60, InputState(), [], None)
    assert player.y == FLOOR_Y
    assert player.on_ground


def test_run_animation_advances_and_resets():
    """Running cycles frames, standing still resets to frame 0."""
    ground = Platform(0, 380, 960, 40)
    player = make_player()
    player.place_on(ground)
    for _ in range(8):
        player.update(1 / 60, InputState(right=True), [ground], None)
    assert player.anim == "run"
    assert player.frame == int((8 / 60) // RUN_FRAME_TIME)

    player.update(1 / 60, InputState(), [ground], None)
    assert player.anim == "idle"
    assert player.frame == 0


def test_air_animation_while_airborne():
    """Airborne frames use their own cycle."""
    player = make_player()
    for _ in range(30):
        player.update(1 / 60, InputState(), [], None)
    assert player.anim == "air"
    assert 0 <= player.frame < AIR_FRAMES


def player_h():
    return Player(FakeAudio()).h


def test_overlapping_bands_last_platform_wins():
    """When two landing bands match in one tick the later platform decides."""
    low = Platform(0, 200, 300, 18)
    high = Platform(100, 205, 300, 18)

    player = make_player(x=150, y=162)
    player.update(1 / 60, InputState(), [low, high], None)
    assert player.on_ground
    assert player.bottom == high.y

    player = make_player(x=150, y=162)
    player.update(1 / 60, InputState(), [high, low], None)
    assert player.on_ground
    assert player.bottom == low.y
