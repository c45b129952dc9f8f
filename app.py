import argparse
import logging
import os
import random
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import pygame

from assets import AssetStore
from intro import IntroScreen
from level_gen import GRAVITY, GROUND_Y, JUMP_STRENGTH, MOVE_SPEED, PlatformSequence
from math_tasks import KIND_COUNT, MathEngine
from settings_io import Settings
from sound import LUMI_LINES, TTS_MISSING, TTS_MUTED, AudioBus, Speech

logger = logging.getLogger(__name__)

# =========================
# LUMOLAND – Glühwürmchen-Jagd (pygame)
# =========================

# --- Window ---
WIDTH, WORLD_H, PANEL_H = 960, 420, 180
HEIGHT = WORLD_H + PANEL_H
FPS = 60
MAX_DT = 0.033

# --- Lumi ---
PLAYER_W, PLAYER_H = 42, 48
LAND_TOLERANCE = 8
X_MIN, X_MAX = 20, 900
RESPAWN_Y = GROUND_Y + 100
FLOOR_Y = WORLD_H - PLAYER_H
RUN_FRAMES, RUN_FRAME_TIME = 4, 0.12
AIR_FRAMES, AIR_FRAME_TIME = 2, 0.2

# --- Licht / Partikel ---
LIGHT_FLOOR = 0.1
LIGHT_STEP = 0.15
LIGHT_RATE = 2.5
LIGHT_SNAP = 1e-3
FIREFLY_EASE = 1.5
FIREFLY_RETARGET = 0.02
CONFETTI_COUNT = 40
CONFETTI_GRAVITY = 260.0
CONFETTI_DECAY = 1.2

# --- Aufgaben-Tor ---
NEAR_X = 24
NEAR_Y = 120
ANSWER_MAX_LEN = 4

# --- Abschluss ---
COMPLETION_DELAY = 2.0
COMPLETION_FADE = 2.0
COMPLETION_LAND_TOL = 4
COMPLETION_TEXT = "Schön! Jetzt leuchtet der Wald!"

# --- Foto ---
FLASH_TIME = 0.42
SNAPSHOT_PREFIX = "lumoland_schnappschuss_"

# --- Farben ---
COL_NIGHT_BG = (31, 42, 56)
COL_NIGHT_BG2 = (46, 63, 82)
COL_NIGHT_PRIMARY = (22, 30, 42)
COL_CREAM = (255, 246, 236)
COL_TEXT_SOFT = (198, 210, 222)
COL_ACCENT = (243, 210, 122)
COL_MOON = (244, 214, 140)
COL_GROUND = (38, 52, 44)
COL_GROUND_TOP = (70, 96, 74)
COL_PANEL = (24, 32, 44)
COL_BUTTON = (46, 63, 82)
COL_BUTTON_HI = (70, 92, 118)
COL_DIM = (150, 160, 175)
CONFETTI_COLORS = [(243, 210, 122), (255, 255, 255)]

REDUCED_MOTION_ENV = "LUMOLAND_REDUCED_MOTION"
KEYPAD_KEYS = ["7", "8", "9", "4", "5", "6", "1", "2", "3", "0", "←", "OK"]


# ------------- Utilities -------------
def clamp(v, a, b):
    return a if v < a else b if v > b else v

def lerp(a, b, t):
    return a + (b - a) * t

def mix_colors(a, b, t):
    return tuple(int(round(lerp(ca, cb, t))) for ca, cb in zip(a, b))

def reduced_motion_from_env():
    return os.environ.get(REDUCED_MOTION_ENV, "").lower() in ("1", "true", "yes")

def format_timestamp(date):
    return date.strftime("%Y%m%d_%H%M%S")

def rect_above(platform, pad, height, gap=10):
    top = max(10, platform.y - gap - height)
    return pygame.Rect(int(platform.x - pad), int(top), int(platform.width + 2 * pad), int(height))


@dataclass
class InputState:
    left: bool = False
    right: bool = False
    jump: bool = False


@dataclass
class SessionContext:
    """Einstellungen, Ton, Sprache, Aufgaben, Zufall, Uhr und Bilder einer Sitzung."""

    settings: Settings
    audio: AudioBus
    speech: Speech
    tasks: MathEngine
    rng: random.Random
    clock: Callable[[], float] = time.monotonic
    reduced_motion: bool = False
    navigate: Callable[[], None] = lambda: None
    assets: Optional[AssetStore] = None


# ------------- Entities -------------
class Player:
    def __init__(self, audio):
        self.audio = audio
        self.w, self.h = PLAYER_W, PLAYER_H
        self.speed = MOVE_SPEED
        self.jump_strength = JUMP_STRENGTH
        self.x, self.y = 120.0, 280.0
        self.vx, self.vy = 0.0, 0.0
        self.on_ground = False
        self.facing = 1
        self.anim = "idle"
        self.frame = 0
        self.frame_t = 0.0

    @property
    def bottom(self):
        return self.y + self.h

    @property
    def rect(self):
        return pygame.Rect(int(self.x), int(self.y), self.w, self.h)

    def place_on(self, platform, offset=0.2):
        self.x = platform.x + platform.width * offset
        self.y = platform.y - self.h
        self.vx = self.vy = 0.0
        self.on_ground = True

    def overlaps_x(self, platform):
        return self.x + self.w > platform.x and self.x < platform.x + platform.width

    def lands_on(self, platform):
        within_band = platform.y <= self.bottom <= platform.y + platform.height + LAND_TOLERANCE
        return self.overlaps_x(platform) and within_band and self.vy >= 0

    def update(self, dt, inp, platforms, spawn_platform=None):
        move = (1 if inp.right else 0) - (1 if inp.left else 0)
        self.vx = move * self.speed
        if move:
            self.facing = move
        if inp.jump and self.on_ground:
            self.vy = -self.jump_strength
            self.on_ground = False
            self.audio.play("jump")

        self.vy += GRAVITY * dt
        self.x += self.vx * dt
        self.y += self.vy * dt

        # bei Überschneidung gewinnt die letzte Plattform
        self.on_ground = False
        for platform in platforms:
            if self.lands_on(platform):
                self.y = platform.y - self.h
                self.vy = 0.0
                self.on_ground = True

        self.x = clamp(self.x, X_MIN, X_MAX)
        if spawn_platform is not None:
            if self.y > RESPAWN_Y:
                self.place_on(spawn_platform, 0.3)
        elif self.y > FLOOR_Y:
            self.y = FLOOR_Y
            self.vy = 0.0
            self.on_ground = True

        self.animate(dt)

    def animate(self, dt):
        if not self.on_ground:
            mode, frames, frame_time = "air", AIR_FRAMES, AIR_FRAME_TIME
        elif self.vx != 0:
            mode, frames, frame_time = "run", RUN_FRAMES, RUN_FRAME_TIME
        else:
            self.anim, self.frame, self.frame_t = "idle", 0, 0.0
            return
        if mode != self.anim:
            self.anim, self.frame, self.frame_t = mode, 0, 0.0
        self.frame_t += dt
        while self.frame_t >= frame_time:
            self.frame_t -= frame_time
            self.frame = (self.frame + 1) % frames

    def draw(self, surf):
        bob = (-3 if self.frame % 2 else 0) if self.anim == "run" else 0
        stretch = 4 if self.anim == "air" and self.frame == 0 else 0
        w, h = self.w - stretch, self.h + stretch
        glow = pygame.Surface((w + 24, h + 24), pygame.SRCALPHA)
        pygame.draw.rect(glow, (*COL_ACCENT, 60), glow.get_rect(), border_radius=20)
        body = pygame.Rect(0, 0, w, h)
        body.midbottom = (int(self.x + self.w / 2), int(self.bottom + bob))
        surf.blit(glow, (body.x - 12, body.y - 12))
        pygame.draw.rect(surf, COL_ACCENT, body, border_radius=12)
        eye_x = body.centerx + 8 * self.facing
        pygame.draw.circle(surf, (40, 40, 60), (eye_x, body.y + 16), 4)


class Firefly:
    def __init__(self, x, y, radius, alpha, target_x, target_y, light_boost):
        self.x, self.y = x, y
        self.radius = radius
        self.alpha = alpha
        self.target_x, self.target_y = target_x, target_y
        self.light_boost = light_boost

    def update(self, dt, rng):
        t = min(1.0, dt * FIREFLY_EASE)
        self.x = lerp(self.x, self.target_x, t)
        self.y = lerp(self.y, self.target_y, t)
        if rng.random() < FIREFLY_RETARGET:
            self.target_x += (rng.random() - 0.5) * 80
            self.target_y += (rng.random() - 0.5) * 40

    def draw(self, surf, light):
        glow = self.radius * (0.8 + 0.4 * light) * self.light_boost
        size = int(glow * 4) + 2
        srf = pygame.Surface((size, size), pygame.SRCALPHA)
        a = int(255 * self.alpha)
        pygame.draw.circle(srf, (*COL_ACCENT, a // 4), (size // 2, size // 2), int(glow * 2))
        pygame.draw.circle(srf, (*COL_ACCENT, a), (size // 2, size // 2), max(1, int(glow)))
        surf.blit(srf, (self.x - size / 2, self.y - size / 2))


class FireflyField:
    def __init__(self, rng):
        self.rng = rng
        self.fireflies = []

    def __len__(self):
        return len(self.fireflies)

    def spawn(self, count, rect, light_progress):
        rng = self.rng
        for _ in range(count):
            self.fireflies.append(Firefly(
                rect.x + rng.random() * rect.width,
                rect.y + rng.random() * rect.height,
                6 + rng.random() * 6,
                0.6 + rng.random() * 0.3,
                rect.x + rng.random() * rect.width,
                rect.y + rng.random() * rect.height,
                0.8 + 0.4 * light_progress,
            ))

    def update(self, dt):
        for fly in self.fireflies:
            fly.update(dt, self.rng)

    def clear(self):
        self.fireflies = []

    def draw(self, surf, light):
        for fly in self.fireflies:
            fly.draw(surf, light)


class ConfettiParticle:
    def __init__(self, x, y, vx, vy, size, color):
        self.x, self.y = x, y
        self.vx, self.vy = vx, vy
        self.life = 1.0
        self.size = size
        self.color = color

    def update(self, dt):
        self.vy += CONFETTI_GRAVITY * dt
        self.x += self.vx * dt
        self.y += self.vy * dt
        self.life -= dt * CONFETTI_DECAY
        return self.life > 0

    def draw(self, surf):
        s = max(1, int(self.size))
        srf = pygame.Surface((s, s), pygame.SRCALPHA)
        srf.fill((*self.color, int(255 * clamp(self.life, 0, 1))))
        surf.blit(srf, (self.x, self.y))


class ConfettiField:
    def __init__(self, rng):
        self.rng = rng
        self.particles = []

    def __len__(self):
        return len(self.particles)

    def burst(self, x, y):
        rng = self.rng
        for _ in range(CONFETTI_COUNT):
            self.particles.append(ConfettiParticle(
                x, y,
                (rng.random() - 0.5) * 200,
                -rng.random() * 200,
                4 + rng.random() * 3,
                CONFETTI_COLORS[0] if rng.random() > 0.5 else CONFETTI_COLORS[1],
            ))

    def update(self, dt):
        self.particles = [p for p in self.particles if p.update(dt)]

    def draw(self, surf):
        for p in self.particles:
            p.draw(surf)


class ProgressTracker:
    def __init__(self, reduced_motion=False):
        self.reduced_motion = reduced_motion
        self.current = LIGHT_FLOOR
        self.target = LIGHT_FLOOR

    def increase_target(self):
        self.target = clamp(self.target + LIGHT_STEP, LIGHT_FLOOR, 1.0)
        if self.reduced_motion:
            self.current = self.target

    def update(self, dt):
        if self.reduced_motion:
            return
        self.current = lerp(self.current, self.target, min(1.0, dt * LIGHT_RATE))
        if abs(self.target - self.current) < LIGHT_SNAP:
            self.current = self.target


# ------------- Aufgaben-Tor -------------
class TaskGate:
    """Bindet "Lumi ist nahe der nächsten gesperrten Plattform" an die Aufgabe.

    IDLE -> PRESENTING sobald Lumi in der Nähe ist. Eine richtige Antwort
    läuft einmal durch RESOLVING (freischalten, feiern, Licht erhöhen) und
    landet wieder in IDLE. Falsche Antworten lassen alles, wie es ist.
    """

    IDLE, PRESENTING, RESOLVING = "IDLE", "PRESENTING", "RESOLVING"

    def __init__(self, ctx, level, player, fireflies, counting, confetti, progress):
        self.ctx = ctx
        self.level = level
        self.player = player
        self.fireflies = fireflies
        self.counting = counting
        self.confetti = confetti
        self.progress = progress

        self.state = self.IDLE
        self.active_platform = None
        self.current_task = None
        self.task_active = False
        self.answer_text = ""
        self.dialog = LUMI_LINES[0]
        self.completion_flagged = False
        self.suppressed = False
        self.solved = 0

    def is_player_near(self, platform):
        p = self.player
        close_x = p.x + p.w > platform.x - NEAR_X and p.x < platform.x + platform.width + NEAR_X
        close_y = p.bottom > platform.y - NEAR_Y
        return close_x and close_y

    def update(self):
        if self.suppressed:
            return
        nxt = self.level.get_next_locked_platform()
        if nxt is None:
            self._hide()
            return
        if self.is_player_near(nxt):
            if self.active_platform is not nxt:
                self.active_platform = nxt
                self.answer_text = ""
                self._present()
            elif not self.task_active:
                self._present()
        elif self.task_active:
            self._hide()

    def _present(self):
        platform = self.active_platform
        if platform.task is None:
            platform.task = self.ctx.tasks.create_task()
        task = self.current_task = platform.task
        self.task_active = True
        self.state = self.PRESENTING
        if task.kind == KIND_COUNT:
            self.counting.clear()
            self.counting.spawn(task.answer, rect_above(platform, 0, 80), self.progress.current)
        if self.ctx.settings.get("tts_auto"):
            self.ctx.speech.speak(task.spoken)

    def _hide(self):
        if not self.task_active:
            return
        self.task_active = False
        self.state = self.IDLE
        self.counting.clear()

    def suppress(self):
        self._hide()
        self.suppressed = True

    def type_key(self, key):
        if not self.task_active:
            return False
        if key == "←":
            self.answer_text = self.answer_text[:-1]
        elif key == "OK":
            return self.submit()
        elif key.isdigit() and len(self.answer_text) < ANSWER_MAX_LEN:
            self.answer_text += key
        return False

    def submit(self, text=None):
        if not self.task_active or self.current_task is None or self.active_platform is None:
            return False
        text = self.answer_text if text is None else text
        try:
            value = int(str(text).strip())
        except ValueError:
            value = None
        if value != self.current_task.answer:
            self.ctx.audio.play("soft_reject")
            self.dialog = LUMI_LINES[1]
            return False
        self.state = self.RESOLVING
        self._resolve()
        return True

    def _resolve(self):
        platform = self.active_platform
        self.ctx.audio.play("success")
        self.dialog = LUMI_LINES[2]
        self.counting.clear()
        self.level.unlock_platform(platform)
        self.fireflies.spawn(2 + self.ctx.rng.randrange(2), rect_above(platform, 40, 100), self.progress.current)
        self.confetti.burst(platform.centerx, platform.y)
        self.progress.increase_target()

        self.current_task = None
        self.active_platform = None
        self.answer_text = ""
        self.task_active = False
        self.solved += 1
        if self.level.get_next_locked_platform() is None:
            self.completion_flagged = True
            logger.info("Alle Aufgaben gelöst")
        self.state = self.IDLE


# ------------- Abschluss -------------
class CompletionSequencer:
    def __init__(self, ctx, level, player, gate):
        self.ctx = ctx
        self.level = level
        self.player = player
        self.gate = gate
        self.start = None
        self.ready_at = None

    @property
    def active(self):
        return self.start is not None

    def is_resting_on_final(self):
        last = self.level.final_platform
        if last is None:
            return False
        p = self.player
        return (p.overlaps_x(last) and abs(p.bottom - last.y) < COMPLETION_LAND_TOL
                and p.on_ground)

    def check_landing(self):
        if not self.gate.completion_flagged or self.active:
            return False
        if not self.is_resting_on_final():
            return False
        self.begin()
        return True

    def begin(self):
        if self.active:
            return
        self.start = self.ctx.clock()
        self.ready_at = self.start + COMPLETION_DELAY
        self.gate.suppress()
        logger.info("Abschluss gestartet")

    def is_ready(self):
        return self.active and self.ctx.clock() >= self.ready_at

    def overlay_alpha(self):
        if not self.active:
            return 0.0
        if self.ctx.reduced_motion:
            return 1.0
        return clamp((self.ctx.clock() - self.start) / COMPLETION_FADE, 0.0, 1.0)

    def handle_exit(self):
        if not self.is_ready():
            return False
        self.ctx.navigate()
        return True


# ------------- Session -------------
class Session:
    """Eine Runde: feste Reihenfolge Physik -> Abschluss -> Partikel -> Tor."""

    def __init__(self, ctx):
        self.ctx = ctx
        self.level = PlatformSequence(ctx.rng, on_tier_change=self._on_tier_change)
        self.player = Player(ctx.audio)
        self.fireflies = FireflyField(ctx.rng)
        self.counting = FireflyField(ctx.rng)
        self.confetti = ConfettiField(ctx.rng)
        self.progress = ProgressTracker(ctx.reduced_motion)
        self.gate = TaskGate(ctx, self.level, self.player, self.fireflies,
                             self.counting, self.confetti, self.progress)
        self.completion = CompletionSequencer(ctx, self.level, self.player, self.gate)
        self.input = InputState()
        self.player.place_on(self.level.get_spawn_platform(), 0.2)

    def _on_tier_change(self, tier):
        logger.info("Hintergrundstufe %d", tier)
        if self.ctx.assets is not None:
            self.ctx.assets.request_background(tier)

    def step(self, dt):
        dt = clamp(dt, 0.0, MAX_DT)
        self.progress.update(dt)
        self.player.update(dt, self.input, self.level.get_solid_platforms(),
                           self.level.get_spawn_platform())
        self.completion.check_landing()
        self.fireflies.update(dt)
        self.counting.update(dt)
        self.confetti.update(dt)
        self.gate.update()
        return dt


# ------------- Input -------------
class InputPoller:
    """Liest Tastatur und gehaltene Touch-Buttons einmal pro Frame."""

    def __init__(self, touch_buttons):
        self.touch_buttons = touch_buttons

    def poll(self, state):
        keys = pygame.key.get_pressed()
        held = {}
        if pygame.mouse.get_pressed()[0]:
            pos = pygame.mouse.get_pos()
            held = {action: rect.collidepoint(pos) for action, rect in self.touch_buttons.items()}
        state.left = keys[pygame.K_LEFT] or keys[pygame.K_a] or held.get("left", False)
        state.right = keys[pygame.K_RIGHT] or keys[pygame.K_d] or held.get("right", False)
        state.jump = (keys[pygame.K_SPACE] or keys[pygame.K_UP] or keys[pygame.K_w]
                      or held.get("jump", False))
        return state


# ---------------- Game ----------------
class Game:
    def __init__(self, ctx, snapshot_dir="."):
        pygame.init()
        pygame.display.set_caption("Lumoland – Glühwürmchen-Jagd")
        self.screen = pygame.display.set_mode((WIDTH, HEIGHT))
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 30)
        self.font_big = pygame.font.Font(None, 44)
        self.font_small = pygame.font.Font(None, 22)

        self.ctx = ctx
        self.ctx.navigate = self.leave
        self.snapshot_dir = snapshot_dir
        self.session = Session(ctx)
        self.running = True
        self.result = "intro"

        self.flash_t = 0.0
        self.photo_due = None
        self._gradient_cache = (None, None)
        self._vignette = self._build_vignette()

        self.keypad = {}
        for i, key in enumerate(KEYPAD_KEYS):
            col, row = i % 3, i // 3
            self.keypad[key] = pygame.Rect(620 + col * 106, WORLD_H + 8 + row * 42, 100, 36)
        self.buttons = {
            "speak": pygame.Rect(360, WORLD_H + 70, 105, 36),
            "photo": pygame.Rect(475, WORLD_H + 70, 105, 36),
            "mute": pygame.Rect(360, WORLD_H + 114, 220, 36),
        }
        self.touch = {
            "left": pygame.Rect(16, WORLD_H + 120, 56, 44),
            "right": pygame.Rect(80, WORLD_H + 120, 56, 44),
            "jump": pygame.Rect(144, WORLD_H + 120, 56, 44),
        }
        self.poller = InputPoller(self.touch)

    def leave(self):
        self.running = False
        self.result = "intro"

    # --- Aktionen ---
    def toggle_mute(self):
        muted = not self.ctx.settings.get("mute")
        self.ctx.settings.set("mute", muted)
        self.ctx.audio.set_mute(muted)
        if muted:
            self.ctx.speech.cancel()

    def read_aloud(self):
        task = self.session.gate.current_task
        if task is None:
            return
        if self.ctx.settings.get("mute"):
            self.session.gate.dialog = TTS_MUTED
        elif not self.ctx.speech.speak(task.spoken):
            self.session.gate.dialog = TTS_MISSING

    def take_photo(self):
        if self.photo_due is not None:
            return
        if self.ctx.reduced_motion:
            self.photo_due = 0.0
        else:
            self.flash_t = FLASH_TIME
            self.photo_due = FLASH_TIME

    def save_snapshot(self):
        name = f"{SNAPSHOT_PREFIX}{format_timestamp(datetime.now())}.png"
        path = os.path.join(self.snapshot_dir, name)
        try:
            pygame.image.save(self.screen.subsurface((0, 0, WIDTH, WORLD_H)), path)
        except (pygame.error, OSError) as exc:
            logger.warning("Foto konnte nicht gespeichert werden: %s", exc)
            return
        logger.info("Foto gespeichert: %s", path)
        self.ctx.audio.play("shutter")

    # --- Events ---
    def handle_event(self, e):
        if e.type == pygame.QUIT:
            self.running = False
            self.result = "quit"
            return
        completion = self.session.completion
        if completion.active:
            if e.type in (pygame.KEYDOWN, pygame.MOUSEBUTTONDOWN):
                completion.handle_exit()
            return

        gate = self.session.gate
        if e.type == pygame.KEYDOWN:
            if e.key == pygame.K_ESCAPE: self.leave(); return
            if e.key == pygame.K_p: self.take_photo(); return
            if e.key == pygame.K_m: self.toggle_mute(); return
            if e.key == pygame.K_r: self.read_aloud(); return
            if not gate.task_active:
                return
            if e.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                gate.type_key("OK")
            elif e.key == pygame.K_BACKSPACE:
                gate.type_key("←")
            elif e.unicode and e.unicode in "0123456789":
                gate.type_key(e.unicode)
        elif e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
            for key, rect in self.keypad.items():
                if rect.collidepoint(e.pos):
                    gate.type_key(key)
                    return
            if self.buttons["speak"].collidepoint(e.pos): self.read_aloud()
            elif self.buttons["photo"].collidepoint(e.pos): self.take_photo()
            elif self.buttons["mute"].collidepoint(e.pos): self.toggle_mute()

    def update_photo(self, dt):
        if self.flash_t > 0:
            self.flash_t = max(0.0, self.flash_t - dt)
        if self.photo_due is not None:
            self.photo_due -= dt

    # --- Zeichnen ---
    def _gradient(self, light):
        key = round(light, 2)
        cached_key, surf = self._gradient_cache
        if cached_key == key:
            return surf
        top = mix_colors(COL_NIGHT_BG, COL_CREAM, light)
        mid = mix_colors(COL_NIGHT_BG2, COL_TEXT_SOFT, light * 0.8)
        bot = mix_colors(COL_NIGHT_PRIMARY, COL_TEXT_SOFT, light * 0.6)
        surf = pygame.Surface((WIDTH, WORLD_H))
        half = WORLD_H / 2
        for y in range(WORLD_H):
            col = mix_colors(top, mid, y / half) if y < half else mix_colors(mid, bot, (y - half) / half)
            pygame.draw.line(surf, col, (0, y), (WIDTH, y))
        self._gradient_cache = (key, surf)
        return surf

    def _build_vignette(self):
        surf = pygame.Surface((WIDTH, WORLD_H), pygame.SRCALPHA)
        radius = WIDTH * 0.7
        cx, cy = WIDTH // 2, WORLD_H // 2
        surf.fill((12, 16, 22, 255))
        steps = 24
        for i in range(steps):
            t = i / steps
            r = int(lerp(radius, radius * 0.2, t))
            a = int(lerp(255, 40, t))
            pygame.draw.circle(surf, (12, 16, 22, a), (cx, cy), r)
        return surf

    def draw_background(self, light):
        assets = self.ctx.assets
        bg = assets.background if assets is not None else None
        image = bg.scaled((WIDTH, WORLD_H)) if bg is not None else None
        if image is not None:
            self.screen.blit(image, (0, 0))
            overlay = self._gradient(light).copy()
            overlay.set_alpha(5)
            self.screen.blit(overlay, (0, 0))
        else:
            self.screen.blit(self._gradient(light), (0, 0))

    def draw_platforms(self):
        level = self.session.level
        g = level.ground
        pygame.draw.rect(self.screen, COL_GROUND, (g.x, g.y, g.width, g.height))
        pygame.draw.rect(self.screen, COL_GROUND_TOP, (g.x, g.y, g.width, 5))
        for p in level.platforms:
            srf = pygame.Surface((int(p.width), int(p.height)), pygame.SRCALPHA)
            alpha = 230 if p.unlocked else 90
            pygame.draw.rect(srf, (*COL_MOON, alpha), srf.get_rect(), border_radius=6)
            self.screen.blit(srf, (p.x, p.y))

    def draw_vignette(self, darkness):
        self._vignette.set_alpha(int(255 * clamp(darkness * 0.3, 0, 1)))
        self.screen.blit(self._vignette, (0, 0))

    def wrap(self, text, max_width):
        lines, line = [], ""
        for word in text.split(" "):
            test = f"{line} {word}" if line else word
            if self.font_small.size(test)[0] > max_width and line:
                lines.append(line)
                line = word
            else:
                line = test
        if line:
            lines.append(line)
        return lines

    def draw_task_bubble(self):
        gate = self.session.gate
        if not gate.task_active or gate.current_task is None or gate.active_platform is None:
            return
        padding, line_h, max_w = 12, 20, 260
        lines = self.wrap(f"{gate.current_task.prompt} =", max_w)
        if gate.answer_text:
            lines.append(gate.answer_text)
        text_w = min(max_w, max(self.font_small.size(l)[0] for l in lines))
        bw, bh = text_w + padding * 2, len(lines) * line_h + padding * 2
        anchor = gate.active_platform
        bx = clamp(anchor.centerx - bw / 2, 12, WIDTH - bw - 12)
        by = max(12, anchor.y - bh - 12)
        bubble = pygame.Rect(int(bx), int(by), int(bw), int(bh))
        shade = pygame.Surface(bubble.size, pygame.SRCALPHA)
        pygame.draw.rect(shade, (46, 63, 82, 242), shade.get_rect(), border_radius=12)
        pygame.draw.rect(shade, (*COL_ACCENT, 150), shade.get_rect(), 2, border_radius=12)
        self.screen.blit(shade, bubble)
        for i, text in enumerate(lines):
            img = self.font_small.render(text, True, COL_CREAM)
            self.screen.blit(img, (bubble.x + padding, bubble.y + padding + i * line_h))

    def draw_completion(self):
        completion = self.session.completion
        if not completion.active:
            return
        alpha = int(255 * completion.overlay_alpha())
        layer = pygame.Surface((WIDTH, WORLD_H), pygame.SRCALPHA)
        image = self.ctx.assets.completion() if self.ctx.assets is not None else None
        if image is not None and image.ready:
            layer.blit(image.scaled((WIDTH, WORLD_H)), (0, 0))
        else:
            layer.fill((*COL_NIGHT_BG2, 255))
            pygame.draw.circle(layer, (*COL_ACCENT, 120), (WIDTH // 2, WORLD_H // 2 + 30), 90)
        txt = self.font_big.render(COMPLETION_TEXT, True, COL_CREAM)
        layer.blit(txt, txt.get_rect(midtop=(WIDTH // 2, 36)))
        if completion.is_ready():
            sub = self.font_small.render("Taste drücken oder klicken", True, COL_TEXT_SOFT)
            layer.blit(sub, sub.get_rect(midbottom=(WIDTH // 2, WORLD_H - 20)))
        layer.set_alpha(alpha)
        self.screen.blit(layer, (0, 0))

    def draw_button(self, rect, label, active=True):
        pygame.draw.rect(self.screen, COL_BUTTON if active else COL_PANEL, rect, border_radius=8)
        pygame.draw.rect(self.screen, COL_BUTTON_HI, rect, 1, border_radius=8)
        img = self.font_small.render(label, True, COL_CREAM if active else COL_DIM)
        self.screen.blit(img, img.get_rect(center=rect.center))

    def draw_panel(self):
        gate = self.session.gate
        light = self.session.progress.current
        pygame.draw.rect(self.screen, COL_PANEL, (0, WORLD_H, WIDTH, PANEL_H))

        dimg = self.font.render(gate.dialog, True, COL_CREAM)
        self.screen.blit(dimg, (16, WORLD_H + 12))
        meter = pygame.Rect(16, WORLD_H + 52, 300, 16)
        pygame.draw.rect(self.screen, COL_BUTTON, meter, border_radius=8)
        fill = meter.copy(); fill.width = int(meter.width * light)
        pygame.draw.rect(self.screen, COL_ACCENT, fill, border_radius=8)
        limg = self.font_small.render(f"Licht {round(light * 100)}%", True, COL_TEXT_SOFT)
        self.screen.blit(limg, (16, WORLD_H + 74))
        himg = self.font_small.render("A/D laufen · Leertaste springen", True, COL_DIM)
        self.screen.blit(himg, (16, WORLD_H + 96))
        for action, label in (("left", "<"), ("right", ">"), ("jump", "^")):
            self.draw_button(self.touch[action], label)

        field = pygame.Rect(360, WORLD_H + 14, 220, 44)
        pygame.draw.rect(self.screen, COL_BUTTON, field, border_radius=8)
        if gate.task_active:
            text, col = gate.answer_text or " ", COL_CREAM
        elif gate.current_task is not None:
            text, col = gate.current_task.prompt, COL_DIM
        else:
            text, col = "", COL_DIM
        fimg = self.font.render(text, True, col)
        if fimg.get_width() > field.width - 16:
            fimg = self.font_small.render(text[:28] + "…", True, col)
        self.screen.blit(fimg, fimg.get_rect(midleft=(field.x + 10, field.centery)))

        self.draw_button(self.buttons["speak"], "Vorlesen (R)", gate.current_task is not None)
        self.draw_button(self.buttons["photo"], "Foto (P)")
        self.draw_button(self.buttons["mute"], "Ton an (M)" if self.ctx.settings.get("mute") else "Ton aus (M)")
        for key, rect in self.keypad.items():
            self.draw_button(rect, "Lösch" if key == "←" else key, gate.task_active)

    def draw(self):
        s = self.session
        light = s.progress.current
        self.draw_background(light)
        self.draw_platforms()
        s.fireflies.draw(self.screen, light)
        s.counting.draw(self.screen, light)
        s.confetti.draw(self.screen)
        self.draw_task_bubble()
        s.player.draw(self.screen)
        self.draw_vignette(1 - light)
        self.draw_completion()
        self.draw_panel()

        if self.photo_due is not None and self.photo_due <= 0:
            self.photo_due = None
            self.save_snapshot()
        if self.flash_t > 0:
            flash = pygame.Surface((WIDTH, WORLD_H), pygame.SRCALPHA)
            flash.fill((255, 255, 255, int(230 * self.flash_t / FLASH_TIME)))
            self.screen.blit(flash, (0, 0))

    def run(self):
        while self.running:
            dt = min(MAX_DT, self.clock.tick(FPS) / 1000.0)
            for e in pygame.event.get():
                self.handle_event(e)
                if not self.running:
                    break
            self.poller.poll(self.session.input)
            self.session.step(dt)
            self.update_photo(dt)
            self.draw()
            pygame.display.flip()
        return self.result


# ------------- main -------------
def build_context(args):
    settings = Settings(args.settings)
    if args.grade:
        settings.set("grade", args.grade)
    rng = random.Random(args.seed)
    return SessionContext(
        settings=settings,
        audio=AudioBus(settings),
        speech=Speech(settings),
        tasks=MathEngine(lambda: settings.grade, rng),
        rng=rng,
        reduced_motion=args.reduced_motion or reduced_motion_from_env(),
        assets=AssetStore(args.assets),
    )


def main(argv=None):
    parser = argparse.ArgumentParser(description="Lumoland – Glühwürmchen-Jagd starten")
    parser.add_argument("--settings", help=(
        "Pfad zur Einstellungsdatei (JSON). Fehlt der Parameter, wird die "
        "Umgebungsvariable LUMOLAND_SETTINGS_FILE und dann lumoland_settings.json genutzt."
    ))
    parser.add_argument("--assets", help="Ordner mit Hintergrundbildern (sonst LUMOLAND_ASSET_DIR bzw. ./assets)")
    parser.add_argument("--grade", help="Schwierigkeitsstufe setzen und speichern")
    parser.add_argument("--seed", type=int, help="Zufallsstartwert für reproduzierbare Level")
    parser.add_argument("--reduced-motion", action="store_true", help="Animationen reduzieren")
    parser.add_argument("--skip-intro", action="store_true", help="Direkt ins Spiel starten")
    parser.add_argument("--snapshots", default=".", help="Ordner für Fotos")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug-Ausgaben")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    pygame.init()
    ctx = build_context(args)
    logger.info("Einstellungen aus %s, Stufe %s", ctx.settings.path, ctx.settings.grade)
    ctx.audio.init()

    screen = "game" if args.skip_intro else "intro"
    while screen != "quit":
        if screen == "intro":
            screen = IntroScreen(ctx.settings, ctx.speech, ctx.tasks, ctx.audio).run()
        else:
            screen = Game(ctx, args.snapshots).run()

    ctx.speech.cancel()
    pygame.quit()


if __name__ == "__main__":
    main()
