from typing import Dict, List, Optional, Tuple

import pygame

from math_tasks import DIFFICULTIES
from sound import TTS_MISSING, TTS_MUTED

WINDOW_WIDTH = 960
WINDOW_HEIGHT = 600

COL_BG = (31, 42, 56)
COL_PANEL = (24, 32, 44)
COL_CHIP = (46, 63, 82)
COL_CHIP_ACTIVE = (243, 210, 122)
COL_TEXT = (255, 246, 236)
COL_DIM = (170, 180, 195)

TTS_HINT = "Tipp: Du kannst jede Aufgabe vorlesen lassen."
ABOUT_LINES = [
    "Lumi braucht Licht! Jede gelöste Aufgabe lässt eine neue",
    "Mondplattform erscheinen und den Wald heller leuchten.",
    "Laufen: A/D oder Pfeile · Springen: Leertaste",
    "Antworten: Zahlen tippen oder Tastenfeld, Enter bestätigt.",
]


class IntroScreen:
    """Startseite: Stufe wählen, Beispielaufgaben anhören, Ton einstellen."""

    def __init__(self, settings, speech, tasks, audio=None):
        pygame.init()
        pygame.display.set_caption("Lumoland")
        self.screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
        self.clock = pygame.time.Clock()

        self.font_big = pygame.font.Font(None, 56)
        self.font = pygame.font.Font(None, 30)
        self.font_small = pygame.font.Font(None, 22)

        self.settings = settings
        self.speech = speech
        self.tasks = tasks
        self.audio = audio

        self.grades: List[str] = list(DIFFICULTIES)
        self.chips: Dict[str, pygame.Rect] = {}
        x = 40
        for grade in self.grades:
            width = self.font.size(DIFFICULTIES[grade])[0] + 32
            self.chips[grade] = pygame.Rect(x, 150, width, 40)
            x += width + 12

        self.samples: List[Tuple[str, str]] = []
        self.listen_buttons: List[pygame.Rect] = []
        self.mute_button = pygame.Rect(40, 470, 200, 40)
        self.about_button = pygame.Rect(256, 470, 120, 40)
        self.start_button = pygame.Rect(WINDOW_WIDTH - 260, 460, 220, 56)
        self.note = TTS_HINT if speech.available else TTS_MISSING
        self.show_about = False
        self._render_samples()

    # ------------- Hilfsmethoden -------------
    def _render_samples(self) -> None:
        self.samples = self.tasks.get_samples(self.settings.grade)
        self.listen_buttons = [
            pygame.Rect(WINDOW_WIDTH - 200, 236 + i * 64, 150, 40) for i in range(len(self.samples))
        ]

    def _select(self, grade: str) -> None:
        self.settings.set("grade", grade)
        self._render_samples()

    def _cycle_selection(self, direction: int) -> None:
        idx = self.grades.index(self.settings.grade)
        self._select(self.grades[(idx + direction) % len(self.grades)])

    def _toggle_mute(self) -> None:
        muted = not self.settings.get("mute")
        self.settings.set("mute", muted)
        if self.audio is not None:
            self.audio.set_mute(muted)
        if muted:
            self.speech.cancel()
        elif self.note == TTS_MUTED:
            self.note = TTS_HINT if self.speech.available else TTS_MISSING

    def _listen(self, index: int) -> None:
        if self.settings.get("mute"):
            self.note = TTS_MUTED
        elif not self.speech.speak(self.samples[index][1]):
            self.note = TTS_MISSING

    def _handle_click(self, pos) -> Optional[str]:
        if self.show_about:
            self.show_about = False
            return None
        for grade, rect in self.chips.items():
            if rect.collidepoint(pos):
                self._select(grade)
                return None
        for i, rect in enumerate(self.listen_buttons):
            if rect.collidepoint(pos):
                self._listen(i)
                return None
        if self.mute_button.collidepoint(pos):
            self._toggle_mute()
        elif self.about_button.collidepoint(pos):
            self.show_about = True
        elif self.start_button.collidepoint(pos):
            return "game"
        return None

    # ------------- Hauptschleife -------------
    def run(self) -> str:
        while True:
            self.clock.tick(60)
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    return "quit"
                if event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        if self.show_about:
                            self.show_about = False
                        else:
                            return "quit"
                    elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                        return "game"
                    elif event.key == pygame.K_TAB:
                        direction = -1 if pygame.key.get_mods() & pygame.KMOD_SHIFT else 1
                        self._cycle_selection(direction)
                    elif event.key == pygame.K_m:
                        self._toggle_mute()
                    elif event.key == pygame.K_i:
                        self.show_about = not self.show_about
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    result = self._handle_click(event.pos)
                    if result:
                        return result
            self.draw()

    # ------------- Rendering -------------
    def _button(self, rect: pygame.Rect, label: str, active: bool = False) -> None:
        pygame.draw.rect(self.screen, COL_CHIP_ACTIVE if active else COL_CHIP, rect, border_radius=20)
        img = self.font.render(label, True, COL_BG if active else COL_TEXT)
        self.screen.blit(img, img.get_rect(center=rect.center))

    def draw(self) -> None:
        self.screen.fill(COL_BG)
        title = self.font_big.render("Lumoland – Glühwürmchen-Jagd", True, COL_CHIP_ACTIVE)
        self.screen.blit(title, (40, 40))
        sub = self.font_small.render("Wähle deine Stufe (Tab wechselt):", True, COL_DIM)
        self.screen.blit(sub, (40, 120))

        current = self.settings.grade
        for grade, rect in self.chips.items():
            self._button(rect, DIFFICULTIES[grade], grade == current)

        for i, (text, _) in enumerate(self.samples):
            row = pygame.Rect(40, 230 + i * 64, WINDOW_WIDTH - 80, 52)
            pygame.draw.rect(self.screen, COL_PANEL, row, border_radius=10)
            img = self.font.render(text, True, COL_TEXT)
            if img.get_width() > row.width - 200:
                img = self.font_small.render(text, True, COL_TEXT)
            self.screen.blit(img, img.get_rect(midleft=(row.x + 16, row.centery)))
            self._button(self.listen_buttons[i], "Anhören")

        note = self.font_small.render(self.note, True, COL_DIM)
        self.screen.blit(note, (40, 430))

        self._button(self.mute_button, "Ton an" if self.settings.get("mute") else "Ton aus")
        self._button(self.about_button, "Über")
        self._button(self.start_button, "Los geht's!", True)

        if self.show_about:
            shade = pygame.Surface((WINDOW_WIDTH, WINDOW_HEIGHT), pygame.SRCALPHA)
            shade.fill((12, 16, 22, 200))
            self.screen.blit(shade, (0, 0))
            box = pygame.Rect(120, 160, WINDOW_WIDTH - 240, 220)
            pygame.draw.rect(self.screen, COL_PANEL, box, border_radius=14)
            for i, line in enumerate(ABOUT_LINES):
                img = self.font_small.render(line, True, COL_TEXT)
                self.screen.blit(img, (box.x + 24, box.y + 28 + i * 30))
            hint = self.font_small.render("Klicken oder Esc zum Schließen", True, COL_DIM)
            self.screen.blit(hint, (box.x + 24, box.bottom - 40))

        pygame.display.flip()
