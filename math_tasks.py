import logging
import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Auswahl -> Beschriftung (Intro-Chips)
DIFFICULTIES = {
    "pre": "Vorschule",
    "addition-within-10": "Plus bis 10",
    "1-2": "Klasse 1–2",
    "3-4": "Klasse 3–4",
    "5-6": "Klasse 5–6",
}
DEFAULT_DIFFICULTY = "pre"

MAX_ATTEMPTS = 50

KIND_COUNT = "count"
KIND_ARITHMETIC = "arithmetic"


@dataclass(frozen=True)
class TaskDescriptor:
    prompt: str
    answer: int
    speech: Optional[str] = None
    kind: str = KIND_ARITHMETIC

    @property
    def spoken(self) -> str:
        return self.speech or self.prompt


def normalise_difficulty(value) -> str:
    return value if value in DIFFICULTIES else DEFAULT_DIFFICULTY


def draw_bounded(draw: Callable[[], Tuple[int, int]],
                 accept: Callable[[int, int], bool],
                 fallback: Tuple[int, int]) -> Tuple[int, int]:
    """Zieht Operanden, bis `accept` passt; nach MAX_ATTEMPTS gilt `fallback`."""

    for _ in range(MAX_ATTEMPTS):
        a, b = draw()
        if accept(a, b):
            return a, b
    logger.warning("Keine passende Aufgabe nach %d Versuchen, nutze %s", MAX_ATTEMPTS, fallback)
    return fallback


class MathEngine:
    """Erzeugt Rechenaufgaben passend zur eingestellten Stufe.

    `difficulty` ist entweder ein fester Wert oder ein Callable, das die
    aktuelle Stufe liefert (z.B. aus den Einstellungen).
    """

    def __init__(self, difficulty=DEFAULT_DIFFICULTY, rng: Optional[random.Random] = None):
        self._difficulty = difficulty
        self.rng = rng or random.Random()

    @property
    def difficulty(self) -> str:
        value = self._difficulty() if callable(self._difficulty) else self._difficulty
        return normalise_difficulty(value)

    def create_task(self, difficulty: Optional[str] = None) -> TaskDescriptor:
        grade = normalise_difficulty(difficulty) if difficulty else self.difficulty
        if grade == "pre":
            return self.create_counting()
        if grade == "addition-within-10":
            return self.create_addition(10)
        if grade == "1-2":
            return self.create_add_sub(20)
        if grade == "3-4":
            return self.create_add_sub(100, include_multiplication=True)
        return self.create_advanced()

    def create_counting(self) -> TaskDescriptor:
        count = self.rng.randint(2, 9)
        return TaskDescriptor(
            prompt="Wie viele Glühwürmchen leuchten?",
            answer=count,
            speech="Zähle die Glühwürmchen. Wie viele sind es?",
            kind=KIND_COUNT,
        )

    def create_addition(self, limit: int) -> TaskDescriptor:
        rng = self.rng
        a, b = draw_bounded(
            lambda: (rng.randint(1, limit - 1), rng.randint(1, limit - 1)),
            lambda a, b: a + b <= limit,
            (limit // 2, limit - limit // 2),
        )
        return TaskDescriptor(f"{a} + {b}", a + b, f"{a} plus {b}")

    def create_add_sub(self, maximum: int, include_multiplication: bool = False) -> TaskDescriptor:
        rng = self.rng
        if include_multiplication and rng.random() > 0.7:
            return self.create_multiplication()
        if rng.random() > 0.4:
            a, b = rng.randint(1, maximum), rng.randint(1, maximum)
            return TaskDescriptor(f"{a} + {b}", a + b, f"{a} plus {b}")
        # Ergebnis nie unter null
        a, b = draw_bounded(
            lambda: (rng.randint(1, maximum), rng.randint(1, maximum)),
            lambda a, b: a - b >= 0,
            (maximum, 1),
        )
        return TaskDescriptor(f"{a} - {b}", a - b, f"{a} minus {b}")

    def create_multiplication(self) -> TaskDescriptor:
        a, b = self.rng.randint(2, 9), self.rng.randint(2, 9)
        return TaskDescriptor(f"{a} × {b}", a * b, f"{a} mal {b}")

    def create_advanced(self) -> TaskDescriptor:
        rng = self.rng
        if rng.random() > 0.6:
            a, b = rng.randint(3, 8), rng.randint(2, 6)
            return TaskDescriptor(
                f"Lumi sammelt {a} Glühwürmchen pro Ast. Wie viele sind es nach {b} Ästen?",
                a * b,
                f"Rechne {a} mal {b}.",
            )
        if rng.random() > 0.5:
            b = rng.randint(2, 9)
            answer = rng.randint(2, 9)
            a = b * answer
            return TaskDescriptor(f"{a} ÷ {b}", answer, f"{a} geteilt durch {b}")
        return self.create_add_sub(60, include_multiplication=True)

    def get_samples(self, difficulty: Optional[str] = None) -> List[Tuple[str, str]]:
        """Drei Beispiele (Text, Sprechtext) für die Intro-Seite."""

        grade = normalise_difficulty(difficulty) if difficulty else self.difficulty
        samples = []
        for _ in range(3):
            task = self.create_task(grade)
            samples.append((task.prompt, task.spoken))
        if grade == "pre":
            samples = [
                ("Zähle bis 5: •••••", samples[0][1]),
                ("Wie viele Sterne siehst du? (7)", samples[1][1]),
                ("Zähle bis 10: ★★★★★★★★★★", samples[2][1]),
            ]
        return samples
