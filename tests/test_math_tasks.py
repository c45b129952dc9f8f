"""Tests for task generation."""
import random
import re

import pytest

from math_tasks import (
    DEFAULT_DIFFICULTY,
    DIFFICULTIES,
    KIND_COUNT,
    MAX_ATTEMPTS,
    MathEngine,
    TaskDescriptor,
    draw_bounded,
    normalise_difficulty,
)

WORD_PROBLEM = re.compile(r"Lumi sammelt (\d+) Glühwürmchen pro Ast\. Wie viele sind es nach (\d+) Ästen\?")
BINARY = re.compile(r"^(\d+) ([+\-×÷]) (\d+)$")


def evaluate(prompt):
    match = WORD_PROBLEM.match(prompt)
    if match:
        return int(match.group(1)) * int(match.group(2))
    a, op, b = BINARY.match(prompt).groups()
    a, b = int(a), int(b)
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "×":
        return a * b
    assert a % b == 0
    return a // b


@pytest.mark.parametrize("grade", [g for g in DIFFICULTIES if g != "pre"])
def test_answers_match_prompts(grade):
    engine = MathEngine(grade, random.Random(5))
    for _ in range(300):
        task = engine.create_task()
        assert task.kind != KIND_COUNT
        assert task.answer == evaluate(task.prompt)
        assert task.answer >= 0


def test_counting_tasks():
    engine = MathEngine("pre", random.Random(1))
    for _ in range(100):
        task = engine.create_task()
        assert task.kind == KIND_COUNT
        assert 2 <= task.answer <= 9


def test_addition_within_ten():
    engine = MathEngine("addition-within-10", random.Random(2))
    for _ in range(300):
        task = engine.create_task()
        a, op, b = BINARY.match(task.prompt).groups()
        assert op == "+"
        assert int(a) >= 1 and int(b) >= 1
        assert task.answer <= 10


def test_subtraction_never_negative():
    engine = MathEngine("1-2", random.Random(3))
    subtractions = [t for t in (engine.create_task() for _ in range(400)) if " - " in t.prompt]
    assert subtractions
    assert all(t.answer >= 0 for t in subtractions)


def test_draw_bounded_returns_first_accepted():
    draws = iter([(1, 5), (2, 5), (6, 5)])
    assert draw_bounded(lambda: next(draws), lambda a, b: a >= b, (0, 0)) == (6, 5)


def test_draw_bounded_falls_back():
    calls = []

    def draw():
        calls.append(1)
        return 1, 2

    assert draw_bounded(draw, lambda a, b: False, (9, 9)) == (9, 9)
    assert len(calls) == MAX_ATTEMPTS


def test_unknown_difficulty_maps_to_default():
    assert normalise_difficulty("kindergarten") == DEFAULT_DIFFICULTY
    assert normalise_difficulty(None) == DEFAULT_DIFFICULTY
    assert MathEngine("nonsense", random.Random(0)).difficulty == DEFAULT_DIFFICULTY


def test_callable_difficulty_is_read_per_task():
    grade = {"value": "pre"}
    engine = MathEngine(lambda: grade["value"], random.Random(4))
    assert engine.create_task().kind == KIND_COUNT
    grade["value"] = "addition-within-10"
    assert engine.create_task().kind != KIND_COUNT


def test_explicit_difficulty_overrides_engine():
    engine = MathEngine("pre", random.Random(6))
    assert engine.create_task("3-4").kind != KIND_COUNT


def test_samples():
    engine = MathEngine("pre", random.Random(8))
    samples = engine.get_samples()
    assert len(samples) == 3
    assert samples[0][0] == "Zähle bis 5: •••••"
    assert all(speech for _, speech in samples)

    samples = engine.get_samples("1-2")
    assert len(samples) == 3
    for text, _ in samples:
        assert BINARY.match(text)


def test_spoken_falls_back_to_prompt():
    assert TaskDescriptor("2 + 2", 4).spoken == "2 + 2"
    assert TaskDescriptor("2 + 2", 4, "2 plus 2").spoken == "2 plus 2"
