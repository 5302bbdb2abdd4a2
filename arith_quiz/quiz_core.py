"""Shared value types for the arithmetic quiz core.

Everything here is pure data or deterministic helpers: the seeded random
source every generator draws from, the operator/question/option types, the
error taxonomy and a couple of formatting helpers used by the UI.
"""

from __future__ import annotations

import math
import operator
import random
from collections.abc import Callable, Iterator, MutableSequence, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

T = TypeVar("T")


class QuizError(Exception):
    """Base class for all quiz-core errors."""


class InvalidSettings(QuizError, ValueError):
    """A settings field is missing, non-numeric or out of range."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        super().__init__(f"invalid {field}={value!r}: {reason}")
        self.field = field
        self.value = value
        self.reason = reason


class GenerationExhausted(QuizError, RuntimeError):
    """Distractor generation could not reach the requested option count."""

    def __init__(self, *, correct: int, count: int, attempts: int, reached: int) -> None:
        super().__init__(
            f"could not build {count} unique options around {correct} "
            f"after {attempts} attempts (reached {reached})"
        )
        self.correct = correct
        self.count = count
        self.attempts = attempts
        self.reached = reached


class InvalidInput(QuizError):
    """An answer submission that is not a usable answer value."""


class StaleTransition(QuizError):
    """A tick or submission that arrived after the session stopped accepting it."""


class SeededRng:
    """Seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int | None = None) -> None:
        if seed is None:
            seed = random.SystemRandom().randint(1, 2**31 - 1)
        self._seed = int(seed)
        self._rng = random.Random(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        return seq[self.randint(0, len(seq) - 1)]

    def random(self) -> float:
        return self._rng.random()

    def shuffle(self, values: MutableSequence[T]) -> None:
        # In-place Fisher-Yates, drawn through randint so the stream stays explicit.
        for i in range(len(values) - 1, 0, -1):
            j = self.randint(0, i)
            values[i], values[j] = values[j], values[i]


class Operator(str, Enum):
    ADD = "+"
    SUB = "−"
    MUL = "×"
    DIV = "÷"

    @property
    def symbol(self) -> str:
        return self.value

    def apply(self, a: int, b: int) -> int:
        return _OPERATOR_FUNCS[self](a, b)


def _truncating_div(a: int, b: int) -> int:
    # Python's // floors; quiz division truncates toward zero.
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


_OPERATOR_FUNCS: dict[Operator, Callable[[int, int], int]] = {
    Operator.ADD: operator.add,
    Operator.SUB: operator.sub,
    Operator.MUL: operator.mul,
    Operator.DIV: _truncating_div,
}


@dataclass(frozen=True, slots=True)
class Question:
    operand_a: int
    operand_b: int
    operator: Operator
    correct_answer: int

    @property
    def prompt(self) -> str:
        return f"{self.operand_a} {self.operator.symbol} {self.operand_b}"

    def evaluate(self) -> int:
        """Recompute the answer from the displayed operands."""
        return self.operator.apply(self.operand_a, self.operand_b)


@dataclass(frozen=True, slots=True)
class OptionSet:
    """Ordered, duplicate-free answer choices for one question."""

    values: tuple[int, ...]

    def __post_init__(self) -> None:
        if len(set(self.values)) != len(self.values):
            raise ValueError(f"options must be unique: {self.values!r}")

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[int]:
        return iter(self.values)

    def __contains__(self, value: object) -> bool:
        return value in self.values

    def __getitem__(self, index: int) -> int:
        return self.values[index]

    def index_of(self, value: int) -> int:
        return self.values.index(value)


def format_clock(total_seconds: float) -> str:
    """Format seconds as HH:MM:SS (fractions rounded up, never negative)."""

    secs = max(0, math.ceil(float(total_seconds)))
    hours, rem = divmod(secs, 3600)
    minutes, seconds = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
