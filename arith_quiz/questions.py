from __future__ import annotations

import logging
from dataclasses import dataclass

from .quiz_core import Operator, Question, SeededRng

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OperandRanges:
    operand_min: int = 2
    operand_max: int = 20
    product_cap: int = 50
    divisor_min: int = 2
    divisor_max: int = 10
    quotient_min: int = 2
    quotient_max: int = 10
    max_resamples: int = 64

    def __post_init__(self) -> None:
        if self.operand_min < 1 or self.operand_max < self.operand_min:
            raise ValueError("operand range must be a non-empty range of positive integers")
        if self.operand_min * self.operand_min > self.product_cap:
            raise ValueError("product_cap leaves no valid multiplication pair")
        if self.divisor_min < 1 or self.divisor_max < self.divisor_min:
            raise ValueError("divisor range must be a non-empty range of positive integers")
        if self.quotient_min < 1 or self.quotient_max < self.quotient_min:
            raise ValueError("quotient range must be a non-empty range of positive integers")
        if self.max_resamples < 1:
            raise ValueError("max_resamples must be >= 1")


class QuestionGenerator:
    """Deterministic generator of single-operator arithmetic questions.

    Addition, subtraction and multiplication draw both operands from the
    operand range.  Multiplication rejects pairs whose product exceeds the
    cap; subtraction orders its operands so the result is never negative
    and rejects equal operands so every answer stays positive.  Division is
    built backwards from a divisor and a quotient so it is always exact.

    Re-rolling equal subtraction operands is more than a plain swap: pairs
    like ``7 − 7`` never appear, so subtraction operands are not uniform over
    the operand range.  It keeps a zero answer, and the zero distractors it
    would pull in, out of every option set.
    """

    OPERATORS: tuple[Operator, ...] = (Operator.ADD, Operator.SUB, Operator.MUL, Operator.DIV)

    def __init__(self, rng: SeededRng, *, ranges: OperandRanges | None = None) -> None:
        self._rng = rng
        self._ranges = ranges or OperandRanges()

    @property
    def ranges(self) -> OperandRanges:
        return self._ranges

    def generate(self) -> Question:
        op = self._rng.choice(self.OPERATORS)
        if op is Operator.DIV:
            a, b = self._division_operands()
        elif op is Operator.MUL:
            a, b = self._multiplication_operands()
        elif op is Operator.SUB:
            a, b = self._subtraction_operands()
        else:
            a, b = self._operand(), self._operand()

        question = Question(operand_a=a, operand_b=b, operator=op, correct_answer=op.apply(a, b))
        logger.debug("generated question %s = %d", question.prompt, question.correct_answer)
        return question

    def _operand(self) -> int:
        r = self._ranges
        return self._rng.randint(r.operand_min, r.operand_max)

    def _multiplication_operands(self) -> tuple[int, int]:
        r = self._ranges
        for _ in range(r.max_resamples):
            a, b = self._operand(), self._operand()
            if a * b <= r.product_cap:
                return a, b
        # Smallest pair always fits (checked in OperandRanges).
        return r.operand_min, r.operand_min

    def _subtraction_operands(self) -> tuple[int, int]:
        r = self._ranges
        a, b = self._operand(), self._operand()
        for _ in range(r.max_resamples):
            if a != b:
                break
            b = self._operand()
        if a == b:
            a = a + 1
        if a < b:
            a, b = b, a
        return a, b

    def _division_operands(self) -> tuple[int, int]:
        r = self._ranges
        divisor = self._rng.randint(r.divisor_min, r.divisor_max)
        quotient = self._rng.randint(r.quotient_min, r.quotient_max)
        return divisor * quotient, divisor
