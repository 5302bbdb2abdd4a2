from __future__ import annotations

from dataclasses import dataclass, field

from arith_quiz.quiz_core import OptionSet, Operator, Question, SeededRng
from arith_quiz.session import NullListener
from arith_quiz.stats import Stats


class ScriptedRng(SeededRng):
    """SeededRng whose randint answers come from a script, then from the seed."""

    def __init__(self, script: list[int], *, seed: int = 1) -> None:
        super().__init__(seed)
        self._script = list(script)

    def randint(self, a: int, b: int) -> int:
        if self._script:
            value = self._script.pop(0)
            assert a <= value <= b, f"scripted {value} outside [{a}, {b}]"
            return value
        return super().randint(a, b)


class FixedQuestions:
    """Question source that always deals the same question."""

    def __init__(self, a: int, b: int, op: Operator) -> None:
        self._question = Question(operand_a=a, operand_b=b, operator=op, correct_answer=op.apply(a, b))
        self.dealt = 0

    def generate(self) -> Question:
        self.dealt += 1
        return self._question


@dataclass
class RecordingListener(NullListener):
    questions: list[tuple[Question, OptionSet]] = field(default_factory=list)
    answers: list[tuple[int, int, bool]] = field(default_factory=list)
    times: list[float] = field(default_factory=list)
    ended: list[Stats] = field(default_factory=list)

    def on_question_ready(self, question: Question, options: OptionSet) -> None:
        self.questions.append((question, options))

    def on_answer_resolved(self, picked: int, correct: int, is_correct: bool) -> None:
        self.answers.append((picked, correct, is_correct))

    def on_time_update(self, remaining_s: float) -> None:
        self.times.append(remaining_s)

    def on_session_ended(self, stats: Stats) -> None:
        self.ended.append(stats)
