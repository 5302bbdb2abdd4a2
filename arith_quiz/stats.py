from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .session import QuizSession


class RatingBand(str, Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"

    @property
    def verdict(self) -> str:
        return _VERDICTS[self]


_VERDICTS = {
    RatingBand.LOW: "Keep practising.",
    RatingBand.MID: "You can do better.",
    RatingBand.HIGH: "Excellent work!",
}


def rating_for(score_percentage: float) -> RatingBand:
    if score_percentage <= 54:
        return RatingBand.LOW
    if score_percentage < 75:
        return RatingBand.MID
    return RatingBand.HIGH


@dataclass(frozen=True, slots=True)
class Stats:
    score_percentage: float
    average_seconds_per_question: float
    rating_band: RatingBand

    score: int
    num_questions: int
    questions_completed: int
    time_spent_s: float


class StatsReporter:
    """Summary metrics for a finished (or in-progress) session.

    The percentage is taken over the configured question count, so questions
    left unanswered when the timer runs out count against the player.
    """

    def summarize(self, session: QuizSession) -> Stats:
        settings = session.settings
        state = session.state

        num_questions = int(settings.num_questions)
        completed = int(state.current_question_index)
        time_spent_s = max(0.0, settings.time_limit_s - state.time_remaining_s)

        score_pct = 100.0 * state.score / num_questions
        avg_s = time_spent_s / completed if completed > 0 else 0.0

        return Stats(
            score_percentage=score_pct,
            average_seconds_per_question=avg_s,
            rating_band=rating_for(score_pct),
            score=int(state.score),
            num_questions=num_questions,
            questions_completed=completed,
            time_spent_s=time_spent_s,
        )


def format_report(stats: Stats) -> list[str]:
    """Human-readable result lines for the results page."""

    return [
        f"Score: {stats.score}/{stats.num_questions} ({stats.score_percentage:.0f}%)",
        f"Average time per question: {stats.average_seconds_per_question:.2f}s",
        stats.rating_band.verdict,
    ]
