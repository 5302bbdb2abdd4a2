"""Timed multiple-choice arithmetic quiz session.

``QuizSession`` is the only owner of quiz state.  It is driven from outside
through three entry points (:meth:`QuizSession.start`,
:meth:`QuizSession.submit_answer` and :meth:`QuizSession.tick`) and reports
back through :class:`QuizListener` events; it never renders anything itself.

All deferred work (the once-per-second timer tick and the short reveal pause
before the next question) is queued on one :class:`~arith_quiz.clock.Scheduler`
and executed by :meth:`QuizSession.update`.  Ticks outrank deferred advances
at the same instant, so a tick that expires the timer always ends the session
before a pending advance can deal another question.

Lifecycle::

    IDLE --start()--> RUNNING --(last question answered | timer expired)--> ENDED

``ENDED`` is terminal; :meth:`QuizSession.start` begins a fresh session and
cancels anything still queued for the previous one.  A session also ends
(``EndReason.GENERATION_FAILED``) when no option set can be built for the
next question, so the error never escapes :meth:`QuizSession.update`.

``current_question_index`` counts questions that are finished.  A question
still on its reveal pause when the timer expires is counted as finished, so
the average time per question is taken over every question the player saw
through to an answer.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .clock import PRIORITY_ADVANCE, PRIORITY_TICK, Clock, ScheduledCall, Scheduler
from .distractors import DistractorGenerator
from .questions import QuestionGenerator
from .quiz_core import (
    GenerationExhausted,
    InvalidInput,
    OptionSet,
    Question,
    SeededRng,
    StaleTransition,
)
from .settings import DEFAULT_SETTINGS, Settings, normalize_settings
from .stats import Stats, StatsReporter
from .timer import CountdownTimer

logger = logging.getLogger(__name__)

DEFAULT_REVEAL_DELAY_S = 0.9
DEFAULT_TICK_INTERVAL_S = 1.0


class Phase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    ENDED = "ended"


class EndReason(str, Enum):
    COMPLETED = "completed"
    TIME_EXPIRED = "time_expired"
    GENERATION_FAILED = "generation_failed"


@dataclass(slots=True)
class SessionState:
    current_question_index: int = 0
    score: int = 0
    answered: bool = False
    time_remaining_s: float = 0.0
    terminated: bool = False


@dataclass(frozen=True, slots=True)
class AnswerEvent:
    index: int
    prompt: str
    picked: int
    correct_answer: int
    is_correct: bool
    presented_at_s: float
    answered_at_s: float
    response_time_s: float


@dataclass(frozen=True, slots=True)
class QuizSnapshot:
    """View model for the UI (pure data)."""

    phase: Phase
    question_number: int
    num_questions: int
    prompt: str
    options: tuple[int, ...]
    picked: int | None
    revealed_answer: int | None
    time_remaining_s: float
    score: int
    stats: Stats | None = None


class QuizListener(Protocol):
    def on_question_ready(self, question: Question, options: OptionSet) -> None: ...

    def on_answer_resolved(self, picked: int, correct: int, is_correct: bool) -> None: ...

    def on_time_update(self, remaining_s: float) -> None: ...

    def on_session_ended(self, stats: Stats) -> None: ...


class NullListener:
    """No-op listener; subclass and override only the events you need."""

    def on_question_ready(self, question: Question, options: OptionSet) -> None:
        pass

    def on_answer_resolved(self, picked: int, correct: int, is_correct: bool) -> None:
        pass

    def on_time_update(self, remaining_s: float) -> None:
        pass

    def on_session_ended(self, stats: Stats) -> None:
        pass


class QuizSession:
    def __init__(
        self,
        *,
        clock: Clock,
        scheduler: Scheduler | None = None,
        seed: int | None = None,
        reveal_delay_s: float = DEFAULT_REVEAL_DELAY_S,
        tick_interval_s: float = DEFAULT_TICK_INTERVAL_S,
        auto_tick: bool = True,
        question_generator: QuestionGenerator | None = None,
        distractor_generator: DistractorGenerator | None = None,
        reporter: StatsReporter | None = None,
        listeners: Iterable[QuizListener] = (),
    ) -> None:
        if reveal_delay_s < 0:
            raise ValueError("reveal_delay_s must be >= 0")
        if tick_interval_s <= 0:
            raise ValueError("tick_interval_s must be > 0")

        self._clock = clock
        self._scheduler = scheduler if scheduler is not None else Scheduler(clock)
        self._rng = SeededRng(seed)
        self._reveal_delay_s = float(reveal_delay_s)
        self._tick_interval_s = float(tick_interval_s)
        self._auto_tick = bool(auto_tick)

        self._questions = question_generator or QuestionGenerator(self._rng)
        self._distractors = distractor_generator or DistractorGenerator(self._rng)
        self._reporter = reporter or StatsReporter()
        self._listeners: list[QuizListener] = list(listeners)

        # Each tick removes one interval of quiz time.
        self._timer = CountdownTimer(
            step_s=self._tick_interval_s,
            on_update=self._on_timer_update,
            on_expire=self._on_timer_expired,
        )

        self._phase = Phase.IDLE
        self._settings: Settings = DEFAULT_SETTINGS
        self._state = SessionState()
        self._question: Question | None = None
        self._options: OptionSet | None = None
        self._picked: int | None = None
        self._presented_at_s: float | None = None
        self._events: list[AnswerEvent] = []
        self._stats: Stats | None = None
        self._end_reason: EndReason | None = None

        self._tick_call: ScheduledCall | None = None
        self._advance_call: ScheduledCall | None = None

    # -- Read-only views ----------------------------------------------------
    @property
    def seed(self) -> int:
        return self._rng.seed

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def state(self) -> SessionState:
        return dataclasses.replace(self._state)

    @property
    def current_question(self) -> Question | None:
        return self._question

    @property
    def current_options(self) -> OptionSet | None:
        return self._options

    @property
    def stats(self) -> Stats | None:
        return self._stats

    @property
    def end_reason(self) -> EndReason | None:
        return self._end_reason

    def events(self) -> list[AnswerEvent]:
        return list(self._events)

    def summary(self) -> Stats:
        return self._reporter.summarize(self)

    def add_listener(self, listener: QuizListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: QuizListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # -- Inbound entry points ----------------------------------------------
    def start(self, settings: Settings | None = None) -> None:
        """Begin a new session, abandoning any session still in progress.

        If no option set can be built for the first question, the session is
        left ``IDLE`` with nothing queued and ``GenerationExhausted`` is
        re-raised.
        """

        self._cancel_pending()
        self._timer.cancel()

        settings = normalize_settings(settings)
        try:
            first = self._next_question(settings.num_options)
        except GenerationExhausted:
            self._reset_idle()
            raise

        self._settings = settings
        total_s = settings.time_limit_s

        self._state = SessionState(time_remaining_s=total_s)
        self._events = []
        self._stats = None
        self._end_reason = None
        self._phase = Phase.RUNNING

        logger.info(
            "session started: %d questions, %d options, %.0fs, seed=%d",
            self._settings.num_questions,
            self._settings.num_options,
            total_s,
            self._rng.seed,
        )

        self._timer.start(total_s)
        if self._auto_tick:
            self._schedule_tick(self._clock.now() + self._tick_interval_s)
        self._emit_time_update(total_s)
        self._deal_question(*first)

    def submit_answer(self, value: object) -> bool:
        """Submit a picked option value.  Returns True if accepted."""

        try:
            self._require_accepting()
            picked = _coerce_answer(value)
        except (StaleTransition, InvalidInput) as exc:
            logger.debug("ignored answer %r: %s", value, exc)
            return False

        question = self._question
        assert question is not None
        assert self._presented_at_s is not None

        answered_at_s = self._clock.now()
        is_correct = picked == question.correct_answer

        self._state.answered = True
        if is_correct:
            self._state.score += 1
        self._picked = picked
        self._events.append(
            AnswerEvent(
                index=self._state.current_question_index,
                prompt=question.prompt,
                picked=picked,
                correct_answer=question.correct_answer,
                is_correct=is_correct,
                presented_at_s=self._presented_at_s,
                answered_at_s=answered_at_s,
                response_time_s=max(0.0, answered_at_s - self._presented_at_s),
            )
        )
        logger.debug(
            "answer %d to %s: %s",
            picked,
            question.prompt,
            "correct" if is_correct else f"incorrect (expected {question.correct_answer})",
        )

        for listener in list(self._listeners):
            listener.on_answer_resolved(picked, question.correct_answer, is_correct)

        self._advance_call = self._scheduler.call_later(
            self._reveal_delay_s,
            self._advance,
            priority=PRIORITY_ADVANCE,
        )
        return True

    def submit_option(self, index: int) -> bool:
        """Submit the option at ``index`` (0-based) of the current option set."""

        options = self._options
        if options is None or isinstance(index, bool) or not isinstance(index, int):
            return False
        if not (0 <= index < len(options)):
            logger.debug("ignored option index %d of %d", index, len(options))
            return False
        return self.submit_answer(options[index])

    def tick(self) -> bool:
        """Apply one timer tick.  Returns True if the tick was applied."""

        if self._phase is not Phase.RUNNING:
            logger.debug("ignored tick in phase %s", self._phase.value)
            return False
        return self._timer.tick()

    def update(self) -> int:
        """Run every scheduled tick/advance that is due."""

        return self._scheduler.run_due()

    def snapshot(self) -> QuizSnapshot:
        question = self._question
        revealed = None
        if question is not None and self._state.answered and self._picked is not None:
            revealed = question.correct_answer
        return QuizSnapshot(
            phase=self._phase,
            question_number=min(self._state.current_question_index + 1, self._settings.num_questions),
            num_questions=self._settings.num_questions,
            prompt="" if question is None else question.prompt,
            options=() if self._options is None else self._options.values,
            picked=self._picked,
            revealed_answer=revealed,
            time_remaining_s=self._state.time_remaining_s,
            score=self._state.score,
            stats=self._stats,
        )

    # -- Transitions ----------------------------------------------------------
    def _require_accepting(self) -> None:
        if self._phase is not Phase.RUNNING:
            raise StaleTransition(f"session is {self._phase.value}")
        if self._state.answered:
            raise StaleTransition("current question already answered")
        if self._question is None:
            raise StaleTransition("no question on display")

    def _next_question(self, num_options: int) -> tuple[Question, OptionSet]:
        question = self._questions.generate()
        count = num_options
        while True:
            try:
                return question, self._distractors.generate(question.correct_answer, count)
            except GenerationExhausted as exc:
                if count <= 2:
                    logger.error("no option set for %s: %s", question.prompt, exc)
                    raise
                logger.warning("%s; retrying with %d options", exc, count - 1)
                count -= 1

    def _deal_question(self, question: Question, options: OptionSet) -> None:
        self._question = question
        self._options = options
        self._picked = None
        self._state.answered = False
        self._presented_at_s = self._clock.now()

        logger.debug(
            "question %d/%d: %s options=%s",
            self._state.current_question_index + 1,
            self._settings.num_questions,
            question.prompt,
            list(options),
        )
        for listener in list(self._listeners):
            listener.on_question_ready(question, options)

    def _advance(self) -> None:
        self._advance_call = None
        if self._phase is not Phase.RUNNING:
            return
        self._state.current_question_index += 1
        if self._state.current_question_index >= self._settings.num_questions:
            self._end(EndReason.COMPLETED)
            return
        try:
            question, options = self._next_question(self._settings.num_options)
        except GenerationExhausted:
            self._end(EndReason.GENERATION_FAILED)
            return
        self._deal_question(question, options)

    def _schedule_tick(self, due_s: float) -> None:
        self._tick_call = self._scheduler.call_at(
            due_s,
            lambda: self._on_scheduled_tick(due_s),
            priority=PRIORITY_TICK,
        )

    def _on_scheduled_tick(self, due_s: float) -> None:
        self._tick_call = None
        if self.tick() and self._phase is Phase.RUNNING:
            self._schedule_tick(due_s + self._tick_interval_s)

    def _on_timer_update(self, remaining_s: float) -> None:
        self._state.time_remaining_s = remaining_s
        self._emit_time_update(remaining_s)

    def _on_timer_expired(self) -> None:
        self._end(EndReason.TIME_EXPIRED)

    def _end(self, reason: EndReason) -> None:
        if self._state.terminated:
            return
        if reason is EndReason.TIME_EXPIRED and self._state.answered:
            # The answered question was still on its reveal pause.
            self._state.current_question_index += 1
        self._state.terminated = True
        self._state.answered = True
        self._phase = Phase.ENDED
        self._end_reason = reason

        self._timer.cancel()
        self._cancel_pending()

        stats = self._reporter.summarize(self)
        self._stats = stats
        logger.info(
            "session ended (%s): score %d/%d (%.0f%%), %s",
            reason.value,
            stats.score,
            stats.num_questions,
            stats.score_percentage,
            stats.rating_band.value,
        )
        for listener in list(self._listeners):
            listener.on_session_ended(stats)

    def _reset_idle(self) -> None:
        self._cancel_pending()
        self._timer.cancel()
        self._phase = Phase.IDLE
        self._state = SessionState()
        self._question = None
        self._options = None
        self._picked = None
        self._presented_at_s = None
        self._events = []
        self._stats = None
        self._end_reason = None

    def _cancel_pending(self) -> None:
        if self._tick_call is not None:
            self._tick_call.cancel()
            self._tick_call = None
        if self._advance_call is not None:
            self._advance_call.cancel()
            self._advance_call = None

    def _emit_time_update(self, remaining_s: float) -> None:
        for listener in list(self._listeners):
            listener.on_time_update(remaining_s)


def _coerce_answer(value: object) -> int:
    if isinstance(value, bool):
        raise InvalidInput("not a number")
    if isinstance(value, int):
        out = value
    elif isinstance(value, float) and value.is_integer():
        out = int(value)
    elif isinstance(value, str):
        try:
            out = int(value.strip())
        except ValueError:
            raise InvalidInput("not a number") from None
    else:
        raise InvalidInput("not a number")
    if out < 0:
        raise InvalidInput("out of range")
    return out
