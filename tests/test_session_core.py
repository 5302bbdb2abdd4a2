from __future__ import annotations

import pytest

from arith_quiz.clock import FakeClock
from arith_quiz.quiz_core import GenerationExhausted, Operator, OptionSet
from arith_quiz.session import EndReason, Phase, QuizSession
from arith_quiz.settings import Settings

from .helpers import FixedQuestions, RecordingListener


def _session(clock: FakeClock, listener: RecordingListener, **kwargs: object) -> QuizSession:
    return QuizSession(clock=clock, seed=kwargs.pop("seed", 42), listeners=[listener], **kwargs)  # type: ignore[arg-type]


def test_start_deals_first_question_with_full_option_set() -> None:
    clock = FakeClock()
    listener = RecordingListener()
    session = _session(clock, listener)

    assert session.phase is Phase.IDLE
    session.start(Settings(num_questions=3, num_options=5, time_limit_minutes=1))

    assert session.phase is Phase.RUNNING
    state = session.state
    assert state.current_question_index == 0
    assert state.score == 0
    assert state.answered is False
    assert state.time_remaining_s == 60.0
    assert listener.times == [60.0]

    assert len(listener.questions) == 1
    question, options = listener.questions[0]
    assert question == session.current_question
    assert len(options) == 5
    assert question.correct_answer in options


def test_invalid_settings_fall_back_to_defaults_on_start() -> None:
    clock = FakeClock()
    session = _session(clock, RecordingListener())
    session.start({"num_questions": -1, "num_options": 3})  # type: ignore[arg-type]
    assert session.settings.num_questions == 10
    assert session.settings.num_options == 3
    assert len(session.current_options or ()) == 3


def test_answer_is_scored_once_and_next_question_follows_reveal_delay() -> None:
    clock = FakeClock()
    listener = RecordingListener()
    session = _session(clock, listener, reveal_delay_s=0.9)
    session.start(Settings(num_questions=3))

    q = session.current_question
    assert q is not None
    assert session.submit_answer(q.correct_answer) is True
    assert session.submit_answer(q.correct_answer) is False
    assert session.state.score == 1
    assert session.state.answered is True
    assert listener.answers == [(q.correct_answer, q.correct_answer, True)]

    snap = session.snapshot()
    assert snap.revealed_answer == q.correct_answer
    assert snap.picked == q.correct_answer

    clock.advance(0.5)
    session.update()
    assert session.state.current_question_index == 0
    assert len(listener.questions) == 1

    clock.advance(0.4)
    session.update()
    assert session.state.current_question_index == 1
    assert session.state.answered is False
    assert len(listener.questions) == 2
    assert session.snapshot().revealed_answer is None


def test_wrong_answer_reveals_correct_option_without_scoring() -> None:
    clock = FakeClock()
    listener = RecordingListener()
    session = _session(clock, listener)
    session.start(Settings(num_questions=2))

    q = session.current_question
    options = session.current_options
    assert q is not None and options is not None
    wrong = next(v for v in options if v != q.correct_answer)
    assert session.submit_answer(wrong) is True
    assert session.state.score == 0
    assert listener.answers == [(wrong, q.correct_answer, False)]
    assert session.snapshot().revealed_answer == q.correct_answer

    events = session.events()
    assert len(events) == 1
    assert events[0].picked == wrong
    assert events[0].is_correct is False


@pytest.mark.parametrize("value", ["abc", "", None, True, -3, 2.5, object()])
def test_unusable_input_is_ignored(value: object) -> None:
    clock = FakeClock()
    listener = RecordingListener()
    session = _session(clock, listener)
    session.start()
    assert session.submit_answer(value) is False
    assert session.state.answered is False
    assert listener.answers == []


def test_numeric_text_is_accepted_as_an_answer() -> None:
    clock = FakeClock()
    session = _session(clock, RecordingListener())
    session.start()
    q = session.current_question
    assert q is not None
    assert session.submit_answer(f" {q.correct_answer} ") is True
    assert session.state.score == 1


def test_submit_option_selects_by_position() -> None:
    clock = FakeClock()
    session = _session(clock, RecordingListener())
    session.start(Settings(num_options=4))
    q = session.current_question
    options = session.current_options
    assert q is not None and options is not None

    assert session.submit_option(4) is False
    assert session.submit_option(-1) is False
    assert session.submit_option(options.index_of(q.correct_answer)) is True
    assert session.state.score == 1


def test_submissions_before_start_are_ignored() -> None:
    session = _session(FakeClock(), RecordingListener())
    assert session.submit_answer(3) is False
    assert session.submit_option(0) is False
    assert session.tick() is False


def test_tick_that_expires_timer_beats_advance_due_at_the_same_instant() -> None:
    clock = FakeClock()
    listener = RecordingListener()
    session = _session(clock, listener, reveal_delay_s=1.0)
    session.start(Settings(num_questions=5, time_limit_minutes=1 / 60))

    q = session.current_question
    assert q is not None
    session.submit_answer(q.correct_answer)

    clock.advance(1.0)
    session.update()

    assert session.phase is Phase.ENDED
    assert session.end_reason is EndReason.TIME_EXPIRED
    # The answered question was on its reveal pause, so it counts as finished.
    assert session.state.current_question_index == 1
    assert len(listener.questions) == 1
    assert len(listener.ended) == 1
    stats = listener.ended[0]
    assert stats.questions_completed == 1
    assert stats.average_seconds_per_question == 1.0


def test_expiry_forces_answered_and_rejects_further_input() -> None:
    clock = FakeClock()
    listener = RecordingListener()
    session = _session(clock, listener, auto_tick=False)
    session.start(Settings(time_limit_minutes=3 / 60))

    for _ in range(3):
        session.tick()

    assert session.phase is Phase.ENDED
    state = session.state
    assert state.answered is True
    assert state.terminated is True
    assert state.time_remaining_s == 0.0

    assert session.submit_option(0) is False
    assert session.tick() is False
    assert session.state.time_remaining_s == 0.0
    assert len(listener.ended) == 1


def test_restart_cancels_pending_advance_and_old_ticks() -> None:
    clock = FakeClock()
    listener = RecordingListener()
    session = _session(clock, listener, reveal_delay_s=0.9)
    session.start(Settings(num_questions=3, time_limit_minutes=1))

    clock.advance(0.5)
    q = session.current_question
    assert q is not None
    session.submit_answer(q.correct_answer)

    session.start(Settings(num_questions=3, time_limit_minutes=1))
    assert len(listener.questions) == 2
    assert session.state.score == 0

    # The first session's tick was due at 1.0 and its advance at 1.4.
    clock.advance(0.9)
    session.update()
    assert session.state.current_question_index == 0
    assert session.state.answered is False
    assert len(listener.questions) == 2
    assert session.state.time_remaining_s == 60.0

    clock.advance(0.6)
    session.update()
    assert session.state.time_remaining_s == 59.0


def test_option_count_steps_down_when_distractors_run_out(caplog: pytest.LogCaptureFixture) -> None:
    clock = FakeClock()
    # 4 - 3 = 1 only has five reachable distractors.
    session = QuizSession(clock=clock, seed=3, question_generator=FixedQuestions(4, 3, Operator.SUB))  # type: ignore[arg-type]
    with caplog.at_level("WARNING", logger="arith_quiz.session"):
        session.start(Settings(num_options=8))

    options = session.current_options
    assert options is not None
    assert len(options) == 6
    assert sorted(options) == [1, 2, 3, 4, 5, 6]
    assert "retrying with 7 options" in caplog.text


class _FailingDistractors:
    """Builds ``ok_calls`` option sets, then always runs out."""

    def __init__(self, ok_calls: int = 0) -> None:
        self._ok_calls = ok_calls

    def generate(self, correct: int, count: int) -> OptionSet:
        if self._ok_calls > 0:
            self._ok_calls -= 1
            return OptionSet(tuple(correct + i for i in range(count)))
        raise GenerationExhausted(correct=correct, count=count, attempts=1, reached=1)


def test_generation_exhausted_on_start_leaves_session_idle() -> None:
    clock = FakeClock()
    listener = RecordingListener()
    session = _session(clock, listener, distractor_generator=_FailingDistractors())

    with pytest.raises(GenerationExhausted):
        session.start(Settings(num_options=3))

    assert session.phase is Phase.IDLE
    assert session.current_question is None
    assert session.current_options is None
    assert session.submit_answer(1) is False
    assert listener.questions == []
    assert listener.times == []

    clock.advance(5.0)
    assert session.update() == 0
    assert session.state.time_remaining_s == 0.0


def test_failed_restart_does_not_accept_answers_to_the_previous_question() -> None:
    clock = FakeClock()
    listener = RecordingListener()
    session = _session(clock, listener, distractor_generator=_FailingDistractors(ok_calls=1))
    session.start(Settings(num_questions=3))
    stale = session.current_question
    assert stale is not None

    with pytest.raises(GenerationExhausted):
        session.start(Settings(num_questions=3))

    assert session.phase is Phase.IDLE
    assert session.current_question is None
    assert session.submit_answer(stale.correct_answer) is False
    assert session.state.score == 0

    clock.advance(2.0)
    assert session.update() == 0


def test_generation_exhausted_mid_quiz_ends_the_session() -> None:
    clock = FakeClock()
    listener = RecordingListener()
    session = _session(clock, listener, reveal_delay_s=0.5, distractor_generator=_FailingDistractors(ok_calls=1))
    session.start(Settings(num_questions=3, time_limit_minutes=1))
    q = session.current_question
    assert q is not None
    session.submit_answer(q.correct_answer)

    clock.advance(0.5)
    session.update()

    assert session.phase is Phase.ENDED
    assert session.end_reason is EndReason.GENERATION_FAILED
    assert session.state.current_question_index == 1
    assert session.state.score == 1
    assert len(listener.questions) == 1
    assert len(listener.ended) == 1
    assert session.submit_option(0) is False

    clock.advance(5.0)
    assert session.update() == 0
    assert session.state.time_remaining_s == 60.0


def test_listeners_can_be_removed() -> None:
    listener = RecordingListener()
    session = _session(FakeClock(), listener)
    session.remove_listener(listener)
    session.start()
    assert listener.questions == []


def test_constructor_rejects_invalid_timing() -> None:
    with pytest.raises(ValueError):
        QuizSession(clock=FakeClock(), reveal_delay_s=-1)
    with pytest.raises(ValueError):
        QuizSession(clock=FakeClock(), tick_interval_s=0)
