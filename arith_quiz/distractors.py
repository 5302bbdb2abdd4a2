from __future__ import annotations

from .quiz_core import GenerationExhausted, OptionSet, SeededRng

DEFAULT_OFFSETS: tuple[int, ...] = (1, 2, 3, 4, 5)


class DistractorGenerator:
    """Builds plausible wrong answers clustered around the correct one.

    Candidates are ``correct ± offset``; a non-positive candidate is folded
    back to ``abs(candidate) + 1``.  The attempt budget bounds the loop, so a
    request the offset space cannot satisfy fails with
    :class:`GenerationExhausted` instead of spinning.
    """

    def __init__(
        self,
        rng: SeededRng,
        *,
        offsets: tuple[int, ...] = DEFAULT_OFFSETS,
        max_attempts: int = 200,
    ) -> None:
        if not offsets or any(o <= 0 for o in offsets):
            raise ValueError("offsets must be a non-empty tuple of positive integers")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._rng = rng
        self._offsets = tuple(offsets)
        self._max_attempts = int(max_attempts)

    def generate(self, correct: int, count: int) -> OptionSet:
        if count < 2:
            raise ValueError("count must be >= 2")

        values = [correct]
        seen = {correct}
        attempts = 0
        while len(values) < count:
            if attempts >= self._max_attempts:
                raise GenerationExhausted(
                    correct=correct,
                    count=count,
                    attempts=attempts,
                    reached=len(values),
                )
            attempts += 1
            candidate = self._candidate(correct)
            if candidate in seen:
                continue
            values.append(candidate)
            seen.add(candidate)

        self._rng.shuffle(values)
        return OptionSet(tuple(values))

    def _candidate(self, correct: int) -> int:
        offset = self._rng.choice(self._offsets)
        sign = 1 if self._rng.random() >= 0.5 else -1
        candidate = correct + sign * offset
        if candidate <= 0:
            candidate = abs(candidate) + 1
        return candidate
