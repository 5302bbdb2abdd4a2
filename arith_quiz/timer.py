from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CountdownTimer:
    """Discrete countdown driven by explicit ticks.

    The timer owns no thread and reads no clock: each :meth:`tick` removes one
    ``step_s`` from the remaining time.  The tick that reaches zero clamps the
    remaining time, stops the timer and calls ``on_expire`` before returning.
    """

    def __init__(
        self,
        *,
        step_s: float = 1.0,
        on_update: Callable[[float], None] | None = None,
        on_expire: Callable[[], None] | None = None,
    ) -> None:
        if step_s <= 0:
            raise ValueError("step_s must be > 0")
        self._step_s = float(step_s)
        self._on_update = on_update
        self._on_expire = on_expire

        self._total_s = 0.0
        self._remaining_s = 0.0
        self._running = False
        self._expired = False

    @property
    def step_s(self) -> float:
        return self._step_s

    @property
    def total_s(self) -> float:
        return self._total_s

    @property
    def remaining_s(self) -> float:
        return self._remaining_s

    @property
    def running(self) -> bool:
        return self._running

    @property
    def expired(self) -> bool:
        return self._expired

    def start(self, total_seconds: float) -> None:
        if total_seconds <= 0:
            raise ValueError("total_seconds must be > 0")
        self._total_s = float(total_seconds)
        self._remaining_s = float(total_seconds)
        self._running = True
        self._expired = False
        logger.debug("timer started: %.1fs", self._total_s)

    def tick(self) -> bool:
        """Advance one step.  Returns True if the tick was applied."""

        if not self._running:
            return False

        remaining = self._remaining_s - self._step_s
        if remaining <= 0.0:
            remaining = 0.0
        self._remaining_s = remaining

        if remaining == 0.0:
            self._running = False
            self._expired = True

        if self._on_update is not None:
            self._on_update(self._remaining_s)
        if self._expired:
            logger.debug("timer expired after %.1fs", self._total_s)
            if self._on_expire is not None:
                self._on_expire()
        return True

    def cancel(self) -> None:
        if self._running:
            logger.debug("timer cancelled with %.1fs left", self._remaining_s)
        self._running = False
