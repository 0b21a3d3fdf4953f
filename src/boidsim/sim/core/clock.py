from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class FixedTimestep:
    """Turns elapsed presentation time into a whole number of simulation ticks.

    Leftover time below one tick carries over to the next ``advance`` call.
    When more than ``max_ticks`` are owed at once the backlog is dropped so a
    slow consumer cannot force an ever-growing catch-up.
    """

    def __init__(self, time_step: float, max_ticks: int = 8) -> None:
        self.time_step = time_step
        self.max_ticks = max(1, int(max_ticks))
        self._accumulator = 0.0
        self.dropped_ticks = 0

    @property
    def pending_time(self) -> float:
        return self._accumulator

    @property
    def alpha(self) -> float:
        return self._accumulator / self.time_step

    def reset(self) -> None:
        self._accumulator = 0.0
        self.dropped_ticks = 0

    def advance(self, elapsed: float) -> int:
        if elapsed > 0.0:
            self._accumulator += elapsed
        ticks = int(self._accumulator // self.time_step)
        if ticks > self.max_ticks:
            dropped = ticks - self.max_ticks
            self.dropped_ticks += dropped
            logger.warning("Dropping %d simulation ticks to catch up", dropped)
            ticks = self.max_ticks
            self._accumulator = self._accumulator % self.time_step
        else:
            self._accumulator -= ticks * self.time_step
        return ticks
