"""Wall-clock budget for long-running batch work."""

import time
from typing import Callable


class Deadline:
    """A fixed point in time, less a safety buffer, after which no new work should start."""

    def __init__(
        self,
        budget_seconds: float,
        *,
        buffer_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._started_at = clock()
        self._usable = budget_seconds - buffer_seconds

    def elapsed(self) -> float:
        return self._clock() - self._started_at

    def remaining(self) -> float:
        return max(0.0, self._usable - self.elapsed())

    def has_time(self) -> bool:
        return self.elapsed() < self._usable

    def expired(self) -> bool:
        return not self.has_time()
