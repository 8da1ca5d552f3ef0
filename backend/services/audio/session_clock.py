import time
from typing import Callable


class SessionClock:
    """Wall-clock time since the session started (pauses and silences included)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._started = clock()

    def start(self) -> None:
        self._started = self._clock()

    def elapsed(self) -> int:
        return max(0, int(self._clock() - self._started))
