import time

from readtrack.ports.viewport import ClockPort


class SystemClock(ClockPort):
    """Production clock backed by ``time.monotonic``."""

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0
