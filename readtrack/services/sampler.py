"""Throttled scroll-depth sampling."""

import logging

from readtrack.domain.models import ScrollMetrics, ScrollSample, TrackedSession
from readtrack.ports.viewport import ClockPort, ViewportPort
from readtrack.services.scoring import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_THROTTLE_MS = 150.0
DEFAULT_BUFFER_CAP = 100
DEFAULT_BUFFER_KEEP = 50


def compute_depth_percent(metrics: ScrollMetrics) -> int:
    """
    Scroll depth as a whole percentage of the scrollable distance.

    Pages that cannot scroll report 0.
    """
    scrollable = metrics.scroll_height - metrics.viewport_height
    if scrollable <= 0:
        return 0
    depth = round_half_up(metrics.scroll_top / scrollable * 100)
    return max(0, min(100, depth))


class Throttle:
    """Accepts at most one call per ``interval_ms`` on the injected clock."""

    def __init__(self, interval_ms: float, clock: ClockPort) -> None:
        self._interval_ms = interval_ms
        self._clock = clock
        self._last_accepted: float | None = None

    def try_acquire(self) -> bool:
        now = self._clock.now_ms()
        if self._last_accepted is not None and now - self._last_accepted < self._interval_ms:
            return False
        self._last_accepted = now
        return True

    def reset(self) -> None:
        self._last_accepted = None


class ScrollSampler:
    """
    Appends throttled scroll samples to a session's buffer.

    The buffer is trimmed to the newest ``buffer_keep`` samples whenever it
    grows beyond ``buffer_cap``.
    """

    def __init__(
        self,
        session: TrackedSession,
        viewport: ViewportPort,
        clock: ClockPort,
        throttle_ms: float = DEFAULT_THROTTLE_MS,
        buffer_cap: int = DEFAULT_BUFFER_CAP,
        buffer_keep: int = DEFAULT_BUFFER_KEEP,
    ) -> None:
        if buffer_keep > buffer_cap:
            raise ValueError("buffer_keep cannot exceed buffer_cap")
        self._session = session
        self._viewport = viewport
        self._clock = clock
        self._throttle = Throttle(throttle_ms, clock)
        self._buffer_cap = buffer_cap
        self._buffer_keep = buffer_keep

    @property
    def session(self) -> TrackedSession:
        return self._session

    def sample(self) -> ScrollSample | None:
        """Take a sample, or return None when throttled."""
        if not self._throttle.try_acquire():
            return None

        depth = compute_depth_percent(self._viewport.measure())
        sample = ScrollSample(depth_percent=depth, timestamp_ms=self._clock.now_ms())

        session = self._session
        session.scroll_samples.append(sample)
        session.last_depth_percent = depth
        session.max_depth_percent = max(session.max_depth_percent, depth)

        if len(session.scroll_samples) > self._buffer_cap:
            del session.scroll_samples[: -self._buffer_keep]
            logger.debug(
                "Trimmed scroll buffer for %s to %d samples",
                session.content_id,
                len(session.scroll_samples),
            )
        return sample
