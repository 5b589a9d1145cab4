"""Viewport and clock ports used by the scroll sampler."""

from abc import ABC, abstractmethod

from readtrack.domain.models import ScrollMetrics


class ViewportPort(ABC):
    """Source of the current scroll geometry of the tracked page."""

    @abstractmethod
    def measure(self) -> ScrollMetrics:
        ...


class ClockPort(ABC):
    """Monotonic millisecond clock. Swapped for a manual clock in tests."""

    @abstractmethod
    def now_ms(self) -> float:
        ...
