"""Viewport fed by browser beacons."""

import logging

from readtrack.domain.models import ScrollMetrics
from readtrack.ports.viewport import ViewportPort

logger = logging.getLogger(__name__)


class ReportedViewport(ViewportPort):
    """
    Holds the most recent scroll geometry reported by the visitor's browser.

    Before any report arrives the page is treated as not scrollable.
    """

    def __init__(self) -> None:
        self._metrics = ScrollMetrics(scroll_top=0.0, viewport_height=0.0, scroll_height=0.0)

    def report(self, scroll_top: float, viewport_height: float, scroll_height: float) -> None:
        self._metrics = ScrollMetrics(
            scroll_top=scroll_top,
            viewport_height=viewport_height,
            scroll_height=scroll_height,
        )
        logger.debug(
            "Viewport report: top=%.0f viewport=%.0f height=%.0f",
            scroll_top,
            viewport_height,
            scroll_height,
        )

    def measure(self) -> ScrollMetrics:
        return self._metrics
