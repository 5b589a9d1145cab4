"""Per-visitor tracker bundles hosted by the gateway."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from readtrack.adapters.factory import CollaboratorFactory
from readtrack.adapters.viewport import ReportedViewport
from readtrack.config import Settings
from readtrack.ports.viewport import ClockPort
from readtrack.services.attribution import ClickAttributor
from readtrack.services.emitter import InteractionEmitter
from readtrack.services.lifecycle import SessionLifecycleController
from readtrack.services.recommendations import RecommendationCoordinator

logger = logging.getLogger(__name__)


@dataclass
class VisitorTracker:
    visitor_id: str
    viewport: ReportedViewport
    controller: SessionLifecycleController
    coordinator: RecommendationCoordinator
    attributor: ClickAttributor
    last_seen_ms: float = 0.0


class TrackerRegistry:
    """
    Keeps one independent tracker per visitor; no state is shared between them.

    Every lookup stamps the visitor as seen. Visitors silent for at least
    ``tracker_idle_timeout_seconds`` are torn down by ``expire_idle``, which
    the app runs periodically through ``sweep_forever``.
    """

    def __init__(
        self,
        settings: Settings,
        collaborators: CollaboratorFactory,
        clock: ClockPort,
    ) -> None:
        self._settings = settings
        self._collaborators = collaborators
        self._clock = clock
        self._trackers: dict[str, VisitorTracker] = {}

    @property
    def settings(self) -> Settings:
        return self._settings

    def __len__(self) -> int:
        return len(self._trackers)

    def get(self, visitor_id: str) -> VisitorTracker | None:
        tracker = self._trackers.get(visitor_id)
        if tracker is not None:
            tracker.last_seen_ms = self._clock.now_ms()
        return tracker

    def get_or_create(self, visitor_id: str) -> VisitorTracker:
        tracker = self.get(visitor_id)
        if tracker is not None:
            return tracker

        ports = self._collaborators(visitor_id)
        viewport = ReportedViewport()
        emitter = InteractionEmitter(
            ports.interaction_log,
            self._clock,
            min_reading_time_ms=self._settings.min_reading_time_ms,
        )
        tracker = VisitorTracker(
            visitor_id=visitor_id,
            viewport=viewport,
            controller=SessionLifecycleController.from_settings(
                self._settings, emitter, viewport, self._clock
            ),
            coordinator=RecommendationCoordinator(ports.recommender),
            attributor=ClickAttributor(ports.click_log),
            last_seen_ms=self._clock.now_ms(),
        )
        self._trackers[visitor_id] = tracker
        logger.info("Tracker created for visitor %s", visitor_id)
        return tracker

    async def remove(self, visitor_id: str) -> bool:
        tracker = self._trackers.pop(visitor_id, None)
        if tracker is None:
            return False
        await tracker.controller.stop()
        await tracker.attributor.drain()
        return True

    async def close_all(self) -> None:
        """Flush every active session and pending click."""
        for visitor_id in list(self._trackers):
            await self.remove(visitor_id)
        logger.info("All trackers closed")

    async def expire_idle(self) -> list[str]:
        """Tear down visitors idle past the timeout. Returns the evicted ids."""
        cutoff = self._clock.now_ms() - self._settings.tracker_idle_timeout_seconds * 1000
        expired = [vid for vid, t in self._trackers.items() if t.last_seen_ms <= cutoff]
        for visitor_id in expired:
            await self.remove(visitor_id)
        if expired:
            logger.info("Expired %d idle trackers", len(expired))
        return expired

    async def sweep_forever(
        self,
        interval: float,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        while True:
            await sleep(interval)
            await self.expire_idle()
