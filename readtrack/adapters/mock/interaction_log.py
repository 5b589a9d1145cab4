import asyncio
import logging
from collections import deque

from readtrack.domain.models import ClickAttribution, InteractionEvent
from readtrack.ports.click_log import ClickLogPort
from readtrack.ports.interaction_log import InteractionLogPort

logger = logging.getLogger(__name__)


class MockInteractionLogAdapter(InteractionLogPort, ClickLogPort):
    """
    In-memory interaction and click log for local development.

    Keeps the most recent ``history`` submissions so the gateway can be
    exercised without the ML service. Simulates a small network latency when
    asked to.
    """

    def __init__(self, latency: float = 0.0, history: int = 500) -> None:
        self._latency = latency
        self.events: deque[InteractionEvent] = deque(maxlen=history)
        self.clicks: deque[ClickAttribution] = deque(maxlen=history)

    async def log(self, event: InteractionEvent) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)
        self.events.append(event)
        logger.info(
            "MockLog: %s post=%s time=%s scroll=%s score=%s",
            event.interaction_type.value,
            event.content_id,
            event.time_spent_seconds,
            event.scroll_percentage,
            event.engagement_score,
        )

    async def log_click(self, attribution: ClickAttribution) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)
        self.clicks.append(attribution)
        logger.info(
            "MockLog: recommendation_click post=%s source=%s rank=%d",
            attribution.item_id,
            attribution.strategy.value,
            attribution.rank,
        )
