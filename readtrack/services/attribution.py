"""Fire-and-forget attribution of recommendation clicks."""

import asyncio
import logging

from readtrack.domain.models import ClickAttribution, RecommendationCandidate
from readtrack.ports.click_log import ClickLogPort

logger = logging.getLogger(__name__)


class ClickAttributor:
    """
    Records which recommendation a visitor followed.

    ``attribute`` returns as soon as delivery is scheduled so navigation is
    never held up; a failed delivery is logged and dropped.
    """

    def __init__(self, click_log: ClickLogPort) -> None:
        self._click_log = click_log
        self._pending: set[asyncio.Task] = set()

    def attribute(
        self,
        candidate: RecommendationCandidate,
        rank: int | None = None,
        anchor_content_id: str | None = None,
    ) -> ClickAttribution:
        attribution = ClickAttribution(
            item_id=candidate.item_id,
            strategy=candidate.strategy,
            confidence=candidate.confidence,
            rank=rank if rank is not None else candidate.rank,
            reason=candidate.reason,
            anchor_content_id=anchor_content_id,
        )
        task = asyncio.get_running_loop().create_task(self._deliver(attribution))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return attribution

    async def _deliver(self, attribution: ClickAttribution) -> None:
        try:
            await self._click_log.log_click(attribution)
        except Exception as exc:
            logger.warning(
                "Dropping click attribution for %s (rank %d): %s",
                attribution.item_id,
                attribution.rank,
                exc,
            )

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for scheduled deliveries to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
