"""Interaction emission with best-effort delivery."""

import logging
from typing import Any

from readtrack.domain.models import (
    ContentItem,
    InteractionEvent,
    InteractionType,
    TrackedSession,
)
from readtrack.ports.interaction_log import InteractionLogPort
from readtrack.ports.viewport import ClockPort
from readtrack.services.scoring import (
    classify_reading,
    engagement_score,
    is_completed_reading,
    round_half_up,
)

logger = logging.getLogger(__name__)

EVENT_SOURCE = "auto_tracker"
DEFAULT_MIN_READING_TIME_MS = 10_000.0
LINK_TEXT_MAX_CHARS = 100


class InteractionEmitter:
    """
    Builds interaction events for a session and hands them to the log.

    Delivery is best-effort: transport failures are logged and dropped, never
    raised to the caller and never retried.
    """

    def __init__(
        self,
        interaction_log: InteractionLogPort,
        clock: ClockPort,
        min_reading_time_ms: float = DEFAULT_MIN_READING_TIME_MS,
    ) -> None:
        self._log = interaction_log
        self._clock = clock
        self._min_reading_time_ms = min_reading_time_ms

    async def dispatch(self, event: InteractionEvent) -> bool:
        """Forward an event without raising. Returns whether it was delivered."""
        try:
            await self._log.log(event)
        except Exception as exc:
            logger.warning(
                "Dropping %s interaction for %s: %s",
                event.interaction_type.value,
                event.content_id,
                exc,
            )
            return False
        return True

    async def emit_view(
        self,
        session: TrackedSession,
        content: ContentItem,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Send the initial view once per session. Returns False if already sent."""
        key = (content.id, InteractionType.VIEW)
        if key in session.sent_interaction_keys:
            return False
        # Marked before the await so an overlapping call cannot send twice.
        session.sent_interaction_keys.add(key)

        event = InteractionEvent(
            content_id=content.id,
            interaction_type=InteractionType.VIEW,
            metadata={
                "post_title": content.title,
                "post_categories": list(content.category_ids),
                "post_tags": list(content.tag_ids),
                "source": EVENT_SOURCE,
                **(metadata or {}),
            },
        )
        await self.dispatch(event)
        return True

    async def emit_reading_time(self, session: TrackedSession) -> InteractionEvent | None:
        """
        Report time spent so far. Skipped for bounce visits under the minimum.

        Not deduplicated: the log treats repeats as an upsert.
        """
        elapsed_ms = session.elapsed_ms(self._clock.now_ms())
        if elapsed_ms < self._min_reading_time_ms:
            logger.debug(
                "Skipping reading time for %s: %.0fms elapsed",
                session.content_id,
                elapsed_ms,
            )
            return None

        patterns = classify_reading(session.scroll_samples, elapsed_ms)
        velocity = patterns.reading_velocity if patterns is not None else 1.0
        score = engagement_score(elapsed_ms, session.max_depth_percent, velocity)
        completed = is_completed_reading(elapsed_ms, session.max_depth_percent)

        event = InteractionEvent(
            content_id=session.content_id,
            interaction_type=InteractionType.VIEW,
            time_spent_seconds=round_half_up(elapsed_ms / 1000),
            scroll_percentage=session.max_depth_percent,
            completed_reading=completed,
            engagement_score=round_half_up(score * 100),
            metadata={
                "reading_patterns": patterns.as_dict() if patterns is not None else None,
                "max_scroll_depth": session.max_depth_percent,
                "reading_session": True,
                "engagement_type": "full_read" if completed else "partial_read",
                "source": EVENT_SOURCE,
            },
        )
        await self.dispatch(event)
        return event

    async def emit_click(
        self,
        session: TrackedSession,
        href: str,
        link_text: str | None,
    ) -> InteractionEvent:
        """Report a followed link to another content item. Always sent."""
        event = InteractionEvent(
            content_id=session.content_id,
            interaction_type=InteractionType.CLICK,
            metadata={
                "link_href": href,
                "link_text": (link_text or "")[:LINK_TEXT_MAX_CHARS],
                "source": EVENT_SOURCE,
            },
        )
        await self.dispatch(event)
        return event
