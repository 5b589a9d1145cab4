import logging

import httpx

from readtrack.domain.models import ClickAttribution, InteractionType
from readtrack.ports.click_log import ClickLogPort

logger = logging.getLogger(__name__)


class HttpClickLogAdapter(ClickLogPort):
    """Sends recommendation clicks to the ML service as interactions."""

    def __init__(
        self,
        base_url: str,
        session_id: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session_id = session_id
        self._timeout = timeout
        self._transport = transport

    async def log_click(self, attribution: ClickAttribution) -> None:
        payload = {
            "session_id": self._session_id,
            "post_id": attribution.item_id,
            "interaction_type": InteractionType.RECOMMENDATION_CLICK.value,
            "recommendation_source": attribution.strategy.value,
            "recommendation_score": attribution.confidence,
            "recommendation_position": attribution.rank,
            "metadata": {
                "algorithm": attribution.strategy.value,
                "confidence": attribution.confidence,
                "reason": attribution.reason,
                "anchor_post_id": attribution.anchor_content_id,
            },
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(f"{self._base_url}/interactions", json=payload)
            resp.raise_for_status()
        logger.info(
            "Recommendation click logged: post=%s source=%s position=%d",
            attribution.item_id,
            attribution.strategy.value,
            attribution.rank,
        )
