import logging
from typing import Any

import httpx

from readtrack.domain.models import RecommendationQuery
from readtrack.ports.recommender import RecommendationUnavailable, RecommenderPort

logger = logging.getLogger(__name__)


class HttpRecommenderAdapter(RecommenderPort):
    """Recommender backed by the ML service ``/recommendations`` endpoint."""

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

    async def recommend(self, query: RecommendationQuery) -> list[dict[str, Any]]:
        payload = {
            "session_id": self._session_id,
            "current_post_id": query.anchor_content_id,
            "limit": query.limit,
            "algorithm": query.strategy.value,
            "diversity_boost": query.diversity_boost,
            "include_explanation": query.include_explanation,
            "exclude_posts": list(query.exclude_ids),
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            logger.info(
                "Recommendation request: anchor=%s algorithm=%s limit=%d",
                query.anchor_content_id,
                query.strategy.value,
                query.limit,
            )
            resp = await client.post(f"{self._base_url}/recommendations", json=payload)
            resp.raise_for_status()
            body = resp.json()

        if not body.get("success", True):
            raise RecommendationUnavailable(
                body.get("error") or "Recommendations could not be generated"
            )

        records: list[dict[str, Any]] = list(body.get("recommendations") or [])
        explanations = body.get("explanations") or []
        # Explanations arrive as a list parallel to the recommendations.
        for index, record in enumerate(records):
            if index < len(explanations) and "explanation" not in record:
                record["explanation"] = explanations[index]

        logger.info(
            "Recommendation response: %d records (algorithm=%s)",
            len(records),
            (body.get("metadata") or {}).get("algorithm"),
        )
        return records
