import asyncio
import logging
from typing import Any

from readtrack.domain.models import RecommendationQuery, Strategy
from readtrack.ports.recommender import RecommenderPort

logger = logging.getLogger(__name__)

_CATALOG: list[dict[str, Any]] = [
    {"id": f"post-{n}", "title": f"Sample article #{n}", "slug": f"sample-article-{n}"}
    for n in range(1, 25)
]

_REASONS = {
    Strategy.CONTENT_BASED: "Similar topics to what you are reading",
    Strategy.COLLABORATIVE: "Readers like you enjoyed this",
    Strategy.PERSONALIZED: "Matches your reading profile",
    Strategy.TRENDING: "Popular right now",
    Strategy.HYBRID: "Recommended for you",
}


class MockRecommenderAdapter(RecommenderPort):
    """
    Deterministic recommender for local development.

    Trending results use the explanation-style field names
    (``algorithm_used``/``confidence_level``/``primary_reason``); every other
    strategy nests its provenance under ``ml_data`` with a percent-scale
    confidence, the way the ML service formats it.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self._latency = latency

    async def recommend(self, query: RecommendationQuery) -> list[dict[str, Any]]:
        if self._latency:
            await asyncio.sleep(self._latency)

        excluded = set(query.exclude_ids)
        if query.anchor_content_id is not None:
            excluded.add(query.anchor_content_id)
        pool = [item for item in _CATALOG if item["id"] not in excluded]

        records: list[dict[str, Any]] = []
        for index, item in enumerate(pool[: query.limit]):
            confidence = round(max(0.95 - index * 0.07, 0.1), 2)
            reason = _REASONS[query.strategy]
            if query.strategy is Strategy.TRENDING:
                record = {
                    **item,
                    "algorithm_used": query.strategy.value,
                    "confidence_level": confidence,
                    "primary_reason": reason,
                }
            else:
                record = {
                    **item,
                    "ml_data": {
                        "score": confidence,
                        "source": query.strategy.value,
                        "sources": [query.strategy.value],
                        "reason": reason,
                        "confidence": confidence * 100,
                    },
                }
            records.append(record)

        logger.info(
            "MockRecommender: %d records (anchor=%s, algorithm=%s)",
            len(records),
            query.anchor_content_id,
            query.strategy.value,
        )
        return records
