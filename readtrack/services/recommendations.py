"""Recommendation retrieval: normalization, ranking and last-request-wins state."""

import logging
from collections import Counter
from collections.abc import Mapping
from typing import Any

from readtrack.domain.models import (
    RecommendationCandidate,
    RecommendationQuery,
    Strategy,
    parse_strategy,
)
from readtrack.ports.recommender import RecommenderPort

logger = logging.getLogger(__name__)

RETRIEVAL_ERROR_MESSAGE = "Recommendations could not be loaded"

# Provenance may sit on the record itself or inside one of these objects.
_PROVENANCE_KEYS = ("ml_data", "explanation")


def _first(record: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = record.get(name)
        if value is not None:
            return value
    return None


def _lookup(raw: Mapping[str, Any], *names: str) -> Any:
    value = _first(raw, *names)
    if value is not None:
        return value
    for key in _PROVENANCE_KEYS:
        nested = raw.get(key)
        if isinstance(nested, Mapping):
            value = _first(nested, *names)
            if value is not None:
                return value
    return None


def normalize_confidence(value: Any) -> float:
    """Coerce a reported confidence into [0, 1]; percent scales are divided by 100."""
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if confidence > 1.0:
        confidence /= 100.0
    return max(0.0, min(confidence, 1.0))


def normalize_candidate(
    raw: Mapping[str, Any],
    rank: int,
    fallback_strategy: Strategy = Strategy.HYBRID,
) -> RecommendationCandidate:
    """
    Build a candidate from one scoring-service record.

    Accepts either naming for each provenance field:
    ``source``/``algorithm_used``, ``confidence``/``confidence_level`` and
    ``reason``/``primary_reason``.
    """
    item_id = _first(raw, "id", "item_id", "post_id")
    if item_id is None:
        raise ValueError("recommendation record has no identifier")

    strategy = parse_strategy(_lookup(raw, "source", "algorithm_used"))
    if strategy is None:
        strategy = fallback_strategy

    reported_sources = _lookup(raw, "sources") or ()
    sources = tuple(
        s for s in (parse_strategy(name) for name in reported_sources) if s is not None
    ) or (strategy,)

    score = _lookup(raw, "score")
    author = raw.get("author")
    if isinstance(author, Mapping):
        author = author.get("name")

    return RecommendationCandidate(
        item_id=str(item_id),
        title=str(raw.get("title") or ""),
        excerpt=raw.get("excerpt"),
        strategy=strategy,
        confidence=normalize_confidence(_lookup(raw, "confidence", "confidence_level")),
        rank=rank,
        reason=str(_lookup(raw, "reason", "primary_reason") or ""),
        slug=raw.get("slug"),
        url=raw.get("url"),
        cover_image=raw.get("cover_image"),
        author_name=author,
        score=float(score) if isinstance(score, (int, float)) else None,
        sources=sources,
        explanation=raw.get("explanation") if isinstance(raw.get("explanation"), dict) else None,
    )


class RecommendationCoordinator:
    """
    Fetches recommendations for one consumer and exposes loading/error state.

    Each request gets a sequence number; only the latest request may change
    state, so a slow superseded response is discarded. ``applied_query`` is
    the query behind the current ``candidates``, which lags ``last_query``
    while a newer request is pending. Failures become an
    error message and an empty result, never an exception, and are not
    retried.
    """

    def __init__(self, recommender: RecommenderPort) -> None:
        self._recommender = recommender
        self._sequence = 0
        self.candidates: list[RecommendationCandidate] = []
        self.loading = False
        self.error: str | None = None
        self.last_query: RecommendationQuery | None = None
        self.applied_query: RecommendationQuery | None = None

    async def fetch(self, query: RecommendationQuery) -> list[RecommendationCandidate]:
        self._sequence += 1
        sequence = self._sequence
        self.last_query = query

        if query.limit <= 0:
            self.candidates = []
            self.applied_query = query
            self.error = None
            self.loading = False
            return []

        self.loading = True
        self.error = None

        try:
            records = await self._recommender.recommend(query)
            candidates = [
                normalize_candidate(record, rank, fallback_strategy=query.strategy)
                for rank, record in enumerate(records, start=1)
            ]
        except Exception as exc:
            if sequence != self._sequence:
                logger.debug("Ignoring failure of superseded request %d", sequence)
                return []
            logger.error(
                "Recommendation retrieval failed (anchor=%s, strategy=%s): %s",
                query.anchor_content_id,
                query.strategy.value,
                exc,
            )
            self.candidates = []
            self.applied_query = query
            self.error = RETRIEVAL_ERROR_MESSAGE
            self.loading = False
            return []

        if sequence != self._sequence:
            logger.debug("Discarding stale response for request %d", sequence)
            return []

        self.candidates = candidates
        self.applied_query = query
        self.loading = False
        logger.info(
            "Loaded %d recommendations (anchor=%s, strategy=%s)",
            len(candidates),
            query.anchor_content_id,
            query.strategy.value,
        )
        return list(candidates)

    def find(self, item_id: str) -> RecommendationCandidate | None:
        for candidate in self.candidates:
            if candidate.item_id == item_id:
                return candidate
        return None

    def by_strategy(self, strategy: Strategy) -> list[RecommendationCandidate]:
        return [
            c for c in self.candidates if c.strategy is strategy or strategy in c.sources
        ]

    def stats(self) -> dict[str, Any] | None:
        """Summary of the current result set, or None when it is empty."""
        if not self.candidates:
            return None
        distribution = Counter(c.strategy.value for c in self.candidates)
        return {
            "total_recommendations": len(self.candidates),
            "avg_confidence": sum(c.confidence for c in self.candidates) / len(self.candidates),
            "sources_distribution": dict(distribution),
            "top_algorithm": distribution.most_common(1)[0][0],
        }
