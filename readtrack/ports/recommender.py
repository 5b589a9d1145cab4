"""Recommender port: abstract interface for the strategy-scoring service."""

from abc import ABC, abstractmethod
from typing import Any

from readtrack.domain.models import RecommendationQuery


class RecommendationUnavailable(RuntimeError):
    """The scoring service answered but could not produce recommendations."""


class RecommenderPort(ABC):
    """Abstraction for the recommendation scoring service."""

    @abstractmethod
    async def recommend(self, query: RecommendationQuery) -> list[dict[str, Any]]:
        """
        Return raw scored records in ranked order.

        Field names for strategy, confidence and reason vary between
        strategies; callers normalize them.
        """
        ...
