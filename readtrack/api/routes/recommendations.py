"""Recommendation retrieval and click attribution routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from readtrack.api.deps import get_registry, require_tracker
from readtrack.api.schemas import (
    RecommendationClickRequest,
    RecommendationClickResponse,
    RecommendationItem,
    RecommendationsRequest,
    RecommendationsResponse,
    RecommendationStatsResponse,
)
from readtrack.domain.models import RecommendationQuery, Strategy, parse_strategy
from readtrack.services.registry import TrackerRegistry

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])


@router.post("", response_model=RecommendationsResponse)
async def get_recommendations(
    data: RecommendationsRequest,
    registry: TrackerRegistry = Depends(get_registry),
) -> RecommendationsResponse:
    """Fetch recommendations for an anchor item with the chosen strategy."""
    tracker = registry.get_or_create(data.visitor_id)
    defaults = registry.settings
    query = RecommendationQuery(
        anchor_content_id=data.anchor_content_id,
        strategy=data.strategy or parse_strategy(defaults.default_strategy) or Strategy.HYBRID,
        limit=data.limit if data.limit is not None else defaults.default_recommendation_limit,
        diversity_boost=(
            data.diversity_boost
            if data.diversity_boost is not None
            else defaults.default_diversity_boost
        ),
        include_explanation=data.include_explanation,
        exclude_ids=tuple(data.exclude_ids),
    )
    coordinator = tracker.coordinator
    candidates = await coordinator.fetch(query)
    return RecommendationsResponse(
        recommendations=[RecommendationItem.model_validate(c) for c in candidates],
        loading=coordinator.loading,
        error=coordinator.error,
    )


@router.get("/{visitor_id}/stats", response_model=RecommendationStatsResponse)
async def get_recommendation_stats(
    visitor_id: str,
    registry: TrackerRegistry = Depends(get_registry),
) -> RecommendationStatsResponse:
    tracker = require_tracker(registry, visitor_id)
    stats = tracker.coordinator.stats()
    if stats is None:
        raise HTTPException(status_code=404, detail="No recommendations loaded")
    return RecommendationStatsResponse(**stats)


@router.post(
    "/click",
    response_model=RecommendationClickResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def record_recommendation_click(
    data: RecommendationClickRequest,
    registry: TrackerRegistry = Depends(get_registry),
) -> RecommendationClickResponse:
    """Attribute a followed recommendation. Delivery happens in the background."""
    tracker = require_tracker(registry, data.visitor_id)
    candidate = tracker.coordinator.find(data.item_id)
    if candidate is None:
        raise HTTPException(status_code=404, detail="Recommendation not found")

    applied_query = tracker.coordinator.applied_query
    attribution = tracker.attributor.attribute(
        candidate,
        rank=data.rank,
        anchor_content_id=applied_query.anchor_content_id if applied_query else None,
    )
    return RecommendationClickResponse(
        item_id=attribution.item_id,
        strategy=attribution.strategy,
        confidence=attribution.confidence,
        rank=attribution.rank,
        reason=attribution.reason,
        anchor_content_id=attribution.anchor_content_id,
    )
