"""Tracker and recommendation domain records."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class InteractionType(str, Enum):
    VIEW = "view"
    CLICK = "click"
    RECOMMENDATION_CLICK = "recommendation_click"


class ReadingSessionType(str, Enum):
    DEEP_READING = "deep_reading"
    MODERATE_READING = "moderate_reading"
    SCANNING = "scanning"


class Strategy(str, Enum):
    CONTENT_BASED = "content_based"
    COLLABORATIVE = "collaborative"
    PERSONALIZED = "personalized"
    TRENDING = "trending"
    HYBRID = "hybrid"


# Names the scoring service reports for refined variants of a base strategy.
STRATEGY_ALIASES: dict[str, Strategy] = {
    "enhanced_content_based": Strategy.CONTENT_BASED,
    "enhanced_personalized": Strategy.PERSONALIZED,
    "temporal_trending": Strategy.TRENDING,
    "realtime_trending": Strategy.TRENDING,
}


def parse_strategy(value: Any) -> Strategy | None:
    """Resolve a strategy name (or alias) reported by a collaborator."""
    if isinstance(value, Strategy):
        return value
    if not isinstance(value, str):
        return None
    name = value.strip().lower()
    if name in STRATEGY_ALIASES:
        return STRATEGY_ALIASES[name]
    try:
        return Strategy(name)
    except ValueError:
        return None


@dataclass(frozen=True)
class ContentItem:
    """Descriptor of the item being read. Display fields are context only."""

    id: str
    title: str | None = None
    category_ids: tuple[str, ...] = ()
    tag_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScrollMetrics:
    scroll_top: float
    viewport_height: float
    scroll_height: float


@dataclass(frozen=True)
class ScrollSample:
    depth_percent: int
    timestamp_ms: float


@dataclass
class TrackedSession:
    """
    Mutable state of one tracking session.

    Owned by a single lifecycle controller; the sample buffer is never shared
    between sessions. ``max_depth_percent`` only grows.
    """

    content_id: str
    started_at_ms: float
    generation: int = 0
    scroll_samples: list[ScrollSample] = field(default_factory=list)
    max_depth_percent: int = 0
    last_depth_percent: int = 0
    sent_interaction_keys: set[tuple[str, InteractionType]] = field(default_factory=set)

    def elapsed_ms(self, now_ms: float) -> float:
        return max(0.0, now_ms - self.started_at_ms)


@dataclass(frozen=True)
class PatternReport:
    reading_velocity: float
    avg_depth_increment: float
    scroll_consistency: float
    total_samples: int
    session_type: ReadingSessionType

    def as_dict(self) -> dict[str, Any]:
        return {
            "reading_velocity": self.reading_velocity,
            "avg_depth_increment": self.avg_depth_increment,
            "scroll_consistency": self.scroll_consistency,
            "total_scrolls": self.total_samples,
            "session_type": self.session_type.value,
        }


@dataclass(frozen=True)
class InteractionEvent:
    """An emitted interaction fact, handed to the interaction log."""

    content_id: str
    interaction_type: InteractionType
    time_spent_seconds: int | None = None
    scroll_percentage: int | None = None
    completed_reading: bool | None = None
    engagement_score: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "post_id": self.content_id,
            "interaction_type": self.interaction_type.value,
            "metadata": dict(self.metadata),
        }
        optional = {
            "time_spent_seconds": self.time_spent_seconds,
            "scroll_percentage": self.scroll_percentage,
            "completed_reading": self.completed_reading,
            "engagement_score": self.engagement_score,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        return payload


@dataclass(frozen=True)
class RecommendationQuery:
    """Request descriptor. ``anchor_content_id=None`` asks for the general feed."""

    anchor_content_id: str | None = None
    strategy: Strategy = Strategy.HYBRID
    limit: int = 6
    diversity_boost: float = 0.3
    include_explanation: bool = False
    exclude_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0.0 <= self.diversity_boost <= 1.0:
            raise ValueError(
                f"diversity_boost must be within [0, 1], got {self.diversity_boost}"
            )


@dataclass(frozen=True)
class RecommendationCandidate:
    """A recommended item normalized from the scoring service, with provenance."""

    item_id: str
    title: str
    excerpt: str | None
    strategy: Strategy
    confidence: float
    rank: int
    reason: str
    slug: str | None = None
    url: str | None = None
    cover_image: str | None = None
    author_name: str | None = None
    score: float | None = None
    sources: tuple[Strategy, ...] = ()
    explanation: dict[str, Any] | None = None


@dataclass(frozen=True)
class ClickAttribution:
    item_id: str
    strategy: Strategy
    confidence: float
    rank: int
    reason: str
    anchor_content_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "strategy": self.strategy.value,
            "confidence": self.confidence,
            "rank": self.rank,
            "reason": self.reason,
            "anchor_content_id": self.anchor_content_id,
        }
