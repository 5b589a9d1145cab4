"""Pydantic request/response schemas for the gateway."""

from pydantic import BaseModel, ConfigDict, Field

from readtrack.domain.models import Strategy


# ── Tracking ───────────────────────────────────────


class ContentDescriptor(BaseModel):
    id: str = Field(min_length=1, max_length=255)
    title: str | None = None
    category_ids: list[str] = Field(default_factory=list)
    tag_ids: list[str] = Field(default_factory=list)


class TrackRequest(BaseModel):
    visitor_id: str = Field(min_length=1, max_length=255, pattern=r"^[a-zA-Z0-9_-]+$")
    content: ContentDescriptor | None = None
    enabled: bool = True


class ScrollReport(BaseModel):
    scroll_top: float = Field(ge=0)
    viewport_height: float = Field(ge=0)
    scroll_height: float = Field(ge=0)


class VisibilityReport(BaseModel):
    hidden: bool


class LinkClickReport(BaseModel):
    href: str = Field(min_length=1, max_length=2000)
    text: str | None = None


class SessionSnapshot(BaseModel):
    state: str
    content_id: str | None = None
    generation: int | None = None
    elapsed_ms: float | None = None
    max_depth_percent: int | None = None
    last_depth_percent: int | None = None
    sample_count: int | None = None


class ScrollResponse(BaseModel):
    accepted: bool
    depth_percent: int | None = None
    max_depth_percent: int | None = None


class EmissionResponse(BaseModel):
    emitted: bool


# ── Recommendations ────────────────────────────────


class RecommendationsRequest(BaseModel):
    visitor_id: str = Field(min_length=1, max_length=255, pattern=r"^[a-zA-Z0-9_-]+$")
    anchor_content_id: str | None = None
    strategy: Strategy | None = None
    limit: int | None = Field(default=None, le=50)
    diversity_boost: float | None = Field(default=None, ge=0.0, le=1.0)
    include_explanation: bool = False
    exclude_ids: list[str] = Field(default_factory=list)


class RecommendationItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    title: str
    excerpt: str | None = None
    slug: str | None = None
    url: str | None = None
    cover_image: str | None = None
    author_name: str | None = None
    strategy: Strategy
    sources: list[Strategy] = Field(default_factory=list)
    confidence: float
    score: float | None = None
    rank: int
    reason: str
    explanation: dict | None = None


class RecommendationsResponse(BaseModel):
    recommendations: list[RecommendationItem]
    loading: bool = False
    error: str | None = None


class RecommendationStatsResponse(BaseModel):
    total_recommendations: int
    avg_confidence: float
    sources_distribution: dict[str, int]
    top_algorithm: str


class RecommendationClickRequest(BaseModel):
    visitor_id: str = Field(min_length=1, max_length=255)
    item_id: str
    rank: int | None = Field(default=None, ge=1, le=100)


class RecommendationClickResponse(BaseModel):
    item_id: str
    strategy: Strategy
    confidence: float
    rank: int
    reason: str
    anchor_content_id: str | None = None
