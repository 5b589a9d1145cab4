"""Application settings loaded from the environment."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CollaboratorBackend(str, Enum):
    HTTP = "http"
    MOCK = "mock"


class Settings(BaseSettings):
    """Runtime configuration for the tracker and recommendation gateway."""

    model_config = SettingsConfigDict(
        env_prefix="READTRACK_",
        env_file=".env",
        extra="ignore",
    )

    # ── Collaborators ──────────────────────────────
    collaborator_backend: CollaboratorBackend = CollaboratorBackend.MOCK
    ml_api_base_url: str = "http://localhost:8000/api/ml"
    http_timeout_seconds: float = 10.0

    # ── Session tracking ───────────────────────────
    heartbeat_interval_seconds: float = Field(default=30.0, gt=0)
    scroll_throttle_ms: float = Field(default=150.0, ge=0)
    sample_buffer_cap: int = Field(default=100, gt=0)
    sample_buffer_keep: int = Field(default=50, gt=0)
    min_reading_time_ms: float = Field(default=10_000.0, ge=0)
    content_link_pattern: str = r"/blog/([^/]+)"
    tracker_idle_timeout_seconds: float = Field(default=300.0, gt=0)
    tracker_sweep_interval_seconds: float = Field(default=60.0, gt=0)

    # ── Recommendations ────────────────────────────
    default_strategy: str = "hybrid"
    default_recommendation_limit: int = 6
    default_diversity_boost: float = Field(default=0.3, ge=0.0, le=1.0)

    log_level: str = "INFO"


settings = Settings()
