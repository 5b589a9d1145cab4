import asyncio
from typing import Any

import pytest

from readtrack.domain.models import (
    ClickAttribution,
    ContentItem,
    InteractionEvent,
    RecommendationQuery,
    ScrollMetrics,
    TrackedSession,
)
from readtrack.ports.click_log import ClickLogPort
from readtrack.ports.interaction_log import InteractionLogPort
from readtrack.ports.recommender import RecommenderPort
from readtrack.ports.viewport import ClockPort, ViewportPort
from readtrack.services.emitter import InteractionEmitter


class ManualClock(ClockPort):
    def __init__(self, start_ms: float = 1_000_000.0) -> None:
        self.now = start_ms

    def now_ms(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeViewport(ViewportPort):
    def __init__(self, viewport_height: float = 800, scroll_height: float = 2800) -> None:
        self.metrics = ScrollMetrics(0, viewport_height, scroll_height)

    def scroll_to(self, scroll_top: float) -> None:
        self.metrics = ScrollMetrics(
            scroll_top, self.metrics.viewport_height, self.metrics.scroll_height
        )

    def scroll_to_percent(self, percent: float) -> None:
        scrollable = self.metrics.scroll_height - self.metrics.viewport_height
        self.scroll_to(scrollable * percent / 100)

    def measure(self) -> ScrollMetrics:
        return self.metrics


class RecordingLog(InteractionLogPort, ClickLogPort):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.events: list[InteractionEvent] = []
        self.clicks: list[ClickAttribution] = []

    async def log(self, event: InteractionEvent) -> None:
        if self.fail:
            raise ConnectionError("interaction log unreachable")
        self.events.append(event)

    async def log_click(self, attribution: ClickAttribution) -> None:
        if self.fail:
            raise ConnectionError("click log unreachable")
        self.clicks.append(attribution)


class ScriptedRecommender(RecommenderPort):
    """Answers each call with the next scripted response once released."""

    def __init__(self) -> None:
        self.queries: list[RecommendationQuery] = []
        self._responses: list[tuple[asyncio.Event, Any]] = []

    def respond(self, response: Any, release: bool = True) -> asyncio.Event:
        gate = asyncio.Event()
        if release:
            gate.set()
        self._responses.append((gate, response))
        return gate

    async def recommend(self, query: RecommendationQuery) -> list[dict[str, Any]]:
        gate, response = self._responses[len(self.queries)]
        self.queries.append(query)
        await gate.wait()
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def viewport() -> FakeViewport:
    return FakeViewport()


@pytest.fixture
def log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def emitter(log: RecordingLog, clock: ManualClock) -> InteractionEmitter:
    return InteractionEmitter(log, clock)


@pytest.fixture
def session(clock: ManualClock) -> TrackedSession:
    return TrackedSession(content_id="post-42", started_at_ms=clock.now_ms(), generation=1)


@pytest.fixture
def post() -> ContentItem:
    return ContentItem(id="post-42", title="Reading engagement", category_ids=("3",), tag_ids=("7", "9"))
