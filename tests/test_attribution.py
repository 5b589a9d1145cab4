"""Fire-and-forget recommendation click attribution."""

import asyncio

import pytest

from readtrack.domain.models import RecommendationCandidate, Strategy
from readtrack.ports.click_log import ClickLogPort
from readtrack.services.attribution import ClickAttributor

from .conftest import RecordingLog


class SlowClickLog(ClickLogPort):
    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.clicks = []

    async def log_click(self, attribution):
        await self.release.wait()
        self.clicks.append(attribution)


@pytest.fixture
def candidate() -> RecommendationCandidate:
    return RecommendationCandidate(
        item_id="post-9",
        title="Nine",
        excerpt=None,
        strategy=Strategy.COLLABORATIVE,
        confidence=0.66,
        rank=2,
        reason="Readers like you enjoyed this",
    )


@pytest.mark.asyncio
async def test_attribute_packages_provenance(candidate):
    log = RecordingLog()
    attributor = ClickAttributor(log)

    attribution = attributor.attribute(candidate, anchor_content_id="post-42")
    await attributor.drain()

    assert log.clicks == [attribution]
    assert attribution.to_payload() == {
        "item_id": "post-9",
        "strategy": "collaborative",
        "confidence": 0.66,
        "rank": 2,
        "reason": "Readers like you enjoyed this",
        "anchor_content_id": "post-42",
    }


@pytest.mark.asyncio
async def test_explicit_rank_overrides_candidate_rank(candidate):
    attributor = ClickAttributor(RecordingLog())
    assert attributor.attribute(candidate, rank=5).rank == 5
    await attributor.drain()


@pytest.mark.asyncio
async def test_attribute_returns_before_delivery(candidate):
    slow = SlowClickLog()
    attributor = ClickAttributor(slow)

    attributor.attribute(candidate)
    await asyncio.sleep(0)

    assert slow.clicks == []
    assert attributor.pending == 1

    slow.release.set()
    await attributor.drain()
    assert len(slow.clicks) == 1
    assert attributor.pending == 0


@pytest.mark.asyncio
async def test_delivery_failure_is_swallowed(candidate):
    attributor = ClickAttributor(RecordingLog(fail=True))
    attribution = attributor.attribute(candidate)
    await attributor.drain()
    assert attribution.item_id == "post-9"
    assert attributor.pending == 0
