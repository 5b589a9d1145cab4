"""Session lifecycle: start, heartbeat, visibility, teardown and content switches."""

import asyncio

import pytest

from readtrack.domain.models import ContentItem, InteractionType, ReadingSessionType
from readtrack.services.lifecycle import LifecycleState, SessionLifecycleController
from readtrack.services.scoring import classify_session_type, engagement_score


class ManualTimer:
    """Replaces ``asyncio.sleep`` so heartbeats fire only when told to."""

    def __init__(self) -> None:
        self.calls: list[float] = []
        self._waiters: list[asyncio.Future] = []

    async def sleep(self, seconds: float) -> None:
        self.calls.append(seconds)
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    @property
    def waiting(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    async def fire(self) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
        for _ in range(5):
            await asyncio.sleep(0)


@pytest.fixture
def timer() -> ManualTimer:
    return ManualTimer()


@pytest.fixture
async def controller(emitter, viewport, clock, timer):
    ctrl = SessionLifecycleController(emitter, viewport, clock, sleep=timer.sleep)
    yield ctrl
    await ctrl.stop()


def _reading_events(log):
    return [e for e in log.events if e.time_spent_seconds is not None]


@pytest.mark.asyncio
async def test_start_emits_view_and_schedules_heartbeat(controller, log, timer, post):
    assert controller.state is LifecycleState.IDLE

    await controller.track(post)
    await asyncio.sleep(0)

    assert controller.state is LifecycleState.ACTIVE
    assert controller.session.content_id == "post-42"
    assert len(log.events) == 1
    assert log.events[0].interaction_type is InteractionType.VIEW
    assert timer.calls == [30.0]


@pytest.mark.asyncio
async def test_tracking_same_content_again_is_noop(controller, log, post):
    await controller.track(post)
    session = controller.session
    await controller.track(ContentItem(id="post-42", title="Re-rendered"))
    assert controller.session is session
    assert len(log.events) == 1


@pytest.mark.asyncio
async def test_heartbeat_emits_reading_time(controller, log, clock, timer, post):
    await controller.track(post)
    await asyncio.sleep(0)

    clock.advance(30_000)
    await timer.fire()
    clock.advance(30_000)
    await timer.fire()

    assert [e.time_spent_seconds for e in _reading_events(log)] == [30, 60]
    assert controller.state is LifecycleState.ACTIVE
    assert timer.waiting == 1


@pytest.mark.asyncio
async def test_heartbeat_before_minimum_time_sends_nothing(
    emitter, viewport, clock, timer, log, post
):
    controller = SessionLifecycleController(
        emitter, viewport, clock, heartbeat_interval=5.0, sleep=timer.sleep
    )
    await controller.track(post)
    await asyncio.sleep(0)
    clock.advance(5_000)
    await timer.fire()

    assert timer.calls == [5.0, 5.0]
    assert _reading_events(log) == []
    await controller.stop()


@pytest.mark.asyncio
async def test_hidden_page_flushes_without_leaving_active(controller, log, clock, post):
    await controller.track(post)
    clock.advance(45_000)

    assert await controller.on_visibility_change(hidden=False) is None
    event = await controller.on_visibility_change(hidden=True)

    assert event is not None and event.time_spent_seconds == 45
    assert controller.state is LifecycleState.ACTIVE
    assert len(_reading_events(log)) == 1


@pytest.mark.asyncio
async def test_stop_flushes_once_and_detaches(controller, log, clock, viewport, timer, post):
    await controller.track(post)
    await asyncio.sleep(0)
    generation = controller.session.generation
    clock.advance(20_000)

    final = await controller.stop()
    await asyncio.sleep(0)

    assert final is not None and final.time_spent_seconds == 20
    assert controller.state is LifecycleState.TORN_DOWN
    assert controller.session is None
    assert timer.waiting == 0

    viewport.scroll_to_percent(50)
    assert controller.on_scroll() is None
    assert await controller.on_visibility_change(hidden=True) is None
    assert await controller.heartbeat_tick(generation) is False
    assert await controller.stop() is None
    assert len(_reading_events(log)) == 1


@pytest.mark.asyncio
async def test_teardown_while_hidden_flushes_exactly_once_more(controller, log, clock, post):
    await controller.track(post)
    clock.advance(40_000)
    await controller.on_visibility_change(hidden=True)
    clock.advance(5_000)

    await controller.stop()

    reading = _reading_events(log)
    assert [e.time_spent_seconds for e in reading] == [40, 45]
    assert log.events[0].interaction_type is InteractionType.VIEW


@pytest.mark.asyncio
async def test_switching_content_starts_fresh_session(controller, log, clock, viewport, post):
    await controller.track(post)
    viewport.scroll_to_percent(70)
    controller.on_scroll()
    clock.advance(12_000)

    await controller.track(ContentItem(id="post-43", title="Next"))

    assert [(e.content_id, e.time_spent_seconds) for e in log.events] == [
        ("post-42", None),
        ("post-42", 12),
        ("post-43", None),
    ]
    session = controller.session
    assert session.content_id == "post-43"
    assert session.scroll_samples == []
    assert session.max_depth_percent == 0
    assert session.sent_interaction_keys == {("post-43", InteractionType.VIEW)}
    assert session.generation == 2


@pytest.mark.asyncio
async def test_stale_heartbeat_is_discarded(controller, log, clock, post):
    await controller.track(post)
    old_generation = controller.session.generation
    await controller.track(ContentItem(id="post-43"))
    clock.advance(60_000)

    assert await controller.heartbeat_tick(old_generation) is False
    assert await controller.heartbeat_tick(controller.session.generation) is True
    assert [e.content_id for e in _reading_events(log)] == ["post-43"]


@pytest.mark.asyncio
async def test_restart_same_content_after_stop_sends_view_again(controller, log, post):
    await controller.track(post)
    await controller.stop()
    await controller.track(post)

    views = [e for e in log.events if e.time_spent_seconds is None]
    assert len(views) == 2
    assert controller.state is LifecycleState.ACTIVE


@pytest.mark.asyncio
async def test_disabling_tracking_tears_down(controller, log, clock, post):
    await controller.track(post, enabled=False)
    assert controller.state is LifecycleState.IDLE
    assert log.events == []

    await controller.track(post)
    clock.advance(11_000)
    await controller.track(post, enabled=False)
    assert controller.state is LifecycleState.TORN_DOWN
    assert len(_reading_events(log)) == 1

    await controller.track(None)
    assert controller.state is LifecycleState.TORN_DOWN


@pytest.mark.asyncio
async def test_link_clicks_only_for_content_links(controller, log, post):
    assert await controller.on_link_click("/blog/other-post", "Other") is None

    await controller.track(post)
    assert await controller.on_link_click("https://example.com/about", "About") is None
    event = await controller.on_link_click("/blog/other-post", "Other post")

    assert event.interaction_type is InteractionType.CLICK
    assert event.content_id == "post-42"
    assert event.metadata["link_text"] == "Other post"


@pytest.mark.asyncio
async def test_scroll_samples_feed_final_event(controller, log, clock, viewport, post):
    await controller.track(post)
    for depth in [10, 45, 90]:
        viewport.scroll_to_percent(depth)
        controller.on_scroll()
        clock.advance(1_000)
    clock.advance(127_000)

    final = await controller.stop()

    assert classify_session_type(130_000) is ReadingSessionType.MODERATE_READING
    assert final.scroll_percentage == 90
    assert final.completed_reading is True
    assert final.time_spent_seconds == 130
    expected = engagement_score(130_000, 90, 1.0)
    assert final.engagement_score == round(expected * 100)


@pytest.mark.asyncio
async def test_independent_controllers_do_not_share_state(emitter, viewport, clock, timer, post):
    first = SessionLifecycleController(emitter, viewport, clock, sleep=timer.sleep)
    second = SessionLifecycleController(emitter, viewport, clock, sleep=timer.sleep)
    await first.track(post)
    await second.track(post)

    viewport.scroll_to_percent(60)
    first.on_scroll()

    assert first.session is not second.session
    assert first.session.max_depth_percent == 60
    assert second.session.max_depth_percent == 0
    await first.stop()
    await second.stop()


@pytest.mark.asyncio
async def test_snapshot(controller, clock, post):
    assert controller.snapshot() == {"state": "idle", "content_id": None}
    await controller.track(post)
    clock.advance(2_000)
    snap = controller.snapshot()
    assert snap["state"] == "active"
    assert snap["content_id"] == "post-42"
    assert snap["elapsed_ms"] == 2_000
