"""Tracking session lifecycle: start, heartbeat, visibility flush, teardown."""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from readtrack.config import Settings
from readtrack.domain.models import (
    ContentItem,
    InteractionEvent,
    ScrollSample,
    TrackedSession,
)
from readtrack.ports.viewport import ClockPort, ViewportPort
from readtrack.services.emitter import InteractionEmitter
from readtrack.services.sampler import (
    DEFAULT_BUFFER_CAP,
    DEFAULT_BUFFER_KEEP,
    DEFAULT_THROTTLE_MS,
    ScrollSampler,
)

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_SECONDS = 30.0
DEFAULT_CONTENT_LINK_PATTERN = r"/blog/([^/]+)"


class LifecycleState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    TORN_DOWN = "torn_down"


class SessionLifecycleController:
    """
    Owns one visitor's tracking session for whichever item is on screen.

    States: ``idle -> active -> torn_down``; a new item from ``torn_down``
    returns to ``active`` with a fresh session. Every session carries a
    generation token, and heartbeat ticks from an older generation are
    discarded.
    """

    def __init__(
        self,
        emitter: InteractionEmitter,
        viewport: ViewportPort,
        clock: ClockPort,
        *,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_SECONDS,
        throttle_ms: float = DEFAULT_THROTTLE_MS,
        buffer_cap: int = DEFAULT_BUFFER_CAP,
        buffer_keep: int = DEFAULT_BUFFER_KEEP,
        content_link_pattern: str = DEFAULT_CONTENT_LINK_PATTERN,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._emitter = emitter
        self._viewport = viewport
        self._clock = clock
        self._heartbeat_interval = heartbeat_interval
        self._throttle_ms = throttle_ms
        self._buffer_cap = buffer_cap
        self._buffer_keep = buffer_keep
        self._link_pattern = re.compile(content_link_pattern)
        self._sleep = sleep

        self._state = LifecycleState.IDLE
        self._generation = 0
        self._session: TrackedSession | None = None
        self._content: ContentItem | None = None
        self._sampler: ScrollSampler | None = None
        self._heartbeat_task: asyncio.Task | None = None
        self._listening = False
        self._transition_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        emitter: InteractionEmitter,
        viewport: ViewportPort,
        clock: ClockPort,
    ) -> "SessionLifecycleController":
        return cls(
            emitter,
            viewport,
            clock,
            heartbeat_interval=settings.heartbeat_interval_seconds,
            throttle_ms=settings.scroll_throttle_ms,
            buffer_cap=settings.sample_buffer_cap,
            buffer_keep=settings.sample_buffer_keep,
            content_link_pattern=settings.content_link_pattern,
        )

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def session(self) -> TrackedSession | None:
        return self._session

    @property
    def content(self) -> ContentItem | None:
        return self._content

    # ── Transitions ────────────────────────────────

    async def track(self, content: ContentItem | None, enabled: bool = True) -> None:
        """
        Follow the item currently on screen.

        The same item while active is a no-op. A different item, ``None`` or
        ``enabled=False`` tears the current session down first.
        """
        async with self._transition_lock:
            if (
                self._state is LifecycleState.ACTIVE
                and enabled
                and content is not None
                and self._content is not None
                and self._content.id == content.id
            ):
                return
            await self._teardown()
            if content is None or not enabled:
                return
            await self._start(content)

    async def stop(self) -> InteractionEvent | None:
        """Tear down the active session, flushing reading time once."""
        async with self._transition_lock:
            return await self._teardown()

    async def _start(self, content: ContentItem) -> None:
        self._generation += 1
        session = TrackedSession(
            content_id=content.id,
            started_at_ms=self._clock.now_ms(),
            generation=self._generation,
        )
        self._session = session
        self._content = content
        self._sampler = ScrollSampler(
            session,
            self._viewport,
            self._clock,
            throttle_ms=self._throttle_ms,
            buffer_cap=self._buffer_cap,
            buffer_keep=self._buffer_keep,
        )
        self._state = LifecycleState.ACTIVE
        logger.info("Tracking session %d started for %s", session.generation, content.id)

        await self._emitter.emit_view(session, content)

        self._listening = True
        self._heartbeat_task = asyncio.create_task(
            self._run_heartbeat(session.generation),
            name=f"heartbeat-{content.id}-{session.generation}",
        )

    async def _teardown(self) -> InteractionEvent | None:
        session = self._session
        if self._state is not LifecycleState.ACTIVE or session is None:
            return None

        # Detach before the flush await so nothing from this session runs later.
        self._listening = False
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None
        self._session = None
        self._content = None
        self._sampler = None
        self._state = LifecycleState.TORN_DOWN
        logger.info("Tracking session %d torn down for %s", session.generation, session.content_id)

        return await self._emitter.emit_reading_time(session)

    # ── Heartbeat ──────────────────────────────────

    async def _run_heartbeat(self, generation: int) -> None:
        while True:
            await self._sleep(self._heartbeat_interval)
            if not await self.heartbeat_tick(generation):
                return

    async def heartbeat_tick(self, generation: int) -> bool:
        """Emit reading time for ``generation``. Returns False if it is stale."""
        session = self._session
        if not self._listening or session is None or session.generation != generation:
            logger.debug("Discarding stale heartbeat for generation %d", generation)
            return False
        await self._emitter.emit_reading_time(session)
        return True

    # ── Page events ────────────────────────────────

    def on_scroll(self) -> ScrollSample | None:
        if not self._listening or self._sampler is None:
            return None
        return self._sampler.sample()

    async def on_visibility_change(self, hidden: bool) -> InteractionEvent | None:
        """Flush reading time when the page is hidden; the session stays active."""
        session = self._session
        if not hidden or not self._listening or session is None:
            return None
        return await self._emitter.emit_reading_time(session)

    async def on_link_click(self, href: str, link_text: str | None = None) -> InteractionEvent | None:
        session = self._session
        if not self._listening or session is None or not href:
            return None
        if not self._link_pattern.search(href):
            return None
        return await self._emitter.emit_click(session, href, link_text)

    def snapshot(self) -> dict[str, Any]:
        session = self._session
        if session is None:
            return {"state": self._state.value, "content_id": None}
        return {
            "state": self._state.value,
            "content_id": session.content_id,
            "generation": session.generation,
            "elapsed_ms": session.elapsed_ms(self._clock.now_ms()),
            "max_depth_percent": session.max_depth_percent,
            "last_depth_percent": session.last_depth_percent,
            "sample_count": len(session.scroll_samples),
        }
