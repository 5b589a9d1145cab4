"""Beacon routes driving each visitor's tracking session."""

from fastapi import APIRouter, Depends, status

from readtrack.api.deps import get_registry, require_tracker
from readtrack.api.schemas import (
    EmissionResponse,
    LinkClickReport,
    ScrollReport,
    ScrollResponse,
    SessionSnapshot,
    TrackRequest,
    VisibilityReport,
)
from readtrack.domain.models import ContentItem
from readtrack.services.registry import TrackerRegistry

router = APIRouter(prefix="/tracking", tags=["Tracking"])


@router.post("/sessions", response_model=SessionSnapshot)
async def track_content(
    data: TrackRequest,
    registry: TrackerRegistry = Depends(get_registry),
) -> SessionSnapshot:
    """Start, switch or stop tracking for the item the visitor is reading."""
    tracker = registry.get_or_create(data.visitor_id)
    content = None
    if data.content is not None:
        content = ContentItem(
            id=data.content.id,
            title=data.content.title,
            category_ids=tuple(data.content.category_ids),
            tag_ids=tuple(data.content.tag_ids),
        )
    await tracker.controller.track(content, enabled=data.enabled)
    return SessionSnapshot(**tracker.controller.snapshot())


@router.get("/{visitor_id}", response_model=SessionSnapshot)
async def get_session(
    visitor_id: str,
    registry: TrackerRegistry = Depends(get_registry),
) -> SessionSnapshot:
    tracker = require_tracker(registry, visitor_id)
    return SessionSnapshot(**tracker.controller.snapshot())


@router.post("/{visitor_id}/scroll", response_model=ScrollResponse)
async def report_scroll(
    visitor_id: str,
    data: ScrollReport,
    registry: TrackerRegistry = Depends(get_registry),
) -> ScrollResponse:
    tracker = require_tracker(registry, visitor_id)
    tracker.viewport.report(data.scroll_top, data.viewport_height, data.scroll_height)
    sample = tracker.controller.on_scroll()
    session = tracker.controller.session
    return ScrollResponse(
        accepted=sample is not None,
        depth_percent=sample.depth_percent if sample is not None else None,
        max_depth_percent=session.max_depth_percent if session is not None else None,
    )


@router.post("/{visitor_id}/visibility", response_model=EmissionResponse)
async def report_visibility(
    visitor_id: str,
    data: VisibilityReport,
    registry: TrackerRegistry = Depends(get_registry),
) -> EmissionResponse:
    tracker = require_tracker(registry, visitor_id)
    event = await tracker.controller.on_visibility_change(data.hidden)
    return EmissionResponse(emitted=event is not None)


@router.post("/{visitor_id}/links", response_model=EmissionResponse)
async def report_link_click(
    visitor_id: str,
    data: LinkClickReport,
    registry: TrackerRegistry = Depends(get_registry),
) -> EmissionResponse:
    tracker = require_tracker(registry, visitor_id)
    event = await tracker.controller.on_link_click(data.href, data.text)
    return EmissionResponse(emitted=event is not None)


@router.delete("/{visitor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def end_tracking(
    visitor_id: str,
    registry: TrackerRegistry = Depends(get_registry),
) -> None:
    """Tear down the visitor's tracker, flushing reading time."""
    require_tracker(registry, visitor_id)
    await registry.remove(visitor_id)
