from fastapi import HTTPException, Request, status

from readtrack.services.registry import TrackerRegistry, VisitorTracker


def get_registry(request: Request) -> TrackerRegistry:
    return request.app.state.registry


def require_tracker(registry: TrackerRegistry, visitor_id: str) -> VisitorTracker:
    tracker = registry.get(visitor_id)
    if tracker is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No tracker for this visitor",
        )
    return tracker
