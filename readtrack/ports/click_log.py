"""Click log port: abstract interface for recommendation click attribution."""

from abc import ABC, abstractmethod

from readtrack.domain.models import ClickAttribution


class ClickLogPort(ABC):
    """Records which recommendation a visitor followed."""

    @abstractmethod
    async def log_click(self, attribution: ClickAttribution) -> None:
        """Submit a click attribution payload."""
        ...
