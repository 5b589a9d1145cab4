"""Interaction log port: abstract interface for the interaction-logging service."""

from abc import ABC, abstractmethod

from readtrack.domain.models import InteractionEvent


class InteractionLogPort(ABC):
    """Receives interaction events emitted by the tracker."""

    @abstractmethod
    async def log(self, event: InteractionEvent) -> None:
        """
        Submit one interaction event.

        Repeated ``view`` events carrying time spent for the same content are
        treated by the service as an upsert of "time spent so far".
        """
        ...
