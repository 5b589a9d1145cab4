import logging

import httpx

from readtrack.domain.models import InteractionEvent
from readtrack.ports.interaction_log import InteractionLogPort

logger = logging.getLogger(__name__)


class HttpInteractionLogAdapter(InteractionLogPort):
    """Interaction log backed by the ML service ``/interactions`` endpoint."""

    def __init__(
        self,
        base_url: str,
        session_id: str,
        timeout: float = 10.0,
        device_type: str = "unknown",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session_id = session_id
        self._timeout = timeout
        self._transport = transport
        self._device_type = device_type

    async def log(self, event: InteractionEvent) -> None:
        """POST one interaction event."""
        payload = {
            "session_id": self._session_id,
            "device_type": self._device_type,
            **event.to_payload(),
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(f"{self._base_url}/interactions", json=payload)
            resp.raise_for_status()
        logger.debug(
            "Interaction logged: session=%s post=%s type=%s",
            self._session_id,
            event.content_id,
            event.interaction_type.value,
        )
