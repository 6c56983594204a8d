"""
Provider for the tournament's live polling endpoint.
"""
from __future__ import annotations

from pydantic import ValidationError

from shared.errors import UpstreamFetchError
from shared.models.domain import PollingPayload
from shared.utils.http_client import PollingHTTPClient
from shared.utils.logging import get_logger

logger = get_logger(__name__)


class PollingProvider:
    """Fetches the polling body and checks its top-level shape."""

    def __init__(self, http_client: PollingHTTPClient) -> None:
        self._http = http_client

    async def start(self) -> None:
        await self._http.start()

    async def close(self) -> None:
        await self._http.close()

    async def fetch_payload(self) -> PollingPayload:
        """
        Raises:
            UpstreamFetchError: If the request fails or ``matches`` is not a list.
        """
        body = await self._http.get_json()
        try:
            payload = PollingPayload.model_validate(body)
        except ValidationError as exc:
            raise UpstreamFetchError(self._http.url, f"unexpected payload shape: {exc}") from exc
        logger.debug("polling_payload_fetched", matches=len(payload.matches))
        return payload
