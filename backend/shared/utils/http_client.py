"""
Async HTTP client wrapper for the upstream polling endpoint.
Handles the TLS trust policy, timeout management, and metrics collection.
"""
from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from shared.config import Settings, get_settings
from shared.errors import UpstreamFetchError
from shared.models.enums import TrustPolicy
from shared.utils.logging import get_logger
from shared.utils.metrics import UPSTREAM_LATENCY, UPSTREAM_REQUESTS

logger = get_logger(__name__)


class PollingHTTPClient:
    """
    Async HTTP client for a single JSON polling endpoint.

    One request per call, no retries: a failed poll is simply picked up again
    by the next refresh cycle.
    """

    def __init__(
        self,
        url: str,
        trust_policy: TrustPolicy = TrustPolicy.VERIFY,
        timeout_s: float | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._trust_policy = trust_policy
        self._timeout = timeout_s
        self._default_headers = {"Accept": "application/json", **(headers or {})}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> "PollingHTTPClient":
        settings = settings or get_settings()
        return cls(
            url=settings.upstream_url,
            trust_policy=settings.upstream_trust_policy,
            timeout_s=settings.upstream_timeout_s,
            headers={"User-Agent": settings.upstream_user_agent},
            **kwargs,
        )

    @property
    def url(self) -> str:
        return self._url

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        if self._trust_policy is TrustPolicy.TRUST_ALL:
            logger.warning("upstream_tls_verification_disabled", url=self._url)
        self._client = httpx.AsyncClient(
            headers=self._default_headers,
            timeout=httpx.Timeout(self._timeout),
            verify=self._trust_policy.verify_tls,
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PollingHTTPClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def get_json(self) -> dict[str, Any]:
        """
        GET the polling endpoint and decode its JSON body.

        Returns:
            The decoded JSON object.

        Raises:
            UpstreamFetchError: On transport errors, non-2xx statuses, or a
                body that is not a JSON object.
        """
        if not self._client:
            raise RuntimeError("PollingHTTPClient not started. Call start() first.")

        start_time = time.perf_counter()
        status = "error"
        try:
            resp = await self._client.get(self._url)
            status = str(resp.status_code)
            if resp.is_error:
                raise UpstreamFetchError(self._url, resp.reason_phrase or "bad status", resp.status_code)
            try:
                body = resp.json()
            except ValueError as exc:
                raise UpstreamFetchError(self._url, f"invalid JSON body: {exc}", resp.status_code) from exc
            if not isinstance(body, dict):
                raise UpstreamFetchError(
                    self._url, f"expected a JSON object, got {type(body).__name__}", resp.status_code
                )
        except httpx.TimeoutException as exc:
            status = "timeout"
            raise UpstreamFetchError(self._url, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(self._url, str(exc) or type(exc).__name__) from exc
        finally:
            elapsed_s = time.perf_counter() - start_time
            UPSTREAM_LATENCY.observe(elapsed_s)
            UPSTREAM_REQUESTS.labels(status=status).inc()

        logger.debug(
            "upstream_request_success",
            url=self._url,
            status=resp.status_code,
            latency_ms=round(elapsed_s * 1000, 2),
        )
        return body
