"""HTTP Backend - shared httpx plumbing for REST providers.

Handles authentication headers, status-code mapping, key ring
reporting and server-sent-event streaming. Subclasses only build request
bodies and read responses.

Status mapping:
    429      -> RateLimitError (key rate-limited in the ring)
    401, 403 -> AuthenticationError
    other 4xx/5xx, network errors, malformed JSON -> ProviderRequestFailedError
    httpx timeouts -> ProviderTimeoutError
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional

import httpx

from devhub_ai.config import OrchestratorConfig
from devhub_ai.registry.keys import KeyRing
from devhub_ai.types import (
    AuthenticationError,
    ProviderDescriptor,
    ProviderRequestFailedError,
    ProviderTimeoutError,
    RateLimitError,
)

from .base import BaseBackend
from .parsing import parse_retry_after

logger = logging.getLogger(__name__)


class HTTPBackend(BaseBackend):
    """Base class for providers reached through a JSON REST API."""

    DEFAULT_BASE_URL: str = ""

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        keys: Optional[KeyRing] = None,
        config: Optional[OrchestratorConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize HTTP backend.

        Args:
            descriptor: Provider this backend talks to
            keys: Key ring with the provider's credentials
            config: Shared settings
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
        """
        super().__init__(descriptor, keys, config)
        self._client = httpx.AsyncClient(
            base_url=descriptor.base_url or self.DEFAULT_BASE_URL,
            timeout=httpx.Timeout(self.config.timeout),
            transport=transport,
        )

    def _headers(self, key: str) -> dict[str, str]:
        """Authentication headers for one request."""
        return {"Authorization": f"Bearer {key}"}

    def _error_message(self, response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text[:200]
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict):
            return str(error.get("message", error))
        if error:
            return str(error)
        return response.text[:200]

    def _check_status(self, response: httpx.Response, key: str) -> None:
        status = response.status_code
        if status < 400:
            return

        if status == 429:
            self._keys.report_failure(key, rate_limited=True)
            raise RateLimitError(
                self.provider_id, parse_retry_after(response.headers.get("retry-after"))
            )

        self._keys.report_failure(key)
        if status in (401, 403):
            raise AuthenticationError(self.provider_id, status)
        raise ProviderRequestFailedError(
            self.provider_id, self._error_message(response), status_code=status
        )

    async def _post_json(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON body and return the decoded JSON response."""
        key = self._require_key()
        try:
            response = await self._client.post(path, json=body, headers=self._headers(key))
        except httpx.TimeoutException as e:
            self._keys.report_failure(key)
            raise ProviderTimeoutError(self.provider_id, self.config.timeout) from e
        except httpx.HTTPError as e:
            self._keys.report_failure(key)
            raise ProviderRequestFailedError(self.provider_id, str(e)) from e

        self._check_status(response, key)

        try:
            data = response.json()
        except ValueError as e:
            self._keys.report_failure(key)
            raise ProviderRequestFailedError(
                self.provider_id, "malformed JSON response"
            ) from e

        self._keys.report_success(key)
        return data

    def _is_stream_end(self, event: Optional[str], data: str) -> bool:
        """Whether an SSE event marks the end of the response."""
        return False

    async def _stream_events(
        self,
        path: str,
        body: dict[str, Any],
    ) -> AsyncIterator[tuple[Optional[str], str]]:
        """POST a JSON body and yield (event, data) pairs from an SSE response.

        The terminal event (see _is_stream_end) is not yielded; it closes the
        response and records the key as healthy.
        """
        key = self._require_key()
        try:
            async with self._client.stream(
                "POST", path, json=body, headers=self._headers(key)
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    self._check_status(response, key)

                event: Optional[str] = None
                async for line in response.aiter_lines():
                    if not line:
                        event = None
                        continue
                    if line.startswith(":"):
                        continue
                    if line.startswith("event:"):
                        event = line[len("event:"):].strip()
                    elif line.startswith("data:"):
                        data = line[len("data:"):].strip()
                        if self._is_stream_end(event, data):
                            break
                        yield event, data
        except httpx.TimeoutException as e:
            self._keys.report_failure(key)
            raise ProviderTimeoutError(self.provider_id, self.config.timeout) from e
        except httpx.HTTPError as e:
            self._keys.report_failure(key)
            raise ProviderRequestFailedError(self.provider_id, str(e)) from e

        self._keys.report_success(key)

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["HTTPBackend"]
