from __future__ import annotations

"""HTTP transport for fetching feature payloads."""

import logging
from typing import Protocol, runtime_checkable

import httpx
from opentelemetry.propagate import inject

from . import runtime
from .exceptions import TransportError

logger = logging.getLogger(__name__)


@runtime_checkable
class RemoteFetcher(Protocol):
    """One-shot GET returning the raw payload or raising :class:`TransportError`."""

    def fetch(self, endpoint: str) -> bytes: ...


class HttpFeatureFetcher:
    """Fetch payloads with ``httpx.get`` using the global timeout.

    A ``client`` may be supplied to reuse connections or to plug in an
    ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        *,
        client: httpx.Client | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self._headers = dict(headers or {})

    def _build_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", **self._headers}
        inject(headers)
        return headers

    def fetch(self, endpoint: str) -> bytes:
        headers = self._build_headers()
        try:
            if self._client is not None:
                resp = self._client.get(
                    endpoint, headers=headers, timeout=runtime.HTTP_TIMEOUT_SECONDS
                )
            else:
                resp = httpx.get(
                    endpoint, headers=headers, timeout=runtime.HTTP_TIMEOUT_SECONDS
                )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(endpoint, f"status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(endpoint, str(exc) or type(exc).__name__) from exc
        logger.debug("Fetched %d bytes from %s", len(resp.content), endpoint)
        return resp.content

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


__all__ = ["HttpFeatureFetcher", "RemoteFetcher"]
