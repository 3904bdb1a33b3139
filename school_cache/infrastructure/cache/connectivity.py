"""Network reachability probes used by cache statistics.

Reachability is informational only; it never changes caching decisions.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)


class ConnectivityProbe(Protocol):
    """Answers whether the remote data source is reachable."""

    async def is_connected(self) -> bool:
        """Return True if the network is reachable."""
        ...

    async def aclose(self) -> None:
        """Release any held resources."""
        ...


class HttpConnectivityProbe:
    """Probe that sends a HEAD request; any error or 5xx means offline."""

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 3.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def is_connected(self) -> bool:
        try:
            response = await self._client.head(self.url)
        except httpx.HTTPError as e:
            logger.debug("Connectivity probe failed for %s: %s", self.url, e)
            return False
        return response.status_code < 500

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class StaticConnectivityProbe:
    """Probe with a fixed answer (tests, offline tooling)."""

    def __init__(self, online: bool = True) -> None:
        self.online = online

    async def is_connected(self) -> bool:
        return self.online

    async def aclose(self) -> None:
        return None
