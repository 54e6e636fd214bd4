from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=10.0)


class HttpClient:
    """Pooled async HTTP client. Single attempt per request; callers own retries."""

    def __init__(self, timeout: httpx.Timeout | float = DEFAULT_TIMEOUT, transport: httpx.AsyncBaseTransport | None = None) -> None:
        limits = httpx.Limits(max_connections=20, max_keepalive_connections=10)
        self._client = httpx.AsyncClient(timeout=timeout, limits=limits, transport=transport)

    async def get(self, url: str, *, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        logger.debug(f"HTTP GET {url} params={params}")
        resp = await self._client.get(url, params=params, headers=headers)
        resp.raise_for_status()
        return resp

    async def aclose(self) -> None:
        await self._client.aclose()
