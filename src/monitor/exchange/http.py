"""Thin aiohttp JSON transport shared by the REST-only exchange clients.

Every failure (transport error, timeout, HTTP status >= 400, non-JSON body)
surfaces as SourceFetchError carrying a status-line friendly message.
"""

import asyncio
from typing import Any

import aiohttp

from monitor.exceptions import SourceFetchError
from monitor.logging import get_logger

logger = get_logger(__name__)

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "User-Agent": "FundingMonitor/0.1",
}


class JsonHttpClient:
    """Lazily-created aiohttp session with a fixed total timeout.

    Args:
        name: Source label used in error messages (e.g. "Aster").
        timeout: Total request timeout in seconds.
    """

    def __init__(self, name: str, timeout: float = 10.0) -> None:
        self._name = name
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=JSON_HEADERS,
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_json(
        self, url: str, what: str, params: dict[str, Any] | None = None
    ) -> Any:
        """GET a JSON document. `what` names the request in error messages."""
        return await self._request("GET", url, what, params=params)

    async def post_json(self, url: str, what: str, payload: dict[str, Any]) -> Any:
        """POST a JSON body and decode the JSON response."""
        return await self._request("POST", url, what, json=payload)

    async def _request(self, method: str, url: str, what: str, **kwargs: Any) -> Any:
        session = await self._ensure_session()
        try:
            async with session.request(method, url, **kwargs) as resp:
                if resp.status >= 400:
                    raise SourceFetchError(
                        f"{self._name} {what} request failed: {resp.status}"
                    )
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise SourceFetchError(
                        f"{self._name} {what} returned invalid JSON"
                    ) from e
        except asyncio.TimeoutError as e:
            raise SourceFetchError(f"{self._name} {what} request timed out") from e
        except aiohttp.ClientError as e:
            logger.debug("http_client_error", source=self._name, what=what, error=str(e))
            raise SourceFetchError(f"{self._name} {what} request failed: {e}") from e
