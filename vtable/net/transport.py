"""
Transport - Request/response calls to the table authority.

Every call returns a two-armed result instead of raising:
- Ok(data) with the decoded JSON body
- Err(error) with a TransportError

Failures are never fatal. A caller whose request failed simply does not
confirm its optimistic change; the next authority message corrects the
local state. Each call's duration goes into the LatencyStats window.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union
import json
import logging
import time

import httpx

from .stats import LatencyStats


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Status used for failures that never produced an HTTP response
NETWORK_ERROR = 0
DECODE_ERROR = -1


class TransportError(Exception):
    """A failed call to the authority."""

    def __init__(self, status: int, message: str, method: str = "", path: str = ""):
        self.status = status
        self.message = message
        self.method = method
        self.path = path
        super().__init__(f"{method} {path}: {status} {message}".strip())

    @property
    def is_network(self) -> bool:
        return self.status == NETWORK_ERROR

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401


@dataclass
class Ok(Generic[T]):
    data: T

    @property
    def ok(self) -> bool:
        return True


@dataclass
class Err:
    error: TransportError

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[Any], Err]


class Transport:
    """
    Thin async wrapper over httpx.

    Usage:
        transport = Transport(client, stats)
        result = await transport.request("POST", "/games/t1/update", body=record)
        if result.ok:
            ...
    """

    def __init__(self, client: httpx.AsyncClient, stats: LatencyStats | None = None):
        self._client = client
        self.stats = stats if stats is not None else LatencyStats()

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Result:
        """Perform one call and classify its outcome."""
        started = time.monotonic()
        try:
            response = await self._client.request(method, path, json=body, params=params)
        except httpx.HTTPError as e:
            self.stats.add((time.monotonic() - started) * 1000)
            logger.warning("%s %s network error: %s", method, path, e)
            return Err(TransportError(NETWORK_ERROR, str(e) or type(e).__name__, method, path))
        self.stats.add((time.monotonic() - started) * 1000)

        if not response.is_success:
            logger.warning("%s %s HTTP error: %d %s", method, path, response.status_code, response.text)
            return Err(TransportError(response.status_code, response.text, method, path))

        if not response.content:
            return Ok(None)
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("%s %s unable to parse JSON: %s", method, path, e)
            return Err(TransportError(DECODE_ERROR, str(e), method, path))
        return Ok(data)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Result:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any = None, params: dict[str, Any] | None = None) -> Result:
        return await self.request("POST", path, body=body, params=params)

    async def report_stats(self) -> bool:
        """
        Send the latency summary to the authority.

        Best effort: the response is ignored and failures are only logged.
        """
        summary = self.stats.summary()
        if summary is None:
            return False
        params = {"type": "client_stats", **summary}
        result = await self.get("/log", params=params)
        return result.ok

    async def aclose(self):
        await self._client.aclose()


def make_client(base_url: str, headers: dict[str, str] | None = None, timeout: float = 10.0) -> httpx.AsyncClient:
    """Build the httpx client used for every call to one authority."""
    return httpx.AsyncClient(
        base_url=base_url,
        headers=headers or {},
        timeout=timeout,
        follow_redirects=False,
    )
