"""
Push Client - The asynchronous channel from the authority.

States: DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED

On every close the client decides what happens next:
- If the authority said "disconnected" first, another connection for
  the same identity superseded this one: show the "connected
  elsewhere" notice and stay down.
- Otherwise show the offline banner and schedule one reconnect attempt
  through the ReconnectPolicy. A failed attempt closes again and
  schedules the next one, so retries never stop but never pile up.

Malformed payloads are logged and dropped. The channel is receive-only.
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable
import asyncio
import json
import logging

from pydantic import ValidationError
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import WebSocketException

from .schemas import PushEvent, PushEventType
from ..view import ELSEWHERE_MESSAGE, OFFLINE_MESSAGE

if TYPE_CHECKING:
    from ..table.session import TableSession


logger = logging.getLogger(__name__)


class PushState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ReconnectPolicy:
    """
    When to try the push channel again after it closed.

    Fixed delay, no backoff, no cap on attempts.
    """

    def __init__(self, delay: float = 10.0):
        self.delay = delay

    def schedule(self, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(self.delay, callback)


def parse_event(message: str | bytes) -> PushEvent | None:
    """Decode one push payload, or None if it is malformed."""
    if isinstance(message, bytes):
        try:
            message = message.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("push: dropping non-UTF-8 payload")
            return None
    if message.strip() == PushEventType.REFRESH.value:
        return PushEvent.refresh()
    try:
        return PushEvent.model_validate(json.loads(message))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("push: dropping malformed payload %r: %s", message[:200], e)
        return None


class PushClient:
    """
    Listens on {base}/listen and hands events to a handler.

    Usage:
        push = PushClient(session, config.listen_url, controller.handle_event)
        await push.connect()
    """

    def __init__(
        self,
        session: TableSession,
        url: str,
        handler: Callable[[PushEvent], Awaitable[None]],
        policy: ReconnectPolicy | None = None,
        headers: dict[str, str] | None = None,
        connect: Callable[..., Any] = ws_connect,
    ):
        self._session = session
        self.url = url
        self._handler = handler
        self.policy = policy if policy is not None else ReconnectPolicy(session.config.reconnect_delay)
        self._headers = headers or {}
        self._connect = connect

        self.state = PushState.DISCONNECTED
        self.kicked_elsewhere = False
        self.attempts = 0

        self._stopped = False
        self._retry: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None

    @property
    def retry_scheduled(self) -> bool:
        return self._retry is not None

    async def connect(self):
        """Open the channel and dispatch events until it closes."""
        self._retry = None
        self.state = PushState.CONNECTING
        self.attempts += 1
        try:
            async with self._connect(self.url, additional_headers=self._headers) as ws:
                self._on_open()
                async for message in ws:
                    await self._on_message(message)
        except (OSError, WebSocketException) as e:
            logger.warning("push: channel error: %s", e)
        finally:
            self._on_close()

    def start(self) -> asyncio.Task:
        """Run connect() in the background."""
        self._stopped = False
        self._task = asyncio.ensure_future(self.connect())
        return self._task

    async def stop(self):
        """Close for good: cancel any pending retry and the running loop."""
        self._stopped = True
        if self._retry is not None:
            self._retry.cancel()
            self._retry = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self.state = PushState.DISCONNECTED

    def _on_open(self):
        logger.info("push: connected to %s", self.url)
        self.state = PushState.CONNECTED
        self.kicked_elsewhere = False
        self._session.view.hide_offline()

    async def _on_message(self, message: str | bytes):
        event = parse_event(message)
        if event is None:
            return
        logger.debug("push: event %s", event.type.value)
        if event.type is PushEventType.DISCONNECTED:
            self.kicked_elsewhere = True
        try:
            await self._handler(event)
        except Exception:
            logger.exception("push: failed to handle %s event", event.type.value)

    def _on_close(self):
        self.state = PushState.DISCONNECTED
        logger.info("push: disconnected from %s", self.url)
        if self._stopped:
            return
        if self.kicked_elsewhere:
            self._session.terminated = True
            self._session.view.show_notice(ELSEWHERE_MESSAGE)
            return
        if self._session.terminated:
            return
        self._session.view.show_offline(OFFLINE_MESSAGE)
        self._retry = self.policy.schedule(self._reconnect)

    def _reconnect(self):
        self._retry = None
        if self._stopped:
            return
        logger.info("push: reconnecting (attempt %d)", self.attempts + 1)
        self._task = asyncio.ensure_future(self.connect())
