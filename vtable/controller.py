"""
Table Controller - Wires the engine together and runs it.

Startup:
1. Build the session context (viewer identity, registry, seats, view)
2. Fetch the full table state and materialise every item
3. Open the push channel
4. Periodically report client latency to the authority

Afterwards the controller is the single entry point for push events:

    disconnected    remembered by the push client (no retry on close)
    player_kicked   remove the kicked players' avatars (or show our own kick)
    player_joined   refetch the full state
    update_items    upsert the batch
    refresh         drop everything and refetch

Pointer events go straight to the DragController exposed as `drags`.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any
import asyncio
import logging

from pydantic import ValidationError

from .interaction import DragController, DropRules
from .net.push import PushClient, ReconnectPolicy
from .net.schemas import PlayerInfo, PushEvent, PushEventType, TableSnapshot
from .net.stats import LatencyStats
from .net.transport import Transport, make_client
from .table.session import TableSession
from .view import KICKED_MESSAGE

if TYPE_CHECKING:
    import httpx

    from .config import ClientConfig
    from .view import TableView


logger = logging.getLogger(__name__)


class TableController:
    """
    Top-level orchestration of one viewer at one table.

    Usage:
        controller = TableController(config, view=LogView())
        if await controller.start():
            await controller.run_forever()
    """

    def __init__(
        self,
        config: ClientConfig,
        view: TableView | None = None,
        client: httpx.AsyncClient | None = None,
        policy: ReconnectPolicy | None = None,
        connect: Any = None,
    ):
        self.config = config
        self.session = TableSession(config, current_uid=config.user_id, view=view)
        self.transport = Transport(
            client if client is not None else make_client(config.server_url, config.headers),
            LatencyStats(config.stats_capacity),
        )
        self.rules = DropRules(self.session, self.transport)
        self.drags = DragController(self.session, self.rules)

        push_kwargs: dict[str, Any] = {}
        if connect is not None:
            push_kwargs["connect"] = connect
        self.push = PushClient(
            self.session,
            config.listen_url,
            self.handle_event,
            policy=policy,
            headers=config.headers,
            **push_kwargs,
        )
        self._stats_task: asyncio.Task | None = None

    @property
    def registry(self):
        return self.session.registry

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def fetch_state(self) -> bool:
        """Fetch the full table snapshot and apply it."""
        width, height = self.config.viewport
        table = self.config.table_rect
        params = {"cw": width, "ch": height, "iw": table.width, "ih": table.height}
        result = await self.transport.get(f"{self.config.table_path}/state", params=params)
        if not result.ok:
            if result.error.is_unauthorized:
                logger.error("not authenticated at %s: session cookie missing or expired", self.config.server_url)
            else:
                logger.error("initial table fetch failed: %s", result.error)
            return False
        try:
            snapshot = TableSnapshot.model_validate(result.data or {})
        except ValidationError as e:
            logger.error("malformed table snapshot: %s", e)
            return False
        self.apply_snapshot(snapshot)
        return True

    def apply_snapshot(self, snapshot: TableSnapshot):
        self.session.set_players(snapshot.players)
        items = self.registry.apply_records(snapshot.items)
        logger.info(
            "table %s: %d players, %d items",
            self.config.table_id, len(snapshot.players), len(items),
        )

    async def start(self, listen: bool = True) -> bool:
        """Fetch the table and open the push channel."""
        if not await self.fetch_state():
            return False
        if listen:
            self.push.start()
        self._stats_task = asyncio.ensure_future(self._report_stats_loop())
        return True

    async def run_forever(self):
        """Keep running until the session ends with a terminal notice."""
        while not self.session.terminated:
            await asyncio.sleep(1.0)

    async def stop(self):
        await self.push.stop()
        if self._stats_task is not None:
            self._stats_task.cancel()
            try:
                await self._stats_task
            except asyncio.CancelledError:
                pass
        await self.drags.drain()
        await self.transport.aclose()

    async def _report_stats_loop(self):
        while True:
            await asyncio.sleep(self.config.stats_report_interval)
            await self.transport.report_stats()

    async def reload(self) -> bool:
        """Forget every local item and rebuild from a fresh snapshot."""
        logger.info("reloading table %s", self.config.table_id)
        self.session.registry.clear()
        self.session.slots.clear()
        return await self.fetch_state()

    # =========================================================================
    # Push events
    # =========================================================================

    async def handle_event(self, event: PushEvent):
        """Dispatch one push event."""
        if event.type is PushEventType.DISCONNECTED:
            logger.info("push: superseded by another connection")
        elif event.type is PushEventType.PLAYER_KICKED:
            self.kick_players(event.players)
        elif event.type is PushEventType.PLAYER_JOINED:
            await self.fetch_state()
        elif event.type is PushEventType.UPDATE_ITEMS:
            self.registry.apply_records(event.items)
        elif event.type is PushEventType.REFRESH:
            await self.reload()

    def kick_players(self, players: dict[str, PlayerInfo]):
        """Remove kicked players' avatars and seat bookkeeping."""
        session = self.session
        for uid, info in players.items():
            uid = info.user_id or uid
            if session.is_local(uid):
                logger.warning("local viewer was kicked from table %s", self.config.table_id)
                session.terminated = True
                session.view.show_notice(KICKED_MESSAGE)
                continue
            avatar = session.registry.player_item(uid)
            if avatar is not None:
                session.registry.remove(avatar.item_id)
            elif 0 <= info.index < len(session.slots):
                session.slots[info.index].player = None
            session.players.pop(uid, None)
            logger.info("player %s left seat %d", info.name or uid, info.index)
        session.slots.recompute()
