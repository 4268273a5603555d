"""
Table Session - The explicit context shared by every component.

One TableSession is built at startup and handed to the registry, the
slot accounting, the drag controller, the push client and the table
controller. It holds:
- The local viewer identity (fixed for the session)
- The players map from the latest snapshot
- The item registry, value index and seat slots
- The view, size provider and clock

Nothing in the engine reaches for module-level state.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Callable
import time

from .geometry import ItemSizes, Rect
from .items import DealerItem, PlayerItem, TableItem
from .registry import ItemRegistry, ValueIndex
from .slots import SlotAccounting

if TYPE_CHECKING:
    from ..config import ClientConfig
    from ..net.schemas import PlayerInfo
    from ..view import TableView


class TableSession:
    """
    Shared state of one viewer at one table.

    Usage:
        session = TableSession(config, current_uid="u1", view=LogView())
        item = session.registry.upsert(record)
    """

    def __init__(
        self,
        config: ClientConfig,
        current_uid: str,
        view: TableView | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        from ..view import LogView

        self.config = config
        self._current_uid = current_uid
        self.view = view if view is not None else LogView()
        self.clock = clock
        self.sizes = ItemSizes(config.item_sizes)

        self.players: dict[str, PlayerInfo] = {}
        self.value_index = ValueIndex()
        self.slots = SlotAccounting(self)
        self.registry = ItemRegistry(self)

        # Terminal notices (kicked, connected elsewhere) end the session
        self.terminated = False

    @property
    def current_uid(self) -> str:
        return self._current_uid

    def is_local(self, uid: str) -> bool:
        return uid != "" and uid == self._current_uid

    def now_ms(self) -> float:
        return self.clock() * 1000

    # =========================================================================
    # Geometry
    # =========================================================================

    def rect(self, item: TableItem) -> Rect:
        """
        On-table rectangle of an item.

        Players sit in their seat's rectangle; everything else is
        placed at its stored position with its class size.
        """
        if isinstance(item, PlayerItem) and 0 <= item.index < len(self.slots):
            return self.slots[item.index].rect
        return self.sizes.rect_at(item.item_class.value, item.x, item.y)

    def rect_at(self, item: TableItem, x: int, y: int) -> Rect:
        return self.sizes.rect_at(item.item_class.value, x, y)

    def items_at(self, x: float, y: float) -> list[TableItem]:
        """Items under a point, topmost first."""
        hits = [item for item in self.registry if self.rect(item).contains(x, y)]
        hits.sort(key=self.render_z, reverse=True)
        return hits

    # =========================================================================
    # Rendering
    # =========================================================================

    def render_z(self, item: TableItem) -> int:
        """Stacking order used for rendering. The dealer is always on top."""
        if isinstance(item, DealerItem):
            return self.config.dealer_z_index
        return item.z_index

    def render(self, item: TableItem):
        self.view.render_item(item, self.render_z(item))

    def set_players(self, players: dict[str, PlayerInfo]):
        """Replace the players map and rebind seated avatars."""
        self.players = dict(players)
        for item in self.registry:
            if isinstance(item, PlayerItem):
                item.bind(self.players.get(item.owner_id))
                self.slots.bind(item)
