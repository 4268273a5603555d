"""
Table Module - The client-side model of the shared table.

The table model is:
1. Items built from authority records (cards, chips, dealer, players)
2. A registry owning item lifetime, with a chip value index
3. Seat slots derived from chip geometry
4. Z-order arbitration for dropped groups

All of it hangs off one TableSession built at startup.
"""

from .geometry import Rect, ItemSizes
from .items import (
    ItemClass,
    Side,
    TableItem,
    CardItem,
    ChipItem,
    DealerItem,
    PlayerItem,
    UnknownItemClass,
    build_item,
)
from .registry import ItemRegistry, ValueIndex
from .slots import Slot, SlotAccounting
from .session import TableSession
from .zorder import arbitrate, underlying_items

__all__ = [
    "Rect",
    "ItemSizes",
    "ItemClass",
    "Side",
    "TableItem",
    "CardItem",
    "ChipItem",
    "DealerItem",
    "PlayerItem",
    "UnknownItemClass",
    "build_item",
    "ItemRegistry",
    "ValueIndex",
    "Slot",
    "SlotAccounting",
    "TableSession",
    "arbitrate",
    "underlying_items",
]
