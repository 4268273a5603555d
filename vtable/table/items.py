"""
Table Items - The four kinds of objects that live on the table.

Items are runtime objects owned by the ItemRegistry. They are built from
authority records (see net/schemas.py) at a single construction site,
build_item(), which knows every ItemClass. Records with an unknown class
raise UnknownItemClass instead of producing a half-built item.

The authority is the source of truth for every field here. The client
only mutates position/z/side optimistically and expects the next record
for the same id to overwrite them.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..net.schemas import ItemRecord, PlayerInfo


class ItemClass(Enum):
    """Discriminant of an item record."""
    CARD = "card"
    CHIP = "chip"
    DEALER = "dealer"
    PLAYER = "player"


class Side(Enum):
    """Which side of a card is up."""
    COVER = "cover"
    FACE = "face"

    def flipped(self) -> Side:
        return Side.FACE if self is Side.COVER else Side.COVER


# Chip set dealt by the authority: denomination -> display color
CHIP_COLORS = {1: "gray", 5: "red", 10: "blue", 25: "green", 50: "black"}


class UnknownItemClass(Exception):
    """Raised when a record carries a class discriminant we cannot build."""

    def __init__(self, item_id: Any, cls: str):
        self.item_id = item_id
        self.cls = cls
        super().__init__(f"unknown item class {cls!r} for item {item_id}")


@dataclass
class TableItem:
    """
    Common part of every table item.

    z_index is the stored stacking order; effective ordering for
    rendering goes through TableSession.render_z() so the dealer can
    stay on top.
    """
    item_id: int
    x: int = 0
    y: int = 0
    z_index: int = 0
    owner_id: str = ""

    @property
    def item_class(self) -> ItemClass:
        raise NotImplementedError

    @property
    def draggable(self) -> bool:
        return True

    def apply(self, record: ItemRecord):
        """Update in place from an authority record."""
        self.x = record.x
        self.y = record.y
        self.z_index = record.z_index
        self.owner_id = record.owner_id

    def to_record(self) -> dict[str, Any]:
        """Wire representation sent back to the authority."""
        return {
            "id": self.item_id,
            "class": self.item_class.value,
            "x": self.x,
            "y": self.y,
            "z_index": self.z_index,
            "owner_id": self.owner_id,
        }


@dataclass
class CardItem(TableItem):
    rank: str = ""
    suit: str = ""
    side: Side = Side.COVER
    prev_owner_id: str = ""

    @property
    def item_class(self) -> ItemClass:
        return ItemClass.CARD

    @property
    def is_owned(self) -> bool:
        return self.owner_id != ""

    def is_owned_by(self, uid: str) -> bool:
        return self.owner_id != "" and self.owner_id == uid

    def apply(self, record: ItemRecord):
        super().apply(record)
        # Variant fields left out of a record keep their current value
        if record.rank is not None:
            self.rank = record.rank
        if record.suit is not None:
            self.suit = record.suit
        if record.side is not None:
            self.side = Side(record.side)
        self.prev_owner_id = record.prev_owner_id

    def to_record(self) -> dict[str, Any]:
        data = super().to_record()
        data.update(
            rank=self.rank,
            suit=self.suit,
            side=self.side.value,
            prev_owner_id=self.prev_owner_id,
        )
        return data


@dataclass
class ChipItem(TableItem):
    val: int = 0
    color: str = ""

    # Set when the chip rests in front of another player (display only)
    restricted: bool = False

    @property
    def item_class(self) -> ItemClass:
        return ItemClass.CHIP

    @property
    def css_class(self) -> str:
        return f"chip-{self.color or CHIP_COLORS.get(self.val, 'gray')}"

    def apply(self, record: ItemRecord):
        super().apply(record)
        if record.val is not None:
            self.val = record.val
        if record.color is not None:
            self.color = record.color

    def to_record(self) -> dict[str, Any]:
        data = super().to_record()
        data.update(val=self.val, color=self.color)
        return data


@dataclass
class DealerItem(TableItem):
    @property
    def item_class(self) -> ItemClass:
        return ItemClass.DEALER


@dataclass
class PlayerItem(TableItem):
    """
    A player's avatar. owner_id is the player's user id.

    Seat, name and skin come from the players map of the latest
    snapshot, not from the item record itself.
    """
    index: int = -1
    name: str = ""
    skin: str = ""
    color: str = ""

    @property
    def item_class(self) -> ItemClass:
        return ItemClass.PLAYER

    @property
    def draggable(self) -> bool:
        return False

    def bind(self, info: PlayerInfo | None):
        """Copy seat and display data from the players map."""
        if info is None:
            return
        self.index = info.index
        self.name = info.name
        self.skin = info.skin
        self.color = info.color


_ITEM_TYPES: dict[ItemClass, type[TableItem]] = {
    ItemClass.CARD: CardItem,
    ItemClass.CHIP: ChipItem,
    ItemClass.DEALER: DealerItem,
    ItemClass.PLAYER: PlayerItem,
}


def resolve_class(record: ItemRecord) -> ItemClass:
    """Map a record's class discriminant to ItemClass."""
    try:
        return ItemClass(record.class_)
    except ValueError:
        raise UnknownItemClass(record.id, record.class_) from None


def build_item(record: ItemRecord) -> TableItem:
    """
    Construct the right item variant for a record.

    This is the only place that turns a discriminant into a type.
    """
    item_type = _ITEM_TYPES[resolve_class(record)]
    item = item_type(item_id=record.id)
    item.apply(record)
    return item
