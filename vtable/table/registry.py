"""
Item Registry - The single owner of every item materialised on the table.

Items are created the first time their id shows up in an authority
record (snapshot, response or push) and updated in place afterwards.
The client never deletes an item on its own: removal only follows an
explicit authority instruction (a kicked player, a full reload).

The ValueIndex is a secondary index of chips by denomination used for
stacking queries. It never decides ownership.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Iterable, Iterator
import logging

from pydantic import ValidationError

from ..net.schemas import ItemRecord
from .items import (
    ChipItem,
    ItemClass,
    PlayerItem,
    TableItem,
    UnknownItemClass,
    build_item,
    resolve_class,
)

if TYPE_CHECKING:
    from .session import TableSession


logger = logging.getLogger(__name__)


class ValueIndex:
    """Chip ids grouped by denomination."""

    def __init__(self):
        self._by_value: dict[int, set[int]] = {}

    def add(self, chip: ChipItem):
        self._by_value.setdefault(chip.val, set()).add(chip.item_id)

    def discard(self, chip: ChipItem):
        for ids in self._by_value.values():
            ids.discard(chip.item_id)

    def ids(self, val: int) -> set[int]:
        """Ids of every known chip with this denomination."""
        return set(self._by_value.get(val, ()))

    def clear(self):
        self._by_value.clear()

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._by_value.values())


class ItemRegistry:
    """
    Mapping of item id to live item.

    Usage:
        item = registry.upsert(record)
        card = registry.get(12)
    """

    def __init__(self, session: TableSession):
        self._session = session
        self._items: dict[int, TableItem] = {}

    def upsert(self, record: ItemRecord) -> TableItem:
        """
        Create or update the item described by a record.

        Raises UnknownItemClass for records we cannot build; the
        registry itself is left untouched in that case.
        """
        cls = resolve_class(record)
        item = self._items.get(record.id)

        if item is not None and item.item_class is not cls:
            # Same id, different kind: the authority recycled the id
            logger.warning(
                "item_id=%d changed class %s -> %s, rebuilding",
                record.id, item.item_class.value, cls.value,
            )
            self.remove(record.id)
            item = None

        if item is None:
            item = build_item(record)
            self._items[item.item_id] = item
            self._on_created(item)
        else:
            if isinstance(item, ChipItem) and record.val is not None and record.val != item.val:
                self._session.value_index.discard(item)
                item.apply(record)
                self._session.value_index.add(item)
            else:
                item.apply(record)

        if isinstance(item, PlayerItem):
            item.bind(self._session.players.get(item.owner_id))
            self._session.slots.bind(item)

        self._session.render(item)
        return item

    def upsert_raw(self, raw: Any) -> TableItem | None:
        """
        Validate and upsert one raw record.

        A record that fails validation or has an unknown class is logged
        and dropped; it never takes the rest of a batch down with it.
        """
        try:
            record = ItemRecord.model_validate(raw)
            return self.upsert(record)
        except ValidationError as e:
            logger.warning("dropping invalid item record %r: %s", raw, e)
        except UnknownItemClass as e:
            logger.warning("dropping item record: %s", e)
        return None

    def apply_records(self, raws: Iterable[Any]) -> list[TableItem]:
        """Upsert a batch of raw records, then recompute seat accounting."""
        applied = []
        for raw in raws:
            item = self.upsert_raw(raw)
            if item is not None:
                applied.append(item)
        self._session.slots.recompute()
        return applied

    def _on_created(self, item: TableItem):
        if isinstance(item, ChipItem):
            self._session.value_index.add(item)

    def get(self, item_id: int) -> TableItem | None:
        return self._items.get(item_id)

    def remove(self, item_id: int) -> TableItem | None:
        """Remove an item and detach it from the secondary indexes."""
        item = self._items.pop(item_id, None)
        if item is None:
            return None
        if isinstance(item, ChipItem):
            self._session.value_index.discard(item)
            self._session.slots.forget_chip(item.item_id)
        elif isinstance(item, PlayerItem):
            self._session.slots.unbind(item)
        self._session.view.remove_item(item)
        return item

    def clear(self):
        """Drop every item. Only used by a full reload."""
        for item_id in list(self._items):
            self.remove(item_id)
        self._session.value_index.clear()

    def by_class(self, cls: ItemClass) -> list[TableItem]:
        return [item for item in self._items.values() if item.item_class is cls]

    def chips(self) -> list[ChipItem]:
        return [item for item in self._items.values() if isinstance(item, ChipItem)]

    def player_item(self, uid: str) -> PlayerItem | None:
        """The avatar of a given user, if seated."""
        for item in self._items.values():
            if isinstance(item, PlayerItem) and item.owner_id == uid:
                return item
        return None

    def __contains__(self, item_id: int) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[TableItem]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)
