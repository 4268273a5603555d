"""
Table View - What the engine needs from a rendering surface.

Drawing, styling and layout are not the engine's job. The engine tells
a TableView what changed and the view decides how to show it. LogView
is the headless default: it writes every change to the log, which is
what the CLI uses.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from .table.items import TableItem
    from .table.slots import Slot


logger = logging.getLogger(__name__)


OFFLINE_MESSAGE = "You are offline. Reconnecting..."
ELSEWHERE_MESSAGE = "You are connected to this table from another window"
KICKED_MESSAGE = "You have been removed from this table"


class TableView(ABC):
    """Interface of a rendering surface."""

    @abstractmethod
    def render_item(self, item: TableItem, z_index: int):
        """Draw an item (new or changed) at its current position."""
        pass

    @abstractmethod
    def remove_item(self, item: TableItem):
        pass

    @abstractmethod
    def render_slot(self, slot: Slot):
        """Show a seat's money label."""
        pass

    @abstractmethod
    def show_offline(self, message: str):
        pass

    @abstractmethod
    def hide_offline(self):
        pass

    @abstractmethod
    def show_notice(self, message: str):
        """Show a terminal notice (kicked, connected elsewhere)."""
        pass


def describe(item: TableItem) -> str:
    """Short human-readable description of an item."""
    from .table.items import CardItem, ChipItem, PlayerItem, Side

    if isinstance(item, CardItem):
        face = f"{item.rank} {item.suit}" if item.side is Side.FACE else "covered"
        owner = f" owner={item.owner_id}" if item.owner_id else ""
        return f"card#{item.item_id} {face}{owner}"
    if isinstance(item, ChipItem):
        flag = " restricted" if item.restricted else ""
        return f"chip#{item.item_id} {item.val} {item.color}{flag}"
    if isinstance(item, PlayerItem):
        return f"player#{item.item_id} {item.name or item.owner_id} seat={item.index}"
    return f"{item.item_class.value}#{item.item_id}"


class LogView(TableView):
    """Headless view that logs every change."""

    def render_item(self, item: TableItem, z_index: int):
        logger.debug("render %s at (%d, %d) z=%d", describe(item), item.x, item.y, z_index)

    def remove_item(self, item: TableItem):
        logger.info("removed %s", describe(item))

    def render_slot(self, slot: Slot):
        logger.debug("seat %d: %s", slot.index, slot.label)

    def show_offline(self, message: str):
        logger.warning(message)

    def hide_offline(self):
        logger.info("online")

    def show_notice(self, message: str):
        logger.warning(message)
