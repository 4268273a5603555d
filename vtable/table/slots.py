"""
Slot Accounting - Which chips rest in front of which player.

Every seat has a fixed rectangle on the table. A chip belongs to the
first seat (in seat order) whose rectangle contains the chip's center;
seats are laid out so they never overlap. The mapping is derived data:
it is rebuilt from chip positions after every batch of item updates and
is never sent to the authority.

A chip resting in another player's seat is flagged as restricted. The
flag is informational; the authority enforces the real rule.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging

from .items import ChipItem, PlayerItem

if TYPE_CHECKING:
    from .geometry import Rect
    from .session import TableSession


logger = logging.getLogger(__name__)


@dataclass
class Slot:
    """One seat at the table."""
    index: int
    rect: Rect
    player: PlayerItem | None = None
    chip_ids: set[int] = field(default_factory=set)
    label: str = "0"

    @property
    def player_id(self) -> str | None:
        return self.player.owner_id if self.player else None


class SlotAccounting:
    """
    Seat bookkeeping for a table session.

    Usage:
        slots.account_chip(chip)
        slots.update_slots_with_money(slots[0])
    """

    def __init__(self, session: TableSession):
        self._session = session
        self.slots: list[Slot] = [
            Slot(index=i, rect=rect) for i, rect in enumerate(session.config.seat_rects)
        ]

    def __getitem__(self, index: int) -> Slot:
        return self.slots[index]

    def __iter__(self):
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    # =========================================================================
    # Seat binding
    # =========================================================================

    def bind(self, player: PlayerItem):
        """Seat a player item in its slot."""
        if not 0 <= player.index < len(self.slots):
            logger.warning(
                "player %s has seat index %d outside of %d seats",
                player.owner_id, player.index, len(self.slots),
            )
            return
        for slot in self.slots:
            if slot.player is player and slot.index != player.index:
                slot.player = None
        self.slots[player.index].player = player

    def unbind(self, player: PlayerItem):
        for slot in self.slots:
            if slot.player is player or slot.player_id == player.owner_id:
                slot.player = None
                self.update_slots_with_money(slot)

    def clear(self):
        for slot in self.slots:
            slot.player = None
            slot.chip_ids.clear()
            slot.label = "0"

    # =========================================================================
    # Geometry queries
    # =========================================================================

    def slot_at(self, x: float, y: float) -> Slot | None:
        """First seat containing a point."""
        for slot in self.slots:
            if slot.rect.contains(x, y):
                return slot
        return None

    def slot_of_rect(self, rect: Rect) -> Slot | None:
        """First seat containing the center of a rectangle."""
        return self.slot_at(rect.center_x, rect.center_y)

    def is_foreign(self, slot: Slot | None) -> bool:
        """True when the slot is bound to someone other than the local viewer."""
        return (
            slot is not None
            and slot.player is not None
            and slot.player.owner_id != self._session.current_uid
        )

    def blocks_pickup(self, chip: ChipItem) -> bool:
        """Chips in another player's seat cannot be picked up."""
        return self.is_foreign(self.slot_of_rect(self._session.rect(chip)))

    # =========================================================================
    # Accounting
    # =========================================================================

    def forget_chip(self, chip_id: int):
        for slot in self.slots:
            slot.chip_ids.discard(chip_id)

    def account_chip(self, chip: ChipItem) -> Slot | None:
        """
        Re-home a chip into the seat it now rests on.

        Returns the seat, or None if the chip is in no seat.
        """
        self.forget_chip(chip.item_id)
        home = self.slot_of_rect(self._session.rect(chip))
        if home is not None:
            home.chip_ids.add(chip.item_id)

        restricted = self.is_foreign(home)
        if restricted != chip.restricted:
            chip.restricted = restricted
            self._session.render(chip)
        return home

    def total(self, slot: Slot) -> int:
        registry = self._session.registry
        total = 0
        for chip_id in slot.chip_ids:
            chip = registry.get(chip_id)
            if isinstance(chip, ChipItem):
                total += chip.val
        return total

    def update_slots_with_money(self, slot: Slot) -> str:
        """Recompute and display a seat's label."""
        total = self.total(slot)
        if slot.player is not None:
            slot.label = f"{slot.player.name}: {total}"
        else:
            slot.label = str(total)
        self._session.view.render_slot(slot)
        return slot.label

    def recompute(self):
        """Re-account every chip and refresh every seat label."""
        for chip in self._session.registry.chips():
            self.account_chip(chip)
        for slot in self.slots:
            self.update_slots_with_money(slot)
