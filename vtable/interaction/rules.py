"""
Drop Rules - Ownership and stacking rules applied by the client.

These are the client's half of the table rules. The authority has the
final word on every one of them; the client only avoids sending
requests it already knows are pointless and applies whatever record the
authority returns.

Card rules:
- take: claim an unowned card for the local viewer
- show: flip an owned card face up for everyone
- give: hand an unowned card to another seated player
- flip: toggle cover/face of a card nobody else owns

Dropping a card in a seat takes it (own seat) or gives it (other seat);
dropping an owned card in the show area shows it.

Chip rules:
- stacking: a chip dropped onto a same-denomination chip snaps next to
  it instead of covering it exactly
- a chip dropped in a seat is re-accounted to that seat
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Sequence
import logging

from pydantic import ValidationError

from ..net.schemas import CardIdRequest, ItemUpdatedResponse, ItemsPayload
from ..table.items import CardItem, ChipItem, TableItem

if TYPE_CHECKING:
    from ..net.transport import Result, Transport
    from ..table.session import TableSession


logger = logging.getLogger(__name__)


class DropRules:
    """
    Requests and local effects of card and chip gestures.

    Usage:
        rules = DropRules(session, transport)
        await rules.take(card)
    """

    def __init__(self, session: TableSession, transport: Transport):
        self._session = session
        self._transport = transport

    def _path(self, action: str) -> str:
        return f"{self._session.config.table_path}/{action}"

    def _apply_updated(self, result: Result) -> TableItem | None:
        """Upsert the record returned by a single-item call."""
        if not result.ok:
            return None
        try:
            response = ItemUpdatedResponse.model_validate(result.data or {})
        except ValidationError as e:
            logger.warning("unexpected response to single-item call: %s", e)
            return None
        if response.updated is None:
            return None
        item = self._session.registry.upsert_raw(response.updated)
        if isinstance(item, ChipItem):
            self._session.slots.recompute()
        return item

    # =========================================================================
    # Card actions
    # =========================================================================

    async def take(self, card: CardItem) -> bool:
        """Claim an unowned card. No request is sent if it is owned."""
        if card.is_owned:
            return False
        logger.debug("take card_id=%d", card.item_id)
        result = await self._transport.post(
            self._path("take_card"), body=CardIdRequest(id=card.item_id).model_dump()
        )
        return self._apply_updated(result) is not None

    async def show(self, card: CardItem) -> bool:
        """Reveal a card the local viewer owns."""
        if not card.is_owned_by(self._session.current_uid):
            return False
        logger.debug("show card_id=%d", card.item_id)
        result = await self._transport.post(
            self._path("show_card"), body=CardIdRequest(id=card.item_id).model_dump()
        )
        return self._apply_updated(result) is not None

    async def give(self, card: CardItem, user_id: str) -> bool:
        """Hand an unowned card to a seated player."""
        if card.is_owned:
            return False
        logger.debug("give card_id=%d to user_id=%s", card.item_id, user_id)
        result = await self._transport.post(
            self._path("give_card"), params={"id": card.item_id, "user_id": user_id}
        )
        return self._apply_updated(result) is not None

    async def flip(self, card: CardItem) -> bool:
        """Toggle cover/face. Cards owned by someone else cannot be flipped."""
        if card.is_owned and not card.is_owned_by(self._session.current_uid):
            return False
        record = card.to_record()
        record["side"] = card.side.flipped().value
        logger.debug("flip card_id=%d to %s", card.item_id, record["side"])
        result = await self._transport.post(self._path("update"), body=record)
        return self._apply_updated(result) is not None

    # =========================================================================
    # Drops
    # =========================================================================

    def stack_chips(self, group: Sequence[TableItem]) -> list[ChipItem]:
        """
        Snap dropped chips next to a same-denomination chip they cover.

        Neighbours are tried highest first and the first one whose
        rectangle contains the dropped chip's center wins.
        """
        session = self._session
        grabbed = {item.item_id for item in group}
        offset = session.config.stack_offset
        snapped = []
        for chip in group:
            if not isinstance(chip, ChipItem):
                continue
            neighbours = [
                session.registry.get(item_id)
                for item_id in session.value_index.ids(chip.val)
                if item_id not in grabbed
            ]
            neighbours = [n for n in neighbours if n is not None]
            neighbours.sort(key=lambda n: n.z_index, reverse=True)
            rect = session.rect(chip)
            for neighbour in neighbours:
                if rect.center_within(session.rect(neighbour)):
                    chip.x = neighbour.x + offset
                    chip.y = neighbour.y
                    snapped.append(chip)
                    break
        return snapped

    async def send_group(self, records: list[dict[str, Any]]) -> Result:
        """Send positions of a whole group in one batch."""
        return await self._transport.post(
            self._path("update_many"), body=ItemsPayload(items=records).model_dump()
        )

    async def drop(self, group: Sequence[TableItem], records: list[dict[str, Any]]) -> bool:
        """
        Reconcile a finished drag with the authority.

        On success the returned records are applied and each dropped
        item gets its drop handling. On failure nothing else happens:
        the next authority message corrects the local state.
        """
        result = await self.send_group(records)
        if not result.ok:
            return False
        try:
            payload = ItemsPayload.model_validate(result.data or {})
        except ValidationError as e:
            logger.warning("unexpected response to update_many: %s", e)
            payload = ItemsPayload()
        for raw in payload.items:
            self._session.registry.upsert_raw(raw)
        for item in group:
            await self.on_dropped(item)
        return True

    async def on_dropped(self, item: TableItem):
        """Per-item drop handling after the authority accepted a drop."""
        session = self._session
        if isinstance(item, ChipItem):
            home = session.slots.account_chip(item)
            for slot in session.slots:
                session.slots.update_slots_with_money(slot)
            logger.debug(
                "chip_id=%d dropped in seat %s", item.item_id,
                home.index if home is not None else None,
            )
            return

        if not isinstance(item, CardItem):
            return

        rect = session.rect(item)
        slot = session.slots.slot_of_rect(rect)
        if slot is not None and slot.player is not None:
            if session.is_local(slot.player.owner_id):
                await self.take(item)
            elif not item.is_owned:
                await self.give(item, slot.player.owner_id)
            return
        if item.is_owned and rect.center_within(session.config.show_rect):
            await self.show(item)
