"""
Drag Controller - Pointer gestures on table items.

Each pointer gets its own drag, keyed by the pointer id captured at
pick-up, so several pointers can move distinct items at the same time.

    RESTING -> PICKED_UP -> DRAGGING -> DROPPED -> RESTING

pointer_down
    Picks up the topmost draggable item under the pointer. With the
    group modifier on a chip, every same-denomination chip under the
    pointer comes along. Chips resting in another player's seat cannot
    be picked up. The group is lifted to the drag z-order.

pointer_move
    Moves the whole group by the pointer delta at once. Moves that would
    leave the table are rejected. Position updates go to the authority
    at most once per throttle window; their responses are ignored.

pointer_up
    Restores the original z-orders. A release with no net displacement
    is a tap (take/show with a modifier, flip on a double tap).
    Otherwise the group is arbitrated, chips are stacked, and one batch
    update is sent; once the authority accepts it the drop rules run.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable
import asyncio
import logging

from ..table.items import CardItem, ChipItem, TableItem
from ..table.zorder import arbitrate

if TYPE_CHECKING:
    from ..table.session import TableSession
    from .rules import DropRules


logger = logging.getLogger(__name__)


class DragState(Enum):
    RESTING = "resting"
    PICKED_UP = "picked_up"
    DRAGGING = "dragging"
    DROPPED = "dropped"


class TapAction(Enum):
    """What a tap on an item turned into."""
    NONE = "none"
    TAKE = "take"
    SHOW = "show"
    FLIP = "flip"


@dataclass
class Modifiers:
    """Modifier keys held during a gesture."""
    claim: bool = False  # ctrl/meta or "t"
    reveal: bool = False  # shift or "o"
    group: bool = False  # drag every same-denomination chip under the pointer


@dataclass
class PointerEvent:
    """A pointer event in table-local coordinates."""
    pointer_id: int
    x: float
    y: float
    modifiers: Modifiers = field(default_factory=Modifiers)

    # Set when the surface already knows which item was hit
    item_id: int | None = None


@dataclass
class Grab:
    """An item picked up by a drag, with where it started."""
    item: TableItem
    start_x: int
    start_y: int
    start_z: int

    @property
    def displaced(self) -> bool:
        return self.item.x != self.start_x or self.item.y != self.start_y

    def record(self) -> dict[str, Any]:
        # Other viewers must never see the temporary drag z-order
        data = self.item.to_record()
        data["z_index"] = self.start_z
        return data


@dataclass
class Drag:
    """One pointer's drag in progress."""
    pointer_id: int
    origin_x: float
    origin_y: float
    grabs: list[Grab]
    modifiers: Modifiers
    state: DragState = DragState.PICKED_UP
    last_sent_ms: float | None = None
    pending: list[asyncio.Future] = field(default_factory=list)

    @property
    def items(self) -> list[TableItem]:
        return [grab.item for grab in self.grabs]

    @property
    def lead(self) -> TableItem:
        return self.grabs[0].item

    @property
    def displaced(self) -> bool:
        return any(grab.displaced for grab in self.grabs)


@dataclass
class DropOutcome:
    """Result of a pointer release, for callers and tests."""
    items: list[TableItem]
    tapped: bool = False
    tap_action: TapAction = TapAction.NONE
    z_assigned: dict[int, int] = field(default_factory=dict)
    snapped: list[int] = field(default_factory=list)
    confirmed: bool = False


class DragController:
    """
    Interactive state machine for drag, drop and tap.

    Usage:
        drags = DragController(session, rules)
        drags.pointer_down(PointerEvent(1, 110, 110))
        drags.pointer_move(PointerEvent(1, 160, 140))
        outcome = await drags.pointer_up(PointerEvent(1, 160, 140))
    """

    def __init__(
        self,
        session: TableSession,
        rules: DropRules,
        spawn: Callable[[Awaitable[Any]], asyncio.Future] | None = None,
    ):
        self._session = session
        self._rules = rules
        self._spawn = spawn if spawn is not None else asyncio.ensure_future
        self.drags: dict[int, Drag] = {}
        self._last_tap: tuple[int, float] | None = None
        self._background: set[asyncio.Future] = set()

    # =========================================================================
    # Pick-up
    # =========================================================================

    def _grabbed_elsewhere(self) -> set[int]:
        return {item.item_id for drag in self.drags.values() for item in drag.items}

    def _target(self, event: PointerEvent) -> TableItem | None:
        session = self._session
        if event.item_id is not None:
            return session.registry.get(event.item_id)
        for item in session.items_at(event.x, event.y):
            if item.draggable:
                return item
        return None

    def _can_pick(self, item: TableItem) -> bool:
        if not item.draggable:
            return False
        if isinstance(item, ChipItem) and self._session.slots.blocks_pickup(item):
            logger.debug("chip_id=%d rests in another player's seat", item.item_id)
            return False
        return True

    def pointer_down(self, event: PointerEvent) -> Drag | None:
        """Pick up the item (or chip group) under the pointer."""
        if event.pointer_id in self.drags:
            return self.drags[event.pointer_id]
        primary = self._target(event)
        if primary is None or not self._can_pick(primary):
            return None
        busy = self._grabbed_elsewhere()
        if primary.item_id in busy:
            return None

        group = [primary]
        if isinstance(primary, ChipItem) and event.modifiers.group:
            for item in self._session.items_at(event.x, event.y):
                if (
                    isinstance(item, ChipItem)
                    and item.val == primary.val
                    and item is not primary
                    and item.item_id not in busy
                    and self._can_pick(item)
                ):
                    group.append(item)

        drag = Drag(
            pointer_id=event.pointer_id,
            origin_x=event.x,
            origin_y=event.y,
            grabs=[Grab(item, item.x, item.y, item.z_index) for item in group],
            modifiers=event.modifiers,
        )
        self.drags[event.pointer_id] = drag

        drag_z = self._session.config.drag_z_index
        for item in drag.items:
            item.z_index = drag_z
            self._session.render(item)
        drag.state = DragState.DRAGGING
        logger.debug(
            "pointer %d picked up %s", event.pointer_id, [item.item_id for item in drag.items]
        )
        return drag

    # =========================================================================
    # Move
    # =========================================================================

    def _move_to(self, drag: Drag, event: PointerEvent) -> bool:
        dx = round(event.x - drag.origin_x)
        dy = round(event.y - drag.origin_y)
        bounds = self._session.config.table_rect
        for grab in drag.grabs:
            rect = self._session.rect_at(grab.item, grab.start_x + dx, grab.start_y + dy)
            if not rect.inside(bounds):
                return False
        for grab in drag.grabs:
            grab.item.x = grab.start_x + dx
            grab.item.y = grab.start_y + dy
            self._session.render(grab.item)
        return True

    def pointer_move(self, event: PointerEvent) -> bool:
        """
        Move the group following the pointer.

        Returns False when the event belongs to no drag or the move was
        rejected at the table boundary.
        """
        drag = self.drags.get(event.pointer_id)
        if drag is None:
            return False
        if not self._move_to(drag, event):
            return False

        now = self._session.now_ms()
        throttle = self._session.config.move_throttle_ms
        if drag.last_sent_ms is None or now - drag.last_sent_ms >= throttle:
            drag.last_sent_ms = now
            records = [grab.record() for grab in drag.grabs]
            drag.pending.append(self._track(self._rules.send_group(records)))
        return True

    def _track(self, awaitable: Awaitable[Any]) -> asyncio.Future:
        future = self._spawn(awaitable)
        self._background.add(future)
        future.add_done_callback(self._background.discard)
        return future

    async def drain(self):
        """Wait for every background update sent so far."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # =========================================================================
    # Drop
    # =========================================================================

    async def pointer_up(self, event: PointerEvent) -> DropOutcome | None:
        """Release the pointer: tap or drop."""
        drag = self.drags.pop(event.pointer_id, None)
        if drag is None:
            return None
        session = self._session
        self._move_to(drag, event)
        drag.state = DragState.DROPPED

        for grab in drag.grabs:
            grab.item.z_index = grab.start_z

        outcome = DropOutcome(items=drag.items)
        if not drag.displaced:
            outcome.tapped = True
            for item in drag.items:
                session.render(item)
            outcome.tap_action = await self._tap(drag.lead, drag.modifiers)
            drag.state = DragState.RESTING
            return outcome

        outcome.z_assigned = arbitrate(session, drag.items)
        outcome.snapped = [chip.item_id for chip in self._rules.stack_chips(drag.items)]
        for item in drag.items:
            session.render(item)

        # The final position must reach the authority after the throttled ones
        if drag.pending:
            await asyncio.gather(*drag.pending, return_exceptions=True)

        records = [grab.item.to_record() for grab in drag.grabs]
        outcome.confirmed = await self._rules.drop(drag.items, records)
        drag.state = DragState.RESTING
        logger.debug(
            "pointer %d dropped %s confirmed=%s",
            event.pointer_id, [item.item_id for item in drag.items], outcome.confirmed,
        )
        return outcome

    # =========================================================================
    # Tap
    # =========================================================================

    async def _tap(self, item: TableItem, modifiers: Modifiers) -> TapAction:
        if not isinstance(item, CardItem):
            return TapAction.NONE

        now = self._session.now_ms()
        last = self._last_tap
        if last is not None and last[0] == item.item_id and now - last[1] <= self._session.config.double_tap_ms:
            self._last_tap = None
            await self._rules.flip(item)
            return TapAction.FLIP
        self._last_tap = (item.item_id, now)

        if modifiers.claim:
            await self._rules.take(item)
            return TapAction.TAKE
        if modifiers.reveal:
            await self._rules.show(item)
            return TapAction.SHOW
        return TapAction.NONE
