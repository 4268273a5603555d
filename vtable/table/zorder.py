"""
Z-Order Arbiter - Stacking order for a group of items just dropped.

The dropped group must land above everything it now covers while
keeping its own internal order:

1. Collect the non-grabbed items intersecting the leading item
2. topmost = highest z among them + 1
3. Walk the group in reverse grab order assigning topmost, topmost+1, ...

so the first grabbed item ends up highest. The dealer marker and player
avatars take no part: the dealer always renders on top and avatars sit
in their own seat layer.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Sequence

from .items import DealerItem, PlayerItem, TableItem

if TYPE_CHECKING:
    from .session import TableSession


def _arbitrated(item: TableItem) -> bool:
    return not isinstance(item, (DealerItem, PlayerItem))


def underlying_items(session: TableSession, group: Sequence[TableItem]) -> list[TableItem]:
    """Non-grabbed items under the leading item, highest z first."""
    if not group:
        return []
    grabbed = {item.item_id for item in group}
    lead = session.rect(group[0])
    under = [
        item for item in session.registry
        if item.item_id not in grabbed
        and _arbitrated(item)
        and session.rect(item).intersects(lead)
    ]
    under.sort(key=lambda item: item.z_index, reverse=True)
    return under


def arbitrate(session: TableSession, group: Sequence[TableItem]) -> dict[int, int]:
    """
    Assign final z-orders to a dropped group.

    Returns the new z_index per item id (empty when nothing lies
    underneath, in which case z-orders are left as they are).
    """
    under = underlying_items(session, group)
    if not under:
        return {}

    topmost = under[0].z_index + 1
    assigned: dict[int, int] = {}
    for item in reversed(group):
        if not _arbitrated(item):
            continue
        item.z_index = topmost
        assigned[item.item_id] = topmost
        topmost += 1
    return assigned
