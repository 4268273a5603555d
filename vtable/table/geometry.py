"""
Geometry - Rectangle queries over table-local pixel space.

All functions are pure. Rectangles are built from an item's stored
position plus a size supplied by an ItemSizes provider, so no live
rendering surface is needed to answer "is this chip in that seat?".

Edges are inclusive: a point on the border is inside.
"""

from __future__ import annotations
from dataclasses import dataclass
import math


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle: left/top corner plus size."""
    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    @property
    def center_y(self) -> float:
        return self.top + self.height / 2

    def contains(self, x: float, y: float) -> bool:
        """Check if a point lies within this rectangle."""
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def intersects(self, other: Rect) -> bool:
        """Check if two rectangles overlap. Touching edges do not count."""
        return not (
            self.right <= other.left
            or other.right <= self.left
            or self.bottom <= other.top
            or other.bottom <= self.top
        )

    def center_within(self, other: Rect) -> bool:
        """Check if this rectangle's center lies within another rectangle."""
        return other.contains(self.center_x, self.center_y)

    def inside(self, other: Rect) -> bool:
        """Check if this rectangle lies entirely within another rectangle."""
        return (
            self.left >= other.left
            and self.top >= other.top
            and self.right <= other.right
            and self.bottom <= other.bottom
        )

    def distance(self, other: Rect) -> float:
        """Distance between the centers of two rectangles."""
        return math.hypot(self.center_x - other.center_x, self.center_y - other.center_y)

    def moved_to(self, left: int, top: int) -> Rect:
        return Rect(left=left, top=top, width=self.width, height=self.height)


class ItemSizes:
    """
    Measured-size provider for table items.

    Sizes are looked up by item class. Unknown classes get the fallback
    size so geometry never fails on a new variant.
    """

    def __init__(self, sizes: dict[str, tuple[int, int]], fallback: tuple[int, int] = (1, 1)):
        self._sizes = dict(sizes)
        self._fallback = fallback

    def size_of(self, cls: str) -> tuple[int, int]:
        return self._sizes.get(cls, self._fallback)

    def rect_at(self, cls: str, x: int, y: int) -> Rect:
        """Rectangle an item of the given class would occupy at (x, y)."""
        width, height = self.size_of(cls)
        return Rect(left=x, top=y, width=width, height=height)
