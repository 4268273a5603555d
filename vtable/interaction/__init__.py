"""
Interaction Module - What the local viewer does to the table.

Pointer gestures become optimistic local changes plus requests to the
authority:
- DragController turns pointer events into drags, drops and taps
- DropRules holds take/show/give/flip and chip stacking
"""

from .drag import (
    DragController,
    DragState,
    Drag,
    Grab,
    DropOutcome,
    Modifiers,
    PointerEvent,
    TapAction,
)
from .rules import DropRules

__all__ = [
    "DragController",
    "DragState",
    "Drag",
    "Grab",
    "DropOutcome",
    "Modifiers",
    "PointerEvent",
    "TapAction",
    "DropRules",
]
