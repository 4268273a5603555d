"""
vtable - Shared Virtual Poker Table Client

A client for a shared, mutable card table held by a remote authority.
The client keeps a local model of the table in sync and lets the viewer
manipulate it with low latency:
- Item registry built from authority records
- Optimistic drag-and-drop with throttled updates
- Z-order arbitration and chip stacking on drop
- Seat accounting (which chips rest in front of which player)
- Push channel with reconnect
"""

__version__ = "0.1.0"
