"""
Client Configuration - Tunables and environment overrides.

Every constant the engine depends on lives in ClientConfig so tests and
embedders can shrink windows or move seats without patching modules.

Environment variables (read once at import):
    VTABLE_SERVER_URL        Authority origin, e.g. http://localhost:8080
    VTABLE_TABLE_ID          Table to join
    VTABLE_USER_ID           Local viewer identity
    VTABLE_SESSION_COOKIE    Raw session cookie value sent with every call
    VTABLE_RECONNECT_DELAY   Seconds before a push reconnect attempt
    VTABLE_LOG_LEVEL         Logging level name for the CLI
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os

from .table.geometry import Rect


# Environment configuration
VTABLE_SERVER_URL = os.getenv("VTABLE_SERVER_URL", "http://localhost:8080")
VTABLE_TABLE_ID = os.getenv("VTABLE_TABLE_ID", "")
VTABLE_USER_ID = os.getenv("VTABLE_USER_ID", "")
VTABLE_SESSION_COOKIE = os.getenv("VTABLE_SESSION_COOKIE", None)
VTABLE_RECONNECT_DELAY = float(os.getenv("VTABLE_RECONNECT_DELAY", "10"))
VTABLE_LOG_LEVEL = os.getenv("VTABLE_LOG_LEVEL", "INFO")


def _default_seat_rects() -> list[Rect]:
    # Seats surround the chip stacks the authority deals to each player
    return [
        Rect(left=130, top=535, width=300, height=120),
        Rect(left=880, top=0, width=300, height=120),
        Rect(left=880, top=535, width=300, height=120),
    ]


def _default_item_sizes() -> dict[str, tuple[int, int]]:
    return {
        "card": (50, 70),
        "chip": (30, 30),
        "dealer": (50, 50),
        "player": (120, 40),
    }


@dataclass
class ClientConfig:
    """
    Configuration for one table client.

    Timing values are in milliseconds unless the name says otherwise.
    """
    server_url: str = VTABLE_SERVER_URL
    table_id: str = VTABLE_TABLE_ID
    user_id: str = VTABLE_USER_ID
    session_cookie: str | None = VTABLE_SESSION_COOKIE

    # Drag behaviour
    move_throttle_ms: int = 30
    double_tap_ms: int = 300
    stack_offset: int = 3
    drag_z_index: int = 100_000
    dealer_z_index: int = 1_000_000

    # Push channel
    reconnect_delay: float = VTABLE_RECONNECT_DELAY

    # Telemetry
    stats_capacity: int = 10
    stats_report_interval: float = 60.0
    viewport: tuple[int, int] = (1280, 800)

    # Layout
    table_rect: Rect = field(default_factory=lambda: Rect(left=0, top=0, width=1200, height=680))
    seat_rects: list[Rect] = field(default_factory=_default_seat_rects)
    show_rect: Rect = field(default_factory=lambda: Rect(left=450, top=250, width=300, height=180))
    item_sizes: dict[str, tuple[int, int]] = field(default_factory=_default_item_sizes)

    @property
    def table_path(self) -> str:
        """Base path of the table on the authority."""
        return f"/games/{self.table_id}"

    @property
    def listen_url(self) -> str:
        """WebSocket URL of the push channel."""
        origin = self.server_url.rstrip("/")
        if origin.startswith("https://"):
            origin = "wss://" + origin[len("https://"):]
        elif origin.startswith("http://"):
            origin = "ws://" + origin[len("http://"):]
        return f"{origin}{self.table_path}/listen"

    @property
    def headers(self) -> dict[str, str]:
        """Headers sent with every call to the authority."""
        if not self.session_cookie:
            return {}
        return {"Cookie": f"session={self.session_cookie}"}

    @classmethod
    def from_env(cls, **overrides) -> ClientConfig:
        """Build a config from the environment, with explicit overrides on top."""
        config = cls(
            server_url=os.getenv("VTABLE_SERVER_URL", VTABLE_SERVER_URL),
            table_id=os.getenv("VTABLE_TABLE_ID", VTABLE_TABLE_ID),
            user_id=os.getenv("VTABLE_USER_ID", VTABLE_USER_ID),
            session_cookie=os.getenv("VTABLE_SESSION_COOKIE", VTABLE_SESSION_COOKIE),
            reconnect_delay=float(os.getenv("VTABLE_RECONNECT_DELAY", str(VTABLE_RECONNECT_DELAY))),
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config
