"""
Net Module - Talking to the table authority.

Two channels:
1. Request/response over HTTP (Transport) for snapshots and mutations
2. A push channel over WebSocket (PushClient) for other viewers' changes

All payloads are described by the pydantic models in schemas.py.
"""

from .schemas import (
    ItemRecord,
    PlayerInfo,
    TableSnapshot,
    ItemUpdatedResponse,
    ItemsPayload,
    CardIdRequest,
    PushEvent,
    PushEventType,
)
from .stats import LatencyStats
from .transport import Transport, TransportError, Ok, Err, Result, make_client
from .push import PushClient, PushState, ReconnectPolicy, parse_event

__all__ = [
    "ItemRecord",
    "PlayerInfo",
    "TableSnapshot",
    "ItemUpdatedResponse",
    "ItemsPayload",
    "CardIdRequest",
    "PushEvent",
    "PushEventType",
    "LatencyStats",
    "Transport",
    "TransportError",
    "Ok",
    "Err",
    "Result",
    "make_client",
    "PushClient",
    "PushState",
    "ReconnectPolicy",
    "parse_event",
]
