"""
Pydantic Schemas - Wire formats exchanged with the table authority.

These models define the exact contract between the client and the
authority: the full table snapshot, single-item responses, batched item
payloads and push events.

Records are validated one at a time so that a single bad record (no id,
wrong types) can be dropped without losing the rest of a batch. The
class discriminant is kept as a plain string here; turning it into an
item type happens in table/items.py where unknown values become
UnknownItemClass.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field


# Go encodes nil slices and maps as null
RawRecords = Annotated[
    list[dict[str, Any]],
    BeforeValidator(lambda value: [] if value is None else value),
]


# =============================================================================
# Enums
# =============================================================================

class PushEventType(str, Enum):
    """Kinds of events sent over the push channel."""
    DISCONNECTED = "disconnected"
    PLAYER_KICKED = "player_kicked"
    PLAYER_JOINED = "player_joined"
    UPDATE_ITEMS = "update_items"
    REFRESH = "refresh"


# =============================================================================
# Shared Models
# =============================================================================

class ItemRecord(BaseModel):
    """One table item as the authority describes it."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    class_: str = Field(alias="class")
    x: int = 0
    y: int = 0
    z_index: int = 0
    owner_id: str = ""
    prev_owner_id: str = ""

    # Card fields
    side: Optional[Literal["cover", "face"]] = None
    rank: Optional[str] = None
    suit: Optional[str] = None

    # Chip fields
    val: Optional[int] = None
    color: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PlayerInfo(BaseModel):
    """
    A player seated at the table.

    The authority serialises embedded user fields with their Go names
    (ID, Name), newer events use snake case; both are accepted.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(default="", validation_alias=AliasChoices("user_id", "ID", "id"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "Name"))
    color: str = ""
    skin: str = ""
    index: int = Field(default=0, validation_alias=AliasChoices("index", "Index"))


PlayerMap = Annotated[
    dict[str, PlayerInfo],
    BeforeValidator(lambda value: {} if value is None else value),
]


# =============================================================================
# Responses
# =============================================================================

class TableSnapshot(BaseModel):
    """
    Full table state from GET {base}/state.

    Items are kept raw so they can be validated individually.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    players: PlayerMap = Field(
        default_factory=dict, validation_alias=AliasChoices("players", "Players")
    )
    items: RawRecords = Field(
        default_factory=list, validation_alias=AliasChoices("items", "Items")
    )


class ItemUpdatedResponse(BaseModel):
    """Response of update, take_card, show_card and give_card."""
    updated: Optional[dict[str, Any]] = None


class ItemsPayload(BaseModel):
    """Body of update_many, and its response."""
    items: RawRecords = Field(default_factory=list)


class CardIdRequest(BaseModel):
    """Body of take_card and show_card."""
    id: int


class PushEvent(BaseModel):
    """An event received on the push channel."""
    model_config = ConfigDict(extra="ignore")

    type: PushEventType
    items: RawRecords = Field(default_factory=list)
    players: PlayerMap = Field(default_factory=dict)

    @classmethod
    def refresh(cls) -> "PushEvent":
        return cls(type=PushEventType.REFRESH)
