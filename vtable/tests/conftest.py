"""
Pytest fixtures for vtable tests.
"""

import pytest
from typing import Any

from ..config import ClientConfig
from ..net.push import ReconnectPolicy
from ..net.transport import Ok, Err, TransportError
from ..table.geometry import Rect
from ..table.session import TableSession
from ..view import TableView


LOCAL_UID = "me"
OTHER_UID = "other"


class RecordingView(TableView):
    """View that remembers everything it was asked to show."""

    def __init__(self):
        self.rendered: list[tuple[int, int]] = []
        self.removed: list[int] = []
        self.slot_labels: dict[int, str] = {}
        self.offline: list[str] = []
        self.online_count = 0
        self.notices: list[str] = []

    def render_item(self, item, z_index):
        self.rendered.append((item.item_id, z_index))

    def remove_item(self, item):
        self.removed.append(item.item_id)

    def render_slot(self, slot):
        self.slot_labels[slot.index] = slot.label

    def show_offline(self, message):
        self.offline.append(message)

    def hide_offline(self):
        self.online_count += 1

    def show_notice(self, message):
        self.notices.append(message)


class FakeClock:
    """Monotonic clock driven by the test, in seconds."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float):
        self.now += ms / 1000


class FakeTransport:
    """
    Transport double recording every call.

    Responses are produced by a handler (method, path, body, params) ->
    Result; by default every call succeeds and echoes what a permissive
    authority would return.
    """

    def __init__(self, session: TableSession):
        self.session = session
        self.calls: list[tuple[str, str, Any, Any]] = []
        self.handler = None
        self.fail = False

    def paths(self) -> list[str]:
        return [path.rsplit("/", 1)[-1] for _, path, _, _ in self.calls]

    async def request(self, method, path, body=None, params=None):
        self.calls.append((method, path, body, params))
        if self.fail:
            return Err(TransportError(0, "network error", method, path))
        if self.handler is not None:
            return self.handler(method, path, body, params)
        return Ok(self._echo(path, body, params))

    async def get(self, path, params=None):
        return await self.request("GET", path, params=params)

    async def post(self, path, body=None, params=None):
        return await self.request("POST", path, body=body, params=params)

    def _echo(self, path: str, body: Any, params: Any) -> Any:
        action = path.rsplit("/", 1)[-1]
        uid = self.session.current_uid
        if action == "update_many":
            return {"items": body["items"]}
        if action == "update":
            return {"updated": body}
        if action in ("take_card", "show_card", "give_card"):
            item_id = body["id"] if body else int(params["id"])
            record = self.session.registry.get(item_id).to_record()
            if action == "take_card":
                record.update(owner_id=uid, side="face")
            elif action == "show_card":
                record.update(side="face")
            else:
                record.update(owner_id=params["user_id"], side="cover")
            return {"updated": record}
        return {}


def chip_record(item_id: int, x: int, y: int, val: int = 10, z: int = 0, color: str = "blue") -> dict:
    return {"id": item_id, "class": "chip", "x": x, "y": y, "z_index": z, "val": val, "color": color}


def card_record(
    item_id: int, x: int, y: int, z: int = 0, owner: str = "", side: str = "cover",
    rank: str = "A", suit: str = "♠",
) -> dict:
    return {
        "id": item_id, "class": "card", "x": x, "y": y, "z_index": z,
        "owner_id": owner, "side": side, "rank": rank, "suit": suit,
    }


def player_record(item_id: int, uid: str) -> dict:
    return {"id": item_id, "class": "player", "x": 0, "y": 0, "owner_id": uid}


def players_map() -> dict:
    return {
        LOCAL_UID: {"user_id": LOCAL_UID, "name": "Me", "color": "#FF5733", "skin": "player_0", "index": 0},
        OTHER_UID: {"ID": OTHER_UID, "Name": "Other", "color": "#9B59B6", "skin": "player_1", "index": 1},
    }


@pytest.fixture
def config() -> ClientConfig:
    """Config with a small, predictable layout."""
    return ClientConfig(
        server_url="http://authority.test",
        table_id="t1",
        user_id=LOCAL_UID,
        table_rect=Rect(left=0, top=0, width=1000, height=700),
        seat_rects=[
            Rect(left=0, top=500, width=300, height=200),
            Rect(left=700, top=500, width=300, height=200),
            Rect(left=350, top=500, width=300, height=200),
        ],
        show_rect=Rect(left=400, top=200, width=200, height=150),
        item_sizes={"card": (50, 70), "chip": (30, 30), "dealer": (50, 50), "player": (120, 40)},
    )


@pytest.fixture
def view() -> RecordingView:
    return RecordingView()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(config, view, clock) -> TableSession:
    """An empty session for the local viewer."""
    return TableSession(config, current_uid=LOCAL_UID, view=view, clock=clock)


@pytest.fixture
def seated_session(session) -> TableSession:
    """Session with the local viewer in seat 0 and another player in seat 1."""
    from ..net.schemas import PlayerInfo

    session.set_players({
        uid: PlayerInfo.model_validate(info) for uid, info in players_map().items()
    })
    session.registry.apply_records([
        player_record(900, LOCAL_UID),
        player_record(901, OTHER_UID),
    ])
    return session


@pytest.fixture
def transport(session) -> FakeTransport:
    return FakeTransport(session)


def seeded_authority():
    """Authority with two seated players, a dealer, a card and a chip."""
    from .fake_authority import AuthorityState

    state = AuthorityState(players=players_map())
    state.add(
        player_record(900, LOCAL_UID),
        player_record(901, OTHER_UID),
        {"id": 1, "class": "dealer", "x": 500, "y": 50, "z_index": 0},
        card_record(10, 100, 100, z=1),
        chip_record(20, 100, 550, val=25, z=2),
    )
    return state


def authority_client(state, cookie: str | None = LOCAL_UID):
    """httpx client routed to the fake authority in-process."""
    import httpx

    from .fake_authority import create_app

    headers = {"Cookie": f"session={cookie}"} if cookie else {}
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=create_app(state)),
        base_url="http://authority.test",
        headers=headers,
    )


@pytest.fixture
def authority():
    return seeded_authority()


class FakeSocket:
    """Async-iterable stand-in for a websocket connection."""

    def __init__(self, messages):
        self._messages = list(messages)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._messages:
            raise StopAsyncIteration
        return self._messages.pop(0)


class FakeConnect:
    """Hands out one scripted connection per attempt."""

    def __init__(self, *scripts):
        self.scripts = list(scripts)
        self.calls = []

    def __call__(self, url, additional_headers=None):
        self.calls.append((url, additional_headers))
        script = self.scripts.pop(0) if self.scripts else []
        if isinstance(script, Exception):
            raise script
        return FakeSocket(script)


class Handle:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class RecordingPolicy(ReconnectPolicy):
    """Keeps scheduled callbacks instead of arming timers."""

    def __init__(self):
        super().__init__(delay=10.0)
        self.scheduled = []
        self.handles = []

    def schedule(self, callback):
        self.scheduled.append(callback)
        self.handles.append(Handle())
        return self.handles[-1]
