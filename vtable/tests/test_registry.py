"""
Tests for the item registry.

Tests:
- Record to item fidelity for every class
- Idempotent upserts
- Bad records dropped without losing the batch
- Value index upkeep
- Dealer rendering order
"""

import pytest

from ..net.schemas import ItemRecord
from ..table.items import (
    CardItem,
    ChipItem,
    DealerItem,
    ItemClass,
    PlayerItem,
    Side,
    UnknownItemClass,
    build_item,
)
from .conftest import LOCAL_UID, OTHER_UID, card_record, chip_record


class TestBuildItem:
    """Tests for the single construction site."""

    def test_card(self):
        item = build_item(ItemRecord.model_validate(card_record(1, 10, 20, z=4, side="face", rank="Q", suit="♥")))

        assert isinstance(item, CardItem)
        assert (item.x, item.y, item.z_index) == (10, 20, 4)
        assert item.side is Side.FACE
        assert item.rank == "Q"
        assert not item.is_owned

    def test_chip(self):
        item = build_item(ItemRecord.model_validate(chip_record(2, 0, 0, val=25, color="green")))

        assert isinstance(item, ChipItem)
        assert item.val == 25
        assert item.css_class == "chip-green"

    def test_chip_color_from_denomination(self):
        """Chips without a color use the authority's chip set."""
        item = build_item(ItemRecord.model_validate({"id": 2, "class": "chip", "val": 50}))

        assert item.color == ""
        assert item.css_class == "chip-black"

    def test_dealer_and_player(self):
        dealer = build_item(ItemRecord.model_validate({"id": 3, "class": "dealer"}))
        player = build_item(ItemRecord.model_validate({"id": 4, "class": "player", "owner_id": "u9"}))

        assert isinstance(dealer, DealerItem)
        assert isinstance(player, PlayerItem)
        assert not player.draggable
        assert player.owner_id == "u9"

    def test_unknown_class(self):
        with pytest.raises(UnknownItemClass) as exc:
            build_item(ItemRecord.model_validate({"id": 5, "class": "token"}))

        assert exc.value.item_id == 5
        assert exc.value.cls == "token"

    def test_to_record_round_trip_fields(self):
        """An item writes back every field the authority sent."""
        raw = card_record(6, 1, 2, z=3, owner="u1", side="face", rank="10", suit="♦")
        item = build_item(ItemRecord.model_validate(raw))

        record = item.to_record()
        for key, value in raw.items():
            assert record[key] == value


class TestItemRegistry:
    """Tests for ItemRegistry."""

    def test_upsert_creates_then_updates(self, session):
        """An id is materialised once and then updated in place."""
        registry = session.registry
        first = registry.upsert_raw(chip_record(1, 10, 10))
        second = registry.upsert_raw(chip_record(1, 50, 60, z=2))

        assert first is second
        assert len(registry) == 1
        assert (second.x, second.y, second.z_index) == (50, 60, 2)

    def test_upsert_is_idempotent(self, session):
        registry = session.registry
        registry.apply_records([card_record(1, 10, 10, owner="u1")])
        before = registry.get(1).to_record()
        registry.apply_records([card_record(1, 10, 10, owner="u1")])

        assert registry.get(1).to_record() == before
        assert len(registry) == 1

    def test_batch_drops_bad_records(self, session):
        """Unknown classes and invalid records are skipped, the rest applied."""
        items = session.registry.apply_records([
            chip_record(1, 0, 0),
            {"id": 2, "class": "token"},
            {"class": "card"},
            {"id": "x", "class": "card"},
            card_record(3, 100, 100),
        ])

        assert [item.item_id for item in items] == [1, 3]
        assert 2 not in session.registry
        assert len(session.registry) == 2

    def test_batch_drops_unknown_side(self, seated_session):
        """A card with an unknown side is skipped; the batch still completes."""
        session = seated_session
        items = session.registry.apply_records([
            card_record(1, 100, 100, side="sideways"),
            chip_record(2, 100, 550, val=10),
        ])

        assert [item.item_id for item in items] == [2]
        assert 1 not in session.registry
        assert 2 in session.slots[0].chip_ids

    def test_unknown_side_leaves_existing_card(self, session):
        registry = session.registry
        card = registry.upsert_raw(card_record(1, 10, 20, z=3))

        assert registry.upsert_raw(card_record(1, 400, 400, z=9, side="up")) is None

        assert (card.x, card.y, card.z_index) == (10, 20, 3)
        assert card.side is Side.COVER

    def test_partial_chip_update_keeps_value(self, session):
        """A chip record without val or color keeps the known ones."""
        registry = session.registry
        chip = registry.upsert_raw(chip_record(2, 10, 10, val=10, color="blue"))

        registry.upsert_raw({"id": 2, "class": "chip", "x": 60, "y": 50})

        assert (chip.x, chip.y) == (60, 50)
        assert chip.val == 10
        assert chip.color == "blue"
        assert session.value_index.ids(10) == {2}

    def test_partial_card_update_keeps_face(self, session):
        registry = session.registry
        card = registry.upsert_raw(card_record(1, 0, 0, side="face", rank="Q", suit="♥"))

        registry.upsert_raw({"id": 1, "class": "card", "x": 5, "y": 5})

        assert card.side is Side.FACE
        assert (card.rank, card.suit) == ("Q", "♥")

    def test_class_change_rebuilds(self, session, view):
        registry = session.registry
        registry.upsert_raw(chip_record(1, 0, 0, val=10))
        item = registry.upsert_raw(card_record(1, 0, 0))

        assert isinstance(item, CardItem)
        assert session.value_index.ids(10) == set()
        assert view.removed == [1]

    def test_value_index_follows_denomination(self, session):
        registry = session.registry
        registry.upsert_raw(chip_record(1, 0, 0, val=10))
        registry.upsert_raw(chip_record(2, 0, 0, val=10))
        registry.upsert_raw(chip_record(1, 0, 0, val=50))

        assert session.value_index.ids(10) == {2}
        assert session.value_index.ids(50) == {1}

    def test_value_index_copy(self, session):
        """Callers cannot corrupt the index through a query result."""
        session.registry.upsert_raw(chip_record(1, 0, 0, val=10))
        session.value_index.ids(10).add(99)

        assert session.value_index.ids(10) == {1}

    def test_remove_chip(self, session):
        session.registry.apply_records([chip_record(1, 100, 550, val=10)])
        assert 1 in session.slots[0].chip_ids

        session.registry.remove(1)

        assert session.value_index.ids(10) == set()
        assert 1 not in session.slots[0].chip_ids
        assert session.registry.remove(1) is None

    def test_clear(self, session, view):
        session.registry.apply_records([chip_record(1, 0, 0), card_record(2, 0, 0)])
        session.registry.clear()

        assert len(session.registry) == 0
        assert len(session.value_index) == 0
        assert sorted(view.removed) == [1, 2]

    def test_dealer_renders_on_top(self, session, view):
        """The dealer keeps its stored z but is drawn above everything."""
        dealer = session.registry.upsert_raw({"id": 1, "class": "dealer", "z_index": 3})

        assert dealer.z_index == 3
        assert session.render_z(dealer) == session.config.dealer_z_index
        assert view.rendered[-1] == (1, session.config.dealer_z_index)
        assert session.config.dealer_z_index > session.config.drag_z_index

    def test_by_class(self, session):
        session.registry.apply_records([chip_record(1, 0, 0), card_record(2, 0, 0), chip_record(3, 0, 0)])

        assert {item.item_id for item in session.registry.by_class(ItemClass.CHIP)} == {1, 3}


class TestPlayers:
    """Tests for player avatars."""

    def test_players_bound_to_seats(self, seated_session):
        session = seated_session

        me = session.registry.player_item(LOCAL_UID)
        other = session.registry.player_item(OTHER_UID)
        assert me.index == 0
        assert me.name == "Me"
        assert other.skin == "player_1"
        assert session.slots[0].player is me
        assert session.slots[1].player is other
        assert session.slots[2].player is None

    def test_player_geometry_is_seat(self, seated_session):
        session = seated_session
        me = session.registry.player_item(LOCAL_UID)

        assert session.rect(me) == session.slots[0].rect
        assert (me.x, me.y) == (0, 0)

    def test_remove_player_unbinds_seat(self, seated_session, view):
        session = seated_session
        other = session.registry.player_item(OTHER_UID)

        session.registry.remove(other.item_id)

        assert session.slots[1].player is None
        assert view.slot_labels[1] == "0"
