"""
Tests for the z-order arbiter.
"""

from ..table.zorder import arbitrate, underlying_items
from .conftest import card_record, chip_record


class TestArbitrate:
    """Tests for stacking order after a drop."""

    def test_group_lands_above_underlying(self, session):
        """Covered z 5 gives the group 6 and 7, first grabbed highest."""
        registry = session.registry
        registry.apply_records([
            card_record(1, 100, 100, z=5),
            card_record(2, 110, 110, z=2),
            chip_record(10, 105, 105, z=1),
            chip_record(11, 105, 105, z=0),
        ])
        group = [registry.get(10), registry.get(11)]

        assigned = arbitrate(session, group)

        assert assigned == {11: 6, 10: 7}
        assert registry.get(10).z_index == 7
        assert registry.get(11).z_index == 6

    def test_nothing_underneath(self, session):
        """Without underlying items z-orders are left alone."""
        session.registry.apply_records([card_record(1, 0, 0, z=3), card_record(2, 500, 500, z=9)])
        card = session.registry.get(1)

        assert arbitrate(session, [card]) == {}
        assert card.z_index == 3

    def test_dealer_and_players_ignored(self, seated_session):
        session = seated_session
        session.registry.apply_records([
            {"id": 1, "class": "dealer", "x": 100, "y": 550, "z_index": 50},
            card_record(2, 100, 550, z=4),
            card_record(3, 110, 560, z=1),
        ])
        card = session.registry.get(3)

        under = underlying_items(session, [card])

        assert [item.item_id for item in under] == [2]
        assert arbitrate(session, [card]) == {3: 5}

    def test_touching_items_not_underlying(self, session):
        session.registry.apply_records([card_record(1, 0, 0, z=8), card_record(2, 50, 0, z=0)])

        assert arbitrate(session, [session.registry.get(2)]) == {}
