"""Tests for the next-day room status mapping."""

import pytest

from models import RoomStatusEnum
from room_status import NEXT_DAY_STATUS, STICKY_STATUSES, next_status


class TestNextStatus:

    def test_defined_for_every_status(self):
        """Every status has a next-day status, and it is a real status."""
        assert set(NEXT_DAY_STATUS) == set(RoomStatusEnum)
        for status in RoomStatusEnum:
            assert next_status(status) in RoomStatusEnum

    @pytest.mark.parametrize("status", sorted(STICKY_STATUSES, key=lambda s: s.value))
    def test_sticky_statuses_map_to_themselves(self, status):
        assert next_status(status) is status
        assert next_status(next_status(status)) is status

    @pytest.mark.parametrize("status", ["dirty", "clean", "ready", "clean_inspected"])
    def test_serviced_statuses_become_dirty(self, status):
        assert next_status(status) is RoomStatusEnum.Dirty

    def test_sticky_set_matches_fixed_points(self):
        fixed = {s for s in RoomStatusEnum if next_status(s) is s and s is not RoomStatusEnum.Dirty}
        assert fixed == STICKY_STATUSES

    def test_accepts_string_values(self):
        assert next_status("out_of_order") is RoomStatusEnum.OutOfOrder
        assert next_status("ready") is RoomStatusEnum.Dirty

    def test_missing_status_treated_as_dirty(self):
        assert next_status(None) is RoomStatusEnum.Dirty

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            next_status("vacant")
