"""Tests for the daily slot grid."""

import pytest

from clinic_assistant.scheduling.grid import (
    BASE_SLOT_MINUTES,
    DAILY_GRID,
    occupied_indices,
    slot_index,
    slots_needed,
)


class TestDailyGrid:
    def test_grid_shape(self):
        assert BASE_SLOT_MINUTES == 30
        assert len(DAILY_GRID) == 15
        assert DAILY_GRID[0] == "09:00"
        assert DAILY_GRID[-1] == "16:30"

    def test_lunch_gap(self):
        """12:30 is not a slot; 13:00 directly follows 12:00."""
        assert "12:30" not in DAILY_GRID
        assert slot_index("13:00") == slot_index("12:00") + 1

    def test_labels_are_sorted_and_unique(self):
        assert list(DAILY_GRID) == sorted(set(DAILY_GRID))


class TestSlotsNeeded:
    @pytest.mark.parametrize(
        "duration,expected",
        [(1, 1), (20, 1), (30, 1), (31, 2), (45, 2), (60, 2), (90, 3), (91, 4)],
    )
    def test_rounds_up(self, duration, expected):
        assert slots_needed(duration) == expected

    def test_never_less_than_one(self):
        assert slots_needed(0) == 1


class TestOccupiedIndices:
    def test_single_slot(self):
        assert occupied_indices("09:00", 30) == [0]

    def test_spans_lunch_gap_by_index(self):
        """A 60 minute booking at 12:00 takes 12:00 and 13:00."""
        indices = occupied_indices("12:00", 60)
        assert [DAILY_GRID[i] for i in indices] == ["12:00", "13:00"]

    def test_clipped_at_end_of_day(self):
        indices = occupied_indices("16:30", 90)
        assert [DAILY_GRID[i] for i in indices] == ["16:30"]

    def test_off_grid_start(self):
        assert occupied_indices("12:30", 30) is None
        assert occupied_indices("09:15", 30) is None
