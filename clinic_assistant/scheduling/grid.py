"""The fixed daily slot grid shared by every doctor."""

import math
from datetime import time
from typing import Optional

BASE_SLOT_MINUTES = 30

# The grid jumps from 12:00 straight to 13:00. Slot arithmetic works on
# indices, so a booking that starts at 12:00 and needs two slots takes
# 12:00 and 13:00.
DAILY_GRID: tuple[str, ...] = (
    "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
    "12:00",
    "13:00", "13:30", "14:00", "14:30", "15:00", "15:30", "16:00", "16:30",
)

_GRID_INDEX = {label: i for i, label in enumerate(DAILY_GRID)}


def slots_needed(duration_minutes: int) -> int:
    """Number of grid slots a duration consumes; partial slots round up."""
    return max(1, math.ceil(duration_minutes / BASE_SLOT_MINUTES))


def slot_index(label: str) -> Optional[int]:
    return _GRID_INDEX.get(label)


def slot_time(label: str) -> time:
    return time.fromisoformat(label)


def occupied_indices(start: str, duration_minutes: int) -> Optional[list[int]]:
    """Grid indices covered by a booking, clipped at the end of the day.

    Returns None when ``start`` is not a grid label.
    """
    index = slot_index(start)
    if index is None:
        return None
    end = min(index + slots_needed(duration_minutes), len(DAILY_GRID))
    return list(range(index, end))
