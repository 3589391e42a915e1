"""Slot availability for one doctor on one day.

The computation is a pure function of the day's appointments, the
requested duration and the current time. ``AvailabilityService`` wraps it
with the record-store reads.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Protocol
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_assistant.config import get_settings
from clinic_assistant.core.repository import AppointmentRepository, AppointmentTypeRepository
from clinic_assistant.errors import NotFound, StoreUnavailable, ValidationFailed
from clinic_assistant.scheduling.grid import DAILY_GRID, occupied_indices, slot_time, slots_needed
from clinic_assistant.scheduling.models import AppointmentStatus, SlotState, SlotStatus

logger = logging.getLogger(__name__)


class BookedRange(Protocol):
    start: str
    duration_minutes: int


def clinic_now(timezone_name: Optional[str] = None) -> datetime:
    """Current wall-clock time in the clinic's timezone."""
    return datetime.now(ZoneInfo(timezone_name or get_settings().clinic_timezone))


def parse_day(date_iso: str) -> date:
    try:
        return date.fromisoformat(date_iso)
    except (TypeError, ValueError) as e:
        raise ValidationFailed(f"Invalid date: {date_iso!r}") from e


def taken_indices(appointments: Iterable[BookedRange]) -> set[int]:
    """Grid indices occupied by the given appointments.

    Cancelled appointments and appointments whose start is off the grid
    occupy nothing.
    """
    taken: set[int] = set()
    for appt in appointments:
        if getattr(appt, "status", None) == AppointmentStatus.CANCELLED.value:
            continue
        indices = occupied_indices(appt.start, appt.duration_minutes)
        if indices is None:
            logger.debug(f"Ignoring appointment with off-grid start {appt.start!r}")
            continue
        taken.update(indices)
    return taken


def slot_has_passed(day: date, label: str, now: datetime) -> bool:
    """True when ``label`` on ``day`` is not strictly in the future."""
    today = now.date()
    if day < today:
        return True
    if day > today:
        return False
    return slot_time(label) <= now.time()


def compute_slot_availability(
    appointments: Iterable[BookedRange],
    requested_duration: int,
    day: date,
    now: datetime,
) -> list[SlotState]:
    """Mark each grid slot available or unavailable for a new booking.

    A slot is available only when the booking would fit on the grid, none
    of the slots it needs is taken, and the slot is still in the future.
    Bookings never wrap into the next day.
    """
    taken = taken_indices(appointments)
    needed = slots_needed(requested_duration)
    grid_size = len(DAILY_GRID)

    states = []
    for index, label in enumerate(DAILY_GRID):
        fits = index + needed <= grid_size
        free = fits and not any(i in taken for i in range(index, index + needed))
        bookable = free and not slot_has_passed(day, label, now)
        states.append(
            SlotState(
                time=label,
                status=SlotStatus.AVAILABLE if bookable else SlotStatus.UNAVAILABLE,
            )
        )
    return states


class AvailabilityService:
    """Reads a doctor's day from the record store and computes slot states."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        now_provider: Optional[Callable[[], datetime]] = None,
    ):
        self._session_factory = session_factory
        self._now = now_provider or clinic_now

    async def get_availability(
        self,
        doctor_id: str,
        date_iso: str,
        *,
        type_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> list[SlotState]:
        """Slot states for ``doctor_id`` on ``date_iso``.

        The requested duration comes from ``type_id`` when given, otherwise
        from ``duration_minutes``.
        """
        day = parse_day(date_iso)
        if type_id is None and duration_minutes is None:
            raise ValidationFailed("Either an appointment type or a duration is required")
        if duration_minutes is not None and duration_minutes <= 0:
            raise ValidationFailed("Duration must be positive")

        try:
            async with self._session_factory() as session:
                if type_id is not None:
                    appt_type = await AppointmentTypeRepository(session).get_by_id(type_id)
                    if appt_type is None:
                        raise NotFound("appointment type", type_id)
                    duration_minutes = appt_type.duration_minutes
                appointments = await AppointmentRepository(session).list_for_doctor_day(
                    doctor_id, date_iso
                )
        except SQLAlchemyError as e:
            logger.error(f"Availability lookup failed for {doctor_id} on {date_iso}: {e}")
            raise StoreUnavailable("Could not read appointments") from e

        return compute_slot_availability(appointments, duration_minutes, day, self._now())
