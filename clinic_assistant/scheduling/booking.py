"""Atomic booking and cancellation of appointments."""

from __future__ import annotations

import asyncio
import logging
import weakref
from datetime import datetime
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_assistant.core.repository import CANCELLED, AppointmentRepository
from clinic_assistant.errors import (
    BookingConflict,
    NotFound,
    StoreUnavailable,
    Unauthenticated,
    ValidationFailed,
)
from clinic_assistant.observability import EventType, get_observability_logger
from clinic_assistant.scheduling.availability import clinic_now, slot_has_passed, taken_indices
from clinic_assistant.scheduling.grid import DAILY_GRID, slot_index, slots_needed
from clinic_assistant.scheduling.models import Appointment, AppointmentStatus, BookingRequest

logger = logging.getLogger(__name__)


class BookingService:
    """Creates appointments without ever double-booking a doctor.

    Two layers keep a doctor's day free of overlaps. Within this process a
    lock per (doctor, day) serialises the check-and-insert. Across processes
    the ``appointment_slot_claims`` unique constraint rejects the second
    writer, which surfaces as ``BookingConflict``.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        now_provider: Optional[Callable[[], datetime]] = None,
    ):
        self._session_factory = session_factory
        self._now = now_provider or clinic_now
        self._locks: "weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, doctor_id: str, date_iso: str) -> asyncio.Lock:
        key = (doctor_id, date_iso)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _validate(self, request: Union[BookingRequest, dict[str, Any]]) -> tuple[BookingRequest, list[str]]:
        """Check the request against the grid and the clock.

        Returns the parsed request and the slot labels it would occupy.
        """
        if not isinstance(request, BookingRequest):
            try:
                request = BookingRequest.model_validate(request)
            except ValidationError as e:
                raise ValidationFailed(f"Invalid booking request: {e.error_count()} error(s)") from e

        start_index = slot_index(request.start)
        if start_index is None:
            raise ValidationFailed(f"Start time {request.start} is not a bookable slot")

        end_index = start_index + slots_needed(request.duration_minutes)
        if end_index > len(DAILY_GRID):
            raise ValidationFailed(
                f"A {request.duration_minutes} minute appointment at {request.start} runs past the last slot"
            )

        if slot_has_passed(request.day, request.start, self._now()):
            raise ValidationFailed(f"{request.date_iso} {request.start} is in the past")

        return request, list(DAILY_GRID[start_index:end_index])

    async def book(
        self,
        request: Union[BookingRequest, dict[str, Any]],
        patient_id: Optional[str],
    ) -> Appointment:
        """Book an appointment for ``patient_id``.

        Raises:
            Unauthenticated: No patient identity.
            ValidationFailed: Malformed request, off-grid start, overrun or past slot.
            BookingConflict: One of the needed slots is already taken.
            StoreUnavailable: The record store failed.
        """
        if not patient_id:
            raise Unauthenticated()

        obs = get_observability_logger()
        try:
            request, slots = self._validate(request)
        except ValidationFailed as e:
            if isinstance(request, BookingRequest):
                obs.log_booking(
                    EventType.BOOKING_REJECTED,
                    doctor_id=request.doctor_id,
                    date_iso=request.date_iso,
                    start=request.start,
                    error=e,
                )
            raise

        async with self._lock_for(request.doctor_id, request.date_iso):
            try:
                record = await self._insert(request, patient_id, slots)
            except BookingConflict as e:
                logger.info(f"Booking conflict: {e}")
                obs.log_booking(
                    EventType.BOOKING_CONFLICT,
                    doctor_id=request.doctor_id,
                    date_iso=request.date_iso,
                    start=request.start,
                    slots=e.slots,
                    error=e,
                )
                raise
            except SQLAlchemyError as e:
                logger.error(f"Booking failed for {request.doctor_id} on {request.date_iso}: {e}")
                obs.log_booking(
                    EventType.BOOKING_ERROR,
                    doctor_id=request.doctor_id,
                    date_iso=request.date_iso,
                    start=request.start,
                    error=e,
                )
                raise StoreUnavailable("Could not save the appointment") from e

        appointment = Appointment.from_record(record)
        logger.info(
            f"Booked {appointment.id} with {appointment.doctor_id} on "
            f"{appointment.date_iso} at {appointment.start} ({len(slots)} slot(s))"
        )
        obs.log_booking(
            EventType.BOOKING_CREATED,
            doctor_id=appointment.doctor_id,
            date_iso=appointment.date_iso,
            start=appointment.start,
            appointment_id=appointment.id,
            slots=slots,
        )
        return appointment

    async def _insert(self, request: BookingRequest, patient_id: str, slots: list[str]):
        """Re-check and write inside one transaction.

        A rejected booking leaves nothing behind.
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    repo = AppointmentRepository(session)
                    existing = await repo.list_for_doctor_day(request.doctor_id, request.date_iso)
                    taken = taken_indices(existing)
                    clashing = [slot for slot in slots if slot_index(slot) in taken]
                    if clashing:
                        raise BookingConflict(request.doctor_id, request.date_iso, clashing)

                    record = await repo.create(
                        doctor_id=request.doctor_id,
                        clinic_id=request.clinic_id,
                        patient_id=patient_id,
                        date_iso=request.date_iso,
                        start=request.start,
                        duration_minutes=request.duration_minutes,
                        type_id=request.type_id,
                        type_name=request.type_name,
                        status=AppointmentStatus.PENDING.value,
                    )
                    await repo.claim_slots(record.id, request.doctor_id, request.date_iso, slots)
                return record
        except IntegrityError as e:
            raise BookingConflict(request.doctor_id, request.date_iso, slots) from e

    async def cancel(self, appointment_id: str, patient_id: Optional[str]) -> Appointment:
        """Cancel one of the patient's appointments and free its slots."""
        if not patient_id:
            raise Unauthenticated()

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    repo = AppointmentRepository(session)
                    record = await repo.get_by_id(appointment_id)
                    if record is None or record.patient_id != patient_id:
                        raise NotFound("appointment", appointment_id)
                    await repo.update_status(record.id, CANCELLED)
        except SQLAlchemyError as e:
            logger.error(f"Cancelling {appointment_id} failed: {e}")
            raise StoreUnavailable("Could not cancel the appointment") from e

        appointment = Appointment.from_record(record)
        get_observability_logger().log_booking(
            EventType.BOOKING_CANCELLED,
            doctor_id=appointment.doctor_id,
            date_iso=appointment.date_iso,
            start=appointment.start,
            appointment_id=appointment.id,
        )
        return appointment
