"""Appointment types, slot availability and booking endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_assistant.api.dependencies import (
    get_availability_service,
    get_booking_service,
    get_session_factory,
    require_patient_id,
)
from clinic_assistant.core.repository import AppointmentTypeRepository
from clinic_assistant.errors import StoreUnavailable
from clinic_assistant.scheduling import (
    Appointment,
    AppointmentType,
    AvailabilityService,
    BookingRequest,
    BookingService,
    SlotState,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/appointment-types", response_model=list[AppointmentType])
async def list_appointment_types(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> list[AppointmentType]:
    try:
        async with session_factory() as session:
            records = await AppointmentTypeRepository(session).list_all()
    except SQLAlchemyError as e:
        logger.error(f"Could not list appointment types: {e}")
        raise StoreUnavailable("Could not read appointment types") from e

    return [
        AppointmentType(id=r.id, name=r.name, duration_minutes=r.duration_minutes)
        for r in sorted(records, key=lambda r: r.duration_minutes)
    ]


@router.get("/doctors/{doctor_id}/availability", response_model=list[SlotState])
async def get_availability(
    doctor_id: str,
    date: str = Query(..., description="Day to check, YYYY-MM-DD"),
    type_id: Optional[str] = Query(None, description="Appointment type id"),
    duration_minutes: Optional[int] = Query(None, gt=0, description="Explicit duration"),
    availability: AvailabilityService = Depends(get_availability_service),
) -> list[SlotState]:
    """Status of every grid slot for a new booking of the given length."""
    return await availability.get_availability(
        doctor_id, date, type_id=type_id, duration_minutes=duration_minutes
    )


@router.post("/appointments", response_model=Appointment, status_code=201)
async def book_appointment(
    body: BookingRequest,
    patient_id: str = Depends(require_patient_id),
    booking: BookingService = Depends(get_booking_service),
) -> Appointment:
    return await booking.book(body, patient_id)


@router.post("/appointments/{appointment_id}/cancel", response_model=Appointment)
async def cancel_appointment(
    appointment_id: str,
    patient_id: str = Depends(require_patient_id),
    booking: BookingService = Depends(get_booking_service),
) -> Appointment:
    return await booking.cancel(appointment_id, patient_id)
