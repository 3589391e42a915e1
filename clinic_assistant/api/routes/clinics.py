"""Clinic and doctor directory endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_assistant.api.dependencies import get_session_factory
from clinic_assistant.core.repository import ClinicRepository, DoctorRepository
from clinic_assistant.errors import NotFound, StoreUnavailable
from clinic_assistant.scheduling import ClinicInfo, DoctorInfo

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/clinics", response_model=list[ClinicInfo])
async def list_clinics(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> list[ClinicInfo]:
    """Active clinics, by name."""
    try:
        async with session_factory() as session:
            records = await ClinicRepository(session).list_active()
    except SQLAlchemyError as e:
        logger.error(f"Could not list clinics: {e}")
        raise StoreUnavailable("Could not read clinics") from e

    return [
        ClinicInfo(
            id=c.id,
            name=c.name,
            address=c.address,
            phone=c.phone,
            specialties=c.specialties or [],
        )
        for c in sorted(records, key=lambda c: c.name)
    ]


@router.get("/clinics/{clinic_id}/doctors", response_model=list[DoctorInfo])
async def list_clinic_doctors(
    clinic_id: str,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> list[DoctorInfo]:
    """Doctors working at one active clinic."""
    try:
        async with session_factory() as session:
            clinic = await ClinicRepository(session).get_by_id(clinic_id)
            if clinic is None or not clinic.is_active:
                raise NotFound("Clinic", clinic_id)
            records = await DoctorRepository(session).list_by_clinic(clinic_id)
    except SQLAlchemyError as e:
        logger.error(f"Could not list doctors of clinic {clinic_id}: {e}")
        raise StoreUnavailable("Could not read doctors") from e

    return [
        DoctorInfo(
            id=d.id,
            clinic_id=d.clinic_id,
            full_name=d.full_name,
            specialization=d.specialization,
            experience=d.experience,
        )
        for d in sorted(records, key=lambda d: d.full_name)
    ]
