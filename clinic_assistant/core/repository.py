"""Repositories over the clinic record store.

Queries use equality filters only. Callers that need an ordering sort the
results themselves.
"""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_assistant.core.models import (
    AppointmentDB,
    AppointmentSlotClaim,
    AppointmentTypeDB,
    Clinic,
    Doctor,
    Patient,
)

CANCELLED = "cancelled"


class ClinicRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Clinic:
        clinic = Clinic(**kwargs)
        self.session.add(clinic)
        await self.session.flush()
        return clinic

    async def get_by_id(self, clinic_id: str) -> Optional[Clinic]:
        return await self.session.get(Clinic, clinic_id)

    async def list_active(self) -> Sequence[Clinic]:
        result = await self.session.execute(select(Clinic).where(Clinic.is_active.is_(True)))
        return result.scalars().all()


class DoctorRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Doctor:
        doctor = Doctor(**kwargs)
        self.session.add(doctor)
        await self.session.flush()
        return doctor

    async def get_by_id(self, doctor_id: str) -> Optional[Doctor]:
        return await self.session.get(Doctor, doctor_id)

    async def list_by_specialization(self, specialization: str, limit: int = 10) -> Sequence[Doctor]:
        stmt = select(Doctor).where(Doctor.specialization == specialization).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_by_clinic(self, clinic_id: str) -> Sequence[Doctor]:
        result = await self.session.execute(select(Doctor).where(Doctor.clinic_id == clinic_id))
        return result.scalars().all()


class PatientRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Patient:
        patient = Patient(**kwargs)
        self.session.add(patient)
        await self.session.flush()
        return patient

    async def get_by_id(self, patient_id: str) -> Optional[Patient]:
        return await self.session.get(Patient, patient_id)


class AppointmentTypeRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> AppointmentTypeDB:
        appt_type = AppointmentTypeDB(**kwargs)
        self.session.add(appt_type)
        await self.session.flush()
        return appt_type

    async def get_by_id(self, type_id: str) -> Optional[AppointmentTypeDB]:
        return await self.session.get(AppointmentTypeDB, type_id)

    async def list_all(self) -> Sequence[AppointmentTypeDB]:
        result = await self.session.execute(select(AppointmentTypeDB))
        return result.scalars().all()


class AppointmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> AppointmentDB:
        appt = AppointmentDB(**kwargs)
        self.session.add(appt)
        await self.session.flush()
        return appt

    async def get_by_id(self, appointment_id: str) -> Optional[AppointmentDB]:
        return await self.session.get(AppointmentDB, appointment_id)

    async def list_for_doctor_day(
        self, doctor_id: str, date_iso: str, include_cancelled: bool = False
    ) -> Sequence[AppointmentDB]:
        stmt = select(AppointmentDB).where(
            AppointmentDB.doctor_id == doctor_id,
            AppointmentDB.date_iso == date_iso,
        )
        if not include_cancelled:
            stmt = stmt.where(AppointmentDB.status != CANCELLED)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_by_patient(self, patient_id: str) -> Sequence[AppointmentDB]:
        result = await self.session.execute(
            select(AppointmentDB).where(AppointmentDB.patient_id == patient_id)
        )
        return result.scalars().all()

    async def update_status(self, appointment_id: str, status: str) -> Optional[AppointmentDB]:
        """Set the status; moving to cancelled also frees the slot claims."""
        appt = await self.get_by_id(appointment_id)
        if appt is None:
            return None
        if status == CANCELLED and appt.status != CANCELLED:
            await self.release_slots(appt.id)
        appt.status = status
        await self.session.flush()
        return appt

    async def claim_slots(
        self, appointment_id: str, doctor_id: str, date_iso: str, slots: list[str]
    ) -> None:
        """Insert one claim per slot; raises IntegrityError if any is taken."""
        self.session.add_all(
            AppointmentSlotClaim(
                appointment_id=appointment_id,
                doctor_id=doctor_id,
                date_iso=date_iso,
                slot=slot,
            )
            for slot in slots
        )
        await self.session.flush()

    async def release_slots(self, appointment_id: str) -> None:
        await self.session.execute(
            delete(AppointmentSlotClaim).where(AppointmentSlotClaim.appointment_id == appointment_id)
        )
        await self.session.flush()
