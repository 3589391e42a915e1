"""Tests for the record store repositories and sample data."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from clinic_assistant.core.models import AppointmentSlotClaim, Doctor
from clinic_assistant.core.repository import (
    AppointmentRepository,
    ClinicRepository,
    DoctorRepository,
    PatientRepository,
)
from clinic_assistant.core.seed import DEMO_PATIENT_ID, SAMPLE_DOCTORS, seed_sample_data


class TestDoctorRepository:
    @pytest.mark.asyncio
    async def test_get_by_id(self, seeded):
        async with seeded() as session:
            doctor = await DoctorRepository(session).get_by_id("doc-cardio")
        assert doctor.full_name == "Prof. Dr. Mehmet Öz"

    @pytest.mark.asyncio
    async def test_list_by_specialization_is_exact_match(self, seeded):
        async with seeded() as session:
            repo = DoctorRepository(session)
            neuro = await repo.list_by_specialization("Nöroloji")
            lower = await repo.list_by_specialization("nöroloji")
        assert {d.id for d in neuro} == {"doc-neuro-1", "doc-neuro-2"}
        assert lower == []

    @pytest.mark.asyncio
    async def test_list_by_specialization_limit(self, seeded):
        async with seeded() as session:
            doctors = await DoctorRepository(session).list_by_specialization("Nöroloji", limit=1)
        assert len(doctors) == 1

    @pytest.mark.asyncio
    async def test_list_by_clinic(self, seeded):
        async with seeded() as session:
            doctors = await DoctorRepository(session).list_by_clinic("clinic-ege")
        assert {d.id for d in doctors} == {"doc-neuro-1", "doc-cardio"}


class TestClinicAndPatient:
    @pytest.mark.asyncio
    async def test_missing_clinic(self, seeded):
        async with seeded() as session:
            assert await ClinicRepository(session).get_by_id("nope") is None

    @pytest.mark.asyncio
    async def test_active_clinics(self, seeded):
        async with seeded() as session:
            clinics = await ClinicRepository(session).list_active()
        assert len(clinics) == 2

    @pytest.mark.asyncio
    async def test_patient_json_fields(self, seeded):
        async with seeded() as session:
            patient = await PatientRepository(session).get_by_id(DEMO_PATIENT_ID)
        assert patient.medications[0]["name"] == "PROLOTEPARİ Seans 3"
        assert len(patient.treatment_plan["treatmentSequence"]) == 3


class TestAppointmentRepository:
    async def _create(self, session, **overrides):
        data = dict(
            doctor_id="doc-neuro-1",
            clinic_id="clinic-ege",
            patient_id=DEMO_PATIENT_ID,
            date_iso="2026-03-11",
            start="10:00",
            duration_minutes=30,
        )
        data.update(overrides)
        return await AppointmentRepository(session).create(**data)

    @pytest.mark.asyncio
    async def test_day_listing_skips_cancelled(self, seeded):
        async with seeded() as session:
            await self._create(session, start="09:00")
            await self._create(session, start="10:00", status="cancelled")
            await self._create(session, start="11:00", date_iso="2026-03-12")
            await session.commit()

            repo = AppointmentRepository(session)
            active = await repo.list_for_doctor_day("doc-neuro-1", "2026-03-11")
            everything = await repo.list_for_doctor_day(
                "doc-neuro-1", "2026-03-11", include_cancelled=True
            )

        assert [a.start for a in active] == ["09:00"]
        assert sorted(a.start for a in everything) == ["09:00", "10:00"]

    @pytest.mark.asyncio
    async def test_list_by_patient(self, seeded):
        async with seeded() as session:
            await self._create(session)
            await self._create(session, patient_id="someone-else", start="11:00")
            await session.commit()
            mine = await AppointmentRepository(session).list_by_patient(DEMO_PATIENT_ID)
        assert len(mine) == 1

    @pytest.mark.asyncio
    async def test_update_status(self, seeded):
        async with seeded() as session:
            appt = await self._create(session)
            updated = await AppointmentRepository(session).update_status(appt.id, "confirmed")
            missing = await AppointmentRepository(session).update_status("nope", "confirmed")
        assert updated.status == "confirmed"
        assert missing is None

    @pytest.mark.asyncio
    async def test_cancelled_status_releases_claims(self, seeded):
        async with seeded() as session:
            repo = AppointmentRepository(session)
            appt = await self._create(session)
            await repo.claim_slots(appt.id, "doc-neuro-1", "2026-03-11", ["10:00", "10:30"])

            await repo.update_status(appt.id, "confirmed")
            kept = await session.execute(select(func.count()).select_from(AppointmentSlotClaim))
            assert kept.scalar_one() == 2

            await repo.update_status(appt.id, "cancelled")
            left = await session.execute(select(func.count()).select_from(AppointmentSlotClaim))
        assert left.scalar_one() == 0

    @pytest.mark.asyncio
    async def test_claim_same_slot_twice_violates_unique(self, seeded):
        async with seeded() as session:
            repo = AppointmentRepository(session)
            first = await self._create(session)
            second = await self._create(session)
            await repo.claim_slots(first.id, "doc-neuro-1", "2026-03-11", ["10:00", "10:30"])

            with pytest.raises(IntegrityError):
                await repo.claim_slots(second.id, "doc-neuro-1", "2026-03-11", ["10:30"])

    @pytest.mark.asyncio
    async def test_release_slots(self, seeded):
        async with seeded() as session:
            repo = AppointmentRepository(session)
            appt = await self._create(session)
            await repo.claim_slots(appt.id, "doc-neuro-1", "2026-03-11", ["10:00"])
            await repo.release_slots(appt.id)
            result = await session.execute(select(func.count()).select_from(AppointmentSlotClaim))
        assert result.scalar_one() == 0


class TestSeed:
    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, session_factory):
        async with session_factory() as session:
            first = await seed_sample_data(session)
        async with session_factory() as session:
            second = await seed_sample_data(session)
            result = await session.execute(select(func.count()).select_from(Doctor))

        assert first["doctors"] == sum(len(v) for v in SAMPLE_DOCTORS.values())
        assert first["patients"] == 1
        assert second["doctors"] == 0
        assert result.scalar_one() == first["doctors"]
