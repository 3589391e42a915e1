"""Tests for the clinic and doctor directory endpoints."""

import httpx
import pytest

from clinic_assistant.api.app import create_app
from clinic_assistant.core.repository import ClinicRepository, DoctorRepository


@pytest.fixture
def app(seeded):
    app = create_app()
    app.state.session_factory = seeded
    return app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def closed_clinic(seeded):
    async with seeded() as session, session.begin():
        await ClinicRepository(session).create(
            id="clinic-kapali", name="Kapalı Klinik", is_active=False
        )
        await DoctorRepository(session).create(
            id="doc-kapali", clinic_id="clinic-kapali", full_name="Dr. Eski", specialization="Dahiliye"
        )
    return "clinic-kapali"


class TestListClinics:
    @pytest.mark.asyncio
    async def test_active_clinics_by_name(self, client):
        response = await client.get("/api/v1/clinics")

        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == ["clinic-anadolu", "clinic-ege"]
        assert response.json()[0]["specialties"] == []

    @pytest.mark.asyncio
    async def test_inactive_clinic_hidden(self, client, closed_clinic):
        response = await client.get("/api/v1/clinics")

        assert closed_clinic not in [c["id"] for c in response.json()]


class TestClinicDoctors:
    @pytest.mark.asyncio
    async def test_doctors_of_clinic(self, client):
        response = await client.get("/api/v1/clinics/clinic-ege/doctors")

        assert response.status_code == 200
        doctors = response.json()
        assert {d["id"] for d in doctors} == {"doc-neuro-1", "doc-cardio"}
        assert all(d["clinicId"] == "clinic-ege" for d in doctors)
        assert "fullName" in doctors[0]

    @pytest.mark.asyncio
    async def test_unknown_clinic(self, client):
        response = await client.get("/api/v1/clinics/clinic-yok/doctors")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_inactive_clinic_not_found(self, client, closed_clinic):
        response = await client.get(f"/api/v1/clinics/{closed_clinic}/doctors")

        assert response.status_code == 404
