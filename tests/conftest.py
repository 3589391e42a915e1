"""Pytest configuration and fixtures."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_assistant.core.database import create_engine_for_url, init_db
from clinic_assistant.core.repository import (
    AppointmentTypeRepository,
    ClinicRepository,
    DoctorRepository,
    PatientRepository,
)
from clinic_assistant.core.seed import DEMO_PATIENT, SAMPLE_APPOINTMENT_TYPES
from clinic_assistant.llm import LLMResponse, LLMRouter
from clinic_assistant.observability import ObservabilityLogger

CLINIC_TZ = ZoneInfo("Europe/Istanbul")


# ---------------------------------------------------------------------------
# Observability: every test writes telemetry into its own directory
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def observability(tmp_path):
    """Route observability events to a per-test log directory."""
    obs = ObservabilityLogger(log_dir=tmp_path / "logs")
    ObservabilityLogger.set_instance(obs)
    yield obs
    ObservabilityLogger.set_instance(None)


# ---------------------------------------------------------------------------
# Record store
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite engine with the schema created."""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'clinic.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def seeded(session_factory):
    """Two clinics, a handful of doctors, the appointment types and the demo patient.

    Ids are fixed so tests can refer to them directly.
    """
    async with session_factory() as session:
        clinics = ClinicRepository(session)
        await clinics.create(id="clinic-ege", name="Ege Life Tıp Merkezi")
        await clinics.create(id="clinic-anadolu", name="Anadolu Şifa Polikliniği")

        doctors = DoctorRepository(session)
        await doctors.create(
            id="doc-neuro-1", clinic_id="clinic-ege", full_name="Dr. Ali Vural",
            specialization="Nöroloji", experience="12 Yıl",
        )
        await doctors.create(
            id="doc-neuro-2", clinic_id="clinic-anadolu", full_name="Uzm. Dr. Selin Ak",
            specialization="Nöroloji", experience="6 Yıl",
        )
        await doctors.create(
            id="doc-cardio", clinic_id="clinic-ege", full_name="Prof. Dr. Mehmet Öz",
            specialization="Kardiyoloji", experience="20 Yıl",
        )
        await doctors.create(
            id="doc-ortho", clinic_id=None, full_name="Uzm. Dr. Kemal Taş",
            specialization="Ortopedi", experience="10 Yıl",
        )

        types = AppointmentTypeRepository(session)
        for data in SAMPLE_APPOINTMENT_TYPES:
            await types.create(**data)

        await PatientRepository(session).create(**DEMO_PATIENT)
        await session.commit()

    return session_factory


@pytest.fixture
def fixed_now():
    """10:15 clinic time on 2026-03-10."""
    return datetime(2026, 3, 10, 10, 15, tzinfo=CLINIC_TZ)


@pytest.fixture
def now_provider(fixed_now):
    return lambda: fixed_now


# ---------------------------------------------------------------------------
# LLM mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm_response():
    """Create a mock LLM response."""
    return LLMResponse(
        content='{"intent": "CHAT", "branch": null, "reply": "Merhaba!"}',
        model="test-model",
        input_tokens=100,
        output_tokens=50,
    )


@pytest.fixture
def mock_llm():
    """Create a mock LLM."""
    llm = MagicMock()
    llm.complete = AsyncMock()
    llm.health_check = AsyncMock(return_value=True)
    llm.model_name = "mock-model"
    llm.provider = "mock"
    return llm


@pytest.fixture
def mock_llm_router(mock_llm, mock_llm_response):
    """Create a mock LLM router."""
    router = MagicMock(spec=LLMRouter)
    router.complete = mock_llm.complete
    router.complete.return_value = mock_llm_response
    router.health_check = AsyncMock(return_value={"primary": True})
    return router
