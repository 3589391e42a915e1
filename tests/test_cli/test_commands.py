"""Tests for CLI commands."""

import asyncio
import re

import pytest
from unittest.mock import MagicMock
from sqlalchemy.ext.asyncio import AsyncSession
from typer.testing import CliRunner

from clinic_assistant import __version__
from clinic_assistant.cli.commands import app
from clinic_assistant.config import get_settings
from clinic_assistant.core.database import create_engine_for_url
from clinic_assistant.core.repository import DoctorRepository

runner = CliRunner(env={"COLUMNS": "200"})

FUTURE_DAY = "2099-01-05"


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    """Point the CLI at a fresh SQLite file."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


@pytest.fixture
def seeded_db(database_url):
    result = runner.invoke(app, ["init-db", "--seed"])
    assert result.exit_code == 0, result.output

    async def add_doctor():
        engine = create_engine_for_url(database_url)
        try:
            async with AsyncSession(engine) as session:
                await DoctorRepository(session).create(
                    id="doc-cli",
                    full_name="Dr. Deneme",
                    specialization="Dahiliye",
                )
                await session.commit()
        finally:
            await engine.dispose()

    asyncio.run(add_doctor())
    return database_url


class TestBasicCommands:
    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert f"clinic-assistant v{__version__}" in result.output

    def test_init_db_seed(self, database_url):
        result = runner.invoke(app, ["init-db", "--seed"])

        assert result.exit_code == 0
        assert "Record store ready" in result.output
        assert "Seeded Records" in result.output

    def test_init_db_without_seed(self, database_url):
        result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 0
        assert "Seeded Records" not in result.output

    def test_serve_uses_app_factory(self, monkeypatch):
        import uvicorn

        run = MagicMock()
        monkeypatch.setattr(uvicorn, "run", run)

        result = runner.invoke(app, ["serve", "--port", "9100"])

        assert result.exit_code == 0
        run.assert_called_once()
        assert run.call_args.args[0] == "clinic_assistant.api.app:create_app"
        assert run.call_args.kwargs["port"] == 9100
        assert run.call_args.kwargs["factory"] is True


class TestLookupCommands:
    def test_doctors_by_branch(self, seeded_db):
        result = runner.invoke(app, ["doctors", "--branch", "Nöroloji"])

        assert result.exit_code == 0
        assert "Vural" in result.output

    def test_doctors_none_found(self, seeded_db):
        result = runner.invoke(app, ["doctors", "--branch", "Üroloji"])

        assert result.exit_code == 0
        assert "No doctors found" in result.output

    def test_doctors_unknown_clinic(self, seeded_db):
        result = runner.invoke(app, ["doctors", "--clinic", "clinic-yok"])

        assert result.exit_code == 0
        assert "No doctors found" in result.output

    def test_clinics(self, seeded_db):
        result = runner.invoke(app, ["clinics"])

        assert result.exit_code == 0
        assert "Ege Life Tıp Merkezi" in result.output
        assert "Boğaziçi Sağlık Grubu" in result.output

    def test_slots(self, seeded_db):
        result = runner.invoke(app, ["slots", "doc-cli", FUTURE_DAY, "--type", "tedavi-seansi"])

        assert result.exit_code == 0
        assert "09:00" in result.output
        assert "available" in result.output
        assert "unavailable" in result.output

    def test_slots_needs_type_or_duration(self, seeded_db):
        result = runner.invoke(app, ["slots", "doc-cli", FUTURE_DAY])
        assert result.exit_code == 1

    def test_slots_bad_date(self, seeded_db):
        result = runner.invoke(app, ["slots", "doc-cli", "05.01.2099", "--duration", "30"])
        assert result.exit_code == 1


class TestChatCommand:
    def test_symptom_message(self, seeded_db):
        result = runner.invoke(app, ["chat", "Başım ağrıyor"])

        assert result.exit_code == 0
        assert "Nöroloji" in result.output
        assert "DOCTOR_LIST" in result.output

    def test_personal_data_needs_patient(self, seeded_db):
        result = runner.invoke(app, ["chat", "İlaçlarım neler"])

        assert result.exit_code == 0
        assert "giriş yapın" in result.output

    def test_json_output(self, seeded_db):
        result = runner.invoke(app, ["chat", "İlaçlarım neler", "--patient", "demo-patient", "--json"])

        assert result.exit_code == 0
        assert '"MEDICATION_LIST"' in result.output

    def test_empty_message(self):
        result = runner.invoke(app, ["chat", "   "])
        assert result.exit_code == 1


class TestBookingCommands:
    def test_book_and_cancel(self, seeded_db):
        booked = runner.invoke(app, ["book", "doc-cli", FUTURE_DAY, "10:00", "--json"])
        assert booked.exit_code == 0, booked.output
        appointment_id = re.search(r'"id": "([0-9a-f-]{36})"', booked.output).group(1)
        assert '"clinicId": null' in booked.output

        clash = runner.invoke(app, ["book", "doc-cli", FUTURE_DAY, "10:00", "--patient", "p-2"])
        assert clash.exit_code == 1
        assert "Booking failed" in clash.output

        cancelled = runner.invoke(app, ["cancel", appointment_id])
        assert cancelled.exit_code == 0
        assert "Cancelled" in cancelled.output

        rebooked = runner.invoke(app, ["book", "doc-cli", FUTURE_DAY, "10:00", "--patient", "p-2"])
        assert rebooked.exit_code == 0
        assert "Booked Muayene" in rebooked.output

    def test_book_unknown_doctor(self, seeded_db):
        result = runner.invoke(app, ["book", "nobody", FUTURE_DAY, "10:00"])

        assert result.exit_code == 1
        assert "doctor not found" in result.output

    def test_cancel_unknown(self, seeded_db):
        result = runner.invoke(app, ["cancel", "missing"])
        assert result.exit_code == 1


class TestStatsCommand:
    def test_no_telemetry(self):
        result = runner.invoke(app, ["stats"])

        assert result.exit_code == 0
        assert "No telemetry found" in result.output

    def test_after_activity(self, seeded_db):
        runner.invoke(app, ["chat", "Merhaba"])
        runner.invoke(app, ["book", "doc-cli", FUTURE_DAY, "11:00"])

        result = runner.invoke(app, ["stats", "--json"])

        assert result.exit_code == 0
        assert '"conversations"' in result.output
        assert '"bookings"' in result.output
