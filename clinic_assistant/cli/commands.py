"""CLI commands for the clinic assistant."""

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_assistant.config import get_settings
from clinic_assistant.core.database import create_engine_for_url, get_database_url, init_db
from clinic_assistant.core.seed import DEMO_PATIENT_ID
from clinic_assistant.errors import ClinicAssistantError

app = typer.Typer(
    name="clinic-assistant",
    help="Intent-driven clinic chat, slot availability and booking",
    add_completion=False,
)
console = Console()


@asynccontextmanager
async def open_store():
    """Engine and session factory scoped to one command run."""
    engine = create_engine_for_url(get_database_url())
    try:
        await init_db(engine)
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@app.command("init-db")
def init_db_command(
    seed: bool = typer.Option(False, "--seed", help="Load sample clinics, doctors and a demo patient"),
):
    """Create the record store tables."""
    from clinic_assistant.core.seed import seed_sample_data

    async def _run():
        async with open_store() as session_factory:
            if not seed:
                return None
            async with session_factory() as session:
                return await seed_sample_data(session)

    counts = asyncio.run(_run())
    console.print(f"[green]Record store ready at {get_database_url()}[/green]")

    if counts is not None:
        table = Table(title="Seeded Records")
        table.add_column("Table")
        table.add_column("Inserted", justify="right")
        for name, count in counts.items():
            table.add_row(name, str(count))
        console.print(table)


@app.command()
def chat(
    text: str = typer.Argument(..., help="Message to send to the assistant"),
    patient: Optional[str] = typer.Option(None, "--patient", "-p", help="Patient id to act as"),
    output_json: bool = typer.Option(False, "--json", help="Output the reply envelope as JSON"),
):
    """Send one chat message and show the reply."""
    from clinic_assistant.main import ask

    if not text.strip():
        console.print("[red]Message cannot be empty[/red]")
        raise typer.Exit(1)

    reply = asyncio.run(ask(text, patient_id=patient))

    if output_json:
        console.print(reply.model_dump_json(indent=2))
        return

    console.print(Panel(reply.text, title=f"Asistan ({reply.type.value})"))

    if reply.data:
        table = Table()
        columns = list(reply.data[0].keys())
        for column in columns:
            table.add_column(column)
        for item in reply.data:
            table.add_row(*("" if item.get(c) is None else str(item.get(c)) for c in columns))
        console.print(table)

    for option in reply.options:
        console.print(f"  [cyan]›[/cyan] {option.label} [dim]({option.action})[/dim]")


@app.command()
def doctors(
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Filter by specialization"),
    clinic_id: Optional[str] = typer.Option(None, "--clinic", "-c", help="Filter by clinic id"),
):
    """List doctors, optionally for one specialization or one clinic."""
    from sqlalchemy import select

    from clinic_assistant.core.models import Doctor
    from clinic_assistant.core.repository import DoctorRepository

    async def _run():
        async with open_store() as session_factory:
            async with session_factory() as session:
                repo = DoctorRepository(session)
                if clinic_id:
                    records = await repo.list_by_clinic(clinic_id)
                    if branch:
                        records = [d for d in records if d.specialization == branch]
                    return records
                if branch:
                    return await repo.list_by_specialization(branch, limit=100)
                result = await session.execute(select(Doctor))
                return result.scalars().all()

    records = asyncio.run(_run())
    if not records:
        console.print("[yellow]No doctors found.[/yellow]")
        return

    table = Table(title="Doctors")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Specialization")
    table.add_column("Experience")
    for doctor in records:
        table.add_row(doctor.id, doctor.full_name, doctor.specialization, doctor.experience or "-")
    console.print(table)


@app.command()
def clinics():
    """List active clinics."""
    from clinic_assistant.core.repository import ClinicRepository

    async def _run():
        async with open_store() as session_factory:
            async with session_factory() as session:
                return await ClinicRepository(session).list_active()

    records = asyncio.run(_run())
    if not records:
        console.print("[yellow]No active clinics.[/yellow]")
        return

    table = Table(title="Clinics")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Phone")
    table.add_column("Specialties")
    for clinic in sorted(records, key=lambda c: c.name):
        table.add_row(clinic.id, clinic.name, clinic.phone or "-", ", ".join(clinic.specialties or []) or "-")
    console.print(table)


@app.command()
def slots(
    doctor_id: str = typer.Argument(..., help="Doctor id"),
    date: str = typer.Argument(..., help="Day to check, YYYY-MM-DD"),
    type_id: Optional[str] = typer.Option(None, "--type", "-t", help="Appointment type id"),
    duration: Optional[int] = typer.Option(None, "--duration", "-d", help="Duration in minutes"),
):
    """Show slot availability for a doctor on one day."""
    from clinic_assistant.scheduling import AvailabilityService, SlotStatus

    if type_id is None and duration is None:
        console.print("[red]Pass --type or --duration[/red]")
        raise typer.Exit(1)

    async def _run():
        async with open_store() as session_factory:
            service = AvailabilityService(session_factory)
            return await service.get_availability(
                doctor_id, date, type_id=type_id, duration_minutes=duration
            )

    try:
        states = asyncio.run(_run())
    except ClinicAssistantError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Availability {date}")
    table.add_column("Time")
    table.add_column("Status")
    for state in states:
        color = "green" if state.status == SlotStatus.AVAILABLE else "red"
        table.add_row(state.time, f"[{color}]{state.status.value}[/{color}]")
    console.print(table)


@app.command()
def book(
    doctor_id: str = typer.Argument(..., help="Doctor id"),
    date: str = typer.Argument(..., help="Day, YYYY-MM-DD"),
    start: str = typer.Argument(..., help="Start slot, HH:MM"),
    type_id: str = typer.Option("muayene", "--type", "-t", help="Appointment type id"),
    patient: str = typer.Option(DEMO_PATIENT_ID, "--patient", "-p", help="Patient id"),
    output_json: bool = typer.Option(False, "--json", help="Output the appointment as JSON"),
):
    """Book an appointment."""
    from clinic_assistant.core.repository import AppointmentTypeRepository, DoctorRepository
    from clinic_assistant.errors import NotFound
    from clinic_assistant.scheduling import BookingService

    async def _run():
        async with open_store() as session_factory:
            async with session_factory() as session:
                doctor = await DoctorRepository(session).get_by_id(doctor_id)
                appt_type = await AppointmentTypeRepository(session).get_by_id(type_id)
            if doctor is None:
                raise NotFound("doctor", doctor_id)
            if appt_type is None:
                raise NotFound("appointment type", type_id)

            request = {
                "doctorId": doctor.id,
                "clinicId": doctor.clinic_id,
                "dateISO": date,
                "start": start,
                "typeId": appt_type.id,
                "typeName": appt_type.name,
                "durationMinutes": appt_type.duration_minutes,
            }
            return await BookingService(session_factory).book(request, patient)

    try:
        appointment = asyncio.run(_run())
    except ClinicAssistantError as e:
        console.print(f"[red]Booking failed: {e}[/red]")
        raise typer.Exit(1)

    if output_json:
        console.print(appointment.model_dump_json(by_alias=True, indent=2))
        return

    console.print(
        f"[green]Booked {appointment.type_name} on {appointment.date_iso} at "
        f"{appointment.start} (id: {appointment.id}, status: {appointment.status.value})[/green]"
    )


@app.command()
def cancel(
    appointment_id: str = typer.Argument(..., help="Appointment id"),
    patient: str = typer.Option(DEMO_PATIENT_ID, "--patient", "-p", help="Patient id"),
):
    """Cancel an appointment and release its slots."""
    from clinic_assistant.scheduling import BookingService

    async def _run():
        async with open_store() as session_factory:
            return await BookingService(session_factory).cancel(appointment_id, patient)

    try:
        appointment = asyncio.run(_run())
    except ClinicAssistantError as e:
        console.print(f"[red]Cancel failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Cancelled {appointment.id} ({appointment.date_iso} {appointment.start})[/green]")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
):
    """Start the REST API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print(f"Starting clinic assistant API server on {host}:{port}")
    uvicorn.run(
        "clinic_assistant.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def stats(
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show telemetry statistics from the observability logs."""
    from clinic_assistant.observability import get_observability_logger

    obs = get_observability_logger()
    summary = {log_type: obs.get_stats(log_type) for log_type in ("llm", "conversations", "bookings")}

    if output_json:
        console.print(json.dumps(summary, indent=2))
        return

    if not any(s["total"] for s in summary.values()):
        console.print("[yellow]No telemetry found. Send some chat messages first.[/yellow]")
        return

    table = Table(title="Telemetry")
    table.add_column("Log")
    table.add_column("Events", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Error Rate", justify="right")
    table.add_column("Avg Duration", justify="right")
    for log_type, s in summary.items():
        if not s["total"]:
            table.add_row(log_type, "0", "-", "-", "-")
            continue
        table.add_row(
            log_type,
            str(s["total"]),
            str(s["errors"]),
            f"{s['error_rate']:.0%}",
            f"{s['avg_duration_ms']:.0f}ms",
        )
    console.print(table)


@app.command()
def version():
    """Show version information."""
    from clinic_assistant import __version__

    console.print(f"clinic-assistant v{__version__}")


if __name__ == "__main__":
    app()
