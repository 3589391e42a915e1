"""SQLAlchemy 2.0 async models for the clinic record store."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class Clinic(Base):
    __tablename__ = "clinics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    address: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(String(20))
    email: Mapped[str | None] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    specialties: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Doctor(Base):
    __tablename__ = "doctors"
    __table_args__ = (Index("ix_doctors_specialization", "specialization"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    clinic_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("clinics.id", ondelete="SET NULL")
    )
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    specialization: Mapped[str] = mapped_column(String(100), nullable=False)
    experience: Mapped[str | None] = mapped_column(String(50))
    education: Mapped[str | None] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Patient(Base):
    """Patient profile; medications and the active treatment plan live on it."""

    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    phone: Mapped[str | None] = mapped_column(String(20))
    # [{"name": ..., "dosage": ...}]
    medications: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    # {"name": ..., "treatmentSequence": [{"order", "treatment", "dosage", "description", "phase"}]}
    treatment_plan: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class AppointmentTypeDB(Base):
    __tablename__ = "appointment_types"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)


class AppointmentDB(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_doctor_day", "doctor_id", "date_iso"),
        Index("ix_appointments_patient", "patient_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    doctor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    clinic_id: Mapped[str | None] = mapped_column(String(36))
    patient_id: Mapped[str] = mapped_column(String(36), nullable=False)
    date_iso: Mapped[str] = mapped_column(String(10), nullable=False)
    start: Mapped[str] = mapped_column(String(5), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    type_id: Mapped[str | None] = mapped_column(String(36))
    type_name: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(String(20), default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class AppointmentSlotClaim(Base):
    """One row per grid slot an appointment occupies.

    The unique constraint makes the store reject overlapping bookings for the
    same doctor and day, even across processes.
    """

    __tablename__ = "appointment_slot_claims"
    __table_args__ = (
        UniqueConstraint("doctor_id", "date_iso", "slot", name="uq_slot_claim_doctor_day_slot"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    appointment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False
    )
    doctor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    date_iso: Mapped[str] = mapped_column(String(10), nullable=False)
    slot: Mapped[str] = mapped_column(String(5), nullable=False)
