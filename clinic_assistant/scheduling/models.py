"""Pydantic models for slot availability and booking."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AppointmentStatus(str, Enum):
    """Appointment lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class _CamelModel(BaseModel):
    """Serialises with the camelCase keys the mobile client expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AppointmentType(_CamelModel):
    """Reference data; the duration decides how many grid slots a booking uses."""

    id: str
    name: str
    duration_minutes: int = Field(gt=0)


class SlotState(BaseModel):
    """Computed status of one grid slot for a given request. Never stored."""

    time: str
    status: SlotStatus


class Appointment(_CamelModel):
    """A booked appointment as returned to clients."""

    id: str
    doctor_id: str
    clinic_id: Optional[str] = None
    patient_id: str
    date_iso: str = Field(alias="dateISO")
    start: str
    duration_minutes: int
    type_id: Optional[str] = None
    type_name: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_record(cls, record) -> "Appointment":
        """Build from an ``AppointmentDB`` row."""
        try:
            status = AppointmentStatus(record.status)
        except ValueError:
            status = AppointmentStatus.PENDING
        return cls(
            id=record.id,
            doctor_id=record.doctor_id,
            clinic_id=record.clinic_id,
            patient_id=record.patient_id,
            date_iso=record.date_iso,
            start=record.start,
            duration_minutes=record.duration_minutes,
            type_id=record.type_id,
            type_name=record.type_name,
            status=status,
            created_at=record.created_at or datetime.now(timezone.utc),
        )


class BookingRequest(_CamelModel):
    """Request to book one appointment.

    The patient is not part of the body; it is the authenticated identity
    passed alongside the request.
    """

    doctor_id: str = Field(min_length=1)
    clinic_id: Optional[str] = None
    date_iso: str = Field(alias="dateISO", pattern=r"^\d{4}-\d{2}-\d{2}$")
    start: str = Field(pattern=r"^\d{2}:\d{2}$")
    type_id: str = Field(min_length=1)
    type_name: str = Field(min_length=1)
    duration_minutes: int = Field(gt=0, le=480)

    @field_validator("date_iso")
    @classmethod
    def _real_calendar_date(cls, value: str) -> str:
        date.fromisoformat(value)
        return value

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date_iso)


class ClinicInfo(_CamelModel):
    """An active clinic as listed to clients."""

    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    specialties: list[str] = Field(default_factory=list)


class DoctorInfo(_CamelModel):
    id: str
    clinic_id: Optional[str] = None
    full_name: str
    specialization: str
    experience: Optional[str] = None
