"""Slot grid, availability engine and booking service."""

from clinic_assistant.scheduling.availability import AvailabilityService, compute_slot_availability
from clinic_assistant.scheduling.booking import BookingService
from clinic_assistant.scheduling.grid import BASE_SLOT_MINUTES, DAILY_GRID, slots_needed
from clinic_assistant.scheduling.models import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    BookingRequest,
    ClinicInfo,
    DoctorInfo,
    SlotState,
    SlotStatus,
)

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AppointmentType",
    "AvailabilityService",
    "BASE_SLOT_MINUTES",
    "BookingRequest",
    "BookingService",
    "ClinicInfo",
    "DAILY_GRID",
    "DoctorInfo",
    "SlotState",
    "SlotStatus",
    "compute_slot_availability",
    "slots_needed",
]
