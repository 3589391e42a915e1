"""Domain exceptions shared by the assistant, scheduling and API layers."""


class ClinicAssistantError(Exception):
    """Base exception for clinic assistant errors."""

    pass


class Unauthenticated(ClinicAssistantError):
    """A personal-data operation was attempted without a patient identity."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFound(ClinicAssistantError):
    """A referenced record does not exist."""

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found: {resource_id}")


class ClassificationMalformed(ClinicAssistantError):
    """Classifier output could not be parsed into an intent."""

    pass


class StoreUnavailable(ClinicAssistantError):
    """The record store failed a read or write."""

    pass


class ValidationFailed(ClinicAssistantError):
    """A booking request is missing fields or names an impossible slot."""

    pass


class BookingConflict(ClinicAssistantError):
    """The requested slots are already claimed by another appointment."""

    def __init__(self, doctor_id: str, date_iso: str, slots: list[str]):
        self.doctor_id = doctor_id
        self.date_iso = date_iso
        self.slots = slots
        super().__init__(
            f"Slots {', '.join(slots)} on {date_iso} are already booked for doctor {doctor_id}"
        )
