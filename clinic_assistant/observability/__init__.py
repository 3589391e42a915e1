"""Observability module for classifier, conversation and booking telemetry."""

from clinic_assistant.observability.events import (
    BookingEvent,
    ConversationEvent,
    EventType,
    LLMCallEvent,
    ObservabilityEvent,
)
from clinic_assistant.observability.logger import ObservabilityLogger, get_observability_logger

__all__ = [
    "BookingEvent",
    "ConversationEvent",
    "EventType",
    "LLMCallEvent",
    "ObservabilityEvent",
    "ObservabilityLogger",
    "get_observability_logger",
]
