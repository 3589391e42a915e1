"""Structured telemetry events for classifier calls, chat turns and bookings."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of observability events."""

    LLM_CALL_START = "llm_call_start"
    LLM_CALL_SUCCESS = "llm_call_success"
    LLM_CALL_ERROR = "llm_call_error"
    LLM_FALLBACK = "llm_fallback"
    CONVERSATION_START = "conversation_start"
    CONVERSATION_SUCCESS = "conversation_success"
    CONVERSATION_ERROR = "conversation_error"
    BOOKING_CREATED = "booking_created"
    BOOKING_CONFLICT = "booking_conflict"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_ERROR = "booking_error"


class ObservabilityEvent(BaseModel):
    """Base class for all observability events."""

    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: Optional[str] = None
    duration_ms: Optional[float] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    # Error fields
    error_type: Optional[str] = None
    error_message: Optional[str] = None


class LLMCallEvent(ObservabilityEvent):
    """Event for classifier model calls."""

    provider: str
    model: str
    messages: list[dict[str, str]] = Field(default_factory=list)
    temperature: float = 0.0
    max_tokens: int = 512

    response_content: Optional[str] = None
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None

    is_fallback: bool = False
    fallback_reason: Optional[str] = None


class ConversationEvent(ObservabilityEvent):
    """One user message routed through classification and lookup."""

    classifier: str
    text_summary: Optional[str] = None
    authenticated: bool = False

    intent: Optional[str] = None
    branch: Optional[str] = None
    degraded: bool = False

    reply_type: Optional[str] = None
    item_count: int = 0


class BookingEvent(ObservabilityEvent):
    """Outcome of a booking or cancellation attempt."""

    doctor_id: str
    date_iso: str
    start: Optional[str] = None
    appointment_id: Optional[str] = None
    slots: list[str] = Field(default_factory=list)
