"""JSON Lines telemetry for classifier calls, chat turns and bookings."""

import json
import logging
import time
import uuid
from collections import Counter
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from clinic_assistant.observability.events import (
    BookingEvent,
    ConversationEvent,
    EventType,
    LLMCallEvent,
    ObservabilityEvent,
)

logger = logging.getLogger(__name__)

LOG_FILES = {
    "llm": "llm_calls.jsonl",
    "conversations": "conversations.jsonl",
    "bookings": "bookings.jsonl",
}

# Field each log is broken down by in get_stats()
_BREAKDOWN_FIELD = {
    "llm": "provider",
    "conversations": "intent",
    "bookings": "event_type",
}

_FAILURE_TYPES = {
    EventType.LLM_CALL_ERROR.value,
    EventType.CONVERSATION_ERROR.value,
    EventType.BOOKING_ERROR.value,
    EventType.BOOKING_CONFLICT.value,
}


class ObservabilityLogger:
    """Appends telemetry events to one ``.jsonl`` file per event family.

    Writing never raises into the caller: an unwritable directory or a
    failing callback is logged as a warning and the request carries on.
    Chat text and model output are cut to ``max_content_length`` characters
    unless ``log_full_content`` is set.
    """

    _instance: Optional["ObservabilityLogger"] = None

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        enabled: bool = True,
        log_full_content: bool = False,
        max_content_length: int = 300,
    ):
        self.enabled = enabled
        self.log_full_content = log_full_content
        self.max_content_length = max_content_length
        self.log_dir = log_dir or Path("data/logs")
        if self.enabled:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        self._callbacks: list[Callable[[ObservabilityEvent], None]] = []

    @classmethod
    def get_instance(cls) -> "ObservabilityLogger":
        if cls._instance is None:
            from clinic_assistant.config import get_settings

            settings = get_settings()
            cls._instance = cls(
                log_dir=settings.observability_log_dir,
                enabled=settings.observability_enabled,
            )
        return cls._instance

    @classmethod
    def set_instance(cls, instance: Optional["ObservabilityLogger"]) -> None:
        cls._instance = instance

    def generate_request_id(self) -> str:
        return uuid.uuid4().hex[:8]

    def add_callback(self, callback: Callable[[ObservabilityEvent], None]) -> None:
        """Register a hook that sees every event after it is written."""
        self._callbacks.append(callback)

    def _path(self, log_type: str) -> Path:
        return self.log_dir / LOG_FILES[log_type]

    def _emit(self, event: ObservabilityEvent, log_type: str) -> None:
        if not self.enabled:
            return
        try:
            with open(self._path(log_type), "a", encoding="utf-8") as f:
                f.write(event.model_dump_json() + "\n")
        except OSError as e:
            logger.warning(f"Could not write {log_type} telemetry: {e}")
            return

        for callback in self._callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Telemetry callback {callback!r} failed: {e}")

    def _clip(self, content: str) -> str:
        if self.log_full_content or len(content) <= self.max_content_length:
            return content
        return content[: self.max_content_length] + "..."

    @contextmanager
    def _timed(
        self, event: ObservabilityEvent, log_type: str, success: EventType, failure: EventType
    ) -> Iterator[ObservabilityEvent]:
        started = time.perf_counter()
        try:
            yield event
            event.event_type = success
        except Exception as e:
            event.event_type = failure
            event.error_type = type(e).__name__
            event.error_message = str(e)[:200]
            raise
        finally:
            event.duration_ms = (time.perf_counter() - started) * 1000
            self._emit(event, log_type)

    @contextmanager
    def llm_call(
        self,
        provider: str,
        model: str,
        messages: list[dict[str, str]],
        temperature: float = 0.0,
        max_tokens: int = 512,
        request_id: Optional[str] = None,
    ) -> Iterator[LLMCallEvent]:
        """Record one classifier model call.

        The caller fills ``response_content`` and the token counts on the
        yielded event; it is written when the block exits, as a success or,
        if the block raised, as an error.
        """
        event = LLMCallEvent(
            event_type=EventType.LLM_CALL_START,
            provider=provider,
            model=model,
            messages=[
                {"role": m["role"], "content": self._clip(m.get("content", ""))} for m in messages
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            request_id=request_id or self.generate_request_id(),
        )
        with self._timed(event, "llm", EventType.LLM_CALL_SUCCESS, EventType.LLM_CALL_ERROR):
            yield event
            if event.response_content:
                event.response_content = self._clip(event.response_content)

    def log_llm_fallback(
        self,
        from_provider: str,
        to_provider: str,
        reason: str,
        request_id: Optional[str] = None,
    ) -> None:
        self._emit(
            LLMCallEvent(
                event_type=EventType.LLM_FALLBACK,
                provider=to_provider,
                model="",
                is_fallback=True,
                fallback_reason=reason,
                request_id=request_id,
                metadata={"from_provider": from_provider},
            ),
            "llm",
        )

    @contextmanager
    def conversation_turn(
        self,
        classifier: str,
        text: str,
        authenticated: bool,
        request_id: Optional[str] = None,
    ) -> Iterator[ConversationEvent]:
        """Record one classify-and-route cycle; the router fills in intent and reply."""
        event = ConversationEvent(
            event_type=EventType.CONVERSATION_START,
            classifier=classifier,
            text_summary=self._clip(text),
            authenticated=authenticated,
            request_id=request_id or self.generate_request_id(),
        )
        with self._timed(
            event, "conversations", EventType.CONVERSATION_SUCCESS, EventType.CONVERSATION_ERROR
        ):
            yield event

    def log_booking(
        self,
        event_type: EventType,
        doctor_id: str,
        date_iso: str,
        start: Optional[str] = None,
        appointment_id: Optional[str] = None,
        slots: Optional[list[str]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        event = BookingEvent(
            event_type=event_type,
            doctor_id=doctor_id,
            date_iso=date_iso,
            start=start,
            appointment_id=appointment_id,
            slots=slots or [],
        )
        if error is not None:
            event.error_type = type(error).__name__
            event.error_message = str(error)[:200]
        self._emit(event, "bookings")

    def get_recent_events(self, log_type: str, limit: int = 100) -> list[dict[str, Any]]:
        """The last ``limit`` events of a log; unreadable lines are skipped."""
        path = self._path(log_type)
        if not path.exists():
            return []

        events = []
        with open(path, encoding="utf-8") as f:
            for line in f:
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
        return events[-limit:]

    def get_stats(self, log_type: str) -> dict[str, Any]:
        """Summarise the last 1000 events of a log.

        Conflicts count as failures for bookings. ``by`` breaks the events
        down by provider (llm), intent (conversations) or outcome (bookings).
        """
        events = self.get_recent_events(log_type, limit=1000)
        if not events:
            return {"total": 0}

        total = len(events)
        failures = sum(1 for e in events if e.get("event_type") in _FAILURE_TYPES)
        stats: dict[str, Any] = {
            "total": total,
            "errors": failures,
            "error_rate": failures / total,
            "avg_duration_ms": sum(e.get("duration_ms") or 0 for e in events) / total,
            "by": dict(Counter(str(e.get(_BREAKDOWN_FIELD[log_type])) for e in events)),
        }
        if log_type == "conversations":
            stats["degraded"] = sum(1 for e in events if e.get("degraded"))
        return stats


def get_observability_logger() -> ObservabilityLogger:
    return ObservabilityLogger.get_instance()
