"""FastAPI dependencies: patient identity and services held in app state.

Authentication itself happens upstream; the gateway forwards the verified
patient id in the ``X-Patient-Id`` header.
"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_assistant.assistant import ConversationalRouter
from clinic_assistant.errors import Unauthenticated
from clinic_assistant.scheduling import AvailabilityService, BookingService


def get_patient_id(x_patient_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """The caller's patient id, or None for anonymous requests."""
    if x_patient_id is None:
        return None
    return x_patient_id.strip() or None


def require_patient_id(patient_id: Optional[str] = Depends(get_patient_id)) -> str:
    if not patient_id:
        raise Unauthenticated()
    return patient_id


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_factory


def get_conversational_router(request: Request) -> ConversationalRouter:
    return request.app.state.conversational_router


def get_availability_service(request: Request) -> AvailabilityService:
    return request.app.state.availability_service


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service
