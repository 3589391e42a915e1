"""FastAPI application for the clinic assistant."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinic_assistant import __version__
from clinic_assistant.api.middleware import APIKeyMiddleware, RequestLoggingMiddleware
from clinic_assistant.api.routes import chat, clinics, health, scheduling
from clinic_assistant.config import get_settings
from clinic_assistant.errors import (
    BookingConflict,
    ClinicAssistantError,
    NotFound,
    StoreUnavailable,
    Unauthenticated,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[ClinicAssistantError], int] = {
    Unauthenticated: 401,
    NotFound: 404,
    ValidationFailed: 422,
    BookingConflict: 409,
    StoreUnavailable: 503,
}


def status_for(exc: ClinicAssistantError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting clinic assistant API")

    settings = get_settings()

    from clinic_assistant.assistant import ConversationalRouter, create_classifier_from_settings
    from clinic_assistant.core.database import dispose_engine, get_session_factory, init_db
    from clinic_assistant.scheduling import AvailabilityService, BookingService

    await init_db()
    session_factory = get_session_factory()
    classifier = create_classifier_from_settings(settings)

    app.state.session_factory = session_factory
    app.state.classifier = classifier
    app.state.conversational_router = ConversationalRouter(session_factory, classifier, settings)
    app.state.availability_service = AvailabilityService(session_factory)
    app.state.booking_service = BookingService(session_factory)

    logger.info(f"Clinic assistant API started (classifier={classifier.name})")

    yield

    logger.info("Shutting down clinic assistant API")
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Clinic Assistant API",
        description="Intent-driven clinic chat, slot availability and booking",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    if settings.api_key:
        app.add_middleware(APIKeyMiddleware, api_key=settings.api_key)

    app.include_router(health.router, tags=["health"])
    app.include_router(chat.router, prefix="/api/v1", tags=["chat"])
    app.include_router(scheduling.router, prefix="/api/v1", tags=["scheduling"])
    app.include_router(clinics.router, prefix="/api/v1", tags=["clinics"])

    @app.exception_handler(ClinicAssistantError)
    async def domain_exception_handler(request: Request, exc: ClinicAssistantError):
        status_code = status_for(exc)
        content = {"error": type(exc).__name__, "detail": str(exc)}
        if isinstance(exc, BookingConflict):
            content["slots"] = exc.slots
        if status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.debug_mode else None,
            },
        )

    return app
