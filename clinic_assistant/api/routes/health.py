"""Health check endpoints."""

from fastapi import APIRouter, Request
from sqlalchemy import text

from clinic_assistant import __version__
from clinic_assistant.assistant import LLMIntentClassifier

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Basic health check."""
    return {
        "status": "healthy",
        "service": "clinic-assistant",
        "version": __version__,
    }


@router.get("/health/ready")
async def readiness_check(request: Request) -> dict:
    """Readiness check - verifies the record store and classifier are usable."""
    errors = []

    try:
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        errors.append(f"Record store check failed: {e}")

    classifier = request.app.state.classifier
    llm_health = None
    if isinstance(classifier, LLMIntentClassifier):
        try:
            llm_health = await classifier.llm.health_check()
            if not any(llm_health.values()):
                errors.append("No LLM available")
        except Exception as e:
            errors.append(f"LLM check failed: {e}")

    if errors:
        return {
            "status": "not_ready",
            "errors": errors,
        }

    result = {"status": "ready", "classifier": classifier.name}
    if llm_health is not None:
        result["llm"] = llm_health
    return result


@router.get("/health/live")
async def liveness_check() -> dict:
    """Liveness check - basic process health."""
    return {"status": "alive"}
