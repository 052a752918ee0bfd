"""
Health Check Endpoints.
System health and readiness checks.
"""

from datetime import datetime
from fastapi import APIRouter, Request

from tera.config import get_settings

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": settings.APP_VERSION
    }


@router.get("/health/ready")
async def readiness_check(request: Request):
    """
    Readiness check - verifies all services are initialized.

    Groq-backed services report whether an API key is configured; without one
    the assistant still answers pin code and FAQ questions.
    """
    state = request.app.state
    checks = {
        "session_manager": hasattr(state, "session_manager"),
        "orchestrator": hasattr(state, "orchestrator"),
        "tts_service": hasattr(state, "tts_service"),
    }

    services = {
        "llm_configured": hasattr(state, "llm_service") and state.llm_service.is_configured,
        "stt_configured": hasattr(state, "stt_service") and state.stt_service.is_configured,
        "tts_backend": state.tts_service.backend if checks["tts_service"] else None,
    }

    if checks["session_manager"]:
        services["active_sessions"] = await state.session_manager.get_active_session_count()

    all_ready = all(checks.values())

    return {
        "status": "ready" if all_ready else "not_ready",
        "checks": checks,
        "services": services,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/health/live")
async def liveness_check():
    """
    Liveness check - just verifies the server is responding.
    """
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat()
    }
