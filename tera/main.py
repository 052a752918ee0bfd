"""
FastAPI Application Entry Point
===============================
Main application with lifecycle management, middleware, and route mounting.
"""

from contextlib import asynccontextmanager
from datetime import datetime
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tera.config import get_settings
from tera.core.exceptions import TeraException
from tera.core.pipeline import ConversationOrchestrator
from tera.core.session import SessionManager
from tera.api.routes import voice, conversation, health
from tera.services.stt import STTService
from tera.services.tts import TTSService
from tera.services.llm import LLMService
from tera.logging.agent_logger import AgentLogger

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info("Starting TeRA Backend")
    logger.info("=" * 60)

    # ==================
    # STARTUP
    # ==================

    logger.info("Initializing agent logger...")
    app.state.agent_logger = AgentLogger(str(settings.AGENT_LOG_PATH))
    app.state.agent_logger.start()
    await app.state.agent_logger.log_system_event("Application starting", {
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT
    })

    logger.info("Initializing STT service...")
    app.state.stt_service = STTService()
    await app.state.stt_service.initialize()

    logger.info("Initializing TTS service...")
    app.state.tts_service = TTSService()
    await app.state.tts_service.initialize()

    logger.info("Initializing LLM service...")
    app.state.llm_service = LLMService()
    await app.state.llm_service.initialize()

    logger.info("Initializing session manager...")
    app.state.session_manager = SessionManager()
    await app.state.session_manager.start()

    # The browser is the speech platform for HTTP clients
    app.state.orchestrator = ConversationOrchestrator(
        llm_service=app.state.llm_service,
        tts_service=app.state.tts_service,
        stt_service=app.state.stt_service,
        agent_logger=app.state.agent_logger
    )

    logger.info("=" * 60)
    logger.info("TeRA Backend Ready!")
    logger.info(f"Server: http://{settings.HOST}:{settings.PORT}")
    logger.info(f"Docs: http://{settings.HOST}:{settings.PORT}/docs")
    logger.info("=" * 60)

    yield  # Application runs here

    # ==================
    # SHUTDOWN
    # ==================

    logger.info("Shutting down TeRA Backend...")

    await app.state.agent_logger.log_system_event("Application shutting down", {})

    await app.state.session_manager.stop()
    await app.state.stt_service.cleanup()
    await app.state.tts_service.cleanup()
    await app.state.llm_service.cleanup()
    await app.state.agent_logger.close()

    logger.info("Shutdown complete.")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Ask TeRA - T-Fiber Support Assistant

    Bilingual (English/Telugu) customer support for T-Fiber.

    ### Reply tiers:
    ```
    Pin code → Serviceability | FAQ keywords → FAQ answer | otherwise → LLM (Groq)
    ```

    ### Voice:
    - Transcription of recorded audio (Groq Whisper)
    - Spoken replies (edge-tts audio or browser narration)
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# ==================
# MIDDLEWARE
# ==================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_timing_header(request: Request, call_next):
    """Add request timing information to response headers."""
    start_time = datetime.now()
    response = await call_next(request)
    process_time = (datetime.now() - start_time).total_seconds() * 1000
    response.headers["X-Process-Time-Ms"] = f"{process_time:.2f}"
    return response


# ==================
# EXCEPTION HANDLERS
# ==================

@app.exception_handler(TeraException)
async def tera_exception_handler(request: Request, exc: TeraException):
    """Handle custom TeRA exceptions."""
    logger.error(f"TeraException: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "details": str(exc) if settings.DEBUG else None
        }
    )


# ==================
# ROUTES
# ==================

app.include_router(health.router, tags=["Health"])
app.include_router(voice.router, prefix="/api/v1/voice", tags=["Voice"])
app.include_router(conversation.router, prefix="/api/v1/conversation", tags=["Conversation"])


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }


def run():
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("tera.main:app", host=settings.HOST, port=settings.PORT)
