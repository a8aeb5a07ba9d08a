"""FastAPI application entry point."""

import logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables before importing runtime config/services.
load_dotenv()

from .config import settings
from .logging_config import setup_logging
from .paths import resolve_repo_path
from .routers import conversation, personas, room
from .services.blob_store import YamlBlobStore
from .services.conversation_controller import ConversationController
from .services.turn_orchestration import DryRunLiveSession, SilentCaptureSource

logger = logging.getLogger(__name__)


def build_default_controller() -> ConversationController:
    """Controller backed by the YAML state dir and dry-run collaborators."""
    return ConversationController(
        blob_store=YamlBlobStore(resolve_repo_path(settings.state_dir)),
        session=DryRunLiveSession(),
        capture_source=SilentCaptureSource(mime_type=settings.audio_mime_type),
        storage_key=settings.personal_personas_key,
        greeting_prompt=settings.greeting_prompt,
        event_log_size=settings.event_log_size,
    )


def create_app(controller: Optional[ConversationController] = None) -> FastAPI:
    """Build the API application around one conversation controller."""
    app = FastAPI(
        title="Chatterbots API",
        description="Control surface for a voice room with rotating agent personas",
        version="0.1.0",
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(personas.router)
    app.include_router(room.router)
    app.include_router(conversation.router)

    app.state.controller = controller or build_default_controller()

    @app.on_event("startup")
    async def startup_event():
        """Load personal personas and attach the live-session collaborators."""
        logger.info("=== Application startup initialization ===")
        await app.state.controller.start()
        logger.info(
            "Room ready: %d preset(s), %d personal persona(s)",
            len(app.state.controller.roster.list_presets()),
            len(app.state.controller.roster.list_personal()),
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        """Close the live session and release the microphone."""
        await app.state.controller.shutdown()

    return app


def create_default_app() -> FastAPI:
    setup_logging()
    application = create_app()
    logger.info("=" * 80)
    logger.info("FastAPI Application Started")
    logger.info("CORS Origins: %s", settings.cors_origins)
    logger.info("State Dir: %s", resolve_repo_path(settings.state_dir))
    logger.info("=" * 80)
    return application
