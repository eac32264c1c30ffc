"""Todosocial Backend Application.

This is the main entry point for the Todosocial backend service: personal
todos, direct messages between users and near-real-time notifications over
a persistent WebSocket connection.

Modules:
    - realtime: WebSocket registry, heartbeat, delivery and read state
    - messages: direct message REST endpoints
    - notifications: notification REST endpoints
    - users: user directory, blocks and bans
    - todos: personal todo CRUD
    - auth: sign-up, login and bearer token verification
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.auth.router import router as auth_router
from app.config import AppConfig, get_config
from app.dependencies import services_for
from app.errors import StorageError
from app.messages.router import router as messages_router
from app.notifications.router import router as notifications_router
from app.realtime.router import router as realtime_router
from app.todos.router import router as todos_router
from app.users.router import router as users_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Silence verbose third-party loggers.
for _noisy in (
    "uvicorn.access",
    "websockets",
    "httpx",
    "httpcore",
):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config: AppConfig = app.state.config

    # Apply configured log level to root logger so that
    # `logging.level: "debug"` in todosocial.settings.yaml activates DEBUG output.
    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    services = services_for(app)
    services.supervisor.start()
    logger.info(
        f"Server ready on http://{config.server.host}:{config.server.port} "
        f"(heartbeat every {config.realtime.heartbeat_interval_seconds}s)"
    )

    yield  # Application runs here

    # Shutdown
    await services.supervisor.stop()
    services.close()
    app.state.services = None
    logger.info("Application shutdown complete")


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        {"error": "Storage temporarily unavailable", "retryable": True},
        status_code=503,
    )


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Explicit configuration; defaults to the loaded YAML config.
    """
    config = config or get_config()

    app = FastAPI(
        title="Todosocial API",
        description="Backend service for Todosocial - todos, messaging and live notifications",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.services = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StorageError, storage_error_handler)

    # Register all routers
    app.include_router(auth_router)
    app.include_router(realtime_router)
    app.include_router(messages_router)
    app.include_router(notifications_router)
    app.include_router(users_router)
    app.include_router(todos_router)

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint.

        Returns:
            dict: Status object indicating the server is running.
        """
        return {"status": "ok"}

    return app


app = create_app()
