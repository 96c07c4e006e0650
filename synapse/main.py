"""FastAPI application entry point."""

import asyncio
import json
import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional
from uuid import UUID

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from .config import settings
from .database import warmup_connection_pool
from .routers import analysis_router, auth_router, dashboard_router, roadmaps_router, rooms_router
from .services.auth_service import decode_access_token
from .services.gemini_service import GeminiClient
from .services.room_service import make_snapshot_loader
from .websocket import (
    CollaborationState,
    ConnectionManager,
    EventContext,
    handle_disconnect,
    route_incoming_message,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Single-process room state; every handler goes through the state lock.
manager = ConnectionManager()
collab_state = CollaborationState()

# Close codes
WS_CLOSE_UNAUTHORIZED = 4001


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""
    # Startup
    logger.info("Warming up database connection pool...")
    await warmup_connection_pool()
    logger.info("Database connection pool ready")

    yield

    # Shutdown
    logger.info("Closing WebSocket connections...")
    await manager.close_all()
    collab_state.clear()
    logger.info("WebSocket connections closed")


app = FastAPI(
    title="Synapse API",
    description="Collaborative study rooms with chat, calls, shared tasks and AI document analysis",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.connection_manager = manager
app.state.collab_state = collab_state
app.state.snapshot_loader = make_snapshot_loader()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Database pool exhaustion handler - return 503 so clients can retry
@app.exception_handler(SQLAlchemyTimeoutError)
async def db_pool_exhausted_handler(request: Request, exc: SQLAlchemyTimeoutError):
    """Handle database connection pool exhaustion with 503 Service Unavailable."""
    logger.warning(f"Database pool exhausted on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": "Service temporarily unavailable. Please retry.",
            "retry_after": 5,
        },
        headers={"Retry-After": "5"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log all unhandled exceptions with full traceback."""
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url}: {exc}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(rooms_router)
app.include_router(analysis_router)
app.include_router(roadmaps_router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {
        "status": "healthy",
        "service": "Synapse API",
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "websocket": {
            "connections": manager.total_connections,
            "rooms": manager.total_rooms,
            "activeRooms": len(collab_state.registry.room_codes()),
            "activeCalls": collab_state.calls.active_call_count,
        },
        "gemini": {
            "configured": GeminiClient().is_configured,
            "model": settings.gemini_model,
        },
    }


def _authenticate(token: Optional[str]) -> tuple[bool, Optional[UUID]]:
    """
    Resolve the optional query token.

    Returns:
        (accepted, user_id). An absent token is accepted unless
        authentication is required; a bad token never is.
    """
    if not token:
        return not settings.ws_require_auth, None

    token_data = decode_access_token(token)
    if token_data is None or token_data.user_id is None:
        return False, None
    try:
        return True, UUID(token_data.user_id)
    except ValueError:
        return False, None


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: Optional[str] = None):
    """
    WebSocket endpoint for room collaboration.

    Usage:
        ws://localhost:8000/ws?token=<jwt_token>

    The token is optional unless WS_REQUIRE_AUTH is set. Every frame is a
    JSON envelope ``{"type": ..., "data": ...}``.
    """
    accepted, user_id = _authenticate(token)
    if not accepted:
        logger.debug("WebSocket connection rejected: missing or invalid token")
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED, reason="Invalid token")
        return

    connection = await manager.connect(websocket, user_id)
    if connection is None:
        return  # Rejected by the per-user connection limit

    ctx = EventContext(
        state=websocket.app.state.collab_state,
        connection=connection,
        manager=websocket.app.state.connection_manager,
        snapshot_loader=websocket.app.state.snapshot_loader,
    )

    message_timestamps: list[float] = []

    async def server_ping_task():
        """Background task to keep idle connections alive."""
        try:
            while True:
                await asyncio.sleep(settings.ws_ping_interval)
                try:
                    await websocket.send_json({"type": "ping", "data": {}})
                except Exception:
                    break  # Connection is dead, exit task
        except asyncio.CancelledError:
            pass

    ping_task = asyncio.create_task(server_ping_task())

    try:
        while True:
            raw_message = await websocket.receive_text()

            # Sliding-window rate limit
            current_time = asyncio.get_running_loop().time()
            message_timestamps[:] = [
                t for t in message_timestamps if current_time - t < settings.ws_rate_limit_window
            ]
            if len(message_timestamps) >= settings.ws_rate_limit_messages:
                logger.warning(f"Rate limit exceeded for connection {connection.connection_id}")
                await websocket.send_json({
                    "type": "error",
                    "data": {"error": "RATE_LIMIT", "message": "Too many messages, slow down"},
                })
                continue
            message_timestamps.append(current_time)

            if len(raw_message) > settings.ws_max_message_size:
                logger.warning(
                    f"Dropping oversized message from {connection.connection_id}: "
                    f"{len(raw_message)} bytes (max: {settings.ws_max_message_size})"
                )
                continue

            try:
                message = json.loads(raw_message)
            except json.JSONDecodeError:
                logger.warning(f"Dropping invalid JSON from {connection.connection_id}")
                continue

            if not isinstance(message, dict):
                logger.debug(f"Dropping non-object frame from {connection.connection_id}")
                continue

            await route_incoming_message(ctx, message)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnect: connection={connection.connection_id}")
    except Exception as e:
        logger.error(f"WebSocket exception for connection {connection.connection_id}: {e}")
    finally:
        ping_task.cancel()
        try:
            await ping_task
        except asyncio.CancelledError:
            pass
        await handle_disconnect(ctx)
