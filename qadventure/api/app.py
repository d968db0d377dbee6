"""
FastAPI Application - REST adapter for a front-end shell.

Endpoints:
    GET    /api/health                        Service health
    POST   /api/v1/sessions                   Create game session
    GET    /api/v1/sessions                   List active sessions
    GET    /api/v1/sessions/{id}              Get session status
    DELETE /api/v1/sessions/{id}              End session
    POST   /api/v1/sessions/{id}/pause        Pause session
    POST   /api/v1/sessions/{id}/resume       Resume session
    POST   /api/v1/sessions/{id}/select       Select a grid position
    POST   /api/v1/sessions/{id}/actions      Request switch / mix / measure
    POST   /api/v1/sessions/{id}/tick         Advance one tick
    GET    /api/v1/sessions/{id}/state        Get world and indicators

Each request resolves at most one tick, so a session keeps the
single-threaded, tick-ordered model of the engine.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import logging
import os

from .. import __version__
from ..logging_config import setup_logging

# Environment configuration
QADV_ENV = os.getenv("QADV_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, Body, Request
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from ..config import EngineConfig
    from ..errors import QuantumEngineError
    from ..session import SessionManager
    from .service import (
        APIService,
        SessionNotFoundError,
        validation_error_response,
        engine_error_response,
    )
    from .schemas import (
        # Request models
        CreateSessionRequest,
        SelectRequest,
        ActionRequest,
        TickRequest,
        # Response models
        SessionResponse,
        GameStateResponse,
        TickResponse,
        SessionListResponse,
        EndSessionResponse,
        HealthResponse,
        ErrorResponse,
        # Enums
        ErrorCode,
    )

    config = EngineConfig.from_env()
    setup_logging(config.log_level)

    app = FastAPI(
        title="Quantum Adventure Engine API",
        description="""
Quantum state puzzle engine.

## Flow

1. `POST /api/v1/sessions` starts the first level
2. `POST /select` with grid positions builds a selection (at most 2, adjacent)
3. `POST /actions` with `switch`, `mix` or `measure` transforms the player state
4. Every response lists render updates for changed indicators

Requests that do not fit the current selection are dropped and show up
under `rejected` (or leave the tick empty).

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `INVALID_ACTION` | Unknown action name |
| `VALIDATION_ERROR` | Request body failed validation |
| `INTERNAL_ERROR` | Engine wiring error |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService(session_manager=SessionManager(config=config))

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def session_not_found(session_id: str) -> JSONResponse:
        return make_error_response(
            ErrorCode.SESSION_NOT_FOUND,
            f"Session not found: {session_id}",
            status_code=404,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Bad request bodies get a structured ErrorResponse."""
        response = validation_error_response(list(exc.errors()))
        return JSONResponse(status_code=422, content=response.model_dump(mode="json"))

    @app.exception_handler(QuantumEngineError)
    async def engine_error(request: Request, exc: QuantumEngineError) -> JSONResponse:
        """Engine wiring errors surface as INTERNAL_ERROR."""
        logger.error("Engine error on %s: %s", request.url.path, exc)
        response = engine_error_response(exc)
        return JSONResponse(status_code=500, content=response.model_dump(mode="json"))

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/api/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        """Service health and active session count."""
        return HealthResponse(
            status="ok",
            version=__version__,
            active_sessions=len(api_service.list_sessions()),
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(
        request: Optional[CreateSessionRequest] = Body(default=None),
    ) -> SessionResponse:
        """Start the first level. Pass a `seed` for reproducible measurements."""
        return api_service.create_session(request or CreateSessionRequest())

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Get the current status of a game session."""
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return session_not_found(session_id)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a game session and release its state."""
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/pause",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Pause a game session",
    )
    async def pause_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Ticks are ignored and queued requests wait until the session resumes."""
        try:
            return api_service.pause_session(session_id)
        except SessionNotFoundError:
            return session_not_found(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/resume",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Resume a paused game session",
    )
    async def resume_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Resume ticking a paused session."""
        try:
            return api_service.resume_session(session_id)
        except SessionNotFoundError:
            return session_not_found(session_id)

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/select",
        response_model=TickResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Select or deselect a grid position",
    )
    async def select(session_id: str, request: SelectRequest) -> Union[TickResponse, JSONResponse]:
        """Select a tile; selecting it again deselects it."""
        try:
            return api_service.select(session_id, request)
        except SessionNotFoundError:
            return session_not_found(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/actions",
        response_model=TickResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Switch, mix or measure the selection",
    )
    async def request_action(
        session_id: str,
        request: ActionRequest,
    ) -> Union[TickResponse, JSONResponse]:
        """Apply an operation to the current selection."""
        try:
            return api_service.request_action(session_id, request)
        except SessionNotFoundError:
            return session_not_found(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/tick",
        response_model=TickResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Advance the simulation by one tick",
    )
    async def tick(
        session_id: str,
        request: Optional[TickRequest] = Body(default=None),
    ) -> Union[TickResponse, JSONResponse]:
        """Resolve queued requests and advance animations."""
        try:
            return api_service.tick(session_id, request)
        except SessionNotFoundError:
            return session_not_found(session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Get the world state and indicators",
    )
    async def get_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Amplitudes of every owner, selections, indicators and doors."""
        try:
            return api_service.get_game_state(session_id)
        except SessionNotFoundError:
            return session_not_found(session_id)

    logger.debug("API created (env=%s)", QADV_ENV)
    return app


# For running directly: uvicorn qadventure.api.app:app
app = create_app()
