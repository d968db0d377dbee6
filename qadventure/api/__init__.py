"""
API Module - HTTP interface for a front-end shell.

Exposes the engine via REST:
1. Create game sessions
2. Send selections and operation requests
3. Advance ticks
4. Read world state and indicator render parameters

All state is session-scoped and in-memory.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    SelectRequest,
    ActionRequest,
    TickRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    TickResponse,
    ErrorResponse,
    # Enums
    ActionName,
    ErrorCode,
    SessionStatus,
)
from .service import APIService, SessionNotFoundError
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "SelectRequest",
    "ActionRequest",
    "TickRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "TickResponse",
    "ErrorResponse",
    # Enums
    "ActionName",
    "ErrorCode",
    "SessionStatus",
    # Service
    "APIService",
    "SessionNotFoundError",
    "create_app",
]
