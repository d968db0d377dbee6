"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a front-end shell and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- INVALID_ACTION: Unknown action name
- VALIDATION_ERROR: Request body failed validation
- INTERNAL_ERROR: Unexpected engine failure
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    CREATED = "created"
    IN_GAME = "in_game"
    PAUSED = "paused"
    ENDED = "ended"


class ActionName(str, Enum):
    """Operations a client can request."""
    SWITCH = "switch"
    MIX = "mix"
    MEASURE = "measure"
    CLEAR_SELECTION = "clear_selection"


class Precision(str, Enum):
    """Amplitude precision."""
    SINGLE = "single"
    DOUBLE = "double"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_ACTION = "INVALID_ACTION"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class Position(BaseModel):
    """A grid position."""
    x: int
    y: int


class AmplitudeInfo(BaseModel):
    """One non-zero entry of a state."""
    x: int
    y: int
    real: float
    imag: float
    probability: float = Field(..., ge=0.0)


class OwnerInfo(BaseModel):
    """A state owner and its amplitudes."""
    owner_id: str
    role: str
    amplitudes: list[AmplitudeInfo] = Field(default_factory=list)
    total_probability: float


class IndicatorInfo(BaseModel):
    """Render parameters of one indicator."""
    owner_id: str
    x: int
    y: int
    world_x: float
    world_y: float
    rotation: float
    bar_length: int
    bar_offset_x: float
    opacity: float


class DoorInfo(BaseModel):
    """A door and its animation frame."""
    door_id: str
    x: int
    y: int
    device_id: str
    blocking: bool
    frame: int


class EventInfo(BaseModel):
    """A domain event emitted during a tick."""
    event_type: str
    device_id: Optional[str] = None
    door_id: Optional[str] = None
    probability: Optional[float] = None


class RejectionInfo(BaseModel):
    """A request dropped by the engine."""
    action_type: str
    error: Optional[str] = None
    error_code: Optional[str] = None


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Start a new session on the first level."""
    seed: Optional[int] = Field(None, description="Seed for the measurement RNG")
    precision: Precision = Field(Precision.SINGLE, description="Amplitude precision")


class SelectRequest(BaseModel):
    """Select (or deselect) a grid position."""
    x: int
    y: int
    tick: bool = Field(True, description="Resolve a tick right away")


class ActionRequest(BaseModel):
    """Request an operation on the current selection."""
    action: ActionName
    tick: bool = Field(True, description="Resolve a tick right away")


class TickRequest(BaseModel):
    """Advance the simulation."""
    dt: float = Field(0.0, ge=0.0, description="Seconds since the previous tick")


# =============================================================================
# Responses
# =============================================================================

class SessionResponse(BaseModel):
    """Session summary."""
    session_id: str
    status: SessionStatus
    tick: int
    created_at: float
    precision: Precision
    level: Optional[str] = None


class GameStateResponse(BaseModel):
    """Full world state of a session."""
    session_id: str
    tick: int
    selections: list[Position] = Field(default_factory=list)
    owners: list[OwnerInfo] = Field(default_factory=list)
    indicators: list[IndicatorInfo] = Field(default_factory=list)
    doors: list[DoorInfo] = Field(default_factory=list)


class TickResponse(BaseModel):
    """What one tick did."""
    session_id: str
    tick: int
    queued: bool = False
    applied: list[str] = Field(default_factory=list)
    rejected: list[RejectionInfo] = Field(default_factory=list)
    events: list[EventInfo] = Field(default_factory=list)
    render_updates: list[IndicatorInfo] = Field(default_factory=list)
    removed_indicators: list[IndicatorInfo] = Field(default_factory=list)
    state_changes: list[str] = Field(default_factory=list)


class SessionListResponse(BaseModel):
    """List of active session IDs."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Result of ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Service health."""
    status: str
    version: str
    active_sessions: int


class ErrorResponse(BaseModel):
    """Error payload."""
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None
