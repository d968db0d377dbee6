"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine Actions
2. Manages sessions and their game loops
3. Formats tick results and world snapshots for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field

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
    # Shared
    Position,
    AmplitudeInfo,
    OwnerInfo,
    IndicatorInfo,
    DoorInfo,
    EventInfo,
    RejectionInfo,
    # Enums
    SessionStatus,
    ActionName,
    ErrorCode,
    Precision,
)
from ..config import EngineConfig
from ..engine_core.action import Action
from ..engine_core.coords import GridPos, grid_to_world
from ..engine_core.events import MeasurementSucceeded, MeasurementFailed, DoorOpened
from ..input import InputAdapter
from ..session import SessionManager, Session, GameLoop, TickResult
from ..visuals import RenderParams


class SessionNotFoundError(KeyError):
    """Raised for an unknown or ended session id."""


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = service.create_session(CreateSessionRequest(seed=7))
        service.select(session.session_id, SelectRequest(x=0, y=0))
        service.request_action(session.session_id, ActionRequest(action="measure"))
        state = service.get_game_state(session.session_id)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    input_adapter: InputAdapter = field(default_factory=InputAdapter)

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    # -- sessions ---------------------------------------------------------

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """Create a new game session on the first level."""
        config = EngineConfig(**{
            **self.session_manager.config.model_dump(),
            "precision": request.precision.value,
        })
        session = self.session_manager.create_session(config=config, seed=request.seed)
        self._game_loops[session.session_id] = GameLoop(session)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """Get session status."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return ErrorResponse(
                error="Session not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            )
        return self._session_to_response(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        """End a session."""
        self._game_loops.pop(session_id, None)
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        """List active session IDs."""
        return self.session_manager.list_active_sessions()

    def pause_session(self, session_id: str) -> SessionResponse:
        """Pause a session; its ticks are ignored until resumed."""
        session = self._get_session(session_id)
        self.session_manager.pause_session(session_id)
        return self._session_to_response(session)

    def resume_session(self, session_id: str) -> SessionResponse:
        """Resume a paused session."""
        session = self._get_session(session_id)
        self.session_manager.resume_session(session_id)
        return self._session_to_response(session)

    # -- game loop --------------------------------------------------------

    def select(self, session_id: str, request: SelectRequest) -> TickResponse:
        """Queue a selection, resolving a tick unless asked not to."""
        loop = self._get_loop(session_id)
        loop.submit(Action.select(GridPos(request.x, request.y)))
        return self._maybe_tick(loop, request.tick)

    def request_action(self, session_id: str, request: ActionRequest) -> TickResponse:
        """
        Queue an operation on the current selection.

        Operations that do not match the selection are not queued; the
        response then reports an empty tick.
        """
        loop = self._get_loop(session_id)
        world = loop.session.world
        if request.action == ActionName.CLEAR_SELECTION:
            action = Action.clear_selection()
        elif request.action == ActionName.MEASURE:
            action = self.input_adapter.request_measure(world)
        elif request.action == ActionName.SWITCH:
            action = self.input_adapter.on_key_press("p", world)
        else:
            action = self.input_adapter.on_key_press("o", world)

        if action is not None:
            loop.submit(action)
        return self._maybe_tick(loop, request.tick)

    def tick(self, session_id: str, request: TickRequest | None = None) -> TickResponse:
        """Advance a session by one tick."""
        loop = self._get_loop(session_id)
        dt = request.dt if request else 0.0
        return self._tick_to_response(loop.session, loop.tick(dt))

    def get_game_state(self, session_id: str) -> GameStateResponse:
        """Snapshot of the world and indicator trees."""
        session = self._get_session(session_id)
        world = session.world
        owners = []
        for owner in world.owners.values():
            amplitudes = [
                AmplitudeInfo(
                    x=pos.x,
                    y=pos.y,
                    real=float(complex(value).real),
                    imag=float(complex(value).imag),
                    probability=float(abs(complex(value)) ** 2),
                )
                for pos, value in owner.state.items()
            ]
            owners.append(OwnerInfo(
                owner_id=owner.owner_id,
                role=owner.role.value,
                amplitudes=amplitudes,
                total_probability=owner.state.norm_sqr(),
            ))

        indicators = [
            _render_to_info(params)
            for tree in session.reconciler.trees.values()
            for params in tree.render_params()
        ]
        doors = [
            DoorInfo(
                door_id=door.door_id,
                x=door.position.x,
                y=door.position.y,
                device_id=door.device_id,
                blocking=door.blocking,
                frame=door.frame,
            )
            for door in world.doors.values()
        ]

        return GameStateResponse(
            session_id=session.session_id,
            tick=session.tick_count,
            selections=[Position(x=p.x, y=p.y) for p in world.selections],
            owners=owners,
            indicators=indicators,
            doors=doors,
        )

    # -- helpers ----------------------------------------------------------

    def _get_session(self, session_id: str) -> Session:
        session = self.session_manager.get_session(session_id)
        if not session:
            raise SessionNotFoundError(session_id)
        return session

    def _get_loop(self, session_id: str) -> GameLoop:
        session = self._get_session(session_id)
        loop = self._game_loops.get(session_id)
        if loop is None:
            loop = GameLoop(session)
            self._game_loops[session_id] = loop
        return loop

    def _maybe_tick(self, loop: GameLoop, run_tick: bool) -> TickResponse:
        if run_tick:
            return self._tick_to_response(loop.session, loop.tick())
        return TickResponse(
            session_id=loop.session.session_id,
            tick=loop.session.tick_count,
            queued=True,
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        return SessionResponse(
            session_id=session.session_id,
            status=SessionStatus(session.state.value),
            tick=session.tick_count,
            created_at=session.created_at,
            precision=Precision(session.config.precision.value),
            level=session.world.metadata.get("level"),
        )

    def _tick_to_response(self, session: Session, result: TickResult) -> TickResponse:
        events = []
        for event in result.events:
            if isinstance(event, MeasurementSucceeded):
                events.append(EventInfo(
                    event_type="measurement_succeeded",
                    device_id=event.device_id,
                    probability=event.probability,
                ))
            elif isinstance(event, MeasurementFailed):
                events.append(EventInfo(
                    event_type="measurement_failed",
                    device_id=event.device_id,
                    probability=event.probability,
                ))
            elif isinstance(event, DoorOpened):
                events.append(EventInfo(
                    event_type="door_opened",
                    device_id=event.device_id,
                    door_id=event.door_id,
                ))

        removed = []
        for owner_id, pos in result.removed_indicators:
            world_x, world_y = grid_to_world(pos)
            removed.append(IndicatorInfo(
                owner_id=owner_id, x=pos.x, y=pos.y,
                world_x=world_x, world_y=world_y,
                rotation=0.0, bar_length=0, bar_offset_x=0.0, opacity=0.0,
            ))

        return TickResponse(
            session_id=session.session_id,
            tick=result.tick,
            applied=[a.action_type.value for a in result.applied],
            rejected=[
                RejectionInfo(
                    action_type=r.action.action_type.value,
                    error=r.error,
                    error_code=r.error_code,
                )
                for r in result.rejected
            ],
            events=events,
            render_updates=[_render_to_info(p) for p in result.render_updates],
            removed_indicators=removed,
            state_changes=result.state_changes,
        )


def _render_to_info(params: RenderParams) -> IndicatorInfo:
    return IndicatorInfo(
        owner_id=params.owner_id,
        x=params.position.x,
        y=params.position.y,
        world_x=params.world_x,
        world_y=params.world_y,
        rotation=params.rotation,
        bar_length=params.bar_length,
        bar_offset_x=params.bar_offset_x,
        opacity=params.opacity,
    )


def validation_error_response(errors: list[dict]) -> ErrorResponse:
    """
    Map request validation errors to an ErrorResponse.

    An unknown action name is INVALID_ACTION; anything else is
    VALIDATION_ERROR.
    """
    invalid_action = any(
        "action" in error.get("loc", ()) for error in errors
    )
    return ErrorResponse(
        error="Invalid action" if invalid_action else "Request validation failed",
        error_code=ErrorCode.INVALID_ACTION if invalid_action else ErrorCode.VALIDATION_ERROR,
        details={
            "errors": [
                {
                    "loc": [str(part) for part in error.get("loc", ())],
                    "msg": error.get("msg", ""),
                }
                for error in errors
            ],
        },
    )


def engine_error_response(exc: Exception) -> ErrorResponse:
    """Map an engine wiring error to an INTERNAL_ERROR response."""
    return ErrorResponse(
        error=str(exc),
        error_code=ErrorCode.INTERNAL_ERROR,
        details={"type": type(exc).__name__},
    )
