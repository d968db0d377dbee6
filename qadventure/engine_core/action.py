"""
Action System - Player requests, payloads, and results.

Actions represent:
1. Selection requests (select a tile, clear the selection)
2. State operations on the selected tiles (switch, mix, measure)

All state changes flow through actions. Every action names the state
owner it acts on, so the engine never has to discover the player.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .coords import GridPos

PLAYER_OWNER_ID = "player"


class ActionType(Enum):
    """Types of actions in the system."""
    SELECT = "select"
    CLEAR_SELECTION = "clear_selection"
    SWITCH = "switch"
    MIX = "mix"
    MEASURE = "measure"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    Validation happens in the reducer.
    """
    owner_id: str = PLAYER_OWNER_ID

    # For select
    position: GridPos | None = None

    # For switch / mix
    gp1: GridPos | None = None
    gp2: GridPos | None = None

    # For measure
    device_id: str | None = None

    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete request to be applied to the game world.

    Actions are queued per tick and applied atomically by the reducer.
    """
    action_type: ActionType
    payload: ActionPayload
    timestamp: float | None = None
    action_id: str | None = None

    @classmethod
    def select(cls, position: GridPos, owner_id: str = PLAYER_OWNER_ID) -> Action:
        """Factory for selecting (or deselecting) a tile."""
        return cls(
            action_type=ActionType.SELECT,
            payload=ActionPayload(owner_id=owner_id, position=position),
        )

    @classmethod
    def clear_selection(cls, owner_id: str = PLAYER_OWNER_ID) -> Action:
        """Factory for dropping every selection."""
        return cls(
            action_type=ActionType.CLEAR_SELECTION,
            payload=ActionPayload(owner_id=owner_id),
        )

    @classmethod
    def switch(cls, gp1: GridPos, gp2: GridPos, owner_id: str = PLAYER_OWNER_ID) -> Action:
        """Factory for swapping the amplitudes of two selected tiles."""
        return cls(
            action_type=ActionType.SWITCH,
            payload=ActionPayload(owner_id=owner_id, gp1=gp1, gp2=gp2),
        )

    @classmethod
    def mix(cls, gp1: GridPos, gp2: GridPos, owner_id: str = PLAYER_OWNER_ID) -> Action:
        """Factory for interfering the amplitudes of two selected tiles."""
        return cls(
            action_type=ActionType.MIX,
            payload=ActionPayload(owner_id=owner_id, gp1=gp1, gp2=gp2),
        )

    @classmethod
    def measure(cls, device_id: str, owner_id: str = PLAYER_OWNER_ID) -> Action:
        """Factory for measuring the owner against a device."""
        return cls(
            action_type=ActionType.MEASURE,
            payload=ActionPayload(owner_id=owner_id, device_id=device_id),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action was applied
    - New world (if applied)
    - Error and error code (if rejected)
    - Domain events emitted by the action
    """
    success: bool
    new_state: Any | None = None  # GameWorld
    error: str | None = None
    error_code: str | None = None

    # For logging / UI
    state_changes: list[str] = field(default_factory=list)

    # For downstream systems (doors, ...)
    events: list[Any] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        events: list[Any] | None = None,
    ) -> ActionResult:
        """Create a success result with new world."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            events=events or [],
        )
