"""
Engine Core - Quantum state algebra and the operation engine.

The engine is the runtime that:
1. Holds a GameWorld (tiles, state owners, selections, doors)
2. Validates player requests
3. Applies switch / mix / measure via the reducer
4. Emits domain events for downstream systems
"""

from .coords import GridPos, TilePos, world_to_grid, grid_to_world, are_neighbours
from .state import (
    QState,
    add_state,
    sub_state,
    scale_state,
    divide_state,
    scal_prod,
    norm_sqr,
    normalized,
)
from .world import GameWorld, StateOwner, OwnerRole, TileMap, Door
from .action import Action, ActionType, ActionPayload, ActionResult, PLAYER_OWNER_ID
from .events import MeasurementSucceeded, MeasurementFailed, DoorOpened
from .measurement import measure, MeasurementOutcome
from .operations import switch_amplitudes, mix_amplitudes
from .reducer import Reducer, apply_action, ErrorCode

__all__ = [
    "GridPos",
    "TilePos",
    "world_to_grid",
    "grid_to_world",
    "are_neighbours",
    "QState",
    "add_state",
    "sub_state",
    "scale_state",
    "divide_state",
    "scal_prod",
    "norm_sqr",
    "normalized",
    "GameWorld",
    "StateOwner",
    "OwnerRole",
    "TileMap",
    "Door",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "PLAYER_OWNER_ID",
    "MeasurementSucceeded",
    "MeasurementFailed",
    "DoorOpened",
    "measure",
    "MeasurementOutcome",
    "switch_amplitudes",
    "mix_amplitudes",
    "Reducer",
    "apply_action",
    "ErrorCode",
]
