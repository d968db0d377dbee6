"""
First level - The opening puzzle.

Layout:
- 16 x 16 tiles (2 x 2 chunks of 8 x 8)
- Player starts certain at (0, 0)
- Measurement device "device_1" over (3, 3) and (5, 3), equal weights
- Door at (6, 1) opened by a successful measurement on device_1
"""

from __future__ import annotations
import math
import uuid

from ..config import EngineConfig, DEFAULT_CONFIG
from ..engine_core.action import PLAYER_OWNER_ID
from ..engine_core.coords import GridPos
from ..engine_core.state import QState
from ..engine_core.world import GameWorld, StateOwner, OwnerRole, TileMap
from ..errors import InvalidStateError
from .doors import create_door

CHUNK_SIZE = 8
MAP_CHUNKS = (2, 2)
FIRST_DEVICE_ID = "device_1"


def make_state(amplitudes: dict[tuple[int, int], complex], config: EngineConfig = DEFAULT_CONFIG) -> QState:
    """Build a QState from plain (x, y) -> amplitude pairs."""
    return QState(
        {GridPos(x, y): value for (x, y), value in amplitudes.items()},
        dtype=config.dtype,
        zero_tolerance=config.zero_tolerance,
    )


def validate_world(world: GameWorld, tol: float = 1e-5) -> None:
    """
    Check a freshly built world.

    Raises InvalidStateError listing every problem found.
    """
    errors: list[str] = []
    if not world.players:
        errors.append("World has no player")
    for owner in world.owners.values():
        total = owner.state.norm_sqr()
        if abs(total - 1.0) > tol:
            errors.append(f"{owner.owner_id} is not normalized (total {total:.6f})")
        for pos in owner.state:
            if not world.tile_map.has_tile(pos):
                errors.append(f"{owner.owner_id} has amplitude off the map at {pos}")
    for door in world.doors.values():
        device = world.get_owner(door.device_id)
        if device is None or device.role != OwnerRole.DEVICE:
            errors.append(f"Door {door.door_id} links to unknown device {door.device_id}")
    if errors:
        raise InvalidStateError(errors)


def create_first_level(config: EngineConfig = DEFAULT_CONFIG, world_id: str | None = None) -> GameWorld:
    """Build the world of the first level."""
    width = MAP_CHUNKS[0] * CHUNK_SIZE
    height = MAP_CHUNKS[1] * CHUNK_SIZE

    half = 1.0 / math.sqrt(2.0)
    player = StateOwner(
        owner_id=PLAYER_OWNER_ID,
        role=OwnerRole.PLAYER,
        state=make_state({(0, 0): 1 + 0j}, config),
    )
    device = StateOwner(
        owner_id=FIRST_DEVICE_ID,
        role=OwnerRole.DEVICE,
        state=make_state({(3, 3): half, (5, 3): half}, config),
    )
    door = create_door("door_1", GridPos(6, 1), FIRST_DEVICE_ID)

    world = GameWorld(
        world_id=world_id or str(uuid.uuid4()),
        tile_map=TileMap.rectangle(width, height),
        owners={player.owner_id: player, device.owner_id: device},
        doors={door.door_id: door},
        metadata={"level": "first_level"},
    )
    validate_world(world)
    return world
