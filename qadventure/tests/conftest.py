"""
Pytest fixtures for Quantum Adventure tests.
"""

import math

import pytest

from ..config import EngineConfig
from ..engine_core.action import PLAYER_OWNER_ID
from ..engine_core.coords import GridPos
from ..engine_core.world import GameWorld, StateOwner, OwnerRole, TileMap
from ..levels import create_first_level, create_door, make_state
from ..session import SessionManager, GameLoop

HALF = 1.0 / math.sqrt(2.0)


class FixedDraw:
    """RNG stand-in that always draws the same value."""

    def __init__(self, value: float):
        self.value = value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value


def build_world(
    player: dict | None,
    devices: dict[str, dict] | None = None,
    doors: list[tuple[str, tuple[int, int], str]] | None = None,
    config: EngineConfig | None = None,
    world_id: str = "test_world",
    size: tuple[int, int] = (16, 16),
) -> GameWorld:
    """World with the given player / device amplitudes, keyed by (x, y)."""
    config = config or EngineConfig()
    owners = {}
    if player is not None:
        owners[PLAYER_OWNER_ID] = StateOwner(
            owner_id=PLAYER_OWNER_ID,
            role=OwnerRole.PLAYER,
            state=make_state(player, config),
        )
    for device_id, amplitudes in (devices or {}).items():
        owners[device_id] = StateOwner(
            owner_id=device_id,
            role=OwnerRole.DEVICE,
            state=make_state(amplitudes, config),
        )
    door_map = {}
    for door_id, (x, y), device_id in doors or []:
        door_map[door_id] = create_door(door_id, GridPos(x, y), device_id)
    return GameWorld(
        world_id=world_id,
        tile_map=TileMap.rectangle(*size),
        owners=owners,
        doors=door_map,
    )


@pytest.fixture
def config() -> EngineConfig:
    """Default single-precision config."""
    return EngineConfig()


@pytest.fixture
def double_config() -> EngineConfig:
    """Double-precision config."""
    return EngineConfig(precision="double")


@pytest.fixture
def level_world(config) -> GameWorld:
    """The first level."""
    return create_first_level(config=config, world_id="test_world")


@pytest.fixture
def measurement_world(config) -> GameWorld:
    """Player certain at (3, 3), equal-weight device over (3, 3) and (5, 3)."""
    return build_world(
        player={(3, 3): 1 + 0j},
        devices={"device_1": {(3, 3): HALF, (5, 3): HALF}},
        doors=[("door_1", (6, 1), "device_1")],
        config=config,
    )


@pytest.fixture
def manager(config) -> SessionManager:
    """Session manager with the default config."""
    return SessionManager(config=config)


@pytest.fixture
def session(manager):
    """Session on the first level with a fixed seed."""
    return manager.create_session(seed=1)


@pytest.fixture
def loop(session) -> GameLoop:
    """Game loop of the session fixture."""
    return GameLoop(session)


@pytest.fixture
def measurement_session(manager):
    """Session whose level puts the player on the device tile."""

    def level_factory(config, world_id):
        return build_world(
            player={(3, 3): 1 + 0j},
            devices={"device_1": {(3, 3): HALF, (5, 3): HALF}},
            doors=[("door_1", (6, 1), "device_1")],
            config=config,
            world_id=world_id,
        )

    return manager.create_session(level_factory=level_factory, seed=1)
