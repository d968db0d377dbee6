"""
Game World - Snapshot of everything the operation engine reads and writes.

Design principles:
- Immutable-friendly: all mutations return a new world
- Explicit owners: the player state is a handle in `owners`, never a
  singleton discovered by query
- Devices are read-only after spawn
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from .coords import GridPos, TilePos
from .state import QState
from ..errors import MissingOwnerError


class OwnerRole(Enum):
    """Role of a state owner."""
    PLAYER = "player"  # Mutable, drives gameplay
    DEVICE = "device"  # Read-only measurement basis


@dataclass(frozen=True)
class StateOwner:
    """An entity holding exactly one QState."""
    owner_id: str
    role: OwnerRole
    state: QState

    @property
    def is_player(self) -> bool:
        return self.role == OwnerRole.PLAYER

    def with_state(self, state: QState) -> StateOwner:
        """Return new owner holding a different state."""
        return StateOwner(owner_id=self.owner_id, role=self.role, state=state)


@dataclass(frozen=True)
class TileMap:
    """
    Set of renderable tiles.

    Positions outside the map cannot be selected.
    """
    tiles: frozenset[TilePos] = frozenset()

    @classmethod
    def rectangle(cls, width: int, height: int) -> TileMap:
        """Full width x height map anchored at (0, 0)."""
        return cls(tiles=frozenset(
            TilePos(x, y) for x in range(width) for y in range(height)
        ))

    def has_tile(self, pos: GridPos) -> bool:
        tile = pos.to_tile()
        return tile is not None and tile in self.tiles

    def __len__(self) -> int:
        return len(self.tiles)


@dataclass(frozen=True)
class Door:
    """
    A door opened by a successful measurement on a linked device.

    While `blocking` is set the door's tile cannot be selected.
    """
    door_id: str
    position: GridPos
    device_id: str
    blocking: bool = True

    # Opening animation
    frame: int = 0
    frame_count: int = 10
    frame_duration: float = 0.1
    animating: bool = False
    elapsed: float = 0.0

    @property
    def is_open(self) -> bool:
        return not self.blocking

    def _copy_with(self, **kwargs) -> Door:
        values = {
            "door_id": self.door_id,
            "position": self.position,
            "device_id": self.device_id,
            "blocking": self.blocking,
            "frame": self.frame,
            "frame_count": self.frame_count,
            "frame_duration": self.frame_duration,
            "animating": self.animating,
            "elapsed": self.elapsed,
        }
        values.update(kwargs)
        return Door(**values)


@dataclass
class GameWorld:
    """
    Complete game world at a point in time.

    This is what the reducer operates on.
    All state changes go through the reducer.
    """
    world_id: str
    tile_map: TileMap = field(default_factory=TileMap)

    # State owners keyed by owner id
    owners: dict[str, StateOwner] = field(default_factory=dict)

    # Selected positions, oldest first (at most 2)
    selections: tuple[GridPos, ...] = ()

    # Doors keyed by door id
    doors: dict[str, Door] = field(default_factory=dict)

    tick: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    # -- owners -----------------------------------------------------------

    def get_owner(self, owner_id: str | None) -> StateOwner | None:
        """Get owner by ID."""
        if owner_id is None:
            return None
        return self.owners.get(owner_id)

    def require_player(self, owner_id: str) -> StateOwner:
        """
        Player owner for a handle.

        A missing player is a wiring bug, never a gameplay condition.
        """
        owner = self.get_owner(owner_id)
        if owner is None or not owner.is_player:
            raise MissingOwnerError(owner_id, OwnerRole.PLAYER.value)
        return owner

    @property
    def players(self) -> list[StateOwner]:
        return [o for o in self.owners.values() if o.role == OwnerRole.PLAYER]

    @property
    def devices(self) -> list[StateOwner]:
        return [o for o in self.owners.values() if o.role == OwnerRole.DEVICE]

    def devices_at(self, pos: GridPos) -> list[StateOwner]:
        """Devices whose state has a basis position at pos."""
        return [d for d in self.devices if pos in d.state]

    # -- tiles ------------------------------------------------------------

    def is_blocked(self, pos: GridPos) -> bool:
        """True if a blocking occupant sits on pos."""
        return any(d.blocking and d.position == pos for d in self.doors.values())

    def is_selectable(self, pos: GridPos) -> bool:
        """True if pos has a renderable, non-blocked tile."""
        return self.tile_map.has_tile(pos) and not self.is_blocked(pos)

    # -- copies -----------------------------------------------------------

    def with_owner(self, owner: StateOwner) -> GameWorld:
        """Return new world with an owner added or replaced."""
        new_owners = dict(self.owners)
        new_owners[owner.owner_id] = owner
        return self._copy_with(owners=new_owners)

    def with_owner_state(self, owner_id: str, state: QState) -> GameWorld:
        """Return new world where an existing owner holds `state`."""
        owner = self.owners[owner_id]
        return self.with_owner(owner.with_state(state))

    def with_selections(self, selections: Iterable[GridPos]) -> GameWorld:
        return self._copy_with(selections=tuple(selections))

    def with_doors(self, doors: Iterable[Door]) -> GameWorld:
        """Return new world with the given doors replaced."""
        new_doors = dict(self.doors)
        for door in doors:
            new_doors[door.door_id] = door
        return self._copy_with(doors=new_doors)

    def _copy_with(self, **kwargs) -> GameWorld:
        """Create a copy with some fields replaced."""
        return GameWorld(
            world_id=kwargs.get("world_id", self.world_id),
            tile_map=kwargs.get("tile_map", self.tile_map),
            owners=kwargs.get("owners", self.owners),
            selections=kwargs.get("selections", self.selections),
            doors=kwargs.get("doors", self.doors),
            tick=kwargs.get("tick", self.tick),
            metadata=kwargs.get("metadata", self.metadata),
        )
