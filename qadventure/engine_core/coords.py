"""
Grid coordinates.

GridPos is the key of every amplitude map. TilePos is the unsigned
coordinate used by the tile map collaborator; the two compare equal
when the grid position is non-negative and numerically identical.
"""

from __future__ import annotations
from dataclasses import dataclass
import math

TILE_SIZE = 64.0


@dataclass(frozen=True)
class TilePos:
    """Unsigned tile coordinate of the tile map."""
    x: int
    y: int

    def __post_init__(self):
        if self.x < 0 or self.y < 0:
            raise ValueError(f"Tile coordinates must be non-negative: ({self.x}, {self.y})")

    def __eq__(self, other):
        if isinstance(other, TilePos):
            return self.x == other.x and self.y == other.y
        if isinstance(other, GridPos):
            return other == self
        return NotImplemented

    def __hash__(self):
        return hash((self.x, self.y))


@dataclass(frozen=True)
class GridPos:
    """A discrete position on the game grid."""
    x: int
    y: int

    def __eq__(self, other):
        if isinstance(other, GridPos):
            return self.x == other.x and self.y == other.y
        if isinstance(other, TilePos):
            return self.x >= 0 and self.y >= 0 and self.x == other.x and self.y == other.y
        return NotImplemented

    def __hash__(self):
        return hash((self.x, self.y))

    def __iter__(self):
        yield self.x
        yield self.y

    def __repr__(self):
        return f"GridPos({self.x}, {self.y})"

    def to_tile(self) -> TilePos | None:
        """Tile coordinate for this position, None if off the unsigned grid."""
        if self.x < 0 or self.y < 0:
            return None
        return TilePos(self.x, self.y)


def world_to_grid(wx: float, wy: float) -> GridPos:
    """Grid cell containing a world-space point."""
    return GridPos(math.floor(wx / TILE_SIZE), math.floor(wy / TILE_SIZE))


def grid_to_world(gp: GridPos) -> tuple[float, float]:
    """World-space centre of a grid cell."""
    half = TILE_SIZE / 2
    return (half + gp.x * TILE_SIZE, half + gp.y * TILE_SIZE)


def are_neighbours(p1: GridPos, p2: GridPos) -> bool:
    """Chebyshev distance at most 1 (a position neighbours itself)."""
    return abs(p1.x - p2.x) <= 1 and abs(p1.y - p2.y) <= 1
