"""
Input Adapter - Raw pointer/keyboard events to domain requests.

Pointer releases become Select requests on the grid cell under the
cursor. Key presses become Switch (P), Mix (O) and Measure (M) requests,
emitted only when the current selection count matches the operation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from ..engine_core.action import Action, PLAYER_OWNER_ID
from ..engine_core.coords import GridPos, world_to_grid
from ..engine_core.world import GameWorld


class Key(str, Enum):
    """Keys bound to operations."""
    SWITCH = "p"
    MIX = "o"
    MEASURE = "m"


@dataclass
class Camera:
    """Orthographic camera: translation and projection scale."""
    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0

    def screen_to_world(
        self,
        screen_x: float,
        screen_y: float,
        screen_width: float,
        screen_height: float,
    ) -> tuple[float, float]:
        """
        Convert a cursor position to world space.

        Screen coordinates start at the bottom-left corner while the
        camera looks at the centre of the screen.
        """
        px = (screen_x - screen_width / 2) * self.scale
        py = (screen_y - screen_height / 2) * self.scale
        return (px + self.x, py + self.y)


@dataclass
class InputAdapter:
    """
    Translates input events into Actions for one owner.

    Reads the current world to check selection counts; never mutates it.
    """
    camera: Camera = field(default_factory=Camera)
    screen_width: float = 1280.0
    screen_height: float = 720.0
    owner_id: str = PLAYER_OWNER_ID

    def pointer_to_grid(self, screen_x: float, screen_y: float) -> GridPos:
        wx, wy = self.camera.screen_to_world(
            screen_x, screen_y, self.screen_width, self.screen_height,
        )
        return world_to_grid(wx, wy)

    def on_pointer_release(self, screen_x: float, screen_y: float) -> Action:
        """Left button released: select the cell under the cursor."""
        return Action.select(self.pointer_to_grid(screen_x, screen_y), owner_id=self.owner_id)

    def on_key_press(self, key: str, world: GameWorld) -> Action | None:
        """Key pressed: an operation request, or None if it does not apply."""
        try:
            binding = Key(key.lower())
        except ValueError:
            return None

        if binding == Key.MEASURE:
            return self.request_measure(world)
        if len(world.selections) != 2:
            return None
        gp1, gp2 = ordered_pair(world.selections)
        if binding == Key.SWITCH:
            return Action.switch(gp1, gp2, owner_id=self.owner_id)
        return Action.mix(gp1, gp2, owner_id=self.owner_id)

    def request_measure(self, world: GameWorld) -> Action | None:
        """Measure against the device under the single selected tile."""
        if len(world.selections) != 1:
            return None
        devices = world.devices_at(world.selections[0])
        if not devices:
            return None
        return Action.measure(devices[0].owner_id, owner_id=self.owner_id)


def ordered_pair(selections: tuple[GridPos, ...]) -> tuple[GridPos, GridPos]:
    """Operation operands in click order: first selected, then second."""
    return selections[0], selections[-1]
