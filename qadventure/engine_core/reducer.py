"""
Reducer - Applies actions to the game world.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (world, action) -> new world
- Validates before applying; a rejected action changes nothing
- Returns ActionResult with success/failure and emitted events
- Missing owners are wiring bugs and raise MissingOwnerError
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .action import Action, ActionType, ActionResult
from .coords import GridPos, are_neighbours
from .events import MeasurementSucceeded, MeasurementFailed
from .measurement import measure, DEFAULT_MEASURE_EPSILON
from .operations import switch_amplitudes, mix_amplitudes
from .world import GameWorld, OwnerRole

logger = logging.getLogger(__name__)

MAX_SELECTIONS = 2


class ErrorCode:
    """Machine-readable reasons for rejected actions."""
    NO_HANDLER = "NO_HANDLER"
    MISSING_POSITION = "MISSING_POSITION"
    NO_TILE = "NO_TILE"
    TILE_BLOCKED = "TILE_BLOCKED"
    NOT_ADJACENT = "NOT_ADJACENT"
    SELECTION_FULL = "SELECTION_FULL"
    WRONG_SELECTION_COUNT = "WRONG_SELECTION_COUNT"
    SELECTION_MISMATCH = "SELECTION_MISMATCH"
    UNKNOWN_DEVICE = "UNKNOWN_DEVICE"
    NOT_ON_DEVICE = "NOT_ON_DEVICE"


@dataclass
class Reducer:
    """
    Reducer applies actions to the game world.

    Holds no game state; the rng is the session's measurement source.
    """
    rng: random.Random = field(default_factory=random.Random)
    measure_epsilon: float = DEFAULT_MEASURE_EPSILON

    def apply(self, world: GameWorld, action: Action) -> ActionResult:
        """
        Apply an action to the world.

        Returns ActionResult with the new world or the rejection reason.
        """
        # Resolve the acting owner first: a bad handle is never a silent no-op
        world.require_player(action.payload.owner_id)

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code=ErrorCode.NO_HANDLER,
            )

        result = handler(world, action)
        if not result.success:
            logger.debug(
                "Rejected %s: %s (%s)",
                action.action_type.value, result.error, result.error_code,
            )
        return result

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.SELECT: self._handle_select,
            ActionType.CLEAR_SELECTION: self._handle_clear_selection,
            ActionType.SWITCH: self._handle_switch,
            ActionType.MIX: self._handle_mix,
            ActionType.MEASURE: self._handle_measure,
        }
        return handlers.get(action_type)

    # -- selection --------------------------------------------------------

    def _handle_select(self, world: GameWorld, action: Action) -> ActionResult:
        """
        Handle selecting a tile.

        Re-selecting a selected tile toggles it off. New selections must
        neighbour an existing one, and at most two can exist.
        """
        pos = action.payload.position
        if pos is None:
            return ActionResult.failure("Select needs a position", ErrorCode.MISSING_POSITION)

        if not world.tile_map.has_tile(pos):
            return ActionResult.failure(f"No tile at {pos}", ErrorCode.NO_TILE)
        if world.is_blocked(pos):
            return ActionResult.failure(f"Tile {pos} is blocked", ErrorCode.TILE_BLOCKED)

        if pos in world.selections:
            remaining = [p for p in world.selections if p != pos]
            return ActionResult.success_with_state(
                world.with_selections(remaining),
                changes=[f"Deselected {pos}"],
            )

        if world.selections and not any(are_neighbours(pos, p) for p in world.selections):
            return ActionResult.failure(
                f"{pos} is not adjacent to a selected tile", ErrorCode.NOT_ADJACENT,
            )

        if len(world.selections) >= MAX_SELECTIONS:
            return ActionResult.failure("Two tiles already selected", ErrorCode.SELECTION_FULL)

        return ActionResult.success_with_state(
            world.with_selections(world.selections + (pos,)),
            changes=[f"Selected {pos}"],
        )

    def _handle_clear_selection(self, world: GameWorld, action: Action) -> ActionResult:
        """Handle dropping every selection."""
        return ActionResult.success_with_state(world.with_selections(()))

    # -- pair operations --------------------------------------------------

    def _check_pair(self, world: GameWorld, action: Action) -> ActionResult | None:
        """Return a failure unless exactly gp1 and gp2 are selected."""
        gp1, gp2 = action.payload.gp1, action.payload.gp2
        if len(world.selections) != 2:
            return ActionResult.failure(
                f"Needs 2 selected tiles, have {len(world.selections)}",
                ErrorCode.WRONG_SELECTION_COUNT,
            )
        if gp1 is None or gp2 is None or {gp1, gp2} != set(world.selections):
            return ActionResult.failure(
                "Positions do not match the selection", ErrorCode.SELECTION_MISMATCH,
            )
        return None

    def _handle_switch(self, world: GameWorld, action: Action) -> ActionResult:
        """Handle swapping two amplitudes of the player state."""
        rejection = self._check_pair(world, action)
        if rejection:
            return rejection

        owner = world.require_player(action.payload.owner_id)
        gp1, gp2 = action.payload.gp1, action.payload.gp2
        new_state = switch_amplitudes(owner.state, gp1, gp2)

        new_world = world.with_owner_state(owner.owner_id, new_state).with_selections(())
        return ActionResult.success_with_state(
            new_world,
            changes=[f"Switched {gp1} and {gp2}"],
        )

    def _handle_mix(self, world: GameWorld, action: Action) -> ActionResult:
        """Handle interfering two amplitudes of the player state."""
        rejection = self._check_pair(world, action)
        if rejection:
            return rejection

        owner = world.require_player(action.payload.owner_id)
        gp1, gp2 = action.payload.gp1, action.payload.gp2
        new_state = mix_amplitudes(owner.state, gp1, gp2)

        new_world = world.with_owner_state(owner.owner_id, new_state).with_selections(())
        return ActionResult.success_with_state(
            new_world,
            changes=[f"Mixed {gp1} and {gp2}"],
        )

    # -- measurement ------------------------------------------------------

    def _handle_measure(self, world: GameWorld, action: Action) -> ActionResult:
        """
        Handle measuring the player against a device.

        The single selected tile must be a basis position of the device.
        """
        device = world.get_owner(action.payload.device_id)
        if device is None or device.role != OwnerRole.DEVICE:
            return ActionResult.failure(
                f"Unknown device: {action.payload.device_id}", ErrorCode.UNKNOWN_DEVICE,
            )
        if len(world.selections) != 1:
            return ActionResult.failure(
                f"Needs 1 selected tile, have {len(world.selections)}",
                ErrorCode.WRONG_SELECTION_COUNT,
            )
        selected: GridPos = world.selections[0]
        if selected not in device.state:
            return ActionResult.failure(
                f"{selected} is not part of device {device.owner_id}", ErrorCode.NOT_ON_DEVICE,
            )

        owner = world.require_player(action.payload.owner_id)
        outcome = measure(owner.state, device.state, self.rng, self.measure_epsilon)

        if outcome.success:
            event = MeasurementSucceeded(
                device_id=device.owner_id,
                owner_id=owner.owner_id,
                probability=outcome.probability,
            )
            change = f"Measurement on {device.owner_id} succeeded (p={outcome.probability:.3f})"
        else:
            event = MeasurementFailed(
                device_id=device.owner_id,
                owner_id=owner.owner_id,
                probability=outcome.probability,
            )
            change = f"Measurement on {device.owner_id} failed (p={outcome.probability:.3f})"
        logger.info(change)

        new_world = world.with_owner_state(owner.owner_id, outcome.new_state).with_selections(())
        return ActionResult.success_with_state(new_world, changes=[change], events=[event])


def apply_action(
    world: GameWorld,
    action: Action,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a reducer and applies the action.
    """
    reducer = Reducer(rng=rng) if rng is not None else Reducer()
    return reducer.apply(world, action)
