"""
Door system - Doors that open on a successful measurement.

A closed door carries the blocking marker, so its tile cannot be
selected. When a MeasurementSucceeded event names the door's device,
the marker is removed and the opening animation starts.
"""

from __future__ import annotations
from typing import Iterable
import logging

from ..engine_core.coords import GridPos
from ..engine_core.events import MeasurementSucceeded, DoorOpened
from ..engine_core.world import GameWorld, Door

logger = logging.getLogger(__name__)


def create_door(door_id: str, position: GridPos, device_id: str) -> Door:
    """A closed door linked to a measurement device."""
    return Door(door_id=door_id, position=position, device_id=device_id)


def open_doors(
    world: GameWorld,
    events: Iterable[object],
) -> tuple[GameWorld, list[DoorOpened]]:
    """
    Open all doors linked to the devices of successful measurements.

    Returns the new world and one DoorOpened per door that was closed.
    """
    opened: list[DoorOpened] = []
    changed: list[Door] = []
    for event in events:
        if not isinstance(event, MeasurementSucceeded):
            continue
        for door in world.doors.values():
            if door.device_id != event.device_id or not door.blocking:
                continue
            changed.append(door._copy_with(blocking=False, animating=True, elapsed=0.0))
            opened.append(DoorOpened(door_id=door.door_id, device_id=door.device_id))
            logger.info("Door %s opened by device %s", door.door_id, door.device_id)
        if changed:
            world = world.with_doors(changed)
            changed = []
    return world, opened


def advance_door_animations(world: GameWorld, dt: float) -> GameWorld:
    """Step opening animations; a door stops on its last frame."""
    stepped: list[Door] = []
    for door in world.doors.values():
        if not door.animating:
            continue
        elapsed = door.elapsed + dt
        frame = door.frame
        while elapsed >= door.frame_duration and frame < door.frame_count - 1:
            elapsed -= door.frame_duration
            frame += 1
        animating = frame < door.frame_count - 1
        stepped.append(door._copy_with(
            frame=frame,
            elapsed=elapsed if animating else 0.0,
            animating=animating,
        ))
    if not stepped:
        return world
    return world.with_doors(stepped)
