"""
Domain events emitted by the operation engine.

Events are collected per tick and handed to downstream systems after
all requests of the tick have been applied.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class MeasurementSucceeded:
    """A measurement collapsed the owner onto the device state."""
    device_id: str
    owner_id: str
    probability: float


@dataclass(frozen=True)
class MeasurementFailed:
    """A measurement projected the owner away from the device state."""
    device_id: str
    owner_id: str
    probability: float


@dataclass(frozen=True)
class DoorOpened:
    """A door lost its blocking marker."""
    door_id: str
    device_id: str
