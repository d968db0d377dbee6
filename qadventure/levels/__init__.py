"""
Levels - World construction and level-specific systems.
"""

from .doors import create_door, open_doors, advance_door_animations
from .first_level import create_first_level, make_state, validate_world, FIRST_DEVICE_ID

__all__ = [
    "create_door",
    "open_doors",
    "advance_door_animations",
    "create_first_level",
    "make_state",
    "validate_world",
    "FIRST_DEVICE_ID",
]
