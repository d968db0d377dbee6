"""
Local operations on a pair of basis positions.

Both functions are pure: they read the amplitudes at the two positions
(zero if absent) and return a new state. Keys whose result is zero, up to
the state's tolerance, are removed.
"""

from __future__ import annotations
import math

from .coords import GridPos
from .state import QState

INV_SQRT2 = 1.0 / math.sqrt(2.0)


def switch_amplitudes(state: QState, gp1: GridPos, gp2: GridPos) -> QState:
    """Swap the amplitudes stored at gp1 and gp2."""
    a = state.get(gp1)
    b = state.get(gp2)
    return state.with_amplitudes({gp1: b, gp2: a})


def mix_amplitudes(state: QState, gp1: GridPos, gp2: GridPos) -> QState:
    """
    Interfere the amplitudes at gp1 and gp2.

        a_f = (a_i - b_i) / sqrt(2)   -> gp1
        b_f = (a_i + b_i) / sqrt(2)   -> gp2

    mix_amplitudes(s, gp2, gp1) undoes mix_amplitudes(s, gp1, gp2).
    Applying the same ordering twice maps (a, b) to (-b, a).
    """
    a_i = complex(state.get(gp1))
    b_i = complex(state.get(gp2))
    a_f = (a_i - b_i) * INV_SQRT2
    b_f = (a_i + b_i) * INV_SQRT2
    return state.with_amplitudes({gp1: a_f, gp2: b_f})
