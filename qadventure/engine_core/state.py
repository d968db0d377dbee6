"""
Quantum State - Sparse amplitude maps over grid positions.

A QState maps GridPos -> complex amplitude. Invariant: a key is present
iff its amplitude is non-zero. Every write prunes a key whose squared
magnitude falls to zero_tolerance or below, so the map size is always the
number of active superpositions.

Arithmetic on whole maps is exposed as named pure functions
(add_state, sub_state, scale_state, divide_state, scal_prod) that return
new states and never alias amplitudes between maps.
"""

from __future__ import annotations
from typing import Iterable, Iterator, Mapping
import math

import numpy as np

from .coords import GridPos
from ..errors import InvalidStateError

DEFAULT_ZERO_TOLERANCE = 1e-12


class QState:
    """
    Sparse complex state vector keyed by grid position.

    Amplitudes are stored as numpy complex scalars of the state's dtype
    (complex64 by default, complex128 for double precision).
    """

    __slots__ = ("_amplitudes", "dtype", "zero_tolerance")

    def __init__(
        self,
        amplitudes: Mapping[GridPos, complex] | Iterable[tuple[GridPos, complex]] | None = None,
        dtype: type[np.complexfloating] = np.complex64,
        zero_tolerance: float = DEFAULT_ZERO_TOLERANCE,
    ):
        self._amplitudes: dict[GridPos, np.complexfloating] = {}
        self.dtype = dtype
        self.zero_tolerance = zero_tolerance
        if amplitudes is None:
            return
        items = amplitudes.items() if isinstance(amplitudes, Mapping) else amplitudes
        for pos, value in items:
            self[pos] = value

    # -- mapping protocol -------------------------------------------------

    def __getitem__(self, pos: GridPos) -> np.complexfloating:
        return self._amplitudes[pos]

    def __setitem__(self, pos: GridPos, value: complex) -> None:
        value = self.dtype(value)
        if self.is_zero(value):
            self._amplitudes.pop(pos, None)
        else:
            self._amplitudes[pos] = value

    def __delitem__(self, pos: GridPos) -> None:
        del self._amplitudes[pos]

    def __contains__(self, pos: object) -> bool:
        return pos in self._amplitudes

    def __iter__(self) -> Iterator[GridPos]:
        return iter(self._amplitudes)

    def __len__(self) -> int:
        return len(self._amplitudes)

    def __eq__(self, other):
        if not isinstance(other, QState):
            return NotImplemented
        return self._amplitudes == other._amplitudes

    def __repr__(self):
        entries = ", ".join(
            f"({p.x},{p.y}): {complex(a):.4g}" for p, a in self._amplitudes.items()
        )
        return f"QState({{{entries}}})"

    def get(self, pos: GridPos, default: complex = 0j) -> np.complexfloating:
        """Amplitude at pos, zero if absent."""
        if pos in self._amplitudes:
            return self._amplitudes[pos]
        return self.dtype(default)

    def keys(self):
        return self._amplitudes.keys()

    def items(self):
        return self._amplitudes.items()

    def values(self):
        return self._amplitudes.values()

    # -- helpers ----------------------------------------------------------

    def is_zero(self, value: complex) -> bool:
        """True if the amplitude counts as zero for this state."""
        return norm_sqr_of(value) <= self.zero_tolerance

    def empty_like(self) -> QState:
        """New empty state with the same precision and tolerance."""
        return QState(dtype=self.dtype, zero_tolerance=self.zero_tolerance)

    def copy(self) -> QState:
        """Value copy of the state."""
        new_state = self.empty_like()
        new_state._amplitudes = dict(self._amplitudes)
        return new_state

    def with_amplitudes(self, updates: Mapping[GridPos, complex]) -> QState:
        """Return a copy with some positions overwritten (zeros removed)."""
        new_state = self.copy()
        for pos, value in updates.items():
            new_state[pos] = value
        return new_state

    def norm_sqr(self) -> float:
        """Total probability, scal_prod(self, self)."""
        return norm_sqr(self)

    def check_normalized(self, tol: float = 1e-5) -> None:
        """Raise InvalidStateError if the total probability is not 1."""
        total = self.norm_sqr()
        if not abs(1.0 - total) <= tol:
            raise InvalidStateError([f"Normalization failed: total probability {total}"])

    def to_dict(self) -> dict[tuple[int, int], complex]:
        """Plain python view, for serialization."""
        return {(p.x, p.y): complex(a) for p, a in self._amplitudes.items()}


def norm_sqr_of(value: complex) -> float:
    """|value|^2 computed in double precision."""
    value = complex(value)
    return value.real * value.real + value.imag * value.imag


def _result_state(a: QState, b: QState | None = None) -> QState:
    # Widest precision of the operands wins
    dtype = a.dtype
    if b is not None and np.dtype(b.dtype).itemsize > np.dtype(a.dtype).itemsize:
        dtype = b.dtype
    return QState(dtype=dtype, zero_tolerance=a.zero_tolerance)


def add_state(a: QState, b: QState) -> QState:
    """Per-key sum, missing entries are zero."""
    result = _result_state(a, b)
    for pos in a.keys() | b.keys():
        result[pos] = complex(a.get(pos)) + complex(b.get(pos))
    return result


def sub_state(a: QState, b: QState) -> QState:
    """Per-key difference, missing entries are zero."""
    result = _result_state(a, b)
    for pos in a.keys() | b.keys():
        result[pos] = complex(a.get(pos)) - complex(b.get(pos))
    return result


def scale_state(a: QState, factor: complex) -> QState:
    """Multiply every amplitude by a real or complex scalar."""
    result = _result_state(a)
    factor = complex(factor)
    for pos, value in a.items():
        result[pos] = complex(value) * factor
    return result


def divide_state(a: QState, divisor: complex) -> QState:
    """Divide every amplitude by a non-zero scalar."""
    divisor = complex(divisor)
    if divisor == 0:
        raise ZeroDivisionError("Cannot divide a state by zero")
    return scale_state(a, 1 / divisor)


def scal_prod(a: QState, b: QState) -> complex:
    """
    Hermitian inner product: sum over keys of either map of conj(a[k]) * b[k].

    Accumulated in double precision.
    """
    total = 0j
    for pos in a.keys() | b.keys():
        total += complex(a.get(pos)).conjugate() * complex(b.get(pos))
    return total


def norm_sqr(a: QState) -> float:
    """Total probability of a state."""
    return scal_prod(a, a).real


def normalized(a: QState) -> QState:
    """Unit-norm copy of a state."""
    total = norm_sqr(a)
    if total <= 0.0:
        raise InvalidStateError(["Cannot normalize an empty state"])
    return scale_state(a, 1.0 / math.sqrt(total))
