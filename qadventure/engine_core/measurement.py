"""
Measurement - Probabilistic projective collapse against a device state.

Given the player state psi and a device state phi (normalized first):

    p = scal_prod(psi, phi)
    success with probability |p|^2:  psi <- phi * conj(p) / |p|
    failure otherwise:               psi <- (psi - conj(p) * phi) / |psi - conj(p) * phi|

For a normalized psi the failure denominator equals sqrt(1 - |p|^2); the
residual norm is used so both branches leave scal_prod(psi, psi) == 1 even
when psi carries rounding error.

Degenerate overlaps are resolved without a random draw:
- |p|^2 >= 1 - epsilon: certain success (no division by sqrt(1 - |p|^2))
- |p|^2 <= epsilon:     certain failure, psi is kept unchanged and NOT
                        projected, so up to epsilon of the device
                        component survives
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import random

import numpy as np

from .state import QState, norm_sqr, scal_prod, scale_state, sub_state, normalized

logger = logging.getLogger(__name__)

DEFAULT_MEASURE_EPSILON = 1e-9


@dataclass
class MeasurementOutcome:
    """Result of one measurement."""
    success: bool
    probability: float  # |p|^2
    overlap: complex  # p
    new_state: QState
    draw: float | None = None  # None when the outcome was certain

    @property
    def degenerate(self) -> bool:
        return self.draw is None


def success_probability(player_state: QState, device_state: QState) -> tuple[complex, float]:
    """Overlap p with the normalized device state and |p|^2 clamped to [0, 1]."""
    basis = normalized(device_state)
    overlap = scal_prod(player_state, basis)
    probability = overlap.real * overlap.real + overlap.imag * overlap.imag
    return overlap, min(max(probability, 0.0), 1.0)


def collapse_onto(device_state: QState, overlap: complex, like: QState) -> QState:
    """Success branch: the device ray, rephased by conj(p) / |p|."""
    basis = normalized(device_state)
    phase = overlap.conjugate() / abs(overlap)
    collapsed = like.empty_like()
    for pos, value in basis.items():
        collapsed[pos] = complex(value) * phase
    return collapsed


def project_away(
    player_state: QState,
    device_state: QState,
    overlap: complex,
) -> QState | None:
    """
    Failure branch: projection onto the orthogonal complement, renormalized.

    The residual is scaled by its own norm rather than sqrt(1 - |p|^2), so
    rounding in a single-precision player does not leak into the result.
    Returns None if nothing is left after the projection.
    """
    basis = normalized(device_state)
    residual = sub_state(player_state, scale_state(basis, overlap.conjugate()))
    if norm_sqr(residual) <= 0.0:
        return None
    # Keep the player's precision and tolerance
    return _like(normalized(residual), player_state)


def measure(
    player_state: QState,
    device_state: QState,
    rng: random.Random,
    epsilon: float = DEFAULT_MEASURE_EPSILON,
) -> MeasurementOutcome:
    """
    Measure the player state against a device state.

    The rng is only consumed when the outcome is not certain. epsilon is
    never finer than the resolution of the player's dtype.
    """
    epsilon = max(epsilon, float(np.finfo(player_state.dtype).resolution))
    overlap, probability = success_probability(player_state, device_state)

    if probability >= 1.0 - epsilon:
        logger.debug("Measurement certain to succeed (p^2=%.6f)", probability)
        return MeasurementOutcome(
            success=True,
            probability=probability,
            overlap=overlap,
            new_state=collapse_onto(device_state, overlap, player_state),
        )

    if probability <= epsilon:
        logger.debug("Measurement certain to fail (p^2=%.3g)", probability)
        return MeasurementOutcome(
            success=False,
            probability=probability,
            overlap=overlap,
            new_state=player_state.copy(),
        )

    draw = rng.random()
    if draw < probability:
        new_state = collapse_onto(device_state, overlap, player_state)
        success = True
    else:
        new_state = project_away(player_state, device_state, overlap)
        success = False
        if new_state is None:
            # Nothing orthogonal to the device: the player was on its ray
            new_state = collapse_onto(device_state, overlap, player_state)
            success = True

    return MeasurementOutcome(
        success=success,
        probability=probability,
        overlap=overlap,
        new_state=new_state,
        draw=draw,
    )


def _like(state: QState, template: QState) -> QState:
    if state.dtype is template.dtype and state.zero_tolerance == template.zero_tolerance:
        return state
    result = template.empty_like()
    for pos, value in state.items():
        result[pos] = value
    return result
