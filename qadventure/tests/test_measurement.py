"""
Tests for measurement against device states.

Tests:
- Success and failure branches
- Normalization is conserved
- Degenerate overlaps never draw
- Reducer preconditions and events
"""

import math
import random

import numpy as np

from ..engine_core.action import Action
from ..engine_core.coords import GridPos
from ..engine_core.events import MeasurementSucceeded, MeasurementFailed
from ..engine_core.measurement import measure, success_probability
from ..engine_core.reducer import Reducer, ErrorCode
from ..engine_core.state import QState, normalized
from .conftest import HALF, FixedDraw

DEVICE = {GridPos(3, 3): HALF, GridPos(5, 3): HALF}


def close(a, b, tol=1e-5):
    return abs(complex(a) - complex(b)) <= tol


def random_state(rng, positions, dtype=np.complex128):
    state = QState(
        {p: complex(rng.gauss(0, 1), rng.gauss(0, 1)) for p in positions},
        dtype=dtype,
    )
    return normalized(state)


class TestMeasure:
    """Tests for the measure function."""

    def test_probability(self):
        """|p|^2 of a certain tile against an equal-weight device is 1/2."""
        player = QState({GridPos(3, 3): 1.0})
        overlap, probability = success_probability(player, QState(DEVICE))
        assert abs(probability - 0.5) < 1e-6
        assert close(overlap, HALF)

    def test_success_collapses_to_device(self):
        """On success the player becomes the device state."""
        player = QState({GridPos(3, 3): 1.0})
        outcome = measure(player, QState(DEVICE), FixedDraw(0.1))

        assert outcome.success
        assert outcome.draw == 0.1
        assert close(outcome.new_state[GridPos(3, 3)], HALF)
        assert close(outcome.new_state[GridPos(5, 3)], HALF)
        assert abs(outcome.new_state.norm_sqr() - 1.0) < 1e-5

    def test_failure_projects_away(self):
        """On failure the device component is removed and the rest rescaled."""
        player = QState({GridPos(3, 3): 1.0})
        outcome = measure(player, QState(DEVICE), FixedDraw(0.9))

        assert not outcome.success
        assert close(outcome.new_state[GridPos(3, 3)], HALF)
        assert close(outcome.new_state[GridPos(5, 3)], -HALF)
        assert abs(outcome.new_state.norm_sqr() - 1.0) < 1e-5

    def test_success_keeps_phase(self):
        """The collapsed state is rephased by conj(p) / |p|."""
        player = QState({GridPos(3, 3): 1j})
        outcome = measure(player, QState(DEVICE), FixedDraw(0.1))
        assert outcome.success
        assert close(outcome.new_state[GridPos(3, 3)], HALF * 1j)
        assert close(outcome.new_state[GridPos(5, 3)], HALF * 1j)

    def test_device_normalized_first(self):
        """An unnormalized device is treated as its unit ray."""
        player = QState({GridPos(3, 3): 1.0})
        device = QState({GridPos(3, 3): 2.0, GridPos(5, 3): 2.0})
        outcome = measure(player, device, FixedDraw(0.1))
        assert abs(outcome.probability - 0.5) < 1e-6
        assert abs(outcome.new_state.norm_sqr() - 1.0) < 1e-5

    def test_keeps_player_precision(self):
        """Outcomes use the player's dtype."""
        player = QState({GridPos(3, 3): 1.0}, dtype=np.complex128)
        for draw in (0.1, 0.9):
            outcome = measure(player, QState(DEVICE), FixedDraw(draw))
            assert outcome.new_state.dtype is np.complex128

    def test_normalization_conserved(self):
        """Both branches keep a normalized player normalized, in both precisions."""
        positions = [GridPos(x, y) for x in range(3) for y in range(2)]
        for dtype in (np.complex64, np.complex128):
            rng = random.Random(11)
            for _ in range(100):
                player = random_state(rng, rng.sample(positions, 4), dtype=dtype)
                device = random_state(rng, rng.sample(positions, 2), dtype=dtype)
                outcome = measure(player, device, rng)
                assert abs(outcome.new_state.norm_sqr() - 1.0) < 1e-5
                assert not any(math.isnan(abs(complex(v))) for v in outcome.new_state.values())

    def test_normalization_conserved_near_certain(self):
        """Overlaps just short of certain keep the player normalized, in both precisions."""
        rng = random.Random(23)
        device = {GridPos(3, 3): 0.6, GridPos(4, 3): 0.8}
        orthogonal = {GridPos(3, 3): 0.8, GridPos(4, 3): -0.6, GridPos(5, 3): 0.0}
        for dtype in (np.complex64, np.complex128):
            for _ in range(50):
                s_sqr = rng.uniform(2e-6, 1e-5)
                c, s = math.sqrt(1.0 - s_sqr), math.sqrt(s_sqr)
                player = QState(
                    {pos: c * device.get(pos, 0.0) + s * orthogonal[pos] for pos in orthogonal},
                    dtype=dtype,
                )
                for draw in (0.0, 1.0):
                    outcome = measure(player, QState(device, dtype=dtype), FixedDraw(draw))
                    assert abs(outcome.new_state.norm_sqr() - 1.0) < 1e-5

    def test_failure_near_certain_single_precision(self):
        """A failed measurement with |p|^2 close to 1 leaves a unit single-precision state."""
        for s_sqr in (1e-5, 3e-6, 2e-6):
            player = QState({
                GridPos(3, 3): math.sqrt(1.0 - s_sqr),
                GridPos(5, 3): math.sqrt(s_sqr),
            })
            outcome = measure(player, QState({GridPos(3, 3): 1.0}), FixedDraw(1.0))

            assert not outcome.success
            assert not outcome.degenerate
            assert outcome.new_state.dtype is np.complex64
            assert abs(outcome.new_state.norm_sqr() - 1.0) < 1e-5
            assert close(outcome.new_state[GridPos(5, 3)], 1.0)

    def test_failure_orthogonal_to_device(self):
        """After a failed measurement the overlap with the device is zero."""
        rng = random.Random(5)
        positions = [GridPos(x, 0) for x in range(4)]
        player = random_state(rng, positions)
        device = random_state(rng, positions[:2])
        outcome = measure(player, device, FixedDraw(1.0))
        assert not outcome.success
        _, probability = success_probability(outcome.new_state, device)
        assert probability < 1e-9


class TestDegenerateMeasure:
    """Tests for certain outcomes."""

    def test_certain_success_without_draw(self):
        """A player equal to the device succeeds without drawing."""
        rng = FixedDraw(0.999)
        outcome = measure(QState(DEVICE), QState(DEVICE), rng)
        assert outcome.success
        assert outcome.degenerate
        assert rng.calls == 0
        assert abs(outcome.new_state.norm_sqr() - 1.0) < 1e-5

    def test_certain_failure_without_draw(self):
        """An orthogonal player fails and keeps its state."""
        rng = FixedDraw(0.0)
        player = QState({GridPos(0, 0): 1.0})
        outcome = measure(player, QState(DEVICE), rng)
        assert not outcome.success
        assert outcome.degenerate
        assert rng.calls == 0
        assert outcome.new_state == player
        assert outcome.new_state is not player

    def test_certain_failure_keeps_small_overlap(self):
        """A certain failure does not project, so a tiny device component stays."""
        small = math.sqrt(1e-7)
        player = QState({GridPos(0, 0): math.sqrt(1.0 - 1e-7), GridPos(3, 3): small})
        outcome = measure(player, QState({GridPos(3, 3): 1.0}), FixedDraw(0.0))

        assert not outcome.success
        assert outcome.degenerate
        assert close(outcome.new_state[GridPos(3, 3)], small, tol=1e-7)
        assert outcome.new_state == player


class TestMeasureAction:
    """Tests for the measure action in the reducer."""

    def select(self, world, x, y):
        return Reducer().apply(world, Action.select(GridPos(x, y))).new_state

    def test_success_emits_one_event(self, measurement_world):
        """A successful measurement emits a single success event."""
        world = self.select(measurement_world, 3, 3)
        result = Reducer(rng=FixedDraw(0.1)).apply(world, Action.measure("device_1"))

        assert result.success
        assert len(result.events) == 1
        event = result.events[0]
        assert isinstance(event, MeasurementSucceeded)
        assert event.device_id == "device_1"
        assert abs(event.probability - 0.5) < 1e-6

        state = result.new_state.owners["player"].state
        assert close(state[GridPos(5, 3)], HALF)
        assert result.new_state.selections == ()

    def test_failure_emits_failed_event(self, measurement_world):
        """A failed measurement emits no success event."""
        world = self.select(measurement_world, 3, 3)
        result = Reducer(rng=FixedDraw(0.9)).apply(world, Action.measure("device_1"))

        assert result.success
        assert [type(e) for e in result.events] == [MeasurementFailed]
        state = result.new_state.owners["player"].state
        assert close(state[GridPos(5, 3)], -HALF)

    def test_device_unchanged(self, measurement_world):
        """Measurement never writes the device state."""
        world = self.select(measurement_world, 3, 3)
        device_before = world.owners["device_1"].state
        result = Reducer(rng=FixedDraw(0.1)).apply(world, Action.measure("device_1"))
        assert result.new_state.owners["device_1"].state is device_before

    def test_needs_one_selection(self, measurement_world):
        """Measure without a selection is rejected."""
        result = Reducer().apply(measurement_world, Action.measure("device_1"))
        assert not result.success
        assert result.error_code == ErrorCode.WRONG_SELECTION_COUNT

    def test_selection_must_be_on_device(self, measurement_world):
        """The selected tile must belong to the device."""
        world = self.select(measurement_world, 0, 0)
        result = Reducer().apply(world, Action.measure("device_1"))
        assert not result.success
        assert result.error_code == ErrorCode.NOT_ON_DEVICE

    def test_unknown_device(self, measurement_world):
        """Measuring against a missing device is rejected."""
        world = self.select(measurement_world, 3, 3)
        result = Reducer().apply(world, Action.measure("device_9"))
        assert not result.success
        assert result.error_code == ErrorCode.UNKNOWN_DEVICE

    def test_player_is_not_a_device(self, measurement_world):
        """The player cannot be used as a measurement basis."""
        world = self.select(measurement_world, 3, 3)
        result = Reducer().apply(world, Action.measure("player"))
        assert result.error_code == ErrorCode.UNKNOWN_DEVICE
