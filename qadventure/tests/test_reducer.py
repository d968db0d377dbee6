"""
Tests for the reducer (selection and state operations).

Tests:
- Selection rules
- Switch and Mix
- Rejections leave the world untouched
- Missing owners raise
"""

import random

import pytest

from ..engine_core.action import Action, ActionType
from ..engine_core.coords import GridPos, are_neighbours
from ..engine_core.operations import mix_amplitudes, switch_amplitudes
from ..engine_core.reducer import Reducer, ErrorCode, apply_action
from ..engine_core.state import QState
from ..errors import MissingOwnerError
from .conftest import HALF, build_world


def select_all(world, *positions):
    for x, y in positions:
        result = apply_action(world, Action.select(GridPos(x, y)))
        assert result.success, result.error
        world = result.new_state
    return world


def close(a, b, tol=1e-6):
    return abs(complex(a) - complex(b)) <= tol


class TestSelect:
    """Tests for the select action."""

    def test_select_tile(self, level_world):
        """Selecting a free tile records it."""
        result = apply_action(level_world, Action.select(GridPos(0, 0)))
        assert result.success
        assert result.new_state.selections == (GridPos(0, 0),)

    def test_select_off_map(self, level_world):
        """Positions without a tile are rejected."""
        for pos in [GridPos(16, 0), GridPos(-1, 0)]:
            result = apply_action(level_world, Action.select(pos))
            assert not result.success
            assert result.error_code == ErrorCode.NO_TILE

    def test_select_blocked_door(self, level_world):
        """A closed door's tile cannot be selected."""
        result = apply_action(level_world, Action.select(GridPos(6, 1)))
        assert not result.success
        assert result.error_code == ErrorCode.TILE_BLOCKED

    def test_second_selection_adjacent(self, level_world):
        """A neighbouring tile, diagonals included, can join the selection."""
        world = select_all(level_world, (2, 2), (3, 3))
        assert world.selections == (GridPos(2, 2), GridPos(3, 3))

    def test_second_selection_not_adjacent(self, level_world):
        """A distant tile is rejected."""
        world = select_all(level_world, (0, 0))
        result = apply_action(world, Action.select(GridPos(2, 0)))
        assert not result.success
        assert result.error_code == ErrorCode.NOT_ADJACENT
        assert world.selections == (GridPos(0, 0),)

    def test_toggle_off(self, level_world):
        """Selecting a selected tile removes it."""
        world = select_all(level_world, (0, 0), (1, 0), (0, 0))
        assert world.selections == (GridPos(1, 0),)

    def test_third_selection_rejected(self, level_world):
        """At most two tiles can be selected."""
        world = select_all(level_world, (0, 0), (1, 0))
        result = apply_action(world, Action.select(GridPos(1, 1)))
        assert not result.success
        assert result.error_code == ErrorCode.SELECTION_FULL

    def test_clear_selection(self, level_world):
        """Clearing drops every selection."""
        world = select_all(level_world, (0, 0), (1, 0))
        result = apply_action(world, Action.clear_selection())
        assert result.success
        assert result.new_state.selections == ()

    def test_selection_stays_adjacent(self, level_world):
        """Random click sequences never leave two distant selections."""
        rng = random.Random(42)
        world = level_world
        for _ in range(300):
            pos = GridPos(rng.randrange(0, 5), rng.randrange(0, 5))
            result = apply_action(world, Action.select(pos))
            if result.success:
                world = result.new_state
            assert len(world.selections) <= 2
            if len(world.selections) == 2:
                assert are_neighbours(*world.selections)

    def test_rejection_leaves_world(self, level_world):
        """A rejected select returns no new world."""
        result = apply_action(level_world, Action.select(GridPos(20, 20)))
        assert result.new_state is None
        assert level_world.selections == ()


class TestSwitch:
    """Tests for the switch action."""

    def test_switch_moves_amplitude(self, level_world):
        """Switching a certain tile with an empty one moves it."""
        world = select_all(level_world, (0, 0), (1, 0))
        result = apply_action(world, Action.switch(GridPos(0, 0), GridPos(1, 0)))

        assert result.success
        state = result.new_state.owners["player"].state
        assert GridPos(0, 0) not in state
        assert close(state[GridPos(1, 0)], 1.0)
        assert result.new_state.selections == ()

    def test_switch_is_pure(self, level_world):
        """The input world keeps its state."""
        world = select_all(level_world, (0, 0), (1, 0))
        apply_action(world, Action.switch(GridPos(0, 0), GridPos(1, 0)))
        assert close(world.owners["player"].state[GridPos(0, 0)], 1.0)

    def test_switch_twice_restores(self):
        """Switch is an involution."""
        state = QState({GridPos(0, 0): 0.6, GridPos(1, 0): 0.8j})
        once = switch_amplitudes(state, GridPos(0, 0), GridPos(1, 0))
        twice = switch_amplitudes(once, GridPos(0, 0), GridPos(1, 0))
        assert twice == state

    def test_switch_needs_two_selections(self, level_world):
        """Switch with one selection is rejected."""
        world = select_all(level_world, (0, 0))
        result = apply_action(world, Action.switch(GridPos(0, 0), GridPos(1, 0)))
        assert not result.success
        assert result.error_code == ErrorCode.WRONG_SELECTION_COUNT

    def test_switch_positions_must_match(self, level_world):
        """Operands must be the selected tiles."""
        world = select_all(level_world, (0, 0), (1, 0))
        result = apply_action(world, Action.switch(GridPos(0, 0), GridPos(0, 1)))
        assert not result.success
        assert result.error_code == ErrorCode.SELECTION_MISMATCH
        assert world.selections == (GridPos(0, 0), GridPos(1, 0))


class TestMix:
    """Tests for the mix action."""

    def test_mix_splits_certain_state(self, level_world):
        """Mixing a certain tile with an empty one gives equal weights."""
        world = select_all(level_world, (0, 0), (1, 0))
        result = apply_action(world, Action.mix(GridPos(0, 0), GridPos(1, 0)))

        assert result.success
        state = result.new_state.owners["player"].state
        assert len(state) == 2
        assert close(state[GridPos(0, 0)], HALF)
        assert close(state[GridPos(1, 0)], HALF)
        assert abs(state.norm_sqr() - 1.0) < 1e-5

    def test_mix_operand_order(self):
        """gp1 takes the difference, gp2 the sum."""
        state = QState({GridPos(0, 0): 1.0})
        mixed = mix_amplitudes(state, GridPos(1, 0), GridPos(0, 0))
        assert close(mixed[GridPos(1, 0)], -HALF)
        assert close(mixed[GridPos(0, 0)], HALF)

    def test_mix_reversed_undoes(self):
        """Mix(q, p) undoes Mix(p, q)."""
        p, q = GridPos(0, 0), GridPos(1, 0)
        state = QState({p: 0.6, q: 0.8j})
        restored = mix_amplitudes(mix_amplitudes(state, p, q), q, p)
        assert close(restored[p], 0.6)
        assert close(restored[q], 0.8j)

    def test_mix_same_order_twice(self):
        """Mix(p, q) twice maps (a, b) to (-b, a)."""
        p, q = GridPos(0, 0), GridPos(1, 0)
        state = QState({p: 0.6, q: 0.8j})
        twice = mix_amplitudes(mix_amplitudes(state, p, q), p, q)
        assert close(twice[p], -0.8j)
        assert close(twice[q], 0.6)

    def test_mix_cancellation_prunes(self):
        """Destructive interference removes the key."""
        p, q = GridPos(0, 0), GridPos(1, 0)
        state = QState({p: HALF, q: HALF})
        mixed = mix_amplitudes(state, p, q)
        assert p not in mixed
        assert close(mixed[q], 1.0)

    def test_mix_conserves_norm(self):
        """Mix is unitary on arbitrary amplitudes."""
        rng = random.Random(3)
        p, q, r = GridPos(0, 0), GridPos(0, 1), GridPos(1, 1)
        for _ in range(50):
            state = QState({
                p: complex(rng.uniform(-1, 1), rng.uniform(-1, 1)),
                q: complex(rng.uniform(-1, 1), rng.uniform(-1, 1)),
                r: complex(rng.uniform(-1, 1), rng.uniform(-1, 1)),
            })
            before = state.norm_sqr()
            assert abs(mix_amplitudes(state, p, q).norm_sqr() - before) < 1e-5 * max(before, 1.0)


class TestOwners:
    """Tests for the owner handle."""

    def test_missing_player_raises(self):
        """Operating without a player is a wiring bug."""
        world = build_world(player=None, devices={"device_1": {(3, 3): 1.0}})
        with pytest.raises(MissingOwnerError):
            apply_action(world, Action.select(GridPos(0, 0)))

    def test_unknown_owner_raises(self, level_world):
        """An unknown handle raises instead of doing nothing."""
        with pytest.raises(MissingOwnerError) as exc_info:
            apply_action(level_world, Action.select(GridPos(0, 0), owner_id="ghost"))
        assert exc_info.value.owner_id == "ghost"

    def test_device_is_not_a_player(self, level_world):
        """A device handle cannot act."""
        world = select_all(level_world, (3, 3))
        with pytest.raises(MissingOwnerError):
            apply_action(world, Action.measure("device_1", owner_id="device_1"))

    def test_reducer_dispatch(self, level_world):
        """Every action type has a handler."""
        reducer = Reducer()
        for action_type in ActionType:
            assert reducer._get_handler(action_type) is not None
