"""
Tests for visual indicators and their reconciliation.

Tests:
- Render parameters derived from amplitudes
- Spawn / update / remove against the state
- Idempotence
- Teardown of vanished owners
"""

import math

from ..config import EngineConfig
from ..engine_core.coords import GridPos
from ..engine_core.world import StateOwner, OwnerRole
from ..levels import make_state
from ..visuals import (
    IndicatorReconciler,
    SubIndicatorKind,
    phase_rotation,
    bar_length,
    opacity,
)
from .conftest import HALF


def player_owner(amplitudes, config=None):
    return StateOwner(
        owner_id="player",
        role=OwnerRole.PLAYER,
        state=make_state(amplitudes, config or EngineConfig()),
    )


class TestRenderParams:
    """Tests for the pure render parameter functions."""

    def test_phase_rotation(self):
        """Rotation is the argument of the amplitude."""
        assert phase_rotation(1.0) == 0.0
        assert math.isclose(phase_rotation(1j), math.pi / 2)
        assert math.isclose(phase_rotation(-1.0), math.pi)

    def test_bar_length_rounds_up(self):
        """Bar length is ceil(|a| * scale)."""
        assert bar_length(1.0, 46) == 46
        assert bar_length(HALF, 46) == 33
        assert bar_length(HALF, 24) == 17
        assert bar_length(-HALF * 1j, 46) == 33

    def test_opacity(self):
        """Only a certain position is fully opaque."""
        assert opacity(1.0) == 1.0
        assert opacity(-1j) == 1.0
        assert opacity(HALF) == 0.6
        assert opacity(HALF, reduced=0.3) == 0.3


class TestReconcile:
    """Tests for IndicatorReconciler.reconcile."""

    def test_initial_spawn(self):
        """Every state key gets one indicator."""
        reconciler = IndicatorReconciler()
        owner = player_owner({(0, 0): 1.0})
        result = reconciler.reconcile(owner)

        assert result.spawned == [GridPos(0, 0)]
        assert len(result.render_updates) == 1
        params = result.render_updates[0]
        assert params.bar_length == 46
        assert params.opacity == 1.0
        assert (params.world_x, params.world_y) == (32.0, 32.0)

    def test_sub_indicators(self):
        """Player indicators carry three children, device indicators two."""
        reconciler = IndicatorReconciler()
        player = player_owner({(0, 0): 1.0})
        device = StateOwner(
            owner_id="device_1",
            role=OwnerRole.DEVICE,
            state=make_state({(3, 3): HALF, (5, 3): HALF}, EngineConfig()),
        )
        reconciler.reconcile(player)
        reconciler.reconcile(device)

        kinds = [c.kind for c in reconciler.trees["player"].get(GridPos(0, 0)).children]
        assert SubIndicatorKind.PHASE_ARROW in kinds
        assert len(kinds) == 3
        assert len(reconciler.trees["device_1"].get(GridPos(3, 3)).children) == 2
        assert reconciler.trees["device_1"].get(GridPos(3, 3)).render_params.bar_length == 17

    def test_idempotent(self):
        """A second pass without a state change does nothing."""
        reconciler = IndicatorReconciler()
        owner = player_owner({(0, 0): HALF, (1, 0): HALF * 1j})
        reconciler.reconcile(owner)
        again = reconciler.reconcile(owner)
        assert not again.changed
        assert again.render_updates == []

    def test_mix_result(self):
        """A split state shows two reduced-opacity bars of 33 pixels."""
        reconciler = IndicatorReconciler()
        reconciler.reconcile(player_owner({(0, 0): 1.0}))
        result = reconciler.reconcile(player_owner({(0, 0): HALF, (1, 0): HALF}))

        assert result.spawned == [GridPos(1, 0)]
        assert result.updated == [GridPos(0, 0)]
        tree = reconciler.trees["player"]
        assert len(tree) == 2
        for params in tree.render_params():
            assert params.bar_length == 33
            assert params.opacity == 0.6

    def test_removed_key_destroys_indicator(self):
        """An indicator whose key vanished is destroyed with its children."""
        reconciler = IndicatorReconciler()
        reconciler.reconcile(player_owner({(0, 0): HALF, (1, 0): HALF}))
        doomed = reconciler.trees["player"].get(GridPos(0, 0))

        result = reconciler.reconcile(player_owner({(1, 0): 1.0}))

        assert result.removed == [GridPos(0, 0)]
        assert not doomed.alive
        assert doomed.children == []
        assert GridPos(0, 0) not in reconciler.trees["player"]

    def test_phase_update(self):
        """A phase change updates the indicator in place."""
        reconciler = IndicatorReconciler()
        reconciler.reconcile(player_owner({(0, 0): 1.0}))
        indicator = reconciler.trees["player"].get(GridPos(0, 0))

        result = reconciler.reconcile(player_owner({(0, 0): 1j}))

        assert result.updated == [GridPos(0, 0)]
        assert reconciler.trees["player"].get(GridPos(0, 0)) is indicator
        assert math.isclose(result.render_updates[0].rotation, math.pi / 2, abs_tol=1e-6)

    def test_tree_matches_state_keys(self):
        """After any pass the tree keys equal the state keys."""
        reconciler = IndicatorReconciler()
        sequence = [
            {(0, 0): 1.0},
            {(0, 0): HALF, (1, 0): HALF},
            {(1, 0): 1.0},
            {(2, 2): 0.6, (3, 2): 0.8j},
        ]
        for amplitudes in sequence:
            owner = player_owner(amplitudes)
            reconciler.reconcile(owner)
            assert set(reconciler.trees["player"].indicators) == set(owner.state.keys())

    def test_configured_scale(self):
        """Bar scale comes from the config."""
        reconciler = IndicatorReconciler(config=EngineConfig(player_bar_scale=10))
        result = reconciler.reconcile(player_owner({(0, 0): 1.0}))
        assert result.render_updates[0].bar_length == 10


class TestReconcileWorld:
    """Tests for whole-world reconciliation."""

    def test_all_owners(self, level_world):
        """Every owner of the level gets a tree."""
        reconciler = IndicatorReconciler()
        results = reconciler.reconcile_world(level_world)
        assert {r.owner_id for r in results} == {"player", "device_1"}
        assert len(reconciler.trees["player"]) == 1
        assert len(reconciler.trees["device_1"]) == 2

    def test_vanished_owner_torn_down(self, level_world):
        """Trees of owners no longer in the world are cleared."""
        reconciler = IndicatorReconciler()
        reconciler.reconcile_world(level_world)
        indicator = reconciler.trees["device_1"].get(GridPos(3, 3))

        world = level_world._copy_with(owners={"player": level_world.owners["player"]})
        reconciler.reconcile_world(world)

        assert "device_1" not in reconciler.trees
        assert not indicator.alive
