"""
Indicator Reconciler - Keeps indicator trees in step with state maps.

Each state owner has an IndicatorTree: an arena of VisualIndicator
records keyed by grid position. After the mutations of a tick, the
reconciler diffs the owner's QState against its tree:

1. For every existing indicator (snapshot taken before any change):
   - key absent from the state -> destroy it, sub-indicators included
   - cached amplitude differs   -> update it in place
2. For every state key without an indicator -> spawn one

Afterwards the tree holds exactly one indicator per state key. Running
the diff again without a state change reports nothing.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable
import logging

from .indicator import (
    VisualIndicator,
    IndicatorStyle,
    RenderParams,
    PLAYER_STYLE,
    DEVICE_STYLE,
)
from ..engine_core.coords import GridPos
from ..engine_core.world import GameWorld, StateOwner, OwnerRole
from ..config import EngineConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    """What one reconciliation pass changed for one owner."""
    owner_id: str
    spawned: list[GridPos] = field(default_factory=list)
    removed: list[GridPos] = field(default_factory=list)
    updated: list[GridPos] = field(default_factory=list)

    # Render parameters of spawned and updated indicators
    render_updates: list[RenderParams] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.spawned or self.removed or self.updated)


@dataclass
class IndicatorTree:
    """Indicators parented under one state owner."""
    owner_id: str
    style: IndicatorStyle
    indicators: dict[GridPos, VisualIndicator] = field(default_factory=dict)
    _next_id: int = 0

    def __len__(self) -> int:
        return len(self.indicators)

    def __contains__(self, pos: object) -> bool:
        return pos in self.indicators

    def get(self, pos: GridPos) -> VisualIndicator | None:
        return self.indicators.get(pos)

    def spawn(self, pos: GridPos, amplitude: complex) -> VisualIndicator:
        indicator = VisualIndicator.spawn(
            indicator_id=self._next_id,
            owner_id=self.owner_id,
            position=pos,
            amplitude=amplitude,
            style=self.style,
        )
        self._next_id += 1
        self.indicators[pos] = indicator
        return indicator

    def despawn(self, pos: GridPos) -> None:
        indicator = self.indicators.pop(pos)
        indicator.destroy()

    def clear(self) -> None:
        for pos in list(self.indicators):
            self.despawn(pos)

    def render_params(self) -> list[RenderParams]:
        return [ind.render_params for ind in self.indicators.values()]


@dataclass
class IndicatorReconciler:
    """
    Owns one IndicatorTree per state owner and diffs them against states.
    """
    config: EngineConfig = field(default_factory=lambda: DEFAULT_CONFIG)
    trees: dict[str, IndicatorTree] = field(default_factory=dict)

    def style_for(self, owner: StateOwner) -> IndicatorStyle:
        if owner.role == OwnerRole.PLAYER:
            return PLAYER_STYLE.with_scale(self.config.player_bar_scale, self.config.reduced_opacity)
        return DEVICE_STYLE.with_scale(self.config.device_bar_scale, self.config.reduced_opacity)

    def tree_for(self, owner: StateOwner) -> IndicatorTree:
        """Get the owner's tree, creating an empty one on first use."""
        tree = self.trees.get(owner.owner_id)
        if tree is None:
            tree = IndicatorTree(owner_id=owner.owner_id, style=self.style_for(owner))
            self.trees[owner.owner_id] = tree
        return tree

    def reconcile(self, owner: StateOwner) -> ReconciliationResult:
        """Bring the owner's tree in line with its state."""
        tree = self.tree_for(owner)
        state = owner.state
        result = ReconciliationResult(owner_id=owner.owner_id)

        # Pass 1: stable snapshot of the existing children
        for pos, indicator in list(tree.indicators.items()):
            if pos not in state:
                tree.despawn(pos)
                result.removed.append(pos)
                continue
            amplitude = complex(state[pos])
            if indicator.amplitude != amplitude:
                result.render_updates.append(indicator.set_amplitude(amplitude))
                result.updated.append(pos)

        # Pass 2: keys without an indicator
        for pos, value in state.items():
            if pos not in tree:
                indicator = tree.spawn(pos, complex(value))
                result.render_updates.append(indicator.render_params)
                result.spawned.append(pos)

        if result.changed:
            logger.debug(
                "Reconciled %s: +%d -%d ~%d",
                owner.owner_id, len(result.spawned), len(result.removed), len(result.updated),
            )
        return result

    def reconcile_world(
        self,
        world: GameWorld,
        owner_ids: Iterable[str] | None = None,
    ) -> list[ReconciliationResult]:
        """
        Reconcile the given owners (all owners if None).

        Trees of owners that no longer exist are torn down.
        """
        for owner_id in list(self.trees):
            if owner_id not in world.owners:
                self.trees.pop(owner_id).clear()

        ids = world.owners.keys() if owner_ids is None else owner_ids
        return [self.reconcile(world.owners[owner_id]) for owner_id in ids if owner_id in world.owners]
