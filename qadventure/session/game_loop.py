"""
Game Loop - The tick-driven core loop.

One tick:
1. Drain the FIFO request queue through the reducer, in order
2. Hand domain events to downstream systems (doors)
3. Reconcile the indicator trees of every owner whose state changed
4. Advance animations
5. Report what happened

Rejected requests are dropped silently (debug log only). Reconciliation
runs strictly after all mutations of the tick, so the indicator trees
never see a half-applied tick.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING
import logging

from ..engine_core.action import Action
from ..engine_core.events import MeasurementSucceeded
from ..levels.doors import open_doors, advance_door_animations

if TYPE_CHECKING:
    from .manager import Session
    from ..engine_core.world import GameWorld
    from ..visuals import RenderParams

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """State of the game loop."""
    WAITING_INPUT = "waiting_input"
    PROCESSING = "processing"
    PAUSED = "paused"
    ENDED = "ended"


@dataclass
class RejectedAction:
    """A request the reducer refused."""
    action: Action
    error: str | None
    error_code: str | None


@dataclass
class TickResult:
    """
    Result of processing a tick.

    Contains everything downstream consumers need: the domain events,
    the render parameters of changed indicators, and a log of changes.
    """
    success: bool
    loop_state: LoopState
    tick: int = 0

    applied: list[Action] = field(default_factory=list)
    rejected: list[RejectedAction] = field(default_factory=list)

    # Domain events (MeasurementSucceeded, MeasurementFailed, DoorOpened)
    events: list[Any] = field(default_factory=list)

    # Render parameters of spawned / updated indicators
    render_updates: list[RenderParams] = field(default_factory=list)
    removed_indicators: list[tuple[str, Any]] = field(default_factory=list)

    state_changes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def measurement_successes(self) -> list[MeasurementSucceeded]:
        return [e for e in self.events if isinstance(e, MeasurementSucceeded)]


class GameLoop:
    """
    The main game loop driver.

    Usage:
        loop = GameLoop(session)

        # Input arrives during the frame
        loop.submit(Action.select(GridPos(0, 0)))
        loop.submit(Action.select(GridPos(1, 0)))

        # Once per frame
        result = loop.tick(dt)
        render(result.render_updates)
    """

    def __init__(self, session: Session):
        self.session = session
        self.state = LoopState.WAITING_INPUT
        self._queue: deque[Action] = deque()

    @property
    def pending(self) -> int:
        return len(self._queue)

    def submit(self, action: Action) -> None:
        """Queue a request for the next tick."""
        self._queue.append(action)

    def submit_all(self, actions: list[Action]) -> None:
        for action in actions:
            self.submit(action)

    def tick(self, dt: float = 0.0) -> TickResult:
        """Resolve one simulation step."""
        from .manager import SessionState

        session = self.session
        if session.state == SessionState.ENDED:
            self.state = LoopState.ENDED
            return TickResult(
                success=False,
                loop_state=self.state,
                tick=session.tick_count,
                errors=["Session has ended"],
            )
        if session.state == SessionState.PAUSED:
            self.state = LoopState.PAUSED
            return TickResult(success=True, loop_state=self.state, tick=session.tick_count)

        session.state = SessionState.IN_GAME
        self.state = LoopState.PROCESSING
        result = TickResult(success=True, loop_state=self.state)

        # Render parameters left over from the initial spawn
        if session.pending_render_updates:
            result.render_updates.extend(session.pending_render_updates)
            session.pending_render_updates = []

        before = session.world
        world = self._apply_requests(before, result)

        world, door_events = open_doors(world, result.events)
        result.events.extend(door_events)

        self._reconcile(before, world, result)

        world = advance_door_animations(world, dt)
        session.tick_count += 1
        session.world = world._copy_with(tick=session.tick_count)

        self.state = LoopState.WAITING_INPUT
        result.loop_state = self.state
        result.tick = session.tick_count
        return result

    def _apply_requests(self, world: GameWorld, result: TickResult) -> GameWorld:
        """Run this tick's queue through the reducer."""
        batch = list(self._queue)
        self._queue.clear()

        for action in batch:
            outcome = self.session.reducer.apply(world, action)
            if not outcome.success or outcome.new_state is None:
                result.rejected.append(RejectedAction(
                    action=action,
                    error=outcome.error,
                    error_code=outcome.error_code,
                ))
                continue
            world = outcome.new_state
            result.applied.append(action)
            result.events.extend(outcome.events)
            result.state_changes.extend(outcome.state_changes)
        return world

    def _reconcile(self, before: GameWorld, after: GameWorld, result: TickResult) -> None:
        """Reconcile owners whose state object was replaced this tick."""
        changed = [
            owner_id for owner_id, owner in after.owners.items()
            if owner_id not in before.owners
            or before.owners[owner_id].state is not owner.state
        ]
        if not changed and after.owners.keys() == before.owners.keys():
            return

        for reconciliation in self.session.reconciler.reconcile_world(after, changed):
            result.render_updates.extend(reconciliation.render_updates)
            result.removed_indicators.extend(
                (reconciliation.owner_id, pos) for pos in reconciliation.removed
            )
