"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Session created -> level world built, indicator trees spawned
2. In game -> requests queued and resolved once per tick
3. Paused -> ticks are ignored, queued requests wait
4. Ended -> session removed, ALL state deleted

PERSISTENCE RULES:
- Sessions are in-memory only
- No save format; a new session starts the level again
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import random
import time
import uuid

from ..config import EngineConfig
from ..engine_core.reducer import Reducer
from ..engine_core.world import GameWorld
from ..levels import create_first_level
from ..visuals import IndicatorReconciler, RenderParams

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    CREATED = "created"  # World built, no tick run yet
    IN_GAME = "in_game"  # Ticks are processed
    PAUSED = "paused"  # Ticks are ignored
    ENDED = "ended"  # Session finished or abandoned


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - The current game world
    - The reducer with the session's measurement RNG
    - The indicator reconciler and its trees
    - Session metadata

    The session is destroyed when the game ends.
    """
    session_id: str
    world: GameWorld
    config: EngineConfig
    created_at: float

    state: SessionState = SessionState.CREATED
    reducer: Reducer = field(default_factory=Reducer)
    reconciler: IndicatorReconciler = field(default_factory=IndicatorReconciler)

    # Render parameters from the initial spawn, consumed by the first tick
    pending_render_updates: list[RenderParams] = field(default_factory=list)

    tick_count: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state in {
            SessionState.CREATED,
            SessionState.IN_GAME,
            SessionState.PAUSED,
        }

    def accepts_ticks(self) -> bool:
        return self.state in {SessionState.CREATED, SessionState.IN_GAME}


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions from a level factory
    - Track active sessions
    - Clean up ended sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        level_factory: Callable[..., GameWorld] = create_first_level,
        config: EngineConfig | None = None,
        seed: int | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            level_factory: Builds the starting world from a config
            config: Overrides the manager's config
            seed: Overrides the config's RNG seed

        Returns:
            New Session with indicators spawned for every owner
        """
        config = config or self.config
        session_id = str(uuid.uuid4())
        rng = random.Random(seed if seed is not None else config.seed)

        world = level_factory(config=config, world_id=session_id)
        reconciler = IndicatorReconciler(config=config)
        initial = reconciler.reconcile_world(world)

        session = Session(
            session_id=session_id,
            world=world,
            config=config,
            created_at=time.time(),
            reducer=Reducer(rng=rng, measure_epsilon=config.measure_epsilon),
            reconciler=reconciler,
            pending_render_updates=[p for r in initial for p in r.render_updates],
        )
        self._sessions[session_id] = session
        logger.info("Session %s created (%d owners)", session_id, len(world.owners))
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def pause_session(self, session_id: str) -> bool:
        session = self._sessions.get(session_id)
        if not session or not session.accepts_ticks():
            return False
        session.state = SessionState.PAUSED
        return True

    def resume_session(self, session_id: str) -> bool:
        session = self._sessions.get(session_id)
        if not session or session.state != SessionState.PAUSED:
            return False
        session.state = SessionState.IN_GAME
        return True

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and clean up.

        The session is removed from memory.
        """
        session = self._sessions.pop(session_id, None)
        if not session:
            return False
        session.state = SessionState.ENDED
        for tree in session.reconciler.trees.values():
            tree.clear()
        session.reconciler.trees.clear()
        session.pending_render_updates.clear()
        logger.info("Session %s ended (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        End sessions older than max_age that are paused.

        Returns the number of sessions removed.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds
            and session.state == SessionState.PAUSED
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
