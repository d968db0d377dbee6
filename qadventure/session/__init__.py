"""
Session Module - Manages ephemeral game sessions.

A session represents one play-through of a level:
- Created when the player starts a game
- Holds the current game world and indicator trees
- Resolves queued requests once per tick
- Destroyed when the game ends

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, LoopState, TickResult, RejectedAction

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "LoopState",
    "TickResult",
    "RejectedAction",
]
