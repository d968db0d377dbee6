"""
Engine errors.

Rejected player requests are NOT errors: the reducer returns a failed
ActionResult for them. Exceptions here signal wiring bugs or corrupt
states and are always propagated.
"""

from __future__ import annotations


class QuantumEngineError(Exception):
    """Base class for engine errors."""


class MissingOwnerError(QuantumEngineError):
    """Raised when an operation names a state owner that does not exist."""

    def __init__(self, owner_id: str | None, expected_role: str | None = None):
        self.owner_id = owner_id
        self.expected_role = expected_role
        if expected_role:
            message = f"No {expected_role} state owner with id {owner_id!r}"
        else:
            message = f"No state owner with id {owner_id!r}"
        super().__init__(message)


class InvalidStateError(QuantumEngineError):
    """Raised when a state or level fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"State validation failed with {len(errors)} error(s): {'; '.join(errors)}")
