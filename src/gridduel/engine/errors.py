from __future__ import annotations


class GameError(RuntimeError):
    pass


class ValidationError(GameError):
    """Request rejected before any state was touched."""


class InvalidActionError(ValidationError):
    """Action not allowed in the current match phase (e.g. joining a full match)."""


class NotFoundError(GameError):
    pass


class InvalidStateError(GameError):
    """Round resolution preconditions are not met. Safe to retry later."""
