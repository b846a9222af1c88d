"""Deterministic, headless round-resolution engine for GridDuel.

IMPORTANT: This package performs no I/O and must never import from
gridduel.services.
"""

from .actions import ActionLog, ActionRecord, Hit, QueuedAction
from .board import Board, Position, in_bounds, is_occupied, move_occupant
from .errors import (
    GameError,
    InvalidActionError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from .geometry import resolve_attack_pattern, resolve_direction
from .match import (
    MatchConfig,
    MatchState,
    PlayerState,
    RoundResult,
    begin_round,
    build_action_queue,
    deal_hands,
    join_match,
    new_match,
    resolve_round,
    select_cards,
)
from .types import AttackCard, Card, CardCatalog, Character, MovementCard, draw_random_hand

__all__ = [
    "ActionLog",
    "ActionRecord",
    "AttackCard",
    "Board",
    "Card",
    "CardCatalog",
    "Character",
    "GameError",
    "Hit",
    "InvalidActionError",
    "InvalidStateError",
    "MatchConfig",
    "MatchState",
    "MovementCard",
    "NotFoundError",
    "PlayerState",
    "Position",
    "QueuedAction",
    "RoundResult",
    "ValidationError",
    "begin_round",
    "build_action_queue",
    "deal_hands",
    "draw_random_hand",
    "in_bounds",
    "is_occupied",
    "join_match",
    "move_occupant",
    "new_match",
    "resolve_attack_pattern",
    "resolve_direction",
    "resolve_round",
    "select_cards",
]
