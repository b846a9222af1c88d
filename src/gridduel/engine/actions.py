from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .board import PlayerId, Position

ActionKind = Literal["move", "attack"]
Outcome = Literal[
    "moved",
    "blocked",
    "out_of_bounds",
    "hit",
    "missed",
    "insufficient_mana",
    "unknown_card",
]


@dataclass(frozen=True)
class QueuedAction:
    player_id: PlayerId
    card_id: str
    slot: int
    sequence: int


@dataclass(frozen=True)
class Hit:
    player_id: PlayerId
    damage: int
    health_after: int


@dataclass(frozen=True)
class ActionRecord:
    """One resolved card, in the order it was applied."""

    player_id: PlayerId
    card_id: str
    slot: int
    sequence: int
    kind: ActionKind | None
    outcome: Outcome
    mana_spent: int = 0
    mana_after: int | None = None
    from_pos: Position | None = None
    to_pos: Position | None = None
    cells: tuple[Position, ...] = ()
    hits: tuple[Hit, ...] = ()


ActionLog = tuple[ActionRecord, ...]
