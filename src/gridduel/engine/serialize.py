from __future__ import annotations

from collections.abc import Iterable

from .actions import ActionRecord, Hit
from .board import Position
from .match import MatchState, PlayerState


def _pos_to_dict(p: Position | None) -> dict[str, int] | None:
    if p is None:
        return None
    return {"row": p.row, "col": p.col}


def _hit_to_dict(h: Hit) -> dict[str, object]:
    return {"player_id": h.player_id, "damage": h.damage, "health_after": h.health_after}


def action_record_to_dict(r: ActionRecord) -> dict[str, object]:
    return {
        "player_id": r.player_id,
        "card_id": r.card_id,
        "slot": r.slot,
        "sequence": r.sequence,
        "kind": r.kind,
        "outcome": r.outcome,
        "mana_spent": r.mana_spent,
        "mana_after": r.mana_after,
        "from": _pos_to_dict(r.from_pos),
        "to": _pos_to_dict(r.to_pos),
        "cells": [_pos_to_dict(c) for c in r.cells],
        "hits": [_hit_to_dict(h) for h in r.hits],
    }


def action_log_to_list(log: Iterable[ActionRecord]) -> list[dict[str, object]]:
    return [action_record_to_dict(r) for r in log]


def _player_to_dict(p: PlayerState) -> dict[str, object]:
    return {
        "id": p.id,
        "name": p.name,
        "character_id": p.character_id,
        "side": p.side,
        "position": _pos_to_dict(p.position),
        "health": p.health,
        "mana": p.mana,
        "hand": list(p.hand),
        "selected_cards": list(p.selected_cards),
        "ready": p.ready,
    }


def snapshot(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state."""
    return {
        "match_id": state.match_id,
        "round": state.round,
        "status": state.status,
        "winner": state.winner,
        "outcome": state.outcome,
        "board": [list(row) for row in state.board.cells],
        "players": [_player_to_dict(p) for p in state.players],
    }
