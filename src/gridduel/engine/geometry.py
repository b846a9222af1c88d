"""Facing-relative geometry.

Board rows run top to bottom and columns left to right. The host starts on
the left edge facing +col; the guest starts on the right edge facing -col.
The guest's frame is the host's frame rotated by 180 degrees, so both the
forward axis and the left/right axis flip between sides.
"""

from __future__ import annotations

from .board import BOARD_SIZE, Board, Position, in_bounds, is_occupied
from .types import Direction, MovementCard, Pattern, Side

Delta = tuple[int, int]

_HOST_UNITS: dict[Direction, Delta] = {
    "forward": (0, 1),
    "backward": (0, -1),
    "left": (-1, 0),
    "right": (1, 0),
}


def resolve_direction(side: Side, direction: Direction) -> Delta:
    """Unit (d_row, d_col) for a player-relative direction."""
    d_row, d_col = _HOST_UNITS[direction]
    if side == "guest":
        return -d_row, -d_col
    return d_row, d_col


def movement_delta(side: Side, card: MovementCard) -> Delta:
    d_row, d_col = resolve_direction(side, card.direction)
    return d_row * card.range, d_col * card.range


def movement_target(side: Side, pos: Position, card: MovementCard) -> Position:
    """Destination cell for a movement card; may lie outside the board."""
    d_row, d_col = movement_delta(side, card)
    return pos.offset(d_row, d_col)


def check_movement(board: Board, side: Side, pos: Position, card: MovementCard) -> tuple[Position, str]:
    """Return the destination and one of "moved", "out_of_bounds", "blocked"."""
    target = movement_target(side, pos, card)
    if not in_bounds(target, board.size):
        return target, "out_of_bounds"
    if is_occupied(board, target):
        return target, "blocked"
    return target, "moved"


def resolve_attack_pattern(
    side: Side, caster: Position, pattern: Pattern, size: int = BOARD_SIZE
) -> list[Position]:
    """Absolute cells covered by pattern, excluding the caster and off-board cells."""
    fwd_row, fwd_col = resolve_direction(side, "forward")
    right_row, right_col = resolve_direction(side, "right")
    cells: list[Position] = []
    seen: set[Position] = set()
    for i, row in enumerate(pattern):
        for j, active in enumerate(row):
            if not active or (i == 1 and j == 1):
                continue
            lateral = i - 1
            ahead = j - 1
            cell = caster.offset(
                lateral * right_row + ahead * fwd_row,
                lateral * right_col + ahead * fwd_col,
            )
            if not in_bounds(cell, size) or cell in seen:
                continue
            seen.add(cell)
            cells.append(cell)
    return cells
