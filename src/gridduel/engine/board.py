from __future__ import annotations

from dataclasses import dataclass

BOARD_SIZE = 5

PlayerId = str


@dataclass(frozen=True, order=True)
class Position:
    row: int
    col: int

    def offset(self, d_row: int, d_col: int) -> "Position":
        return Position(row=self.row + d_row, col=self.col + d_col)


def in_bounds(pos: Position, size: int = BOARD_SIZE) -> bool:
    return 0 <= pos.row < size and 0 <= pos.col < size


@dataclass(frozen=True)
class Board:
    """Immutable grid of cells; each cell holds the occupying player id or None."""

    cells: tuple[tuple[PlayerId | None, ...], ...]

    @staticmethod
    def empty(size: int = BOARD_SIZE) -> "Board":
        return Board(cells=tuple(tuple(None for _ in range(size)) for _ in range(size)))

    @property
    def size(self) -> int:
        return len(self.cells)

    def occupant(self, pos: Position) -> PlayerId | None:
        return self.cells[pos.row][pos.col]

    def find(self, player_id: PlayerId) -> Position | None:
        for r, row in enumerate(self.cells):
            for c, occ in enumerate(row):
                if occ == player_id:
                    return Position(r, c)
        return None

    def _with_cell(self, pos: Position, value: PlayerId | None) -> "Board":
        rows = [list(row) for row in self.cells]
        rows[pos.row][pos.col] = value
        return Board(cells=tuple(tuple(row) for row in rows))


def is_occupied(board: Board, pos: Position) -> bool:
    return board.occupant(pos) is not None


def place_occupant(board: Board, pos: Position, player_id: PlayerId) -> Board:
    if not in_bounds(pos, board.size):
        raise ValueError(f"Position out of bounds: {pos}")
    if is_occupied(board, pos):
        raise ValueError(f"Cell already occupied: {pos}")
    return board._with_cell(pos, player_id)


def move_occupant(board: Board, src: Position, dst: Position, player_id: PlayerId) -> Board:
    """Return a new board with player_id moved from src to dst.

    The caller must already have checked that dst is in bounds and free;
    violating that is a programming error.
    """
    assert board.occupant(src) == player_id, f"{player_id} is not at {src}"
    assert in_bounds(dst, board.size) and not is_occupied(board, dst), f"Illegal destination {dst}"
    return board._with_cell(src, None)._with_cell(dst, player_id)
