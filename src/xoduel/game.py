"""Core rules for classic 3x3 tic-tac-toe.

Boards are immutable tuples of nine cells so they can be shared between the
authority, the decision engine and any number of concurrent searches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import CellOccupied, IllegalMove

Player = str  # "X" or "O"
Board = Tuple[str, ...]

EMPTY = " "
MARKS: Tuple[Player, Player] = ("X", "O")
BOARD_SIZE = 9

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


@dataclass(frozen=True)
class Result:
    """Outcome derived from a board; never stored apart from it."""

    winner: Optional[Player] = None
    line: Optional[Tuple[int, int, int]] = None
    drawn: bool = False

    @property
    def finished(self) -> bool:
        return self.winner is not None or self.drawn

    def to_dict(self) -> Optional[dict]:
        if not self.finished:
            return None
        return {
            "winner": self.winner,
            "line": list(self.line) if self.line else None,
            "drawn": self.drawn,
        }


IN_PROGRESS = Result()


def empty_board() -> Board:
    return (EMPTY,) * BOARD_SIZE


def other(player: Player) -> Player:
    return "O" if player == "X" else "X"


def legal_moves(board: Board) -> List[int]:
    return [i for i, c in enumerate(board) if c == EMPTY]


def turn_of(board: Board) -> Player:
    """Mark due to move on a board reached by alternating play from X."""
    return "X" if board.count("X") == board.count("O") else "O"


def apply_move(board: Board, index: int, player: Player) -> Board:
    """Return a new board with ``player`` placed on ``index``."""
    if player not in MARKS:
        raise IllegalMove(f"Unknown mark {player!r}")
    if not isinstance(index, int) or not 0 <= index < BOARD_SIZE:
        raise IllegalMove(f"Cell index {index!r} is outside the board")
    if board[index] != EMPTY:
        raise CellOccupied(f"Cell {index} is already taken")
    return board[:index] + (player,) + board[index + 1 :]


def evaluate(board: Board) -> Result:
    # Lines are scanned in a fixed order; the first fully owned one wins.
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return Result(winner=v, line=(a, b, c))
    if EMPTY not in board:
        return Result(drawn=True)
    return IN_PROGRESS


def serialize_board(board: Board) -> List[str]:
    return [c if c in MARKS else "" for c in board]
