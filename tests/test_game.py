"""Unit tests for the tic-tac-toe board model."""

import pytest

from xoduel.errors import CellOccupied, IllegalMove
from xoduel.game import (
    EMPTY,
    apply_move,
    empty_board,
    evaluate,
    legal_moves,
    serialize_board,
    turn_of,
)


def _board(layout: str):
    """Build a board from a 9-character string using '.' for empty cells."""
    return tuple(EMPTY if c == "." else c for c in layout)


def _reachable_boards():
    seen = set()
    stack = [empty_board()]
    while stack:
        board = stack.pop()
        if board in seen:
            continue
        seen.add(board)
        if evaluate(board).finished:
            continue
        mark = turn_of(board)
        for move in legal_moves(board):
            stack.append(apply_move(board, move, mark))
    return seen


def test_initial_board_is_empty():
    board = empty_board()
    assert legal_moves(board) == list(range(9))
    assert not evaluate(board).finished
    assert turn_of(board) == "X"


def test_apply_move_returns_new_board():
    board = empty_board()
    after = apply_move(board, 4, "X")
    assert board == empty_board()
    assert after[4] == "X"
    assert serialize_board(after) == ["", "", "", "", "X", "", "", "", ""]
    assert turn_of(after) == "O"


def test_apply_move_rejects_occupied_cell():
    board = apply_move(empty_board(), 0, "X")
    with pytest.raises(CellOccupied):
        apply_move(board, 0, "O")


@pytest.mark.parametrize("index", [-1, 9, 42])
def test_apply_move_rejects_out_of_range(index):
    with pytest.raises(IllegalMove) as excinfo:
        apply_move(empty_board(), index, "X")
    assert excinfo.value.reason == "illegal-move"


def test_row_win_detection():
    result = evaluate(_board("XXXOO...."))
    assert result.winner == "X"
    assert result.line == (0, 1, 2)
    assert result.to_dict() == {"winner": "X", "line": [0, 1, 2], "drawn": False}


def test_diagonal_win_detection():
    result = evaluate(_board("OX.XO.X.O"))
    assert result.winner == "O"
    assert result.line == (0, 4, 8)


def test_draw_detection():
    result = evaluate(_board("XOXXOOOXX"))
    assert result.drawn
    assert result.winner is None
    assert result.to_dict() == {"winner": None, "line": None, "drawn": True}


def test_in_progress_serializes_to_none():
    assert evaluate(_board("X...O....")).to_dict() is None


def test_reachable_boards_only_finish_on_lines_or_full():
    boards = _reachable_boards()
    assert len(boards) == 5478
    for board in boards:
        result = evaluate(board)
        placed = sum(1 for c in board if c != EMPTY)
        if result.winner is not None:
            assert placed >= 5
            a, b, c = result.line
            assert board[a] == board[b] == board[c] == result.winner
        elif result.drawn:
            assert placed == 9
        else:
            assert placed < 9
