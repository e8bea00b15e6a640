"""Alpha-beta minimax opponent with tunable strength for tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Optional
import math
import random

from .errors import NoLegalMove
from .game import Board, Player, apply_move, evaluate, legal_moves, other, turn_of

# Probability of playing the optimal move for each difficulty tier.
TIERS: Dict[str, float] = {
    "weak": 0.0,
    "medium": 0.5,
    "strong": 0.8,
    "perfect": 1.0,
}

WIN_SCORE = 10


def _minimax(
    board: Board,
    me: Player,
    depth: int,
    alpha: float,
    beta: float,
    maximizing: bool,
) -> float:
    result = evaluate(board)
    if result.winner == me:
        return WIN_SCORE - depth
    if result.winner is not None:
        return depth - WIN_SCORE
    if result.drawn:
        return 0

    if maximizing:
        value = -math.inf
        for move in legal_moves(board):
            child = apply_move(board, move, me)
            value = max(value, _minimax(child, me, depth + 1, alpha, beta, False))
            alpha = max(alpha, value)
            if alpha >= beta:
                break
        return value

    value = math.inf
    opp = other(me)
    for move in legal_moves(board):
        child = apply_move(board, move, opp)
        value = min(value, _minimax(child, me, depth + 1, alpha, beta, True))
        beta = min(beta, value)
        if alpha >= beta:
            break
    return value


@lru_cache(maxsize=None)
def best_move(board: Board) -> int:
    """Optimal move for the side to play; ties go to the lowest cell index."""
    me = turn_of(board)
    alpha, beta = -math.inf, math.inf
    value = -math.inf
    chosen: Optional[int] = None
    for move in legal_moves(board):
        score = _minimax(apply_move(board, move, me), me, 1, alpha, beta, False)
        if score > value:
            value, chosen = score, move
        alpha = max(alpha, value)
    if chosen is None:
        raise NoLegalMove()
    return chosen


@dataclass
class MinimaxAI:
    """Scripted opponent mixing optimal and random play according to its tier.

    - MinimaxAI(tier="strong")
    - choose(board) -> cell_index
    """

    tier: str = "perfect"
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        if self.tier not in TIERS:
            raise ValueError(
                f"Unsupported difficulty tier {self.tier!r}. "
                f"Choose one of {', '.join(TIERS)}."
            )

    def choose(self, board: Board) -> int:
        moves = legal_moves(board)
        if not moves or evaluate(board).finished:
            raise NoLegalMove()
        if self.rng.random() < TIERS[self.tier]:
            return best_move(board)
        return self.rng.choice(moves)


def choose_move(
    board: Board, tier: str, rng: Optional[random.Random] = None
) -> int:
    ai = MinimaxAI(tier=tier, rng=random.Random() if rng is None else rng)
    return ai.choose(board)
