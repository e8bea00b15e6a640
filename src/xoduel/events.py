"""Outbound notifications rendered by the presentation layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import GameError
from .game import Board, Player, Result, serialize_board
from .session import Participant, Session

Message = Dict[str, object]


def session_created(code: str, mark: Player, participant_id: str) -> Message:
    return {
        "type": "session-created",
        "code": code,
        "mark": mark,
        "participantId": participant_id,
    }


def session_joined(code: str, mark: Player, participant_id: str) -> Message:
    return {
        "type": "session-joined",
        "code": code,
        "mark": mark,
        "participantId": participant_id,
    }


def opponent_left() -> Message:
    return {"type": "opponent-left"}


def error(exc: GameError) -> Message:
    return {"type": "error", "reason": exc.reason, "message": exc.message}


@dataclass(frozen=True)
class GameStart:
    players: List[Participant]
    board: Board
    turn: Player
    generation: int

    @classmethod
    def from_session(cls, session: Session) -> "GameStart":
        return cls(
            players=list(session.participants),
            board=session.board,
            turn=session.turn,
            generation=session.generation,
        )

    def to_message(self) -> Message:
        return {
            "type": "game-start",
            "players": [p.to_dict() for p in self.players],
            "board": serialize_board(self.board),
            "turn": self.turn,
            "generation": self.generation,
        }


@dataclass(frozen=True)
class StateUpdate:
    cell_index: int
    mark: Player
    board: Board
    turn: Player
    result: Result
    generation: int

    def to_message(self) -> Message:
        return {
            "type": "state-update",
            "cellIndex": self.cell_index,
            "mark": self.mark,
            "board": serialize_board(self.board),
            "turn": self.turn,
            "result": self.result.to_dict(),
            "generation": self.generation,
        }


def describe(session: Optional[Session]) -> Optional[Message]:
    """Snapshot used by the inspection endpoint."""
    if session is None:
        return None
    with session.lock:
        return {
            "code": session.code,
            "phase": session.phase.value,
            "players": [p.to_dict() for p in session.participants],
            "available": not session.is_full,
            "board": serialize_board(session.board),
            "turn": session.turn,
            "generation": session.generation,
            "result": session.result.to_dict(),
        }
