"""Single writer of a session's board, turn, phase and generation.

Every function here expects to be the only code mutating ``session`` and takes
``session.lock`` itself, so callers on different threads or tasks are
serialized per session. Failed calls leave the session untouched.
"""

from __future__ import annotations

from typing import Optional
import logging

from .errors import (
    CellOccupied,
    GameNotActive,
    IllegalMove,
    NotInSession,
    NotYourTurn,
    RematchUnavailable,
    StaleGeneration,
)
from .events import GameStart, StateUpdate
from .game import BOARD_SIZE, EMPTY, apply_move, empty_board, evaluate, other
from .registry import SessionRegistry
from .session import Participant, Phase, Session

logger = logging.getLogger(__name__)


def _reset(session: Session) -> GameStart:
    session.board = empty_board()
    session.turn = session.participants[0].mark
    session.phase = Phase.ACTIVE
    session.generation += 1
    return GameStart.from_session(session)


def start(session: Session) -> GameStart:
    """Forming -> Active once the second participant is seated."""
    with session.lock:
        if session.phase is not Phase.FORMING or not session.is_full:
            raise GameNotActive("Session is not waiting for an opponent")
        event = _reset(session)
    logger.info("Session %s started (generation %d)", session.code, event.generation)
    return event


def submit_move(
    session: Session, participant_id: str, cell_index: int, generation: int
) -> StateUpdate:
    with session.lock:
        player = _seated(session, participant_id)
        if generation != session.generation:
            raise StaleGeneration(
                f"Move for round {generation} arrived during round {session.generation}"
            )
        if session.phase is not Phase.ACTIVE:
            raise GameNotActive()
        if player.mark != session.turn:
            raise NotYourTurn()
        if not isinstance(cell_index, int) or not 0 <= cell_index < BOARD_SIZE:
            raise IllegalMove(f"Cell index {cell_index!r} is outside the board")
        if session.board[cell_index] != EMPTY:
            raise CellOccupied(f"Cell {cell_index} is already taken")

        session.board = apply_move(session.board, cell_index, player.mark)
        result = evaluate(session.board)
        if result.finished:
            session.phase = Phase.FINISHED
        else:
            session.turn = other(session.turn)

        update = StateUpdate(
            cell_index=cell_index,
            mark=player.mark,
            board=session.board,
            turn=session.turn,
            result=result,
            generation=session.generation,
        )
    if result.finished:
        logger.info(
            "Session %s finished: %s",
            session.code,
            "draw" if result.drawn else f"{result.winner} wins",
        )
    return update


def rematch(session: Session, participant_id: str) -> GameStart:
    """Finished -> Active with a cleared board and a new generation."""
    with session.lock:
        _seated(session, participant_id)
        if session.phase is not Phase.FINISHED:
            raise RematchUnavailable()
        event = _reset(session)
    logger.info("Session %s rematch (generation %d)", session.code, event.generation)
    return event


def terminate(
    session: Session, registry: SessionRegistry, participant_id: str
) -> Optional[Participant]:
    """Tear the session down and return the participant left behind, if any.

    Idempotent: terminating an already terminated session returns ``None``.
    """
    with session.lock:
        if session.phase is Phase.TERMINATED:
            return None
        session.phase = Phase.TERMINATED
        registry.discard(session)
        remaining = session.opponent_of(participant_id)
    logger.info("Session %s terminated", session.code)
    return remaining


def _seated(session: Session, participant_id: str) -> Participant:
    player = session.participant(participant_id)
    if player is None:
        raise NotInSession(f"Not seated in session {session.code}")
    return player
