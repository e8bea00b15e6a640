"""Error taxonomy shared by the board, engine, registry and authority.

Each exception carries the ``reason`` code that bindings forward to clients in
an ``error`` notification.
"""

from __future__ import annotations

from typing import Optional


class GameError(Exception):
    reason = "game-error"
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# ---- board / engine ----


class IllegalMove(GameError):
    reason = "illegal-move"
    default_message = "Move is not allowed"


class CellOccupied(IllegalMove):
    reason = "cell-occupied"
    default_message = "Cell already occupied"


class NoLegalMove(GameError):
    reason = "no-legal-move"
    default_message = "No legal moves remain"


# ---- registry ----


class SessionNotFound(GameError):
    reason = "session-not-found"
    default_message = "Session not found"


class SessionFull(GameError):
    reason = "session-full"
    default_message = "Session is full"


class CodeCollision(GameError):
    reason = "code-collision"
    default_message = "Unable to allocate a session code"


# ---- authority ----


class NotYourTurn(GameError):
    reason = "not-your-turn"
    default_message = "It is not your turn"


class StaleGeneration(GameError):
    reason = "stale-generation"
    default_message = "Move belongs to a previous round"


class GameNotActive(GameError):
    reason = "game-not-active"
    default_message = "Game is not in progress"


class RematchUnavailable(GameError):
    reason = "rematch-unavailable"
    default_message = "Rematch is only possible once the game has finished"


# ---- binding ----


class NotInSession(GameError):
    reason = "not-in-session"
    default_message = "You are not part of a session"


class InvalidMessage(GameError):
    reason = "invalid-message"
    default_message = "Message could not be understood"
