"""Session state shared between the registry and the authority."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import threading
import time

from .game import Board, Player, Result, empty_board, evaluate


class Phase(str, Enum):
    FORMING = "forming"
    ACTIVE = "active"
    FINISHED = "finished"
    TERMINATED = "terminated"


@dataclass
class Participant:
    participant_id: str
    name: str
    mark: Player
    bot_tier: Optional[str] = None

    @property
    def is_bot(self) -> bool:
        return self.bot_tier is not None

    def to_dict(self) -> dict:
        return {"name": self.name, "mark": self.mark}


@dataclass
class Session:
    """One matched pair of participants playing under a shared code.

    Only the authority writes ``board``, ``turn``, ``phase`` and
    ``generation``, and only while holding ``lock``.
    """

    code: str
    participants: List[Participant] = field(default_factory=list)
    board: Board = field(default_factory=empty_board)
    turn: Player = "X"
    phase: Phase = Phase.FORMING
    generation: int = 0
    created_at: float = field(default_factory=lambda: time.time())
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def result(self) -> Result:
        return evaluate(self.board)

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= 2

    def participant(self, participant_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.participant_id == participant_id:
                return p
        return None

    def opponent_of(self, participant_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.participant_id != participant_id:
                return p
        return None

    def participant_ids(self) -> List[str]:
        return [p.participant_id for p in self.participants]
