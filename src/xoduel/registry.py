"""Process-wide table of live sessions keyed by short, human-typeable codes."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional
import logging
import random
import string
import threading

from .errors import CodeCollision, SessionFull, SessionNotFound
from .session import Participant, Phase, Session

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_CODE_LENGTH = 4
MAX_CODE_ATTEMPTS = 100


def normalize_code(code: str) -> str:
    return code.strip().upper()


class SessionRegistry:
    """Owns the code -> session mapping.

    Instances are independent; pass one explicitly to every binding that should
    share it. All table mutations happen under a single lock. The registry
    never takes a session's lock, so the authority may call :meth:`discard`
    while holding one.
    """

    def __init__(
        self,
        code_length: int = DEFAULT_CODE_LENGTH,
        code_factory: Optional[Callable[[], str]] = None,
        max_attempts: int = MAX_CODE_ATTEMPTS,
    ) -> None:
        self.code_length = code_length
        self.max_attempts = max_attempts
        self._code_factory = code_factory or self._random_code
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def _random_code(self) -> str:
        return "".join(random.choices(CODE_ALPHABET, k=self.code_length))

    def create(self, creator_id: str, creator_name: str) -> Session:
        with self._lock:
            for _ in range(self.max_attempts):
                code = normalize_code(self._code_factory())
                if code not in self._sessions:
                    break
                logger.debug("Session code %s already live, drawing again", code)
            else:
                raise CodeCollision()

            session = Session(code=code)
            session.participants.append(
                Participant(participant_id=creator_id, name=creator_name, mark="X")
            )
            self._sessions[code] = session
        logger.info("Session %s created by %s", code, creator_name)
        return session

    def join(
        self,
        code: str,
        joiner_id: str,
        joiner_name: str,
        bot_tier: Optional[str] = None,
    ) -> Session:
        normalized = normalize_code(code)
        with self._lock:
            session = self._sessions.get(normalized)
            if session is None or session.phase is Phase.TERMINATED:
                raise SessionNotFound(f"Session {normalized} not found")
            if session.is_full:
                raise SessionFull(f"Session {normalized} is full")
            if session.participant(joiner_id) is not None:
                raise SessionFull("You are already seated in this session")
            session.participants.append(
                Participant(
                    participant_id=joiner_id,
                    name=joiner_name,
                    mark="O",
                    bot_tier=bot_tier,
                )
            )
        logger.info("%s joined session %s", joiner_name, normalized)
        return session

    def remove(self, code: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.pop(normalize_code(code), None)

    def discard(self, session: Session) -> None:
        """Remove ``session`` only if its code still maps to it."""
        with self._lock:
            if self._sessions.get(session.code) is session:
                del self._sessions[session.code]

    def get(self, code: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(normalize_code(code))

    def codes(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, code: object) -> bool:
        if not isinstance(code, str):
            return False
        return self.get(code) is not None
