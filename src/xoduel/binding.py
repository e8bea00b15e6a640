"""Transport bindings: map participant intents onto the authority.

Bindings own no game state. They look sessions up in the registry, call the
authority, and hand the resulting messages to a ``Notify`` callable supplied by
the transport. Notifications for a session are emitted while its lock is held,
so every participant observes them in the order the authority produced them.

Two bindings share the same authority:

- :class:`RelayBinding`: server-mediated, many sessions per process.
- :class:`DirectHost` / :class:`DirectFollower`: a peer-to-peer link where the
  creating peer hosts the authority and the other peer only renders what the
  host confirmed.
"""

from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional
import logging
import random
import threading
import uuid

from . import authority, events
from .ai import TIERS, MinimaxAI
from .errors import (
    GameError,
    GameNotActive,
    InvalidMessage,
    NotInSession,
    NotYourTurn,
    SessionNotFound,
)
from .events import GameStart, Message, StateUpdate
from .game import (
    EMPTY,
    Board,
    Player,
    apply_move,
    empty_board,
)
from .protocol import (
    CreateSession,
    JoinSession,
    Leave,
    Rematch,
    SubmitMove,
    parse_inbound,
)
from .registry import SessionRegistry
from .session import Phase, Session

logger = logging.getLogger(__name__)

Notify = Callable[[str, Message], None]

DEFAULT_NAME = "Player"
BOT_NAME = "Bot"


class RelayBinding:
    """Server-side binding: every participant talks to the process authority."""

    def __init__(
        self,
        registry: SessionRegistry,
        notify: Notify,
        default_name: str = DEFAULT_NAME,
        bot_name: str = BOT_NAME,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.registry = registry
        self._notify = notify
        self.default_name = default_name
        self.bot_name = bot_name
        self._rng = random.Random() if rng is None else rng
        self._seats: Dict[str, Session] = {}
        self._seats_lock = threading.Lock()

    # ---- message entry point ----

    def handle(self, participant_id: str, payload: Mapping[str, object]) -> None:
        """Dispatch one inbound message; failures go back to the sender only."""
        try:
            message = parse_inbound(payload)
            if isinstance(message, CreateSession):
                self.create_session(participant_id, message.name, message.opponent)
            elif isinstance(message, JoinSession):
                self.join_session(participant_id, message.code, message.name)
            elif isinstance(message, SubmitMove):
                self.submit_move(
                    participant_id, message.cell_index, message.generation
                )
            elif isinstance(message, Rematch):
                self.rematch(participant_id)
            elif isinstance(message, Leave):
                self.leave(participant_id)
        except GameError as exc:
            logger.debug("Rejected message from %s: %s", participant_id, exc.reason)
            self._notify(participant_id, events.error(exc))

    # ---- intents ----

    def create_session(
        self, participant_id: str, name: str = "", opponent: Optional[str] = None
    ) -> Session:
        if opponent is not None and opponent not in TIERS:
            raise InvalidMessage(f"Unsupported difficulty tier {opponent}")

        session = self.registry.create(participant_id, name.strip() or self.default_name)
        self._reseat(participant_id, session)
        with session.lock:
            self._notify(
                participant_id,
                events.session_created(session.code, "X", participant_id),
            )
            if opponent is not None:
                self.registry.join(
                    session.code,
                    f"bot-{uuid.uuid4().hex[:8]}",
                    self.bot_name,
                    bot_tier=opponent,
                )
                self._broadcast(session, authority.start(session).to_message())
        return session

    def join_session(self, participant_id: str, code: str, name: str = "") -> Session:
        session = self.registry.join(code, participant_id, name.strip() or self.default_name)
        self._reseat(participant_id, session)
        with session.lock:
            if session.phase is Phase.TERMINATED:
                # The creator left between the registry join and this point.
                self._unseat(participant_id, session)
                raise SessionNotFound(f"Session {session.code} not found")
            event = authority.start(session)
            self._notify(
                participant_id,
                events.session_joined(session.code, "O", participant_id),
            )
            self._broadcast(session, event.to_message())
        return session

    def submit_move(
        self, participant_id: str, cell_index: int, generation: int
    ) -> StateUpdate:
        session = self._require_session(participant_id)
        with session.lock:
            update = authority.submit_move(
                session, participant_id, cell_index, generation
            )
            self._broadcast(session, update.to_message())
        return update

    def rematch(self, participant_id: str) -> GameStart:
        session = self._require_session(participant_id)
        with session.lock:
            event = authority.rematch(session, participant_id)
            self._broadcast(session, event.to_message())
        return event

    def leave(self, participant_id: str) -> None:
        """Disconnects and explicit leaves both tear the session down."""
        with self._seats_lock:
            session = self._seats.pop(participant_id, None)
        if session is None:
            return
        with session.lock:
            remaining = authority.terminate(session, self.registry, participant_id)
            if remaining is None:
                return
            self._unseat(remaining.participant_id, session)
            if not remaining.is_bot:
                self._notify(remaining.participant_id, events.opponent_left())

    # ---- scripted opponent ----

    def bot_turn_due(self, participant_id: str) -> Optional[int]:
        """Generation in which the bot facing ``participant_id`` must move."""
        session = self.session_of(participant_id)
        if session is None:
            return None
        with session.lock:
            bot = session.opponent_of(participant_id)
            if bot is None or not bot.is_bot:
                return None
            if session.phase is not Phase.ACTIVE or session.turn != bot.mark:
                return None
            return session.generation

    def play_bot_turn(
        self, participant_id: str, generation: Optional[int] = None
    ) -> Optional[StateUpdate]:
        session = self.session_of(participant_id)
        if session is None:
            return None
        with session.lock:
            due = self.bot_turn_due(participant_id)
            if due is None or (generation is not None and generation != due):
                return None
            bot = session.opponent_of(participant_id)
            ai = MinimaxAI(tier=bot.bot_tier, rng=self._rng)
            cell_index = ai.choose(session.board)
            update = authority.submit_move(
                session, bot.participant_id, cell_index, due
            )
            self._broadcast(session, update.to_message())
        return update

    # ---- helpers ----

    def session_of(self, participant_id: str) -> Optional[Session]:
        with self._seats_lock:
            session = self._seats.get(participant_id)
        if session is None or session.phase is Phase.TERMINATED:
            return None
        return session

    def _require_session(self, participant_id: str) -> Session:
        session = self.session_of(participant_id)
        if session is None:
            raise NotInSession()
        return session

    def _reseat(self, participant_id: str, session: Session) -> None:
        """Seat a participant, abandoning any session they sat in before."""
        with self._seats_lock:
            previous = self._seats.get(participant_id)
        if previous is not None and previous is not session:
            self.leave(participant_id)
        with self._seats_lock:
            self._seats[participant_id] = session

    def _unseat(self, participant_id: str, session: Session) -> None:
        with self._seats_lock:
            if self._seats.get(participant_id) is session:
                del self._seats[participant_id]

    def _broadcast(self, session: Session, message: Message) -> None:
        for participant in session.participants:
            if not participant.is_bot:
                self._notify(participant.participant_id, message)


# ---- direct (peer-to-peer) binding ----

HOST_ID = "host"
GUEST_ID = "guest"
GUEST_INTENTS = ("join-session", "submit-move", "rematch", "leave")

Send = Callable[[Message], None]
Render = Callable[[Message], None]


class DirectHost:
    """Peer that created the session and therefore holds its authority.

    ``send`` delivers a message to the other peer; ``render`` hands a message
    to this peer's own presentation layer.
    """

    def __init__(
        self,
        name: str,
        send: Send,
        render: Render,
        registry: Optional[SessionRegistry] = None,
    ) -> None:
        self._send = send
        self._render = render
        self.registry = SessionRegistry() if registry is None else registry
        self.relay = RelayBinding(self.registry, self._route)
        self.session = self.relay.create_session(HOST_ID, name)

    @property
    def code(self) -> str:
        return self.session.code

    def _route(self, participant_id: str, message: Message) -> None:
        if participant_id == HOST_ID:
            self._render(message)
        else:
            self._send(message)

    def receive(self, payload: Mapping[str, object]) -> None:
        """Message from the guest peer."""
        kind = payload.get("type")
        if kind not in GUEST_INTENTS:
            self._send(events.error(InvalidMessage(f"Guests cannot send {kind!r}")))
            return
        if kind == "join-session":
            payload = {**payload, "code": self.session.code}
        self.relay.handle(GUEST_ID, payload)

    def play(self, cell_index: int) -> None:
        self.relay.handle(
            HOST_ID,
            {
                "type": "submit-move",
                "cellIndex": cell_index,
                "generation": self.session.generation,
            },
        )

    def request_rematch(self) -> None:
        self.relay.handle(HOST_ID, {"type": "rematch"})

    def peer_disconnected(self) -> None:
        self.relay.leave(GUEST_ID)

    def close(self) -> None:
        self.relay.leave(HOST_ID)


class DirectFollower:
    """Peer that joined a hosted session.

    It never decides anything: ``board`` is always the host's last confirmed
    board, and ``preview`` holds a speculative local move that the next
    authoritative message replaces.
    """

    def __init__(self, name: str, send: Send, render: Render) -> None:
        self.name = name
        self._send = send
        self._render = render
        self.code: Optional[str] = None
        self.mark: Optional[Player] = None
        self.board: Board = empty_board()
        self.turn: Player = "X"
        self.generation = 0
        self.result: Optional[dict] = None
        self.active = False
        self.preview: Optional[Board] = None

    @property
    def view(self) -> Board:
        return self.preview if self.preview is not None else self.board

    def connect(self) -> None:
        self._send({"type": "join-session", "name": self.name})

    def receive(self, message: Message) -> None:
        kind = message.get("type")
        if kind == "session-joined":
            self.code = message["code"]
            self.mark = message["mark"]
        elif kind in ("game-start", "state-update"):
            self.board = tuple(c or EMPTY for c in message["board"])
            self.turn = message["turn"]
            self.generation = message["generation"]
            self.result = message.get("result")
            self.active = self.result is None
            self.preview = None
        elif kind == "error":
            self.preview = None
        elif kind == "opponent-left":
            self.active = False
            self.preview = None
        self._render(message)

    def play(self, cell_index: int) -> Board:
        """Send a move to the host and return the speculative board."""
        if not self.active:
            raise GameNotActive()
        if self.mark != self.turn or self.preview is not None:
            raise NotYourTurn()
        preview = apply_move(self.board, cell_index, self.mark)
        self.preview = preview
        self._send(
            {
                "type": "submit-move",
                "cellIndex": cell_index,
                "generation": self.generation,
            }
        )
        return preview

    def request_rematch(self) -> None:
        self._send({"type": "rematch"})

    def close(self) -> None:
        self._send({"type": "leave"})
