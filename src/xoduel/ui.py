"""FastAPI application relaying two-player tic-tac-toe sessions over WebSockets."""

from __future__ import annotations

import asyncio
import json
import logging
import random
import uuid
from typing import Callable, Dict, List, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, field_validator

from . import events
from .ai import TIERS, choose_move
from .binding import RelayBinding
from .config import Settings
from .errors import GameError
from .events import Message
from .game import EMPTY, MARKS
from .registry import SessionRegistry

logger = logging.getLogger(__name__)


class EngineMoveRequest(BaseModel):
    """Request payload for asking the decision engine for a move."""

    board: List[str] = Field(min_length=9, max_length=9)
    tier: str = Field(default="perfect", description="Engine difficulty tier")

    @field_validator("board")
    @classmethod
    def ensure_reachable_board(cls, value: List[str]) -> List[str]:
        if any(c not in ("", *MARKS) for c in value):
            raise ValueError('Cells must be "X", "O" or ""')
        lead = value.count("X") - value.count("O")
        if lead not in (0, 1):
            raise ValueError("Board is not reachable by alternating play from X")
        return value

    @field_validator("tier")
    @classmethod
    def ensure_supported_tier(cls, value: str) -> str:
        if value not in TIERS:
            raise ValueError(
                f"Unsupported difficulty tier {value}. "
                f"Choose one of {', '.join(TIERS)}."
            )
        return value


class Outboxes:
    """Per-connection FIFO queues the relay binding notifies into."""

    def __init__(self) -> None:
        self._queues: Dict[str, asyncio.Queue] = {}

    def open(self, participant_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues[participant_id] = queue
        return queue

    def close(self, participant_id: str) -> None:
        self._queues.pop(participant_id, None)

    def notify(self, participant_id: str, message: Message) -> None:
        queue = self._queues.get(participant_id)
        if queue is not None:
            queue.put_nowait(message)


async def _pump(
    websocket: WebSocket, outbox: asyncio.Queue, on_closed: Callable[[], None]
) -> None:
    while True:
        message = await outbox.get()
        try:
            await websocket.send_json(message)
        except (RuntimeError, WebSocketDisconnect) as exc:
            logger.warning("Stopped sending to closed connection: %s", exc)
            on_closed()
            return


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[SessionRegistry] = None,
) -> FastAPI:
    if settings is None:
        settings = Settings()
    if registry is None:
        registry = SessionRegistry(code_length=settings.code_length)
    outboxes = Outboxes()
    relay = RelayBinding(
        registry,
        outboxes.notify,
        default_name=settings.default_name,
        bot_name=settings.bot_name,
    )

    app = FastAPI(title="xoduel", description="Two-player tic-tac-toe relay")
    app.state.settings = settings
    app.state.registry = registry
    app.state.relay = relay

    @app.get("/api/session/{code}")
    def inspect_session(code: str) -> Dict[str, object]:
        snapshot = events.describe(registry.get(code))
        if snapshot is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return snapshot

    @app.post("/api/engine/move")
    def engine_move(request: EngineMoveRequest) -> Dict[str, object]:
        board = tuple(c or EMPTY for c in request.board)
        try:
            cell_index = choose_move(board, request.tier)
        except GameError as exc:
            raise HTTPException(status_code=400, detail=exc.reason) from exc
        return {"cellIndex": cell_index, "tier": request.tier}

    @app.websocket("/ws")
    async def play(websocket: WebSocket) -> None:
        await websocket.accept()
        participant_id = uuid.uuid4().hex
        outbox = outboxes.open(participant_id)
        writer = asyncio.create_task(
            _pump(websocket, outbox, lambda: outboxes.close(participant_id))
        )
        logger.debug("Participant %s connected", participant_id)

        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    break
                # Binary frames and malformed JSON are answered as invalid messages.
                try:
                    payload = json.loads(frame.get("text") or "")
                except ValueError:
                    payload = None
                relay.handle(participant_id, payload if isinstance(payload, dict) else {})

                generation = relay.bot_turn_due(participant_id)
                if generation is not None:
                    await asyncio.sleep(max(0.0, random.uniform(*settings.bot_think_delay)))
                    relay.play_bot_turn(participant_id, generation)
        except WebSocketDisconnect:
            pass
        finally:
            relay.leave(participant_id)
            outboxes.close(participant_id)
            writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)
            logger.debug("Participant %s disconnected", participant_id)

    return app


app = create_app()
