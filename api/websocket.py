"""WebSocket table stream.

A connected client sends the same commands as the REST endpoints and
receives every engine event as it happens, so it can animate cards one at
a time instead of re-rendering from polled state.
"""

import asyncio
import json
import logging
from typing import Any, Callable

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from api.routes.game import _save_game, get_engine, session_response
from api.session import extract_session_id
from starlight.game import EventType, GameEvent, RoundEngine

logger = logging.getLogger(__name__)

router = APIRouter()

# Events that carry a full table snapshot alongside their data
SNAPSHOT_EVENTS = frozenset({EventType.STATE_CHANGED, EventType.ROUND_ENDED})


def state_message(engine: RoundEngine) -> dict[str, Any]:
    return {"type": "state_update", "state": session_response(engine).model_dump()}


def event_message(event: GameEvent, engine: RoundEngine) -> dict[str, Any]:
    message: dict[str, Any] = {
        "type": "event",
        "event_type": event.event_type.name,
        "sequence": event.sequence,
        "data": event.data,
    }
    if event.event_type in SNAPSHOT_EVENTS:
        message["state"] = session_response(engine).model_dump()
    return message


def error_message(text: str) -> dict[str, Any]:
    return {"type": "error", "message": text}


class TableConnection:
    """One socket watching one engine.

    Engine events arrive synchronously while a command runs; they are
    rendered immediately (so snapshots match the moment they describe) and
    queued for the sender task.
    """

    def __init__(self, websocket: WebSocket, session_id: str, engine: RoundEngine) -> None:
        self.websocket = websocket
        self.session_id = session_id
        self.engine = engine
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def _on_event(self, event: GameEvent) -> None:
        self._outbox.put_nowait(event_message(event, self.engine))

    def open(self) -> None:
        self.engine.subscribe(self._on_event)

    def close(self) -> None:
        self.engine.unsubscribe(self._on_event)

    def push(self, message: dict[str, Any]) -> None:
        self._outbox.put_nowait(message)

    async def pump(self) -> None:
        """Send queued messages until cancelled."""
        while True:
            message = await self._outbox.get()
            try:
                await self.websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError):
                logger.debug("Dropping messages for closed session %s", self.session_id)
                return


class ConnectionManager:
    """Tracks live table connections by session token."""

    def __init__(self) -> None:
        self._connections: dict[str, TableConnection] = {}

    async def connect(self, websocket: WebSocket, session_id: str) -> TableConnection:
        await websocket.accept()
        engine = await get_engine(session_id)

        previous = self._connections.pop(session_id, None)
        if previous is not None:
            previous.close()

        connection = TableConnection(websocket, session_id, engine)
        connection.open()
        self._connections[session_id] = connection
        logger.debug("WebSocket opened for session %s", session_id)
        return connection

    def disconnect(self, connection: TableConnection) -> None:
        connection.close()
        if self._connections.get(connection.session_id) is connection:
            del self._connections[connection.session_id]

    @property
    def active_connections(self) -> int:
        return len(self._connections)


manager = ConnectionManager()


def _command_handler(engine: RoundEngine, message: dict[str, Any]) -> Callable[[], bool] | None:
    """Map a client command onto the engine operation it names."""
    kind = message.get("type")
    if kind == "bet":
        amount = message.get("amount")
        # Non-integer amounts still reach the engine so they are rejected as invalid bets
        return lambda: engine.place_bet(amount if type(amount) is int else 0)
    if kind == "action":
        return {
            "hit": engine.hit,
            "stand": engine.stand,
            "double": engine.double,
        }.get(message.get("action"))
    return {
        "deal": engine.deal,
        "new_round": engine.new_game,
    }.get(kind)


async def _handle(connection: TableConnection, raw: str) -> None:
    engine = connection.engine
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        connection.push(error_message("Malformed message"))
        return
    if not isinstance(message, dict):
        connection.push(error_message("Malformed message"))
        return

    if message.get("type") == "get_state":
        connection.push(state_message(engine))
        return

    command = _command_handler(engine, message)
    if command is None:
        connection.push(error_message(f"Unknown message: {message.get('type')}"))
        return

    if command():
        await _save_game(connection.session_id, engine)
        return

    rejection = engine.last_rejection
    connection.push(error_message(rejection.data["message"] if rejection else "Action rejected"))


@router.websocket("/game/{session_id}")
async def game_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    Live table for one session.

    Client commands:
    - {"type": "bet", "amount": 25}
    - {"type": "deal"}
    - {"type": "action", "action": "hit" | "stand" | "double"}
    - {"type": "new_round"}
    - {"type": "get_state"}

    Server messages:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "sequence": n, "data": {...}, "state": {...}}
    - {"type": "error", "message": "..."}
    """
    if extract_session_id(session_id) is None:
        await websocket.close(code=4401)
        return

    connection = await manager.connect(websocket, session_id)
    connection.push(state_message(connection.engine))
    sender = asyncio.create_task(connection.pump())

    try:
        while True:
            await _handle(connection, await websocket.receive_text())
    except WebSocketDisconnect:
        logger.debug("WebSocket closed for session %s", session_id)
    finally:
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        manager.disconnect(connection)
