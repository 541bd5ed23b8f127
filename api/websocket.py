"""WebSocket connection management with table event streaming."""

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from api.session import TableSession, extract_session_id, get_registry
from bjstats.game import BlackjackTable, GameEvent

logger = logging.getLogger(__name__)

router = APIRouter()

# Events buffered per connection before new ones are dropped
QUEUE_SIZE = 500


class ConnectionManager:
    """Manage WebSocket connections and their event queues."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._event_queues: dict[str, asyncio.Queue[GameEvent]] = {}

    async def connect(self, websocket: WebSocket, session: TableSession) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        session_id = session.session_id
        self._connections[session_id] = websocket
        self._event_queues[session_id] = asyncio.Queue(maxsize=QUEUE_SIZE)
        session.listeners.append(self._listener(session_id))

    def disconnect(self, session: TableSession) -> None:
        """Remove a connection. The table is kept for reconnection."""
        session_id = session.session_id
        self._connections.pop(session_id, None)
        self._event_queues.pop(session_id, None)
        session.listeners.clear()

    def _listener(self, session_id: str):
        def queue_event(event: GameEvent) -> None:
            queue = self._event_queues.get(session_id)
            if queue is None:
                return
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("Dropping %s for session %s: queue full", event.event_type.name, session_id)

        return queue_event

    async def get_event(self, session_id: str) -> GameEvent | None:
        """Wait for the next event of a session."""
        queue = self._event_queues.get(session_id)
        if queue is None:
            return None
        return await queue.get()

    async def send_message(self, session_id: str, message: dict[str, Any]) -> None:
        """Send a message to a specific session."""
        websocket = self._connections.get(session_id)
        if websocket is None:
            return
        await websocket.send_json(message)

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return len(self._connections)


# Global connection manager
manager = ConnectionManager()


def _state_message(table: BlackjackTable) -> dict[str, Any]:
    return {"type": "state_update", "state": asdict(table.snapshot())}


def _event_to_message(event: GameEvent, table: BlackjackTable) -> dict[str, Any]:
    """Convert a table event to a WebSocket message."""
    message = {
        "type": "event",
        "event_type": event.event_type.name,
        "data": event.data,
        "state": asdict(table.snapshot()),
    }
    if event.event_type.name == "ROUND_ENDED" and table.last_replay is not None:
        message["replay"] = table.last_replay.to_dict()
    return message


def _run_command(table: BlackjackTable, message: dict[str, Any]) -> tuple[bool, str]:
    """
    Apply a client command to the table.

    Returns:
        (accepted, description) for error reporting
    """
    msg_type = message.get("type")
    if msg_type == "bet":
        return table.place_bet(), "bet"
    if msg_type == "super_match":
        take = bool(message.get("take"))
        return (table.place_super_match_bet() if take else table.skip_super_match_bet()), "answer Super Match"
    if msg_type == "switch":
        swap = bool(message.get("swap"))
        return (table.choose_switch() if swap else table.keep_hands()), "switch"
    if msg_type == "action":
        action = str(message.get("action"))
        return table.player_action(action), action
    if msg_type == "next_round":
        return table.next_round(), "start the next round"
    if msg_type == "reset_game":
        return table.reset_to_setup(), "reset"
    raise ValueError(f"Unknown message type: {msg_type}")


@router.websocket("/{session_id}")
async def game_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for real-time table updates.

    Messages from client:
    - {"type": "get_state"}
    - {"type": "bet"}
    - {"type": "super_match", "take": true|false}
    - {"type": "switch", "swap": true|false}
    - {"type": "action", "action": "hit"|"stand"|"double"|"split"}
    - {"type": "next_round"}
    - {"type": "reset_game"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}, "state": {...}}
    - {"type": "error", "message": "..."}
    """
    raw_id = extract_session_id(session_id)
    session = get_registry().get(raw_id) if raw_id else None
    if session is None:
        await websocket.close(code=4404)
        return

    await manager.connect(websocket, session)
    await manager.send_message(raw_id, _state_message(session.table))

    async def process_events() -> None:
        """Forward table events as they are emitted, including scheduled AI and dealer steps."""
        while True:
            event = await manager.get_event(raw_id)
            if event is None:
                return
            await manager.send_message(raw_id, _event_to_message(event, session.table))

    event_task = asyncio.create_task(process_events())

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_message(raw_id, {"type": "error", "message": "Invalid JSON"})
                continue

            if message.get("type") == "get_state":
                await manager.send_message(raw_id, _state_message(session.table))
                continue

            async with session.lock:
                try:
                    accepted, description = _run_command(session.table, message)
                except ValueError as e:
                    await manager.send_message(raw_id, {"type": "error", "message": str(e)})
                    continue
            if not accepted:
                await manager.send_message(raw_id, {
                    "type": "error",
                    "message": f"Cannot {description} now",
                })

    except WebSocketDisconnect:
        logger.debug("WebSocket for session %s disconnected", raw_id)
    finally:
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass
        manager.disconnect(session)
