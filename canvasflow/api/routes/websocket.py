"""
WebSocket Routes for Real-time Execution Updates.

Streams every context change of a session's engine to connected clients
and accepts control messages from them.
"""

from typing import Dict, Set
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import asyncio
import logging

from canvasflow.engine.state import ExecutionContext
from canvasflow.storage.memory import Session, session_storage


logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])

CONTROL_ACTIONS = ("pause", "resume", "stop", "reset")

# Pending snapshots per connection; the oldest is dropped when a client lags
UPDATE_QUEUE_SIZE = 100


class ConnectionManager:
    """Manages WebSocket connections."""

    def __init__(self):
        self.active_connections: Dict[str, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, session_id: str):
        """Accept a new WebSocket connection."""
        await websocket.accept()
        if session_id not in self.active_connections:
            self.active_connections[session_id] = set()
        self.active_connections[session_id].add(websocket)
        logger.info(f"WebSocket connected for session: {session_id}")

    def disconnect(self, websocket: WebSocket, session_id: str):
        """Remove a WebSocket connection."""
        if session_id in self.active_connections:
            self.active_connections[session_id].discard(websocket)
            if not self.active_connections[session_id]:
                del self.active_connections[session_id]
        logger.info(f"WebSocket disconnected for session: {session_id}")

    def connection_count(self) -> int:
        return sum(len(conns) for conns in self.active_connections.values())


# Global connection manager
manager = ConnectionManager()


def _enqueue_latest(updates: asyncio.Queue, context: ExecutionContext) -> None:
    """Queue a snapshot, dropping the oldest one if the queue is full."""
    if updates.full():
        updates.get_nowait()
        logger.debug("WebSocket client lagging, dropped a context update")
    updates.put_nowait(context)


def _context_message(session_id: str, context: ExecutionContext) -> dict:
    return {
        "type": "context",
        "session_id": session_id,
        "context": context.to_dict(),
    }


@router.websocket("/ws/sessions/{session_id}")
async def websocket_session(websocket: WebSocket, session_id: str):
    """
    WebSocket endpoint for watching and controlling a session.

    On connect the current context is sent, followed by one message per
    context change. When a run finishes its step trace is sent too.

    Message format (client -> server):
    ```json
    {"action": "pause"}
    ```

    Message format (server -> client):
    ```json
    {
        "type": "context",
        "session_id": "...",
        "context": {"running": true, "current_node_id": "check", ...}
    }
    ```
    """
    session = await session_storage.get(session_id)
    if not session:
        await websocket.close(code=4004, reason=f"Session '{session_id}' not found")
        return

    await manager.connect(websocket, session_id)

    updates: asyncio.Queue = asyncio.Queue(maxsize=UPDATE_QUEUE_SIZE)
    unsubscribe = session.engine.subscribe(lambda context: _enqueue_latest(updates, context))
    forwarder = None

    try:
        context = session.engine.get_context()
        await websocket.send_json(_context_message(session_id, context))
        forwarder = asyncio.create_task(
            _forward_updates(websocket, session, updates, context.running)
        )

        while True:
            data = await websocket.receive_json()
            action = data.get("action")

            if action not in CONTROL_ACTIONS:
                await websocket.send_json({
                    "type": "error",
                    "error": f"Unknown action '{action}'. Expected one of {list(CONTROL_ACTIONS)}"
                })
                continue

            logger.info(f"WebSocket control '{action}' for session {session_id}")
            getattr(session.engine, action)()

    except WebSocketDisconnect:
        logger.info(f"Client disconnected from session {session_id}")
    except Exception as e:
        logger.exception(f"WebSocket error: {e}")
        try:
            await websocket.send_json({
                "type": "error",
                "error": str(e),
            })
        except Exception:
            logger.debug("Could not report error to closed WebSocket")
    finally:
        unsubscribe()
        if forwarder:
            if forwarder.done() and not forwarder.cancelled() and forwarder.exception():
                logger.warning(
                    f"WebSocket update forwarding failed for session {session_id}: {forwarder.exception()}"
                )
            forwarder.cancel()
        manager.disconnect(websocket, session_id)


async def _forward_updates(
    websocket: WebSocket,
    session: Session,
    updates: asyncio.Queue,
    was_running: bool,
):
    """Send queued context snapshots, and the trace when a run ends."""
    while True:
        context: ExecutionContext = await updates.get()
        await websocket.send_json(_context_message(session.session_id, context))

        if was_running and not context.running:
            steps = session.engine.get_execution_history()
            await websocket.send_json({
                "type": "history",
                "session_id": session.session_id,
                "steps": [step.to_dict() for step in steps],
            })
        was_running = context.running
