"""
In-Memory Storage for Engine Sessions.

Each API session owns one ExecutionEngine, so several independent runs
can coexist. The background task of a non-blocking run is kept with its
session so it can be awaited or cancelled.
"""

from typing import Dict, List, Optional
from datetime import datetime
import asyncio
import uuid
from dataclasses import dataclass, field

from canvasflow.engine.executor import ExecutionEngine


@dataclass
class Session:
    """An engine instance addressed by id."""
    session_id: str
    engine: ExecutionEngine
    created_at: datetime = field(default_factory=datetime.now)
    run_task: Optional[asyncio.Task] = None
    runs_started: int = 0

    @property
    def status(self) -> str:
        context = self.engine.get_context()
        if context.running:
            return "paused" if context.paused else "running"
        return "idle"

    def to_dict(self) -> Dict[str, object]:
        return {
            "session_id": self.session_id,
            "status": self.status,
            "step_delay": self.engine.step_delay,
            "max_steps": self.engine.max_steps,
            "runs_started": self.runs_started,
            "created_at": self.created_at.isoformat(),
        }


class SessionStorage:
    """
    Thread-safe in-memory storage for engine sessions.

    Sessions are created with their engine settings and live until
    deleted; deleting a session cancels its run.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def create(
        self,
        step_delay: Optional[float] = None,
        max_steps: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> Session:
        """
        Create a session with a fresh engine.

        Args:
            step_delay: Pacing delay override for the engine
            max_steps: Step budget override for the engine
            session_id: Explicit id (generated if not provided)

        Returns:
            The stored session
        """
        async with self._lock:
            session = Session(
                session_id=session_id or str(uuid.uuid4()),
                engine=ExecutionEngine(step_delay=step_delay, max_steps=max_steps),
            )
            self._sessions[session.session_id] = session
            return session

    async def get(self, session_id: str) -> Optional[Session]:
        """Get a session by ID."""
        async with self._lock:
            return self._sessions.get(session_id)

    async def delete(self, session_id: str) -> bool:
        """Delete a session, cancelling any run in flight."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.engine.reset()
        if session.run_task and not session.run_task.done():
            session.run_task.cancel()
        return True

    async def list_all(self) -> List[Session]:
        """List all sessions."""
        async with self._lock:
            return list(self._sessions.values())

    async def clear(self) -> None:
        """Delete every session."""
        for session in await self.list_all():
            await self.delete(session.session_id)

    def __len__(self) -> int:
        return len(self._sessions)


# Global storage instance
session_storage = SessionStorage()
