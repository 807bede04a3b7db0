"""
Storage package - In-memory storage for engine sessions.
"""

from canvasflow.storage.memory import (
    Session,
    SessionStorage,
    session_storage,
)

__all__ = [
    "Session",
    "SessionStorage",
    "session_storage",
]
