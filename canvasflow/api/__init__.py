"""
API package - FastAPI routes and schemas.
"""

from canvasflow.api.routes import samples, sessions, websocket

__all__ = ["samples", "sessions", "websocket"]
