"""
CanvasFlow - FastAPI Application Entry Point.

Serves the workflow execution engine: sessions, run controls, step traces
and live context updates over WebSocket.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from canvasflow.config import settings
from canvasflow.api.routes import samples, sessions, websocket
from canvasflow.storage.memory import session_storage


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    # The editor talks to a single engine unless it creates its own sessions
    if not await session_storage.get(DEFAULT_SESSION_ID):
        await session_storage.create(session_id=DEFAULT_SESSION_ID)

    yield

    # Shutdown
    logger.info("Shutting down...")
    await session_storage.clear()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
## Workflow Execution Engine API

Runs workflows assembled on the canvas and reports their progress.

### Features
- **Nodes**: start, end, decision, process, note, file and shape
- **Branching**: decision nodes follow their yes/no edges
- **Variables**: note nodes assign `name = value`; decisions compare them
- **Controls**: pause, resume, stop and reset a run
- **Real-time Updates**: WebSocket stream of every context change

### Quick Start
1. Create a session: `POST /sessions`
2. Fetch a sample graph: `GET /samples/threshold-review`
3. Run it: `POST /sessions/{session_id}/run`
4. Inspect the trace: `GET /sessions/{session_id}/history`

A session with ID `default` exists from startup.
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(sessions.router)
app.include_router(sessions.graph_router)
app.include_router(samples.router)
app.include_router(websocket.router)


# ============================================================
# Root Endpoints
# ============================================================

@app.get("/", tags=["Root"])
async def root():
    """API root - returns basic info and links."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "Execution engine for visual canvas workflows",
        "docs": "/docs",
        "redoc": "/redoc",
        "endpoints": {
            "sessions": "/sessions",
            "validate": "/graph/validate",
            "samples": "/samples",
            "websocket": "/ws/sessions/{session_id}",
        },
        "default_session": DEFAULT_SESSION_ID,
    }


@app.get("/health", tags=["Root"])
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "sessions_count": len(session_storage),
        "websocket_clients": websocket.manager.connection_count(),
    }


# ============================================================
# Error Handlers
# ============================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.DEBUG else "An unexpected error occurred",
        },
    )
