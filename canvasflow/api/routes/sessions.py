"""
Session API Routes.

Endpoints for creating engine sessions, running workflows on them and
driving the pause/resume/stop/reset controls.
"""

from typing import List
from fastapi import APIRouter, HTTPException, status
import asyncio
import logging

from canvasflow.api.schemas import (
    ErrorResponse,
    ExecutionStepEntry,
    GraphPayload,
    GraphValidationResponse,
    HistoryResponse,
    RunRequest,
    RunResponse,
    SessionCreateRequest,
    SessionListResponse,
    SessionResponse,
    VariableWriteRequest,
)
from canvasflow.engine.errors import EngineBusyError
from canvasflow.engine.graph import WorkflowGraph
from canvasflow.engine.state import ExecutionContext, ExecutionStep, Variable
from canvasflow.storage.memory import Session, session_storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessions"])
graph_router = APIRouter(prefix="/graph", tags=["Graph"])


async def _get_session(session_id: str) -> Session:
    session = await session_storage.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return session


def _history_entries(steps: List[ExecutionStep]) -> List[ExecutionStepEntry]:
    return [ExecutionStepEntry(**step.to_dict()) for step in steps]


# ============================================================
# Session CRUD Endpoints
# ============================================================

@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(request: SessionCreateRequest) -> SessionResponse:
    """
    Create an engine session.

    Every session owns its own engine, variables and step trace.
    """
    session = await session_storage.create(
        step_delay=request.step_delay,
        max_steps=request.max_steps,
    )
    logger.info(f"Created session: {session.session_id}")
    return SessionResponse(**session.to_dict())


@router.get(
    "",
    response_model=SessionListResponse,
)
async def list_sessions() -> SessionListResponse:
    """List all sessions."""
    sessions = await session_storage.list_all()
    items = [SessionResponse(**s.to_dict()) for s in sessions]
    return SessionListResponse(sessions=items, total=len(items))


@router.get(
    "/{session_id}",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_session(session_id: str) -> SessionResponse:
    """Get information about a session."""
    session = await _get_session(session_id)
    return SessionResponse(**session.to_dict())


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_session(session_id: str):
    """Delete a session, cancelling its run."""
    deleted = await session_storage.delete(session_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    logger.info(f"Deleted session: {session_id}")


# ============================================================
# Execution Endpoints
# ============================================================

@router.post(
    "/{session_id}/run",
    response_model=RunResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "A run is already in progress"},
    }
)
async def run_workflow(session_id: str, request: RunRequest) -> RunResponse:
    """
    Run a workflow on the session's engine.

    If `wait` is false the run continues in the background; watch it
    through GET /sessions/{session_id}/context or the WebSocket.
    Run errors are reported in `context.errors`, not as HTTP errors.
    """
    session = await _get_session(session_id)
    engine = session.engine

    if engine.get_context().running:
        raise HTTPException(
            status_code=409,
            detail=f"Session '{session_id}' is already running a workflow"
        )

    session.runs_started += 1

    if not request.wait:
        session.run_task = asyncio.create_task(
            _execute_in_background(session, request)
        )
        # Let the run start so the response reflects it
        await asyncio.sleep(0)
        return RunResponse(
            session_id=session_id,
            status="running",
            context=engine.get_context(),
        )

    try:
        context = await engine.execute_workflow(request.nodes, request.edges)
    except EngineBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return RunResponse(
        session_id=session_id,
        status="completed",
        context=context,
        history=_history_entries(engine.get_execution_history()),
    )


async def _execute_in_background(session: Session, request: RunRequest) -> ExecutionContext:
    """Execute a workflow in the background."""
    try:
        return await session.engine.execute_workflow(request.nodes, request.edges)
    except EngineBusyError as e:
        logger.warning(f"Background run rejected for session {session.session_id}: {e}")
        return session.engine.get_context()


@router.get(
    "/{session_id}/context",
    response_model=ExecutionContext,
    responses={404: {"model": ErrorResponse}},
)
async def get_context(session_id: str) -> ExecutionContext:
    """
    Get the current execution context of a session.

    Use this to poll background runs.
    """
    session = await _get_session(session_id)
    return session.engine.get_context()


@router.get(
    "/{session_id}/history",
    response_model=HistoryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_history(session_id: str) -> HistoryResponse:
    """Get the step trace of the current or most recent run."""
    session = await _get_session(session_id)
    steps = _history_entries(session.engine.get_execution_history())
    return HistoryResponse(session_id=session_id, steps=steps, total=len(steps))


# ============================================================
# Control Endpoints
# ============================================================

@router.post("/{session_id}/pause", response_model=ExecutionContext)
async def pause(session_id: str) -> ExecutionContext:
    """Pause the run at the next node boundary."""
    session = await _get_session(session_id)
    session.engine.pause()
    return session.engine.get_context()


@router.post("/{session_id}/resume", response_model=ExecutionContext)
async def resume(session_id: str) -> ExecutionContext:
    """Resume a paused run."""
    session = await _get_session(session_id)
    session.engine.resume()
    return session.engine.get_context()


@router.post("/{session_id}/stop", response_model=ExecutionContext)
async def stop(session_id: str) -> ExecutionContext:
    """Stop the run; the traversal is cancelled at its next suspension point."""
    session = await _get_session(session_id)
    session.engine.stop()
    return session.engine.get_context()


@router.post("/{session_id}/reset", response_model=ExecutionContext)
async def reset(session_id: str) -> ExecutionContext:
    """Discard the context, variables and step trace."""
    session = await _get_session(session_id)
    session.engine.reset()
    return session.engine.get_context()


# ============================================================
# Variable Endpoints
# ============================================================

@router.get(
    "/{session_id}/variables/{name}",
    response_model=Variable,
    responses={404: {"model": ErrorResponse}},
)
async def get_variable(session_id: str, name: str) -> Variable:
    """Get a variable from the session's store."""
    session = await _get_session(session_id)
    variable = session.engine.get_variable(name)
    if variable is None:
        raise HTTPException(status_code=404, detail=f"Variable '{name}' not found")
    return variable


@router.put(
    "/{session_id}/variables/{name}",
    response_model=Variable,
    responses={404: {"model": ErrorResponse}},
)
async def set_variable(session_id: str, name: str, request: VariableWriteRequest) -> Variable:
    """Write a variable; later runs on the session see it."""
    session = await _get_session(session_id)
    return session.engine.set_variable(name, request.value, request.kind)


# ============================================================
# Graph Endpoints
# ============================================================

@graph_router.post(
    "/validate",
    response_model=GraphValidationResponse,
)
async def validate_graph(request: GraphPayload) -> GraphValidationResponse:
    """
    Check a graph for structural problems before running it.

    Warnings do not prevent a run.
    """
    graph = WorkflowGraph.from_lists(request.nodes, request.edges)
    warnings = graph.validate()
    return GraphValidationResponse(valid=not warnings, warnings=warnings)
