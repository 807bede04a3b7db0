"""
Pydantic Schemas for API Request/Response Models.

These schemas define the structure of data flowing through the API,
providing automatic validation and documentation. Node and edge payloads
reuse the engine's own models, so a graph is validated once on the way in.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from canvasflow.engine.graph import WorkflowEdge
from canvasflow.engine.node import WorkflowNode
from canvasflow.engine.state import ExecutionContext, VariableKind


# ============================================================
# Session Schemas
# ============================================================

class SessionCreateRequest(BaseModel):
    """Request to create an engine session."""
    step_delay: Optional[float] = Field(
        None, ge=0, description="Seconds to wait before each node (defaults to settings)"
    )
    max_steps: Optional[int] = Field(
        None, ge=0, description="Node visits allowed per run, 0 for unbounded"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "step_delay": 0.5,
                "max_steps": 1000
            }
        }


class SessionResponse(BaseModel):
    """Information about a session."""
    session_id: str
    status: str = Field(..., description="idle, running or paused")
    step_delay: float
    max_steps: int
    runs_started: int
    created_at: str


class SessionListResponse(BaseModel):
    """Response listing all sessions."""
    sessions: List[SessionResponse]
    total: int


# ============================================================
# Graph Schemas
# ============================================================

class GraphPayload(BaseModel):
    """A frozen snapshot of the canvas graph."""
    nodes: List[WorkflowNode] = Field(..., description="Nodes, discriminated by 'kind'")
    edges: List[WorkflowEdge] = Field(default_factory=list, description="Edges in canvas order")

    class Config:
        json_schema_extra = {
            "example": {
                "nodes": [
                    {"id": "start", "kind": "start", "label": "Start"},
                    {"id": "set-x", "kind": "note", "label": "x", "content": "x = 15"},
                    {"id": "check", "kind": "decision", "label": "x > 10?", "condition": "x > 10"},
                    {"id": "big", "kind": "process", "label": "Big"},
                    {"id": "small", "kind": "process", "label": "Small"},
                    {"id": "end", "kind": "end", "label": "End"}
                ],
                "edges": [
                    {"id": "e1", "source": "start", "target": "set-x"},
                    {"id": "e2", "source": "set-x", "target": "check"},
                    {"id": "e3", "source": "check", "target": "big", "branch_tag": "yes"},
                    {"id": "e4", "source": "check", "target": "small", "branch_tag": "no"},
                    {"id": "e5", "source": "big", "target": "end"},
                    {"id": "e6", "source": "small", "target": "end"}
                ]
            }
        }


class RunRequest(GraphPayload):
    """Request to run a workflow on a session."""
    wait: bool = Field(
        True,
        description="If false, run in the background and return immediately"
    )


class GraphValidationResponse(BaseModel):
    """Structural warnings for a graph."""
    valid: bool
    warnings: List[str]


# ============================================================
# Execution Schemas
# ============================================================

class ExecutionStepEntry(BaseModel):
    """A single entry in the step trace."""
    node_id: str
    action: str
    input: Optional[Dict[str, Any]] = None
    output: Optional[Dict[str, Any]] = None
    timestamp: str


class HistoryResponse(BaseModel):
    """Step trace of the current or most recent run."""
    session_id: str
    steps: List[ExecutionStepEntry]
    total: int


class RunResponse(BaseModel):
    """Response after starting or finishing a run."""
    session_id: str
    status: str
    context: ExecutionContext
    history: List[ExecutionStepEntry] = Field(default_factory=list)


# ============================================================
# Variable Schemas
# ============================================================

class VariableWriteRequest(BaseModel):
    """Request to write a variable."""
    value: Any = Field(..., description="Any JSON value")
    kind: Optional[VariableKind] = Field(None, description="Kind tag (inferred if omitted)")


# ============================================================
# Sample Schemas
# ============================================================

class SampleResponse(GraphPayload):
    """A bundled sample workflow."""
    name: str
    description: str


class SampleListResponse(BaseModel):
    """Response listing sample workflows."""
    samples: List[SampleResponse]
    total: int


# ============================================================
# Error Schemas
# ============================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int
