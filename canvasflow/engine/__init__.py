"""
Engine package - Core workflow execution components.
"""

from canvasflow.engine.node import (
    NodeKind,
    WorkflowNode,
    StartNode,
    EndNode,
    DecisionNode,
    ProcessNode,
    NoteNode,
    FileNode,
    ShapeNode,
    parse_nodes,
)
from canvasflow.engine.graph import BranchTag, WorkflowEdge, WorkflowGraph
from canvasflow.engine.state import (
    ExecutionContext,
    ExecutionStep,
    Variable,
    VariableKind,
    VariableStore,
)
from canvasflow.engine.conditions import evaluate_condition
from canvasflow.engine.errors import (
    EngineError,
    EngineBusyError,
    NodeNotFoundError,
    ConditionError,
    CycleDetectedError,
)
from canvasflow.engine.executor import ExecutionEngine, run_workflow

__all__ = [
    "NodeKind",
    "WorkflowNode",
    "StartNode",
    "EndNode",
    "DecisionNode",
    "ProcessNode",
    "NoteNode",
    "FileNode",
    "ShapeNode",
    "parse_nodes",
    "BranchTag",
    "WorkflowEdge",
    "WorkflowGraph",
    "ExecutionContext",
    "ExecutionStep",
    "Variable",
    "VariableKind",
    "VariableStore",
    "evaluate_condition",
    "EngineError",
    "EngineBusyError",
    "NodeNotFoundError",
    "ConditionError",
    "CycleDetectedError",
    "ExecutionEngine",
    "run_workflow",
]
