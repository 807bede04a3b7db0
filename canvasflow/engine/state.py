"""
State Management for the Execution Engine.

This module holds everything a run mutates: the typed variable store,
the observable execution context and the step trace. Values written by
note nodes are parsed here from their assignment text.
"""

from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
import json
import math
import re


class VariableKind(str, Enum):
    """Runtime type tag of a stored variable."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRUCTURED = "structured"


class Variable(BaseModel):
    """A named value in the variable store."""

    name: str
    value: Any = None
    kind: VariableKind = VariableKind.STRUCTURED

    class Config:
        use_enum_values = True


def infer_kind(value: Any) -> VariableKind:
    """Tag a value with its runtime type."""
    # bool is a subclass of int, so it has to be checked first
    if isinstance(value, bool):
        return VariableKind.BOOLEAN
    if isinstance(value, (int, float)):
        return VariableKind.NUMBER
    if isinstance(value, str):
        return VariableKind.STRING
    return VariableKind.STRUCTURED


class VariableStore:
    """
    Name-keyed variable store scoped to an engine.

    The first write to a name creates the variable and later writes
    overwrite it. There is no scoping or shadowing.
    """

    def __init__(self, variables: Optional[Dict[str, Variable]] = None):
        self._variables: Dict[str, Variable] = dict(variables or {})

    def set(self, name: str, value: Any, kind: Optional[VariableKind] = None) -> Variable:
        """
        Write a variable, inferring its kind when none is given.

        Args:
            name: Variable name
            value: Any value
            kind: Explicit kind tag (optional)

        Returns:
            The stored variable
        """
        variable = Variable(name=name, value=value, kind=kind or infer_kind(value))
        self._variables[name] = variable
        return variable

    def get(self, name: str) -> Optional[Variable]:
        """Get a variable by name, or None if it was never written."""
        return self._variables.get(name)

    def values(self) -> Dict[str, Any]:
        """Plain name -> value mapping."""
        return {name: var.value for name, var in self._variables.items()}

    def snapshot(self) -> Dict[str, Variable]:
        """Copy of the stored variables."""
        return {name: var.model_copy(deep=True) for name, var in self._variables.items()}

    def clear(self) -> None:
        self._variables.clear()

    def __len__(self) -> int:
        return len(self._variables)


# ============================================================
# Assignment Parsing
# ============================================================

_ASSIGNMENT_RE = re.compile(r"\b([A-Za-z_]\w*)\s*=(?!=)\s*(.+?)\s*$", re.MULTILINE)
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")


def _parse_finite_float(text: str) -> float:
    number = float(text)
    if not math.isfinite(number):
        raise ValueError(f"{text} is not a finite number")
    return number


def _reject_constant(name: str) -> float:
    raise ValueError(f"{name} is not valid JSON")


def parse_assignment(content: str) -> Optional[Tuple[str, Any]]:
    """
    Find a ``name = value`` assignment in note content.

    The assignment may follow other text on its line, as in
    ``Set the limit: limit = 5``. Only the first one counts and its value
    runs to the end of the line. Comparisons such as ``a == b`` are not
    assignments.

    Returns:
        (name, parsed value), or None if the content holds no assignment
    """
    if not content:
        return None
    match = _ASSIGNMENT_RE.search(content)
    if not match:
        return None
    name, raw_value = match.groups()
    return name, parse_value(raw_value)


def parse_value(text: str) -> Any:
    """
    Parse the right-hand side of an assignment.

    Tried in order: number, boolean literal (case-insensitive), JSON,
    and finally the raw text with one layer of surrounding quotes removed.
    Values that would not survive as finite numbers, such as ``NaN`` or
    ``1e400``, are kept as text.
    """
    text = text.strip()

    if _NUMBER_RE.match(text):
        if _INTEGER_RE.match(text):
            return int(text)
        number = float(text)
        if math.isfinite(number):
            return number

    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    try:
        return json.loads(text, parse_float=_parse_finite_float, parse_constant=_reject_constant)
    except ValueError:
        pass

    return re.sub(r"^[\"']|[\"']$", "", text)


# ============================================================
# Execution Context and Step Trace
# ============================================================

class ExecutionContext(BaseModel):
    """
    Externally observable state of an engine.

    Attributes:
        variables: The variable store contents
        current_node_id: Node being executed (None when idle)
        running: A run is in progress
        paused: The run will suspend at the next node boundary
        execution_path: Visited node ids, in order
        errors: Error messages recorded during the run
    """

    variables: Dict[str, Variable] = Field(default_factory=dict)
    current_node_id: Optional[str] = None
    running: bool = False
    paused: bool = False
    execution_path: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the context to a plain dictionary."""
        return self.model_dump(mode="json")


class ExecutionStep(BaseModel):
    """A trace record for one visited node."""

    node_id: str
    action: str = "execute"
    input: Optional[Dict[str, Any]] = None
    output: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "action": self.action,
            "input": self.input,
            "output": self.output,
            "timestamp": self.timestamp.isoformat(),
        }


class ExecutionHistory:
    """
    Append-only step trace for the current or most recent run.

    Cleared when a new run starts or the engine is reset.
    """

    def __init__(self):
        self._steps: List[ExecutionStep] = []

    def record(self, step: ExecutionStep) -> None:
        self._steps.append(step)

    def steps(self) -> List[ExecutionStep]:
        """Copy of the recorded steps."""
        return [step.model_copy(deep=True) for step in self._steps]

    def clear(self) -> None:
        self._steps = []

    def __len__(self) -> int:
        return len(self._steps)
