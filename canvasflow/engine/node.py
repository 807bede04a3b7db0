"""
Node Definitions for the Execution Engine.

Nodes are authored on the canvas and handed to the engine as a frozen
snapshot. Each node kind is its own model carrying only the fields that
kind uses; ``WorkflowNode`` is the tagged union over all of them, keyed
by the ``kind`` field.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from enum import Enum

from pydantic import BaseModel, Field, TypeAdapter


class NodeKind(str, Enum):
    """Kinds of nodes the engine knows how to execute."""
    START = "start"
    END = "end"
    DECISION = "decision"
    PROCESS = "process"
    NOTE = "note"
    FILE = "file"
    SHAPE = "shape"


class BaseNode(BaseModel):
    """
    Fields shared by every node kind.

    Attributes:
        id: Unique identifier of the node within its graph
        label: Text shown on the canvas
    """

    id: str = Field(..., min_length=1, description="Unique node identifier")
    label: str = Field("", description="Text shown on the canvas")

    class Config:
        frozen = True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the node to a dictionary."""
        return self.model_dump()


class StartNode(BaseNode):
    """Entry point of a workflow."""
    kind: Literal["start"] = "start"


class EndNode(BaseNode):
    """Terminates the branch that reaches it, even if it has outgoing edges."""
    kind: Literal["end"] = "end"


class DecisionNode(BaseNode):
    """Routes to its yes or no successor depending on a condition."""
    kind: Literal["decision"] = "decision"
    condition: str = Field("true", description="Condition evaluated against the variables")


class ProcessNode(BaseNode):
    """A plain processing step."""
    kind: Literal["process"] = "process"


class NoteNode(BaseNode):
    """A sticky note; content of the form ``name = value`` assigns a variable."""
    kind: Literal["note"] = "note"
    content: str = ""


class FileNode(BaseNode):
    """A text file; the label holds the file name."""
    kind: Literal["file"] = "file"
    content: str = ""


class ShapeNode(BaseNode):
    """A decorative shape."""
    kind: Literal["shape"] = "shape"
    shape: str = "rectangle"
    color: Optional[str] = None


WorkflowNode = Annotated[
    Union[StartNode, EndNode, DecisionNode, ProcessNode, NoteNode, FileNode, ShapeNode],
    Field(discriminator="kind"),
]

_node_list_adapter = TypeAdapter(List[WorkflowNode])


def parse_nodes(data: List[Dict[str, Any]]) -> List[BaseNode]:
    """
    Build typed nodes from plain dictionaries.

    Usage:
        nodes = parse_nodes([{"id": "s", "kind": "start"}, {"id": "e", "kind": "end"}])

    Raises:
        pydantic.ValidationError: If a node has an unknown kind or bad fields
    """
    return _node_list_adapter.validate_python(data)
