"""
Graph Snapshot for the Execution Engine.

The WorkflowGraph is the frozen view of the canvas handed to the engine
for one run: the typed nodes, the edges between them, and the lookups the
engine needs to route from one node to the next.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from canvasflow.engine.node import BaseNode, NodeKind


class BranchTag(str, Enum):
    """Tags that disambiguate the two successors of a decision node."""
    YES = "yes"
    NO = "no"


class WorkflowEdge(BaseModel):
    """
    A directed edge between two nodes.

    Attributes:
        id: Unique identifier of the edge
        source: Id of the node the edge leaves
        target: Id of the node the edge enters
        branch_tag: "yes" or "no" on edges leaving a decision node
    """

    id: str = Field(..., description="Unique edge identifier")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")
    branch_tag: Optional[BranchTag] = Field(None, description="Decision branch this edge belongs to")

    class Config:
        frozen = True
        use_enum_values = True

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


@dataclass(frozen=True)
class WorkflowGraph:
    """
    Immutable snapshot of a workflow's nodes and edges.

    Edge order is significant: for non-decision nodes the engine follows
    the first outgoing edge, and untagged decision edges fall back to the
    first (yes) and second (no) outgoing edge.

    Usage:
        graph = WorkflowGraph.from_lists(nodes, edges)
        start = graph.find_start()
    """

    nodes: Tuple[BaseNode, ...] = ()
    edges: Tuple[WorkflowEdge, ...] = ()
    _index: Dict[str, BaseNode] = field(default_factory=dict, init=False, repr=False, compare=False)
    _outgoing: Dict[str, List[WorkflowEdge]] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        index: Dict[str, BaseNode] = {}
        for node in self.nodes:
            # First definition wins, matching a front-to-back lookup
            index.setdefault(node.id, node)
        outgoing: Dict[str, List[WorkflowEdge]] = {}
        for edge in self.edges:
            outgoing.setdefault(edge.source, []).append(edge)
        object.__setattr__(self, "_index", index)
        object.__setattr__(self, "_outgoing", outgoing)

    @classmethod
    def from_lists(
        cls,
        nodes: Iterable[BaseNode],
        edges: Iterable[WorkflowEdge],
    ) -> "WorkflowGraph":
        """Create a snapshot from node and edge sequences."""
        return cls(nodes=tuple(nodes), edges=tuple(edges))

    def get_node(self, node_id: str) -> Optional[BaseNode]:
        """Get a node by id, or None if the graph has no such node."""
        return self._index.get(node_id)

    def outgoing(self, node_id: str) -> List[WorkflowEdge]:
        """Edges leaving a node, in input order."""
        return list(self._outgoing.get(node_id, ()))

    def find_start(self) -> Optional[BaseNode]:
        """Return the first start node, or None."""
        for node in self.nodes:
            if node.kind == NodeKind.START:
                return node
        return None

    def next_node_id(self, node_id: str) -> Optional[str]:
        """Target of the first outgoing edge, or None for a sink."""
        edges = self._outgoing.get(node_id)
        if not edges:
            return None
        return edges[0].target

    def branch_target(self, node_id: str, result: bool) -> Optional[str]:
        """
        Pick the successor of a decision node.

        A true result follows the "yes" edge, falling back to the first
        outgoing edge. A false result follows the "no" edge, falling back
        to the second outgoing edge.

        Args:
            node_id: The decision node
            result: The evaluated condition

        Returns:
            Target node id, or None if there is no matching edge
        """
        edges = self._outgoing.get(node_id, [])
        tag = BranchTag.YES.value if result else BranchTag.NO.value
        for edge in edges:
            if edge.branch_tag == tag:
                return edge.target

        fallback = 0 if result else 1
        if len(edges) > fallback:
            return edges[fallback].target
        return None

    def validate(self) -> List[str]:
        """
        Check the graph structure.

        The engine runs graphs regardless of these findings; they exist
        so an editor can warn its user before running.

        Returns:
            List of warnings (empty if the graph looks well formed)
        """
        warnings = []

        starts = [n for n in self.nodes if n.kind == NodeKind.START]
        if not starts:
            warnings.append("Graph has no start node")
        elif len(starts) > 1:
            warnings.append(
                f"Graph has {len(starts)} start nodes; only '{starts[0].id}' will run"
            )

        seen = set()
        for node in self.nodes:
            if node.id in seen:
                warnings.append(f"Duplicate node id '{node.id}'")
            seen.add(node.id)

        for edge in self.edges:
            if edge.source not in self._index:
                warnings.append(f"Edge '{edge.id}' leaves unknown node '{edge.source}'")
            if edge.target not in self._index:
                warnings.append(f"Edge '{edge.id}' points at unknown node '{edge.target}'")

        for node in self.nodes:
            if node.kind == NodeKind.DECISION and len(self._outgoing.get(node.id, [])) < 2:
                warnings.append(f"Decision node '{node.id}' has fewer than two outgoing edges")

        return warnings

    def __repr__(self) -> str:
        return f"WorkflowGraph(nodes={[n.id for n in self.nodes]}, edges={len(self.edges)})"
