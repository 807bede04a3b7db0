"""
Sample Canvas Workflows.

Ready-made graphs that exercise every node kind. The API serves them so a
client can fetch one, tweak it and post it back to a session's run
endpoint.

threshold-review:
1. Note nodes assign ``threshold`` and ``score``
2. A decision compares them
3. The yes branch approves, the no branch attaches a rework file
4. Both branches meet at the end node

release-checklist:
A linear walk through a process step, a release-notes file and a status
shape.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List
import logging

from canvasflow.engine.graph import WorkflowEdge
from canvasflow.engine.node import (
    BaseNode,
    DecisionNode,
    EndNode,
    FileNode,
    NoteNode,
    ProcessNode,
    ShapeNode,
    StartNode,
)


logger = logging.getLogger(__name__)


@dataclass
class SampleWorkflow:
    """A named sample graph."""
    name: str
    description: str
    nodes: List[BaseNode] = field(default_factory=list)
    edges: List[WorkflowEdge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


def create_threshold_review_workflow(score: float = 15, threshold: float = 10) -> SampleWorkflow:
    """
    Create the threshold review workflow.

    Args:
        score: Value assigned to ``score``
        threshold: Value assigned to ``threshold``

    Returns:
        The sample workflow
    """
    nodes = [
        StartNode(id="start", label="Start"),
        NoteNode(id="set-threshold", label="Threshold", content=f"threshold = {threshold:g}"),
        NoteNode(id="set-score", label="Score", content=f"score = {score:g}"),
        DecisionNode(id="check", label="Score above threshold?", condition="score > threshold"),
        ProcessNode(id="approve", label="Approve"),
        FileNode(id="rework", label="rework.md", content="Score below threshold, needs rework."),
        EndNode(id="end", label="End"),
    ]
    edges = [
        WorkflowEdge(id="e1", source="start", target="set-threshold"),
        WorkflowEdge(id="e2", source="set-threshold", target="set-score"),
        WorkflowEdge(id="e3", source="set-score", target="check"),
        WorkflowEdge(id="e4", source="check", target="approve", branch_tag="yes"),
        WorkflowEdge(id="e5", source="check", target="rework", branch_tag="no"),
        WorkflowEdge(id="e6", source="approve", target="end"),
        WorkflowEdge(id="e7", source="rework", target="end"),
    ]
    return SampleWorkflow(
        name="threshold-review",
        description="Assigns a score and a threshold, then branches on their comparison",
        nodes=nodes,
        edges=edges,
    )


def create_release_checklist_workflow() -> SampleWorkflow:
    """Create the linear release checklist workflow."""
    nodes = [
        StartNode(id="start", label="Start"),
        ProcessNode(id="build", label="Build artifacts"),
        FileNode(id="notes", label="RELEASE_NOTES.md", content="- Initial release"),
        ShapeNode(id="status", label="Ready", shape="circle", color="#22c55e"),
        NoteNode(id="mark", label="Released", content="released = true"),
        EndNode(id="end", label="End"),
    ]
    edges = [
        WorkflowEdge(id="e1", source="start", target="build"),
        WorkflowEdge(id="e2", source="build", target="notes"),
        WorkflowEdge(id="e3", source="notes", target="status"),
        WorkflowEdge(id="e4", source="status", target="mark"),
        WorkflowEdge(id="e5", source="mark", target="end"),
    ]
    return SampleWorkflow(
        name="release-checklist",
        description="Linear walk through process, file, shape and note nodes",
        nodes=nodes,
        edges=edges,
    )


_sample_factories: Dict[str, Callable[[], SampleWorkflow]] = {
    "threshold-review": create_threshold_review_workflow,
    "release-checklist": create_release_checklist_workflow,
}


def get_sample(name: str) -> SampleWorkflow:
    """
    Build a sample workflow by name.

    Raises:
        KeyError: If no sample has that name
    """
    factory = _sample_factories.get(name)
    if factory is None:
        raise KeyError(f"Sample '{name}' not found. Available: {list(_sample_factories)}")
    return factory()


def list_samples() -> List[SampleWorkflow]:
    """Build every sample workflow."""
    return [factory() for factory in _sample_factories.values()]


async def run_threshold_review_demo():
    """Run the threshold review workflow and print the trace."""
    from canvasflow.engine.executor import run_workflow

    workflow = create_threshold_review_workflow()

    print("Starting threshold review...")
    context, history = await run_workflow(workflow.nodes, workflow.edges, step_delay=0.1)

    print(f"\nPath: {' -> '.join(context.execution_path)}")
    print(f"Errors: {context.errors or 'none'}")
    print("\nVariables:")
    for name, variable in context.variables.items():
        print(f"  - {name} = {variable.value!r} ({variable.kind})")
    print("\nTrace:")
    for step in history:
        print(f"  - [{step.action}] {step.node_id}: {step.output}")

    return context


if __name__ == "__main__":
    import asyncio
    asyncio.run(run_threshold_review_demo())
