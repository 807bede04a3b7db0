"""
Async Workflow Execution Engine.

The engine interprets a canvas graph as a program: it walks the graph
from its start node, routes through decision nodes, writes variables from
note assignments and records a step trace. Subscribers are notified with
a snapshot of the execution context on every change.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
import asyncio
import logging

from canvasflow.config import settings
from canvasflow.engine.conditions import evaluate_condition
from canvasflow.engine.errors import CycleDetectedError, EngineBusyError, NodeNotFoundError
from canvasflow.engine.graph import WorkflowEdge, WorkflowGraph
from canvasflow.engine.node import (
    BaseNode,
    DecisionNode,
    NodeKind,
    NoteNode,
    parse_nodes,
)
from canvasflow.engine.state import (
    ExecutionContext,
    ExecutionHistory,
    ExecutionStep,
    Variable,
    VariableKind,
    VariableStore,
    parse_assignment,
)


logger = logging.getLogger(__name__)

NO_START_NODE = "No start node found."

ContextListener = Callable[[ExecutionContext], None]
NodeInput = Union[BaseNode, Dict[str, Any]]
EdgeInput = Union[WorkflowEdge, Dict[str, Any]]


class ExecutionEngine:
    """
    Runs canvas workflows one at a time.

    Handles:
    - Traversal from the start node with yes/no routing at decisions
    - A variable store that persists across runs until reset
    - Cooperative pause/resume at node boundaries
    - Cooperative cancellation through stop() and reset()
    - A step budget that ends runaway cycles
    - Synchronous context notifications to subscribers

    Usage:
        engine = ExecutionEngine(step_delay=0)
        unsubscribe = engine.subscribe(lambda ctx: print(ctx.current_node_id))
        context = await engine.execute_workflow(nodes, edges)
    """

    def __init__(
        self,
        step_delay: Optional[float] = None,
        max_steps: Optional[int] = None,
    ):
        """
        Initialize the engine.

        Args:
            step_delay: Seconds to wait before each node's work (defaults to settings)
            max_steps: Node visits allowed per run, 0 for unbounded (defaults to settings)
        """
        self.step_delay = settings.STEP_DELAY_SECONDS if step_delay is None else step_delay
        self.max_steps = settings.MAX_STEPS if max_steps is None else max_steps

        self._context = ExecutionContext()
        self._store = VariableStore()
        self._history = ExecutionHistory()
        self._listeners: List[ContextListener] = []

        # Set while not paused; stop() and reset() also set it to release waiters
        self._wakeup = asyncio.Event()
        self._wakeup.set()
        # Cancellation flag of the run in flight
        self._cancelled: Optional[asyncio.Event] = None
        self._active = False
        self._idle = asyncio.Event()
        self._idle.set()

    # ============================================================
    # Subscription
    # ============================================================

    def subscribe(self, listener: ContextListener) -> Callable[[], None]:
        """
        Register a listener for context changes.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.get_context()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning(f"Execution listener failed: {e}")

    def get_context(self) -> ExecutionContext:
        """Get a copy of the current execution context."""
        return self._context.model_copy(
            update={"variables": self._store.snapshot()},
            deep=True,
        )

    def get_execution_history(self) -> List[ExecutionStep]:
        """Get the step trace of the current or most recent run."""
        return self._history.steps()

    # ============================================================
    # Variables
    # ============================================================

    def set_variable(self, name: str, value: Any, kind: Optional[VariableKind] = None) -> Variable:
        """Write a variable and notify subscribers."""
        variable = self._store.set(name, value, kind)
        self._notify()
        return variable.model_copy(deep=True)

    def get_variable(self, name: str) -> Optional[Variable]:
        """Get a variable by name, or None if it does not exist."""
        variable = self._store.get(name)
        return variable.model_copy(deep=True) if variable else None

    def _add_error(self, message: str) -> None:
        logger.warning(message)
        self._context.errors.append(message)
        self._notify()

    # ============================================================
    # Execution
    # ============================================================

    async def execute_workflow(
        self,
        nodes: Iterable[NodeInput],
        edges: Iterable[EdgeInput],
    ) -> ExecutionContext:
        """
        Run a workflow to completion.

        Failures never propagate: they are recorded in the context errors.
        If a stopped run is still unwinding, this waits for it to finish
        before starting.

        Args:
            nodes: Typed nodes or node dictionaries
            edges: Edges or edge dictionaries

        Returns:
            Snapshot of the context when the run ended

        Raises:
            EngineBusyError: If another run is in progress
        """
        if self._active:
            if self._context.running:
                raise EngineBusyError()
            await self._idle.wait()
            if self._active:
                raise EngineBusyError()

        cancelled = asyncio.Event()
        self._cancelled = cancelled
        self._active = True
        self._idle.clear()

        self._context.running = True
        self._context.paused = False
        self._context.current_node_id = None
        self._context.execution_path = []
        self._context.errors = []
        self._history.clear()
        self._wakeup.set()
        self._notify()

        try:
            graph = _build_graph(nodes, edges)
            logger.info(f"Starting workflow run: {graph!r}")

            start = graph.find_start()
            if start is None:
                self._add_error(NO_START_NODE)
            else:
                await self._traverse(graph, start.id, cancelled)

        except CycleDetectedError as e:
            if not cancelled.is_set():
                self._add_error(str(e))
        except Exception as e:
            logger.exception(f"Execution failed: {e}")
            if not cancelled.is_set():
                self._add_error(f"Execution error: {e}")
        finally:
            if not cancelled.is_set():
                self._context.running = False
                self._context.current_node_id = None
                self._notify()
            self._active = False
            self._idle.set()

        logger.info(
            f"Workflow run finished: {len(self._context.execution_path)} nodes visited, "
            f"{len(self._context.errors)} errors"
        )
        return self.get_context()

    async def _traverse(self, graph: WorkflowGraph, node_id: str, cancelled: asyncio.Event) -> None:
        """Walk the graph from node_id until a branch ends."""
        steps = 0

        while node_id is not None:
            await self._wait_while_paused(cancelled)
            if cancelled.is_set():
                return

            node = graph.get_node(node_id)
            if node is None:
                self._add_error(str(NodeNotFoundError(node_id)))
                return

            steps += 1
            if self.max_steps and steps > self.max_steps:
                raise CycleDetectedError(node_id, self.max_steps)

            self._context.current_node_id = node_id
            self._context.execution_path.append(node_id)
            self._notify()
            logger.debug(f"Entering node: {node_id} ({node.kind}, step {steps})")

            if await self._pace(cancelled):
                return

            step = ExecutionStep(node_id=node_id)
            try:
                next_node_id = self._execute_node(graph, node, step)
            except Exception as e:
                step.output = {"error": str(e)}
                self._history.record(step)
                raise
            self._history.record(step)

            if node.kind == NodeKind.END:
                return
            node_id = next_node_id

    async def _wait_while_paused(self, cancelled: asyncio.Event) -> None:
        while self._context.paused and not cancelled.is_set():
            await self._wakeup.wait()

    async def _pace(self, cancelled: asyncio.Event) -> bool:
        """Wait the pacing delay; returns True if the run was cancelled meanwhile."""
        if self.step_delay <= 0:
            await asyncio.sleep(0)
            return cancelled.is_set()
        try:
            await asyncio.wait_for(cancelled.wait(), timeout=self.step_delay)
        except asyncio.TimeoutError:
            return False
        return True

    def _execute_node(self, graph: WorkflowGraph, node: BaseNode, step: ExecutionStep) -> Optional[str]:
        """Do a node's work, fill in its trace record and return the successor id."""
        kind = node.kind

        if kind == NodeKind.START:
            step.action = "start"
            step.output = {"message": "Workflow started"}

        elif kind == NodeKind.END:
            step.action = "end"
            step.output = {"message": "Workflow completed"}
            return None

        elif kind == NodeKind.DECISION:
            return self._execute_decision(graph, node, step)

        elif kind == NodeKind.NOTE:
            self._execute_note(node, step)

        elif kind == NodeKind.FILE:
            step.action = "file"
            step.output = {"filename": node.label, "content": node.content}

        elif kind == NodeKind.SHAPE:
            step.action = "shape"
            step.output = {
                "message": f"Shape: {node.label}",
                "shape": node.shape,
                "color": node.color,
            }

        else:
            step.action = "process"
            step.output = {"message": f"Processed: {node.label}"}

        return graph.next_node_id(node.id)

    def _execute_decision(self, graph: WorkflowGraph, node: DecisionNode, step: ExecutionStep) -> Optional[str]:
        condition = node.condition or "true"
        step.action = "decision"
        step.input = {"condition": condition}

        result = evaluate_condition(condition, self._store.values(), on_error=self._add_error)
        step.output = {"result": result, "condition": condition}
        logger.debug(f"Decision {node.id}: {condition!r} -> {result}")

        return graph.branch_target(node.id, result)

    def _execute_note(self, node: NoteNode, step: ExecutionStep) -> None:
        step.action = "note"
        step.output = {"message": f"Note: {node.label}", "content": node.content}

        assignment = parse_assignment(node.content)
        if assignment:
            name, value = assignment
            self.set_variable(name, value)
            step.output["variable"] = {"name": name, "value": value}

    # ============================================================
    # Controls
    # ============================================================

    def pause(self) -> None:
        """Suspend the run at the next node boundary."""
        self._context.paused = True
        self._wakeup.clear()
        self._notify()

    def resume(self) -> None:
        """Let a paused run continue."""
        self._context.paused = False
        self._wakeup.set()
        self._notify()

    def stop(self) -> None:
        """
        Stop the current run.

        The traversal is cancelled at its next suspension point and makes
        no further changes to the context.
        """
        self._cancel_run()
        self._context.running = False
        self._context.paused = False
        self._context.current_node_id = None
        self._notify()

    def reset(self) -> None:
        """Cancel any run and discard the context, variables and trace."""
        self._cancel_run()
        self._context = ExecutionContext()
        self._store.clear()
        self._history.clear()
        self._notify()

    def _cancel_run(self) -> None:
        if self._cancelled is not None and self._active:
            logger.info("Cancelling workflow run")
            self._cancelled.set()
        self._wakeup.set()


def _build_graph(nodes: Iterable[NodeInput], edges: Iterable[EdgeInput]) -> WorkflowGraph:
    """Create a graph snapshot, parsing dictionaries into typed models."""
    node_list = list(nodes)
    raw = [n for n in node_list if isinstance(n, dict)]
    if raw:
        parsed = iter(parse_nodes(raw))
        node_list = [next(parsed) if isinstance(n, dict) else n for n in node_list]

    edge_list = [
        WorkflowEdge(**e) if isinstance(e, dict) else e
        for e in edges
    ]
    return WorkflowGraph.from_lists(node_list, edge_list)


async def run_workflow(
    nodes: Iterable[NodeInput],
    edges: Iterable[EdgeInput],
    variables: Optional[Dict[str, Any]] = None,
    step_delay: Optional[float] = None,
    max_steps: Optional[int] = None,
) -> Tuple[ExecutionContext, List[ExecutionStep]]:
    """
    Convenience function to run a workflow on a fresh engine.

    Args:
        nodes: Workflow nodes
        edges: Workflow edges
        variables: Initial variable values
        step_delay: Pacing delay override
        max_steps: Step budget override

    Returns:
        Final context and step trace
    """
    engine = ExecutionEngine(step_delay=step_delay, max_steps=max_steps)
    for name, value in (variables or {}).items():
        engine.set_variable(name, value)
    context = await engine.execute_workflow(nodes, edges)
    return context, engine.get_execution_history()
