"""
Exceptions raised by the execution engine.

Run failures never escape ``ExecutionEngine.execute_workflow``; they are
caught and recorded as messages in the execution context. These classes
give those failures a type inside the engine and let callers recognise
misuse such as starting a second run on a busy engine.
"""


class EngineError(Exception):
    """Base exception for the execution engine."""
    pass


class EngineBusyError(EngineError):
    """Raised when a workflow is started while another run is active."""
    
    def __init__(self, message: str = "A workflow is already running on this engine"):
        super().__init__(message)


class NodeNotFoundError(EngineError):
    """An edge points at a node id that is not in the graph."""
    
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node {node_id} not found")


class ConditionError(EngineError):
    """Raised when a decision condition cannot be evaluated."""
    pass


class CycleDetectedError(EngineError):
    """
    The run visited more nodes than its step budget allows.

    Cycles are the usual cause, but an acyclic graph with more nodes than
    the budget is reported the same way.
    """
    
    def __init__(self, node_id: str, max_steps: int):
        self.node_id = node_id
        self.max_steps = max_steps
        super().__init__(
            f"Cycle detected: step budget of {max_steps} exceeded at node {node_id}"
        )
