"""
CanvasFlow - execution engine for visual canvas workflows.

Interprets a graph of start, decision, process, note, file and shape nodes
as a program: walks it from the start node, keeps a typed variable store
and records a replayable step trace.
"""

__version__ = "1.0.0"
