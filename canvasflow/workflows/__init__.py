"""
Workflows package - Sample canvas workflows.
"""

from canvasflow.workflows.samples import SampleWorkflow, get_sample, list_samples

__all__ = ["SampleWorkflow", "get_sample", "list_samples"]
