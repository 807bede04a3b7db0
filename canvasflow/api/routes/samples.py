"""
Sample Workflow Routes.

Serves the bundled example graphs so clients can load one and run it.
"""

from fastapi import APIRouter, HTTPException

from canvasflow.api.schemas import ErrorResponse, SampleListResponse, SampleResponse
from canvasflow.workflows.samples import SampleWorkflow, get_sample, list_samples


router = APIRouter(prefix="/samples", tags=["Samples"])


def _to_response(sample: SampleWorkflow) -> SampleResponse:
    return SampleResponse(
        name=sample.name,
        description=sample.description,
        nodes=sample.nodes,
        edges=sample.edges,
    )


@router.get("", response_model=SampleListResponse)
async def list_sample_workflows() -> SampleListResponse:
    """List the bundled sample workflows."""
    samples = [_to_response(s) for s in list_samples()]
    return SampleListResponse(samples=samples, total=len(samples))


@router.get(
    "/{name}",
    response_model=SampleResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_sample_workflow(name: str) -> SampleResponse:
    """Get a sample workflow by name."""
    try:
        sample = get_sample(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Sample '{name}' not found")
    return _to_response(sample)
