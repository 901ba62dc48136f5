"""Job endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from reelpost.api.dependencies import get_runtime
from reelpost.models.pipeline import Job, JobState, RunResult
from reelpost.runtime import Runtime

router = APIRouter(prefix="/api/v1", tags=["jobs"])


class CreateJobRequest(BaseModel):
    clip_id: str | None = None
    caption: str | None = None
    script_text: str | None = Field(default=None, description="Skip script generation")


@router.get("/jobs")
def list_jobs(
    state: JobState | None = None,
    limit: int = 50,
    runtime: Runtime = Depends(get_runtime),
) -> list[Job]:
    return runtime.store.list_jobs(state=state, limit=limit)


@router.post("/jobs", status_code=201)
def create_job(request: CreateJobRequest, runtime: Runtime = Depends(get_runtime)) -> Job:
    return runtime.store.create_job(
        clip_id=request.clip_id,
        caption=request.caption,
        script_text=request.script_text,
    )


@router.get("/jobs/{job_id}")
def get_job(job_id: str, runtime: Runtime = Depends(get_runtime)):
    """A job and its transition history."""
    job = runtime.store.require_job(job_id)
    runs = runtime.store.get_job_runs(job_id)
    return {
        "job": job.model_dump(mode="json"),
        "runs": [r.model_dump(mode="json") for r in runs],
    }


@router.post("/jobs/{job_id}/run")
def run_job(job_id: str, runtime: Runtime = Depends(get_runtime)) -> RunResult:
    """Run a pending or failed job synchronously."""
    return runtime.executor.run_job(job_id)


@router.post("/jobs/{job_id}/retry")
def retry_job(job_id: str, runtime: Runtime = Depends(get_runtime)) -> RunResult:
    return runtime.executor.retry_job(job_id)
