"""Status endpoint."""

from fastapi import APIRouter, Depends

from reelpost.api.dependencies import get_runtime
from reelpost.models.pipeline import StatusSummary, TickResult
from reelpost.runtime import Runtime

router = APIRouter(prefix="/api/v1", tags=["status"])


@router.get("/status")
def get_status(runtime: Runtime = Depends(get_runtime)) -> StatusSummary:
    """Job counts per state, clips available and today's posts against the limit."""
    return runtime.executor.status_summary()


@router.post("/scheduler/tick")
def trigger_tick(runtime: Runtime = Depends(get_runtime)) -> TickResult:
    """Run one scheduler tick now."""
    return runtime.scheduler.tick()
