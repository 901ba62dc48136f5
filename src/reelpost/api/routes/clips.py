"""Clip endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from reelpost.api.dependencies import get_runtime
from reelpost.models.errors import ClipNotFound
from reelpost.models.pipeline import Clip, ClipStatus
from reelpost.runtime import Runtime

router = APIRouter(prefix="/api/v1", tags=["clips"])


class IngestRequest(BaseModel):
    file_path: str


@router.get("/clips")
def list_clips(
    status: ClipStatus | None = None,
    limit: int = 50,
    runtime: Runtime = Depends(get_runtime),
) -> list[Clip]:
    return runtime.store.list_clips(status=status, limit=limit)


@router.post("/clips", status_code=201)
def ingest_clip(request: IngestRequest, runtime: Runtime = Depends(get_runtime)) -> Clip:
    """Register a media file already on the server's disk."""
    return runtime.store.ingest_clip(request.file_path)


@router.get("/clips/{clip_id}")
def get_clip(clip_id: str, runtime: Runtime = Depends(get_runtime)) -> Clip:
    clip = runtime.store.get_clip(clip_id)
    if clip is None:
        raise ClipNotFound(clip_id)
    return clip
