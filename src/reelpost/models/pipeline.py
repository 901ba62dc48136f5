"""Job, clip and run models shared by the store, executor and API."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class JobState(StrEnum):
    """States of the job state machine."""

    PENDING = "pending"
    SCRIPTING = "scripting"
    TTS = "tts"
    RENDERING = "rendering"
    UPLOADING = "uploading"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"


class ClipStatus(StrEnum):
    AVAILABLE = "available"
    USED = "used"


class Clip(BaseModel):
    """A source media unit consumed by at most one job."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., min_length=1)
    file_path: str
    size_bytes: int = Field(default=0, ge=0)
    status: ClipStatus = Field(default=ClipStatus.AVAILABLE)
    ingested_at: datetime


class Job(BaseModel):
    """One unit of pipeline work and the artifacts each stage produced."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., min_length=1)
    clip_id: str | None = None
    state: JobState = Field(default=JobState.PENDING)
    last_good_state: JobState | None = None
    error_message: str | None = None
    script_text: str | None = None
    caption: str | None = None
    tts_audio_path: str | None = None
    rendered_video_path: str | None = None
    upload_url: str | None = None
    publish_container_id: str | None = None
    publish_media_id: str | None = None
    retry_count: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime


class Run(BaseModel):
    """Immutable audit record of one state transition."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: str
    state_from: JobState | None = None
    state_to: JobState
    provider: str | None = None
    duration_ms: int | None = Field(default=None, ge=0)
    error: str | None = None
    created_at: datetime


class JobContext(BaseModel):
    """Accumulated stage inputs threaded through the executor loop.

    Frozen: each stage produces a new context via ``advance`` instead of
    mutating the previous one.
    """

    model_config = ConfigDict(frozen=True)

    job_id: str
    clip_path: str | None = None
    script_text: str | None = None
    caption: str | None = None
    tts_audio_path: str | None = None
    rendered_video_path: str | None = None
    upload_url: str | None = None

    @classmethod
    def from_job(cls, job: Job, clip_path: str | None = None) -> "JobContext":
        return cls(
            job_id=job.id,
            clip_path=clip_path,
            script_text=job.script_text,
            caption=job.caption or None,
            tts_audio_path=job.tts_audio_path,
            rendered_video_path=job.rendered_video_path,
            upload_url=job.upload_url,
        )

    def advance(self, outcome: "StageOutcome") -> "JobContext":
        known = {k: v for k, v in outcome.updates.items() if k in type(self).model_fields}
        return self.model_copy(update=known)


class StageOutcome(BaseModel):
    """Field updates produced by one successful stage."""

    provider: str
    updates: dict[str, str] = Field(default_factory=dict)


class RunResult(BaseModel):
    """Structured result of ``PipelineExecutor.run_job``."""

    success: bool
    job_id: str
    state: JobState
    error: str | None = None
    duration_ms: int = Field(default=0, ge=0)


class StatusSummary(BaseModel):
    """Pipeline overview used by the CLI and API status views."""

    jobs_by_state: dict[str, int] = Field(default_factory=dict)
    clips_available: int = 0
    posted_today: int = 0
    max_posts_per_day: int = 0
    publish_mode: str = "dry"
    kill_switch_active: bool = False


class TickStatus(StrEnum):
    RAN = "ran"
    IDLE = "idle"
    SKIPPED = "skipped"
    ERROR = "error"


class TickResult(BaseModel):
    """Outcome of one scheduler tick."""

    status: TickStatus
    job_id: str | None = None
    run: RunResult | None = None
    error: str | None = None
