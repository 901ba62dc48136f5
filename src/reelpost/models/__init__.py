"""Data models for reelpost."""

from reelpost.models.capabilities import (
    ContainerRequest,
    ContainerResult,
    PublishResult,
    RenderRequest,
    RenderResult,
    ScriptResult,
    SpeechResult,
    UploadResult,
)
from reelpost.models.errors import (
    ClipNotFound,
    ConfigError,
    ErrorResponse,
    InvalidTransition,
    JobNotFound,
    JobNotRetryable,
    JobNotRunnable,
    ProviderNotFound,
    QuotaExceeded,
    ReelpostError,
    SafetyHalt,
    StageFailure,
)
from reelpost.models.pipeline import (
    Clip,
    ClipStatus,
    Job,
    JobContext,
    JobState,
    Run,
    RunResult,
    StageOutcome,
    StatusSummary,
    TickResult,
    TickStatus,
)

__all__ = [
    "Clip",
    "ClipNotFound",
    "ClipStatus",
    "ConfigError",
    "ContainerRequest",
    "ContainerResult",
    "ErrorResponse",
    "InvalidTransition",
    "Job",
    "JobContext",
    "JobNotFound",
    "JobNotRetryable",
    "JobNotRunnable",
    "JobState",
    "ProviderNotFound",
    "PublishResult",
    "QuotaExceeded",
    "ReelpostError",
    "RenderRequest",
    "RenderResult",
    "Run",
    "RunResult",
    "SafetyHalt",
    "ScriptResult",
    "SpeechResult",
    "StageFailure",
    "StageOutcome",
    "StatusSummary",
    "TickResult",
    "TickStatus",
    "UploadResult",
]
