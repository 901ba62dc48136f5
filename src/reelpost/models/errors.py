"""Error hierarchy and error response models."""

from pydantic import BaseModel, Field


class ReelpostError(Exception):
    """Base error for all reelpost errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class InvalidTransition(ReelpostError):
    """A requested state change is not in the transition table."""

    def __init__(self, job_id: str, from_state: str, to_state: str):
        super().__init__(
            f"Invalid transition: {from_state} -> {to_state} for job {job_id}",
            component="state_machine",
            details={"job_id": job_id, "from_state": from_state, "to_state": to_state},
        )
        self.job_id = job_id
        self.from_state = from_state
        self.to_state = to_state


class SafetyHalt(ReelpostError):
    """The kill switch sentinel exists; no pipeline work may start."""

    def __init__(self, kill_switch_path: str):
        super().__init__(
            f"Kill switch is active. Remove {kill_switch_path} to continue.",
            component="safety",
            details={"kill_switch_path": kill_switch_path},
        )


class QuotaExceeded(ReelpostError):
    """The daily publish cap has been reached."""

    def __init__(self, posted_today: int, max_per_day: int):
        super().__init__(
            f"Daily post limit reached ({posted_today}/{max_per_day}). Try again tomorrow.",
            component="safety",
            details={"posted_today": posted_today, "max_per_day": max_per_day},
        )


class ProviderNotFound(ReelpostError):
    """No capability implementation is registered under the requested name."""

    def __init__(self, kind: str, name: str, available: list[str]):
        listing = ", ".join(available) if available else "none"
        super().__init__(
            f"No provider registered for {kind}:{name}. Available: {listing}",
            component="registry",
            details={"kind": kind, "name": name, "available": available},
        )


class StageFailure(ReelpostError):
    """A capability call failed (network, external process, malformed response)."""

    def __init__(self, message: str, component: str = "stage", details: dict | None = None):
        super().__init__(message, component=component, details=details)


class JobNotFound(ReelpostError):
    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} not found", component="jobs", details={"job_id": job_id})


class ClipNotFound(ReelpostError):
    def __init__(self, reference: str):
        super().__init__(
            f"Clip not found: {reference}", component="clips", details={"clip": reference}
        )


class JobNotRunnable(ReelpostError):
    """The job is neither pending nor failed (done, or stuck mid-stage)."""

    def __init__(self, job_id: str, state: str):
        super().__init__(
            f"Job {job_id} is in state {state}, cannot run.",
            component="executor",
            details={"job_id": job_id, "state": state},
        )


class JobNotRetryable(ReelpostError):
    """Only failed jobs can be retried."""

    def __init__(self, job_id: str, state: str):
        super().__init__(
            f"Job {job_id} is in state {state}; only failed jobs can be retried.",
            component="executor",
            details={"job_id": job_id, "state": state},
        )


class ConfigError(ReelpostError):
    """Unknown configuration key or unusable configuration value."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="config", details=details)


class ErrorResponse(BaseModel):
    """Standardized error response for API."""

    error_type: str = Field(..., description="Error category")
    component: str = Field(default="", description="Component that raised the error")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    actionable_guidance: str = Field(default="", description="Suggested operator action")
    retry_possible: bool = Field(default=False)

    @classmethod
    def from_exception(
        cls, exc: ReelpostError, guidance: str = "", retry: bool = False
    ) -> "ErrorResponse":
        return cls(
            error_type=type(exc).__name__,
            component=exc.component,
            message=exc.message,
            details=exc.details,
            actionable_guidance=guidance,
            retry_possible=retry,
        )
