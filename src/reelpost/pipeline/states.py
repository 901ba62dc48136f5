"""Job state machine: transition table, stage ordering and resume point.

Pure functions only; persistence lives in ``reelpost.storage``.
"""

from reelpost.models.errors import InvalidTransition
from reelpost.models.pipeline import Job, JobState

# The stages that perform work, in execution order.
PIPELINE_ORDER: tuple[JobState, ...] = (
    JobState.SCRIPTING,
    JobState.TTS,
    JobState.RENDERING,
    JobState.UPLOADING,
    JobState.PUBLISHING,
)

# Capability kind that performs each stage.
STAGE_KINDS: dict[JobState, str] = {
    JobState.SCRIPTING: "script",
    JobState.TTS: "tts",
    JobState.RENDERING: "renderer",
    JobState.UPLOADING: "storage",
    JobState.PUBLISHING: "publisher",
}

CAPABILITY_KINDS: tuple[str, ...] = tuple(STAGE_KINDS.values())

TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    JobState.PENDING: frozenset({JobState.SCRIPTING, JobState.FAILED}),
    JobState.SCRIPTING: frozenset({JobState.TTS, JobState.FAILED}),
    JobState.TTS: frozenset({JobState.RENDERING, JobState.FAILED}),
    JobState.RENDERING: frozenset({JobState.UPLOADING, JobState.FAILED}),
    JobState.UPLOADING: frozenset({JobState.PUBLISHING, JobState.FAILED}),
    JobState.PUBLISHING: frozenset({JobState.DONE, JobState.FAILED}),
    JobState.DONE: frozenset(),
    # Any stage is a valid re-entry point for a failed job.
    JobState.FAILED: frozenset({JobState.PENDING, *PIPELINE_ORDER}),
}


def can_transition(from_state: JobState | str, to_state: JobState | str) -> bool:
    """Return True if ``from_state -> to_state`` is in the transition table."""
    try:
        src, dst = JobState(from_state), JobState(to_state)
    except ValueError:
        return False
    return dst in TRANSITIONS[src]


def validate_transition(job_id: str, from_state: JobState | str, to_state: JobState | str) -> None:
    """Raise ``InvalidTransition`` unless the transition is legal."""
    if not can_transition(from_state, to_state):
        raise InvalidTransition(job_id, str(from_state), str(to_state))


def next_state(current: JobState | str) -> JobState | None:
    """Pipeline successor of a stage; ``done`` after the final stage."""
    try:
        idx = PIPELINE_ORDER.index(JobState(current))
    except ValueError:
        return None
    if idx == len(PIPELINE_ORDER) - 1:
        return JobState.DONE
    return PIPELINE_ORDER[idx + 1]


def previous_stage(stage: JobState | str) -> JobState | None:
    """The stage completed before ``stage``, or None for the first stage."""
    idx = PIPELINE_ORDER.index(JobState(stage))
    return PIPELINE_ORDER[idx - 1] if idx > 0 else None


def resume_state(job: Job) -> JobState | None:
    """Stage a failed job resumes at.

    The successor of ``last_good_state``, so completed stages are never
    executed twice; ``scripting`` when nothing completed. None for jobs that
    are not failed.
    """
    if job.state != JobState.FAILED:
        return None
    if job.last_good_state is None or job.last_good_state == JobState.PENDING:
        return JobState.SCRIPTING
    return next_state(job.last_good_state)


def stage_kind(stage: JobState | str) -> str:
    """Capability kind responsible for a pipeline stage."""
    return STAGE_KINDS[JobState(stage)]
