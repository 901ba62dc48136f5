"""Durable job, run and clip records."""

import logging
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path

from sqlalchemy import func, select, update

from reelpost.models.errors import ClipNotFound, JobNotFound
from reelpost.models.pipeline import Clip, ClipStatus, Job, JobState, Run
from reelpost.pipeline.states import PIPELINE_ORDER, validate_transition
from reelpost.storage.database import ClipRow, Database, JobRow, RunRow, utcnow

logger = logging.getLogger(__name__)

# Job columns a stage (or caller) may set alongside a transition.
JOB_FIELDS = frozenset(
    {
        "script_text",
        "caption",
        "tts_audio_path",
        "rendered_video_path",
        "upload_url",
        "publish_container_id",
        "publish_media_id",
        "error_message",
    }
)

_UNSET = object()


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class JobStore:
    """Persistence and querying for jobs, their runs, and source clips."""

    def __init__(self, db: Database):
        self.db = db

    # --- jobs ---

    def create_job(
        self,
        clip_id: str | None = None,
        caption: str | None = None,
        script_text: str | None = None,
    ) -> Job:
        """Create a job in ``pending``."""
        with self.db.write() as session:
            if clip_id is not None and session.get(ClipRow, clip_id) is None:
                raise ClipNotFound(clip_id)
            now = utcnow()
            row = JobRow(
                id=_new_id("job"),
                clip_id=clip_id,
                state=JobState.PENDING.value,
                caption=caption or "",
                script_text=script_text or None,
                retry_count=0,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
            job = Job.model_validate(row)
        logger.info("Created job %s (clip=%s)", job.id, clip_id)
        return job

    def get_job(self, job_id: str) -> Job | None:
        with self.db.read() as session:
            row = session.get(JobRow, job_id)
            return Job.model_validate(row) if row else None

    def require_job(self, job_id: str) -> Job:
        job = self.get_job(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    def list_jobs(self, state: JobState | str | None = None, limit: int = 50) -> list[Job]:
        """Newest first."""
        stmt = select(JobRow).order_by(JobRow.created_at.desc()).limit(limit)
        if state:
            stmt = stmt.where(JobRow.state == str(state))
        with self.db.read() as session:
            return [Job.model_validate(r) for r in session.scalars(stmt)]

    def list_in_progress(self) -> list[Job]:
        """Jobs parked in a stage state, oldest first."""
        stmt = (
            select(JobRow)
            .where(JobRow.state.in_([s.value for s in PIPELINE_ORDER]))
            .order_by(JobRow.created_at.asc())
        )
        with self.db.read() as session:
            return [Job.model_validate(r) for r in session.scalars(stmt)]

    def next_pending_job(self) -> Job | None:
        """Oldest pending job."""
        stmt = (
            select(JobRow)
            .where(JobRow.state == JobState.PENDING.value)
            .order_by(JobRow.created_at.asc())
            .limit(1)
        )
        with self.db.read() as session:
            row = session.scalars(stmt).first()
            return Job.model_validate(row) if row else None

    def transition(
        self,
        job_id: str,
        to_state: JobState,
        updates: dict[str, str] | None = None,
        *,
        provider: str | None = None,
        duration_ms: int | None = None,
        error: str | None = None,
        last_good_state: JobState | None | object = _UNSET,
    ) -> Job:
        """Validate and apply a state change, appending a run row.

        ``last_good_state`` is left unchanged unless given explicitly.
        Entering ``failed`` increments ``retry_count`` and stores ``error``
        as the job's error message.
        """
        updates = dict(updates or {})
        unknown = set(updates) - JOB_FIELDS
        if unknown:
            raise ValueError(f"Unknown job fields: {sorted(unknown)}")

        with self.db.write() as session:
            row = session.get(JobRow, job_id)
            if row is None:
                raise JobNotFound(job_id)
            from_state = row.state
            validate_transition(job_id, from_state, to_state)

            row.state = to_state.value
            if last_good_state is not _UNSET:
                row.last_good_state = last_good_state.value if last_good_state else None
            if to_state == JobState.FAILED:
                row.retry_count = (row.retry_count or 0) + 1
                if error is not None:
                    updates.setdefault("error_message", error)
            for field, value in updates.items():
                setattr(row, field, value)
            row.updated_at = utcnow()

            session.add(
                RunRow(
                    job_id=job_id,
                    state_from=from_state,
                    state_to=to_state.value,
                    provider=provider,
                    duration_ms=duration_ms,
                    error=error,
                    created_at=row.updated_at,
                )
            )
            session.flush()
            job = Job.model_validate(row)

        logger.debug("Job %s: %s -> %s", job_id, from_state, to_state.value)
        return job

    def update_fields(self, job_id: str, updates: dict[str, str]) -> Job:
        """Persist artifact fields without changing state or writing a run."""
        unknown = set(updates) - JOB_FIELDS
        if unknown:
            raise ValueError(f"Unknown job fields: {sorted(unknown)}")
        with self.db.write() as session:
            row = session.get(JobRow, job_id)
            if row is None:
                raise JobNotFound(job_id)
            for field, value in updates.items():
                setattr(row, field, value)
            row.updated_at = utcnow()
            session.flush()
            return Job.model_validate(row)

    def get_job_runs(self, job_id: str) -> list[Run]:
        """Runs in creation order; reconstructs the job's state history."""
        stmt = select(RunRow).where(RunRow.job_id == job_id).order_by(RunRow.id.asc())
        with self.db.read() as session:
            return [Run.model_validate(r) for r in session.scalars(stmt)]

    def count_done_on(self, day: datetime) -> int:
        """Jobs that reached ``done`` with ``updated_at`` on the given UTC date."""
        start = datetime(day.year, day.month, day.day, tzinfo=UTC)
        end = start + timedelta(days=1)
        stmt = select(func.count()).where(
            JobRow.state == JobState.DONE.value,
            JobRow.updated_at >= start,
            JobRow.updated_at < end,
        )
        with self.db.read() as session:
            return session.scalar(stmt) or 0

    def count_today_posts(self) -> int:
        return self.count_done_on(utcnow())

    def count_by_state(self) -> dict[str, int]:
        stmt = select(JobRow.state, func.count()).group_by(JobRow.state)
        with self.db.read() as session:
            counts = {state: n for state, n in session.execute(stmt)}
        return {s.value: counts.get(s.value, 0) for s in JobState}

    # --- clips ---

    def ingest_clip(self, file_path: str | Path) -> Clip:
        """Register a media file on disk as an available clip."""
        path = Path(file_path).resolve()
        if not path.is_file():
            raise ClipNotFound(str(path))
        with self.db.write() as session:
            row = ClipRow(
                id=_new_id("clip"),
                file_path=str(path),
                size_bytes=path.stat().st_size,
                status=ClipStatus.AVAILABLE.value,
                ingested_at=utcnow(),
            )
            session.add(row)
            session.flush()
            clip = Clip.model_validate(row)
        logger.info("Ingested clip %s (%s)", clip.id, clip.file_path)
        return clip

    def get_clip(self, clip_id: str) -> Clip | None:
        with self.db.read() as session:
            row = session.get(ClipRow, clip_id)
            return Clip.model_validate(row) if row else None

    def list_clips(self, status: ClipStatus | str | None = None, limit: int = 50) -> list[Clip]:
        stmt = select(ClipRow).order_by(ClipRow.ingested_at.desc()).limit(limit)
        if status:
            stmt = stmt.where(ClipRow.status == str(status))
        with self.db.read() as session:
            return [Clip.model_validate(r) for r in session.scalars(stmt)]

    def next_available_clip(self) -> Clip | None:
        """Oldest available clip that no job has claimed yet."""
        claimed = select(JobRow.clip_id).where(JobRow.clip_id.is_not(None))
        stmt = (
            select(ClipRow)
            .where(ClipRow.status == ClipStatus.AVAILABLE.value, ClipRow.id.not_in(claimed))
            .order_by(ClipRow.ingested_at.asc())
            .limit(1)
        )
        with self.db.read() as session:
            row = session.scalars(stmt).first()
            return Clip.model_validate(row) if row else None

    def count_available_clips(self) -> int:
        stmt = select(func.count()).where(ClipRow.status == ClipStatus.AVAILABLE.value)
        with self.db.read() as session:
            return session.scalar(stmt) or 0

    def mark_clip_used(self, clip_id: str) -> None:
        with self.db.write() as session:
            session.execute(
                update(ClipRow).where(ClipRow.id == clip_id).values(status=ClipStatus.USED.value)
            )
