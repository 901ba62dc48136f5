"""Pipeline executor: walks one job through the stages."""

import json
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from reelpost.config import ConfigResolver, Settings, get_settings
from reelpost.models.capabilities import ContainerRequest, RenderRequest
from reelpost.models.errors import (
    JobNotRetryable,
    JobNotRunnable,
    QuotaExceeded,
    SafetyHalt,
)
from reelpost.models.pipeline import (
    Job,
    JobContext,
    JobState,
    RunResult,
    StageOutcome,
    StatusSummary,
)
from reelpost.pipeline.registry import CapabilityRegistry
from reelpost.pipeline.states import (
    PIPELINE_ORDER,
    previous_stage,
    resume_state,
    stage_kind,
)
from reelpost.storage.job_store import JobStore

logger = logging.getLogger(__name__)

CAPTION_CHARS = 100


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class PipelineExecutor:
    """Runs jobs through scripting -> tts -> rendering -> uploading -> publishing.

    Every stage entry, the final ``done`` and any failure are persisted as
    validated transitions, so a job interrupted at any point can be resumed
    from the stage after the last one that completed.
    """

    def __init__(
        self,
        store: JobStore,
        registry: CapabilityRegistry,
        config: ConfigResolver,
        settings: Settings | None = None,
    ):
        self.store = store
        self.registry = registry
        self.config = config
        self.settings = settings or get_settings()
        self._stages: dict[JobState, Callable[[JobContext], StageOutcome]] = {
            JobState.SCRIPTING: self._scripting,
            JobState.TTS: self._tts,
            JobState.RENDERING: self._rendering,
            JobState.UPLOADING: self._uploading,
            JobState.PUBLISHING: self._publishing,
        }

    # --- safety gates ---

    def kill_switch_path(self) -> Path | None:
        raw = self.config.get("pipeline.kill_switch_path")
        return Path(raw) if raw else None

    def kill_switch_active(self) -> bool:
        path = self.kill_switch_path()
        return path is not None and path.exists()

    def check_safety(self) -> None:
        """Raise ``SafetyHalt`` or ``QuotaExceeded`` if no stage may start."""
        if self.kill_switch_active():
            raise SafetyHalt(str(self.kill_switch_path()))
        max_posts = self.config.get_int("pipeline.max_posts_per_day")
        posted = self.store.count_today_posts()
        if posted >= max_posts:
            raise QuotaExceeded(posted, max_posts)

    # --- operations ---

    def run_job(self, job_id: str) -> RunResult:
        """Advance a pending or failed job as far as it will go.

        Raises ``JobNotFound``, ``SafetyHalt``, ``QuotaExceeded`` or
        ``JobNotRunnable`` before touching the job. Stage failures are
        recorded on the job and reported in the returned ``RunResult``.
        """
        started = time.monotonic()
        job = self.store.require_job(job_id)
        self.check_safety()

        if job.state == JobState.PENDING:
            start_idx = 0
        elif job.state == JobState.FAILED:
            start_idx = PIPELINE_ORDER.index(resume_state(job))
        else:
            raise JobNotRunnable(job_id, job.state.value)

        ctx = JobContext.from_job(job, self._clip_path(job))
        logger.info("Running job %s from %s", job_id, PIPELINE_ORDER[start_idx].value)

        prev_kind: str | None = None
        prev_duration: int | None = None
        for i in range(start_idx, len(PIPELINE_ORDER)):
            stage = PIPELINE_ORDER[i]
            self.store.transition(job_id, stage, provider=prev_kind, duration_ms=prev_duration)

            stage_started = time.monotonic()
            try:
                outcome = self._stages[stage](ctx)
            except Exception as e:
                duration = _elapsed_ms(stage_started)
                self.store.transition(
                    job_id,
                    JobState.FAILED,
                    provider=stage_kind(stage),
                    duration_ms=duration,
                    error=str(e),
                    last_good_state=previous_stage(stage),
                )
                logger.warning("Job %s failed at %s: %s", job_id, stage.value, e)
                return RunResult(
                    success=False,
                    job_id=job_id,
                    state=stage,
                    error=str(e),
                    duration_ms=_elapsed_ms(started),
                )

            ctx = ctx.advance(outcome)
            prev_kind = stage_kind(stage)
            prev_duration = _elapsed_ms(stage_started)
            logger.debug("Job %s: %s done via %s", job_id, stage.value, outcome.provider)

            if i == len(PIPELINE_ORDER) - 1:
                self.store.transition(
                    job_id,
                    JobState.DONE,
                    outcome.updates,
                    provider=prev_kind,
                    duration_ms=prev_duration,
                    last_good_state=stage,
                )
            else:
                self.store.update_fields(job_id, outcome.updates)

        if job.clip_id:
            self.store.mark_clip_used(job.clip_id)
        logger.info("Job %s done", job_id)
        return RunResult(
            success=True,
            job_id=job_id,
            state=JobState.DONE,
            duration_ms=_elapsed_ms(started),
        )

    def retry_job(self, job_id: str) -> RunResult:
        """Re-run a failed job from its resume point."""
        job = self.store.require_job(job_id)
        if job.state != JobState.FAILED:
            raise JobNotRetryable(job_id, job.state.value)
        return self.run_job(job_id)

    def recover_interrupted(self) -> list[str]:
        """Fail jobs left mid-stage by a crashed process; returns their ids."""
        recovered = []
        for job in self.store.list_in_progress():
            self.store.transition(
                job.id,
                JobState.FAILED,
                provider=stage_kind(job.state),
                error="interrupted",
                last_good_state=previous_stage(job.state),
            )
            logger.warning("Recovered interrupted job %s (was %s)", job.id, job.state.value)
            recovered.append(job.id)
        return recovered

    def status_summary(self) -> StatusSummary:
        return StatusSummary(
            jobs_by_state=self.store.count_by_state(),
            clips_available=self.store.count_available_clips(),
            posted_today=self.store.count_today_posts(),
            max_posts_per_day=self.config.get_int("pipeline.max_posts_per_day"),
            publish_mode=self.config.get("pipeline.publish_mode") or "dry",
            kill_switch_active=self.kill_switch_active(),
        )

    # --- stages ---

    def _clip_path(self, job: Job) -> str | None:
        if not job.clip_id:
            return None
        clip = self.store.get_clip(job.clip_id)
        return clip.file_path if clip else None

    def _scripting(self, ctx: JobContext) -> StageOutcome:
        if ctx.script_text:
            caption = " ".join(ctx.script_text[:CAPTION_CHARS].split())
            return StageOutcome(
                provider="manual",
                updates={"script_text": ctx.script_text, "caption": caption},
            )

        result = self.registry.resolve("script").generate(ctx.clip_path)
        caption = result.text[:CAPTION_CHARS] + " " + " ".join(result.hashtags)
        return StageOutcome(
            provider="script",
            updates={"script_text": result.text, "caption": caption},
        )

    def _tts(self, ctx: JobContext) -> StageOutcome:
        job_dir = Path(self.settings.work_dir) / ctx.job_id
        result = self.registry.resolve("tts").synthesize(ctx.script_text or "", job_dir)
        return StageOutcome(provider="tts", updates={"tts_audio_path": result.audio_path})

    def _rendering(self, ctx: JobContext) -> StageOutcome:
        job_dir = Path(self.settings.output_dir) / ctx.job_id
        request = RenderRequest(
            clip_path=ctx.clip_path,
            audio_path=ctx.tts_audio_path,
            script_text=ctx.script_text,
        )
        result = self.registry.resolve("renderer").render(request, job_dir)
        return StageOutcome(provider="renderer", updates={"rendered_video_path": result.video_path})

    def _uploading(self, ctx: JobContext) -> StageOutcome:
        result = self.registry.resolve("storage").upload(Path(ctx.rendered_video_path or ""))
        return StageOutcome(provider="storage", updates={"upload_url": result.url})

    def _publishing(self, ctx: JobContext) -> StageOutcome:
        if self.config.get("pipeline.publish_mode") != "live":
            return self._dry_publish(ctx)

        publisher = self.registry.resolve("publisher")
        container = publisher.create_container(
            ContainerRequest(video_url=ctx.upload_url or "", caption=ctx.caption or "")
        )
        published = publisher.publish_container(container.container_id)
        return StageOutcome(
            provider="publisher",
            updates={
                "publish_container_id": container.container_id,
                "publish_media_id": published.media_id,
            },
        )

    def _dry_publish(self, ctx: JobContext) -> StageOutcome:
        """Record what would be published without calling the publisher."""
        output_dir = Path(self.settings.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        payload = {
            "mode": "dry",
            "video_url": ctx.upload_url,
            "caption": ctx.caption,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        (output_dir / f"dry-{ctx.job_id}.json").write_text(json.dumps(payload, indent=2))
        stamp = f"dry-{time.time_ns() // 1_000_000}"
        logger.info("Dry-run publish for job %s", ctx.job_id)
        return StageOutcome(
            provider="publisher",
            updates={"publish_container_id": stamp, "publish_media_id": stamp},
        )
