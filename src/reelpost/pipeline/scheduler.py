"""Cron-driven scheduler: one job per tick, never overlapping."""

import logging
import threading
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from celery import Celery
from celery.schedules import ParseException, crontab

from reelpost.config import ConfigResolver
from reelpost.models.errors import ConfigError
from reelpost.models.pipeline import TickResult, TickStatus
from reelpost.pipeline.executor import PipelineExecutor
from reelpost.storage.job_store import JobStore

logger = logging.getLogger(__name__)

# Upper bound on a single wait so a stop request is noticed promptly.
MAX_SLEEP_SECS = 60.0


def load_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigError(f"Unknown timezone: {name}", {"timezone": name})


def parse_cron(expression: str, tz: str = "UTC", app: Celery | None = None) -> crontab:
    """Build a Celery ``crontab`` from a five-field cron expression.

    Fields are evaluated in ``tz``. Raises ``ConfigError`` for malformed
    expressions or unknown timezones.
    """
    fields = expression.split()
    if len(fields) != 5:
        raise ConfigError(
            f"Invalid cron expression: {expression!r} (expected 5 fields)",
            {"cron": expression},
        )
    zone = load_timezone(tz)
    minute, hour, day_of_month, month_of_year, day_of_week = fields
    try:
        return crontab(
            minute=minute,
            hour=hour,
            day_of_month=day_of_month,
            month_of_year=month_of_year,
            day_of_week=day_of_week,
            nowfun=lambda: datetime.now(zone),
            app=app,
        )
    except (ParseException, ValueError) as e:
        raise ConfigError(f"Invalid cron expression: {expression!r} ({e})", {"cron": expression})


class Scheduler:
    """Runs the next pending job, or a new job for the next unused clip, per tick."""

    def __init__(self, store: JobStore, executor: PipelineExecutor, config: ConfigResolver):
        self.store = store
        self.executor = executor
        self.config = config
        self._tick_lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.get_bool("scheduler.enabled")

    def cron_expression(self) -> str:
        return self.config.get("scheduler.cron") or "0 9-11 * * 1-5"

    def timezone(self) -> str:
        return self.config.get("scheduler.timezone") or "UTC"

    def schedule(self, app: Celery | None = None) -> crontab:
        return parse_cron(self.cron_expression(), self.timezone(), app)

    def tick(self) -> TickResult:
        """Advance at most one job. Overlapping calls are skipped."""
        if not self._tick_lock.acquire(blocking=False):
            logger.info("Tick skipped: previous tick still running")
            return TickResult(status=TickStatus.SKIPPED)
        try:
            return self._tick()
        except Exception as e:
            logger.exception("Tick failed")
            return TickResult(status=TickStatus.ERROR, error=str(e))
        finally:
            self._tick_lock.release()

    def _tick(self) -> TickResult:
        job = self.store.next_pending_job()
        if job is None:
            clip = self.store.next_available_clip()
            if clip is None:
                logger.info("No pending jobs or available clips")
                return TickResult(status=TickStatus.IDLE)
            job = self.store.create_job(clip_id=clip.id)
            logger.info("Created job %s from clip %s", job.id, clip.id)

        logger.info("Running job %s", job.id)
        result = self.executor.run_job(job.id)
        if result.success:
            logger.info("Job %s completed", job.id)
        else:
            logger.info("Job %s failed at %s: %s", job.id, result.state.value, result.error)
        return TickResult(status=TickStatus.RAN, job_id=job.id, run=result)

    def run_forever(self, stop_event: threading.Event | None = None) -> bool:
        """Tick on the configured cron schedule until ``stop_event`` is set.

        Returns False without ticking when the scheduler is disabled.
        """
        if not self.enabled:
            logger.info("Scheduler is disabled. Set scheduler.enabled=true to enable.")
            return False

        schedule = self.schedule()
        stop_event = stop_event or threading.Event()
        recovered = self.executor.recover_interrupted()
        if recovered:
            logger.info("Marked %d interrupted job(s) failed", len(recovered))

        logger.info("Scheduler started: %r (%s)", self.cron_expression(), self.timezone())
        last_run_at = schedule.now()
        while not stop_event.is_set():
            due, next_secs = schedule.is_due(last_run_at)
            if due:
                last_run_at = schedule.now()
                self.tick()
            stop_event.wait(min(max(next_secs, 1.0), MAX_SLEEP_SECS))
        logger.info("Scheduler stopped")
        return True
