"""Celery task definitions."""

from celery import Celery
from celery.signals import beat_init

from reelpost.config import ConfigResolver, get_settings
from reelpost.models.errors import ReelpostError

settings = get_settings()

celery_app = Celery(
    "reelpost",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
)

TICK_TASK = "reelpost.pipeline_tick"


def configure_beat(config: ConfigResolver) -> dict:
    """Install the beat schedule for the pipeline tick from config."""
    from reelpost.pipeline.scheduler import parse_cron

    tz = config.get("scheduler.timezone") or "UTC"
    celery_app.conf.timezone = tz
    schedule = {}
    if config.get_bool("scheduler.enabled"):
        schedule["pipeline-tick"] = {
            "task": TICK_TASK,
            "schedule": parse_cron(config.get("scheduler.cron") or "", tz, app=celery_app),
        }
    celery_app.conf.beat_schedule = schedule
    return schedule


@beat_init.connect
def _install_beat_schedule(sender=None, **kwargs):
    runtime = _runtime()
    try:
        configure_beat(runtime.config)
    finally:
        runtime.close()


def _runtime():
    from reelpost.runtime import build_runtime

    return build_runtime()


def _error_payload(job_id: str, exc: ReelpostError) -> dict:
    return {
        "job_id": job_id,
        "success": False,
        "error_type": type(exc).__name__,
        "error": exc.message,
    }


@celery_app.task(bind=True, name="reelpost.run_job")
def run_job_task(self, job_id: str):
    """Celery task wrapping PipelineExecutor.run_job()."""
    runtime = _runtime()
    try:
        return runtime.executor.run_job(job_id).model_dump(mode="json")
    except ReelpostError as e:
        return _error_payload(job_id, e)
    finally:
        runtime.close()


@celery_app.task(bind=True, name="reelpost.retry_job")
def retry_job_task(self, job_id: str):
    """Celery task wrapping PipelineExecutor.retry_job()."""
    runtime = _runtime()
    try:
        return runtime.executor.retry_job(job_id).model_dump(mode="json")
    except ReelpostError as e:
        return _error_payload(job_id, e)
    finally:
        runtime.close()


@celery_app.task(bind=True, name=TICK_TASK)
def pipeline_tick_task(self):
    """One scheduler tick, driven by celery beat."""
    runtime = _runtime()
    try:
        return runtime.scheduler.tick().model_dump(mode="json")
    finally:
        runtime.close()
