"""Tests for the Celery task wrappers, run eagerly without a broker."""

import pytest
from celery.schedules import crontab

from reelpost.models.pipeline import JobState
from reelpost.pipeline import tasks
from reelpost.runtime import Runtime


@pytest.fixture
def runtime(settings, db, config, store, registry, executor, scheduler, monkeypatch):
    rt = Runtime(
        settings=settings,
        db=db,
        config=config,
        store=store,
        registry=registry,
        executor=executor,
        scheduler=scheduler,
    )
    monkeypatch.setattr(tasks, "_runtime", lambda: rt)
    return rt


@pytest.fixture
def beat_schedule():
    saved = (tasks.celery_app.conf.beat_schedule, tasks.celery_app.conf.timezone)
    yield
    tasks.celery_app.conf.beat_schedule, tasks.celery_app.conf.timezone = saved


def test_run_job_task(runtime, store):
    job = store.create_job()
    result = tasks.run_job_task.apply(args=[job.id]).get()
    assert result["success"] is True
    assert result["state"] == "done"
    assert store.get_job(job.id).state == JobState.DONE


def test_run_job_task_reports_domain_errors(runtime):
    result = tasks.run_job_task.apply(args=["job-missing"]).get()
    assert result == {
        "job_id": "job-missing",
        "success": False,
        "error_type": "JobNotFound",
        "error": "Job job-missing not found",
    }


def test_retry_job_task(runtime, store, config, failing_tts):
    job = store.create_job()
    assert tasks.run_job_task.apply(args=[job.id]).get()["success"] is False

    config.set("provider.tts", "mock")
    result = tasks.retry_job_task.apply(args=[job.id]).get()
    assert result["success"] is True


def test_pipeline_tick_task(runtime, clip):
    result = tasks.pipeline_tick_task.apply().get()
    assert result["status"] == "ran"
    assert result["run"]["state"] == "done"


def test_configure_beat_disabled(config, beat_schedule):
    assert tasks.configure_beat(config) == {}
    assert tasks.celery_app.conf.beat_schedule == {}


def test_configure_beat_enabled(config, beat_schedule):
    config.set("scheduler.enabled", "true")
    config.set("scheduler.timezone", "Europe/Berlin")
    config.set("scheduler.cron", "30 8 * * *")
    schedule = tasks.configure_beat(config)
    entry = schedule["pipeline-tick"]
    assert entry["task"] == tasks.TICK_TASK
    assert isinstance(entry["schedule"], crontab)
    assert entry["schedule"].hour == {8}
    assert tasks.celery_app.conf.timezone == "Europe/Berlin"
