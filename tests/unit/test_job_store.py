"""Tests for JobStore persistence."""

from datetime import UTC, datetime, timedelta

import pytest

from reelpost.models.errors import ClipNotFound, InvalidTransition, JobNotFound
from reelpost.models.pipeline import ClipStatus, JobState
from reelpost.pipeline.states import PIPELINE_ORDER


def _walk_to_done(store, job_id):
    for stage in PIPELINE_ORDER:
        store.transition(job_id, stage)
    return store.transition(job_id, JobState.DONE)


class TestJobs:
    def test_create_job_defaults(self, store):
        job = store.create_job()
        assert job.state == JobState.PENDING
        assert job.retry_count == 0
        assert job.caption == ""
        assert job.last_good_state is None
        assert store.get_job(job.id) == job

    def test_create_job_with_script(self, store, clip):
        job = store.create_job(clip_id=clip.id, script_text="Hand written script")
        assert job.clip_id == clip.id
        assert job.script_text == "Hand written script"

    def test_create_job_unknown_clip(self, store):
        with pytest.raises(ClipNotFound):
            store.create_job(clip_id="clip-missing")

    def test_get_missing_job(self, store):
        assert store.get_job("job-missing") is None
        with pytest.raises(JobNotFound):
            store.require_job("job-missing")

    def test_list_jobs_filters_by_state(self, store):
        first = store.create_job()
        second = store.create_job()
        store.transition(second.id, JobState.SCRIPTING)
        pending = store.list_jobs(state=JobState.PENDING)
        assert [j.id for j in pending] == [first.id]
        assert len(store.list_jobs()) == 2
        assert len(store.list_jobs(limit=1)) == 1

    def test_next_pending_job_is_oldest(self, store):
        first = store.create_job()
        store.create_job()
        assert store.next_pending_job().id == first.id

    def test_next_pending_job_none(self, store):
        assert store.next_pending_job() is None

    def test_list_in_progress_only_stage_states(self, store):
        scripting = store.create_job()
        store.transition(scripting.id, JobState.SCRIPTING)
        rendering = store.create_job()
        for state in (JobState.SCRIPTING, JobState.TTS, JobState.RENDERING):
            store.transition(rendering.id, state)
        store.create_job()
        failed = store.create_job()
        store.transition(failed.id, JobState.SCRIPTING)
        store.transition(failed.id, JobState.FAILED, error="boom")

        assert {j.id for j in store.list_in_progress()} == {scripting.id, rendering.id}

    def test_list_in_progress_is_not_capped(self, store):
        for _ in range(60):
            job = store.create_job()
            store.transition(job.id, JobState.SCRIPTING)
        assert len(store.list_in_progress()) == 60


class TestTransitions:
    def test_transition_records_run(self, store):
        job = store.create_job()
        store.transition(job.id, JobState.SCRIPTING, provider=None)
        store.transition(job.id, JobState.TTS, provider="script", duration_ms=12)
        runs = store.get_job_runs(job.id)
        assert [(r.state_from, r.state_to) for r in runs] == [
            (JobState.PENDING, JobState.SCRIPTING),
            (JobState.SCRIPTING, JobState.TTS),
        ]
        assert runs[1].provider == "script"
        assert runs[1].duration_ms == 12

    def test_invalid_transition_changes_nothing(self, store):
        job = store.create_job()
        with pytest.raises(InvalidTransition):
            store.transition(job.id, JobState.RENDERING)
        assert store.get_job(job.id).state == JobState.PENDING
        assert store.get_job_runs(job.id) == []

    def test_transition_to_failed(self, store):
        job = store.create_job()
        store.transition(job.id, JobState.SCRIPTING)
        failed = store.transition(
            job.id,
            JobState.FAILED,
            provider="script",
            error="boom",
            last_good_state=None,
        )
        assert failed.state == JobState.FAILED
        assert failed.error_message == "boom"
        assert failed.retry_count == 1
        assert failed.last_good_state is None
        assert store.get_job_runs(job.id)[-1].error == "boom"

    def test_last_good_state_unchanged_unless_given(self, store):
        job = store.create_job()
        store.transition(job.id, JobState.SCRIPTING)
        store.transition(job.id, JobState.TTS)
        store.transition(job.id, JobState.FAILED, last_good_state=JobState.SCRIPTING)
        resumed = store.transition(job.id, JobState.TTS)
        assert resumed.last_good_state == JobState.SCRIPTING

    def test_transition_with_updates(self, store):
        job = store.create_job()
        store.transition(job.id, JobState.SCRIPTING)
        updated = store.transition(job.id, JobState.TTS, {"script_text": "hello", "caption": "hi"})
        assert updated.script_text == "hello"
        assert updated.caption == "hi"

    def test_unknown_fields_rejected(self, store):
        job = store.create_job()
        with pytest.raises(ValueError, match="Unknown job fields"):
            store.transition(job.id, JobState.SCRIPTING, {"state": "done"})
        with pytest.raises(ValueError):
            store.update_fields(job.id, {"retry_count": "7"})

    def test_update_fields_does_not_write_run(self, store):
        job = store.create_job()
        store.update_fields(job.id, {"upload_url": "https://cdn.example/x.mp4"})
        assert store.get_job(job.id).upload_url == "https://cdn.example/x.mp4"
        assert store.get_job_runs(job.id) == []

    def test_transition_missing_job(self, store):
        with pytest.raises(JobNotFound):
            store.transition("job-missing", JobState.SCRIPTING)


class TestCounts:
    def test_count_today_posts(self, store):
        done = store.create_job()
        _walk_to_done(store, done.id)
        store.create_job()
        assert store.count_today_posts() == 1

    def test_count_done_on_other_day(self, store):
        job = store.create_job()
        _walk_to_done(store, job.id)
        yesterday = datetime.now(UTC) - timedelta(days=1)
        assert store.count_done_on(yesterday) == 0

    def test_count_by_state_lists_every_state(self, store):
        store.create_job()
        counts = store.count_by_state()
        assert set(counts) == {s.value for s in JobState}
        assert counts["pending"] == 1
        assert counts["done"] == 0


class TestClips:
    def test_ingest_clip(self, store, clip_file):
        clip = store.ingest_clip(clip_file)
        assert clip.status == ClipStatus.AVAILABLE
        assert clip.size_bytes == 2048
        assert clip.file_path == str(clip_file.resolve())
        assert store.get_clip(clip.id) == clip

    def test_ingest_missing_file(self, store, tmp_dir):
        with pytest.raises(ClipNotFound):
            store.ingest_clip(tmp_dir / "missing.mp4")

    def test_next_available_clip_skips_claimed(self, store, tmp_dir):
        paths = []
        for name in ("a.mp4", "b.mp4"):
            path = tmp_dir / name
            path.write_bytes(b"\x00")
            paths.append(path)
        first = store.ingest_clip(paths[0])
        second = store.ingest_clip(paths[1])
        assert store.next_available_clip().id == first.id
        store.create_job(clip_id=first.id)
        assert store.next_available_clip().id == second.id

    def test_mark_clip_used(self, store, clip):
        store.mark_clip_used(clip.id)
        assert store.get_clip(clip.id).status == ClipStatus.USED
        assert store.count_available_clips() == 0
        assert store.next_available_clip() is None
        assert [c.id for c in store.list_clips(status=ClipStatus.USED)] == [clip.id]
