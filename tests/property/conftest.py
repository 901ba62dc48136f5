"""Hypothesis strategies and helpers for property-based testing."""

import tempfile
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from hypothesis import strategies as st

from reelpost.config import ConfigResolver, EnvOverrides, Settings
from reelpost.models.pipeline import Job, JobState
from reelpost.pipeline.executor import PipelineExecutor
from reelpost.pipeline.registry import CapabilityRegistry
from reelpost.pipeline.states import PIPELINE_ORDER
from reelpost.providers.defaults import register_default_providers
from reelpost.storage.database import Database
from reelpost.storage.job_store import JobStore

states = st.sampled_from(list(JobState))
stages = st.sampled_from(list(PIPELINE_ORDER))


@st.composite
def failed_jobs(draw):
    """A failed job with an arbitrary (possibly unset) last good stage."""
    now = datetime.now(UTC)
    last_good = draw(st.one_of(st.none(), stages))
    return Job(
        id=f"job-{draw(st.integers(min_value=0, max_value=10_000))}",
        state=JobState.FAILED,
        last_good_state=last_good,
        retry_count=draw(st.integers(min_value=1, max_value=20)),
        created_at=now,
        updated_at=now,
    )


@contextmanager
def isolated_pipeline():
    """Fresh database, config and executor in a throwaway directory.

    Hypothesis runs many examples per test, so function-scoped pytest
    fixtures cannot be shared between them.
    """
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        settings = Settings(
            _env_file=None,
            database_url=f"sqlite:///{root / 'reelpost.db'}",
            work_dir=root / "work",
            output_dir=root / "outputs",
        )
        db = Database(settings.database_url)
        db.create_all()
        config = ConfigResolver(db, env=EnvOverrides.model_construct())
        config.set("pipeline.kill_switch_path", str(root / "KILL_SWITCH"))
        store = JobStore(db)
        registry = register_default_providers(CapabilityRegistry(config))
        try:
            yield store, config, PipelineExecutor(store, registry, config, settings)
        finally:
            db.dispose()
