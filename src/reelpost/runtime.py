"""Wiring of the store, config, registry, executor and scheduler."""

import logging
from dataclasses import dataclass
from pathlib import Path

from reelpost.config import ConfigResolver, Settings, get_settings
from reelpost.pipeline.executor import PipelineExecutor
from reelpost.pipeline.registry import CapabilityRegistry
from reelpost.pipeline.scheduler import Scheduler
from reelpost.providers.defaults import register_default_providers
from reelpost.storage.database import Database
from reelpost.storage.job_store import JobStore

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    settings: Settings
    db: Database
    config: ConfigResolver
    store: JobStore
    registry: CapabilityRegistry
    executor: PipelineExecutor
    scheduler: Scheduler

    def close(self) -> None:
        self.db.dispose()


def _ensure_sqlite_dir(url: str) -> None:
    prefix = "sqlite:///"
    if url.startswith(prefix) and url != "sqlite:///:memory:":
        Path(url[len(prefix) :]).parent.mkdir(parents=True, exist_ok=True)


def build_runtime(settings: Settings | None = None) -> Runtime:
    """Create directories and schema, register providers and wire components."""
    settings = settings or get_settings()
    for directory in (settings.data_dir, settings.work_dir, settings.output_dir):
        Path(directory).mkdir(parents=True, exist_ok=True)
    _ensure_sqlite_dir(settings.database_url)

    db = Database(settings.database_url)
    db.create_all()
    config = ConfigResolver(db)
    store = JobStore(db)
    registry = register_default_providers(CapabilityRegistry(config))
    executor = PipelineExecutor(store, registry, config, settings)
    scheduler = Scheduler(store, executor, config)
    logger.debug("Runtime ready (database=%s)", settings.database_url)
    return Runtime(
        settings=settings,
        db=db,
        config=config,
        store=store,
        registry=registry,
        executor=executor,
        scheduler=scheduler,
    )
