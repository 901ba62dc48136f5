"""Shared test fixtures and failing/recording providers."""

import tempfile
from pathlib import Path

import pytest

from reelpost.config import ConfigResolver, EnvOverrides, Settings
from reelpost.models.capabilities import ScriptResult, SpeechResult
from reelpost.models.errors import StageFailure
from reelpost.pipeline.executor import PipelineExecutor
from reelpost.pipeline.registry import CapabilityRegistry
from reelpost.pipeline.scheduler import Scheduler
from reelpost.providers.base import ScriptProvider, TtsProvider
from reelpost.providers.defaults import register_default_providers
from reelpost.providers.mock import MockScriptProvider, MockTtsProvider
from reelpost.storage.database import Database
from reelpost.storage.job_store import JobStore


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def settings(tmp_dir):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_dir / 'reelpost.db'}",
        data_dir=tmp_dir / "data",
        work_dir=tmp_dir / "work",
        output_dir=tmp_dir / "outputs",
    )


@pytest.fixture
def db(settings):
    database = Database(settings.database_url)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def config(db, tmp_dir):
    """Resolver isolated from the process environment."""
    resolver = ConfigResolver(db, env=EnvOverrides.model_construct())
    resolver.set("pipeline.kill_switch_path", str(tmp_dir / "KILL_SWITCH"))
    return resolver


@pytest.fixture
def store(db):
    return JobStore(db)


@pytest.fixture
def registry(config):
    return register_default_providers(CapabilityRegistry(config))


@pytest.fixture
def executor(store, registry, config, settings):
    return PipelineExecutor(store, registry, config, settings)


@pytest.fixture
def scheduler(store, executor, config):
    return Scheduler(store, executor, config)


@pytest.fixture
def clip_file(tmp_dir):
    path = tmp_dir / "morning_routine.mp4"
    path.write_bytes(b"\x00" * 2048)
    return path


@pytest.fixture
def clip(store, clip_file):
    return store.ingest_clip(clip_file)


@pytest.fixture
def kill_switch(tmp_dir):
    """Activate the kill switch for the duration of a test."""
    path = tmp_dir / "KILL_SWITCH"
    path.touch()
    return path


class FailingTtsProvider(TtsProvider):
    def synthesize(self, text: str, output_dir: Path) -> SpeechResult:
        raise StageFailure("TTS service unavailable", component="tts")


class FailingScriptProvider(ScriptProvider):
    def generate(self, clip_path: str | None = None) -> ScriptResult:
        raise StageFailure("LLM quota exhausted", component="script")


@pytest.fixture
def failing_tts(registry, config):
    registry.register("tts", "failing", FailingTtsProvider)
    config.set("provider.tts", "failing")


@pytest.fixture
def failing_script(registry, config):
    registry.register("script", "failing", FailingScriptProvider)
    config.set("provider.script", "failing")


@pytest.fixture
def provider_calls(registry, config):
    """Record script and tts invocations; returns {"script": [...], "tts": [...]}."""
    calls: dict[str, list] = {"script": [], "tts": []}

    class RecordingScriptProvider(MockScriptProvider):
        def generate(self, clip_path=None):
            calls["script"].append(clip_path)
            return super().generate(clip_path)

    class RecordingTtsProvider(MockTtsProvider):
        def synthesize(self, text, output_dir):
            calls["tts"].append(text)
            return super().synthesize(text, output_dir)

    registry.register("script", "recording", RecordingScriptProvider)
    registry.register("tts", "recording", RecordingTtsProvider)
    config.set("provider.script", "recording")
    config.set("provider.tts", "recording")
    return calls
