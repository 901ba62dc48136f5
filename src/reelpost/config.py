"""Application configuration.

Two layers live here:

* ``Settings``: process-level settings (database, directories) loaded from
  ``REELPOST_*`` environment variables and ``.env``.
* ``ConfigResolver``: operator-settable dotted keys resolved with the
  precedence environment > persisted ``config`` table > built-in default.
"""

from pathlib import Path

from pydantic_settings import BaseSettings
from sqlalchemy import select

from reelpost.models.errors import ConfigError
from reelpost.storage.database import ConfigRow, Database, utcnow


class Settings(BaseSettings):
    """reelpost process configuration loaded from environment variables."""

    model_config = {"env_prefix": "REELPOST_", "env_file": ".env", "extra": "ignore"}

    # Storage
    database_url: str = "sqlite:///data/reelpost.db"

    # Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    # Directories
    data_dir: Path = Path("data")
    work_dir: Path = Path("tmp")
    output_dir: Path = Path("outputs")

    # Limits applied to external processes
    ffmpeg_timeout_secs: int = 120
    ffprobe_timeout_secs: int = 10
    http_timeout_secs: float = 30.0


def get_settings() -> Settings:
    """Return settings instance."""
    return Settings()


# Logical key -> built-in default. Every resolvable key appears here.
DEFAULTS: dict[str, str] = {
    "pipeline.publish_mode": "dry",
    "pipeline.max_posts_per_day": "3",
    "pipeline.kill_switch_path": "./tmp/KILL_SWITCH",
    "scheduler.enabled": "false",
    "scheduler.timezone": "UTC",
    "scheduler.cron": "0 9-11 * * 1-5",
    "provider.script": "mock",
    "provider.tts": "mock",
    "provider.renderer": "mock",
    "provider.storage": "mock",
    "provider.publisher": "mock",
    "openai.api_key": "",
    "script.model": "gpt-4o-mini",
    "script.topic": "short practical tips",
    "tts.model": "tts-1",
    "tts.voice": "alloy",
    "storage.public_dir": "./public",
    "storage.public_base_url": "http://localhost:8000/media",
    "r2.account_id": "",
    "r2.access_key_id": "",
    "r2.secret_access_key": "",
    "r2.bucket": "",
    "r2.public_base_url": "",
    "publisher.access_token": "",
    "publisher.user_id": "",
    "publisher.graph_api_base": "https://graph.facebook.com/v21.0",
    "publisher.poll_timeout_secs": "120",
    "publisher.poll_interval_secs": "5",
}


class EnvOverrides(BaseSettings):
    """Environment layer of the resolver; one field per overridable key."""

    model_config = {"env_prefix": "REELPOST_", "env_file": ".env", "extra": "ignore"}

    publish_mode: str | None = None
    max_posts_per_day: str | None = None
    kill_switch_path: str | None = None
    scheduler_enabled: str | None = None
    timezone: str | None = None
    scheduler_cron: str | None = None
    script_provider: str | None = None
    tts_provider: str | None = None
    renderer_provider: str | None = None
    storage_provider: str | None = None
    publisher_provider: str | None = None
    openai_api_key: str | None = None
    script_model: str | None = None
    tts_model: str | None = None
    tts_voice: str | None = None
    storage_public_dir: str | None = None
    storage_public_base_url: str | None = None
    r2_account_id: str | None = None
    r2_access_key_id: str | None = None
    r2_secret_access_key: str | None = None
    r2_bucket: str | None = None
    r2_public_base_url: str | None = None
    ig_access_token: str | None = None
    ig_user_id: str | None = None


# Logical key -> EnvOverrides field (env var is REELPOST_<FIELD>).
ENV_FIELDS: dict[str, str] = {
    "pipeline.publish_mode": "publish_mode",
    "pipeline.max_posts_per_day": "max_posts_per_day",
    "pipeline.kill_switch_path": "kill_switch_path",
    "scheduler.enabled": "scheduler_enabled",
    "scheduler.timezone": "timezone",
    "scheduler.cron": "scheduler_cron",
    "provider.script": "script_provider",
    "provider.tts": "tts_provider",
    "provider.renderer": "renderer_provider",
    "provider.storage": "storage_provider",
    "provider.publisher": "publisher_provider",
    "openai.api_key": "openai_api_key",
    "script.model": "script_model",
    "tts.model": "tts_model",
    "tts.voice": "tts_voice",
    "storage.public_dir": "storage_public_dir",
    "storage.public_base_url": "storage_public_base_url",
    "r2.account_id": "r2_account_id",
    "r2.access_key_id": "r2_access_key_id",
    "r2.secret_access_key": "r2_secret_access_key",
    "r2.bucket": "r2_bucket",
    "r2.public_base_url": "r2_public_base_url",
    "publisher.access_token": "ig_access_token",
    "publisher.user_id": "ig_user_id",
}

_TRUE = {"1", "true", "yes", "on"}


class ConfigResolver:
    """Layered lookup: environment, then the config table, then DEFAULTS."""

    def __init__(self, db: Database, env: EnvOverrides | None = None):
        self.db = db
        self.env = env if env is not None else EnvOverrides()

    def _env_value(self, key: str) -> str | None:
        field = ENV_FIELDS.get(key)
        if field is None:
            return None
        value = getattr(self.env, field)
        return value or None

    def _stored_value(self, key: str) -> str | None:
        with self.db.read() as session:
            row = session.get(ConfigRow, key)
            return row.value if row else None

    def get(self, key: str) -> str | None:
        """Resolve ``key``; None when no layer has a non-empty value."""
        for value in (self._env_value(key), self._stored_value(key)):
            if value is not None:
                return value
        return DEFAULTS.get(key) or None

    def get_int(self, key: str) -> int:
        raw = self.get(key)
        try:
            return int(raw if raw is not None else DEFAULTS[key])
        except (KeyError, ValueError):
            raise ConfigError(f"Config {key} must be an integer (got {raw!r})", {"key": key})

    def get_float(self, key: str) -> float:
        raw = self.get(key)
        try:
            return float(raw if raw is not None else DEFAULTS[key])
        except (KeyError, ValueError):
            raise ConfigError(f"Config {key} must be a number (got {raw!r})", {"key": key})

    def get_bool(self, key: str) -> bool:
        return (self.get(key) or "").strip().lower() in _TRUE

    def check_key(self, key: str) -> None:
        """Raise ``ConfigError`` unless ``key`` is a known config key."""
        if not key or not isinstance(key, str):
            raise ConfigError("Config key must be a non-empty string")
        if key not in DEFAULTS:
            raise ConfigError(f"Unknown config key: {key}", {"key": key})

    def set(self, key: str, value: object) -> None:
        """Persist an operator override (upsert). Unknown keys are rejected."""
        self.check_key(key)
        with self.db.write() as session:
            row = session.get(ConfigRow, key)
            if row is None:
                session.add(ConfigRow(key=key, value=str(value), updated_at=utcnow()))
            else:
                row.value = str(value)
                row.updated_at = utcnow()

    def get_all(self) -> dict[str, str]:
        """Defaults, overlaid by stored values, overlaid by environment."""
        result = dict(DEFAULTS)
        with self.db.read() as session:
            for row in session.scalars(select(ConfigRow)):
                result[row.key] = row.value
        for key in ENV_FIELDS:
            value = self._env_value(key)
            if value is not None:
                result[key] = value
        return result

    def seed_defaults(self) -> int:
        """Insert defaults for keys with no stored value; returns count inserted."""
        inserted = 0
        with self.db.write() as session:
            for key, value in DEFAULTS.items():
                if session.get(ConfigRow, key) is None:
                    session.add(ConfigRow(key=key, value=value, updated_at=utcnow()))
                    inserted += 1
        return inserted

    def env_var_for(self, key: str) -> str | None:
        field = ENV_FIELDS.get(key)
        return f"REELPOST_{field.upper()}" if field else None
