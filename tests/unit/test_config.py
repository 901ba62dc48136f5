"""Tests for the layered config resolver."""

import pytest

from reelpost.config import DEFAULTS, ENV_FIELDS, ConfigResolver, EnvOverrides
from reelpost.models.errors import ConfigError


class TestConfigResolver:
    def test_default_when_nothing_set(self, db):
        resolver = ConfigResolver(db, env=EnvOverrides.model_construct())
        assert resolver.get("pipeline.publish_mode") == "dry"
        assert resolver.get_int("pipeline.max_posts_per_day") == 3

    def test_stored_value_overrides_default(self, config):
        config.set("pipeline.max_posts_per_day", 7)
        assert config.get("pipeline.max_posts_per_day") == "7"
        assert config.get_int("pipeline.max_posts_per_day") == 7

    def test_set_is_upsert(self, config):
        config.set("tts.voice", "nova")
        config.set("tts.voice", "shimmer")
        assert config.get("tts.voice") == "shimmer"

    def test_env_overrides_stored_value(self, db):
        env = EnvOverrides.model_construct(publish_mode="live")
        resolver = ConfigResolver(db, env=env)
        resolver.set("pipeline.publish_mode", "dry")
        assert resolver.get("pipeline.publish_mode") == "live"
        assert resolver.get_all()["pipeline.publish_mode"] == "live"

    def test_empty_values_resolve_to_none(self, config):
        assert config.get("openai.api_key") is None
        assert config.get("no.such.key") is None

    def test_get_bool(self, config):
        assert config.get_bool("scheduler.enabled") is False
        config.set("scheduler.enabled", "true")
        assert config.get_bool("scheduler.enabled") is True

    def test_get_int_invalid(self, config):
        config.set("pipeline.max_posts_per_day", "lots")
        with pytest.raises(ConfigError):
            config.get_int("pipeline.max_posts_per_day")

    def test_get_all_covers_defaults(self, config):
        config.set("r2.bucket", "reels-bucket")
        everything = config.get_all()
        assert set(everything) == set(DEFAULTS)
        assert everything["r2.bucket"] == "reels-bucket"

    def test_set_unknown_key_rejected(self, config):
        with pytest.raises(ConfigError, match="Unknown config key: custom.key"):
            config.set("custom.key", "x")
        assert "custom.key" not in config.get_all()

    def test_seed_defaults_keeps_existing(self, config):
        config.set("tts.voice", "nova")
        config.seed_defaults()
        assert config.get("tts.voice") == "nova"
        assert config.seed_defaults() == 0

    def test_env_var_names(self, config):
        assert config.env_var_for("pipeline.publish_mode") == "REELPOST_PUBLISH_MODE"
        assert config.env_var_for("publisher.user_id") == "REELPOST_IG_USER_ID"
        assert config.env_var_for("publisher.poll_timeout_secs") is None

    def test_env_fields_map_to_known_keys(self):
        assert set(ENV_FIELDS) <= set(DEFAULTS)
        assert set(ENV_FIELDS.values()) <= set(EnvOverrides.model_fields)

    def test_env_loaded_from_environment(self, db, monkeypatch):
        monkeypatch.setenv("REELPOST_TTS_PROVIDER", "openai")
        resolver = ConfigResolver(db, env=EnvOverrides(_env_file=None))
        assert resolver.get("provider.tts") == "openai"

    def test_empty_key_rejected(self, config):
        with pytest.raises(ConfigError):
            config.set("", "x")
