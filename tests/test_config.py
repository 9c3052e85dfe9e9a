from pathlib import Path

import config
from utils import auth, cache


def _write_config(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


def test_set_session_secret_updates_existing_section(app_env):
    config.set_session_secret("abc123")

    updated = config.CONFIG_PATH.read_text(encoding="utf-8")
    assert 'session_secret = "abc123"' in updated
    assert 'session_secret = "test-secret"' not in updated
    assert "session_minutes = 60" in updated
    assert "[logging]" in updated


def test_set_session_secret_adds_section_when_missing(app_env):
    _write_config(config.CONFIG_PATH, "[rewards]\nbase_coins = 10\n")

    config.set_session_secret("xyz789")

    updated = config.CONFIG_PATH.read_text(encoding="utf-8")
    assert "[auth]" in updated
    assert 'session_secret = "xyz789"' in updated
    assert config.load_config()["auth"]["session_secret"] == "xyz789"


def test_environment_overrides_config_file(app_env, monkeypatch):
    monkeypatch.setenv("REWARD_COMPLETION_BONUS", "75")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/2")
    monkeypatch.setenv("LOG_LEVEL", "warning")

    loaded = config.load_config()
    assert loaded["rewards"]["completion_bonus"] == 75
    assert loaded["rewards"]["base_coins"] == 10
    assert loaded["cache"]["url"] == "redis://cache:6379/2"
    assert loaded["cache"]["enabled"] is False
    assert loaded["logging"]["level"] == "WARNING"
    assert config.get_config_value("cache", "ttl_seconds") == 60
    assert config.get_config_value("missing", "key", "fallback") == "fallback"


def test_missing_config_is_copied_from_project_example(app_env):
    config.CONFIG_PATH.unlink()

    loaded = config.load_config()

    assert config.CONFIG_PATH.exists()
    assert loaded["rewards"]["max_attempts"] == 3
    assert loaded["cache"]["enabled"] is True


def test_cache_and_auth_read_settings_through_config_values(app_env, fake_redis, monkeypatch):
    monkeypatch.setenv("CACHE_TTL_SECONDS", "90")
    monkeypatch.setenv("SESSION_MINUTES", "15")

    cache.cache_set("children:family:ABC", [])
    assert fake_redis.ttls["children:family:ABC"] == 90
    assert auth.get_session_minutes() == 15

    monkeypatch.setenv("CACHE_ENABLED", "false")
    assert cache.get_client() is None
