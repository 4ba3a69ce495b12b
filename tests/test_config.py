"""Config loading tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from config import Config


def test_config_defaults() -> None:
    """Config should load with sensible defaults when no env vars are set."""
    cfg = Config()
    assert cfg.flask_port == 5000
    assert cfg.allocation_max_attempts == 3
    assert cfg.loyverse_api_url == "https://api.loyverse.com/v1.0"
    assert "inventory.db" in cfg.database_path


def test_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config.from_env() reads from environment variables."""
    monkeypatch.setenv("FLASK_PORT", "9000")
    monkeypatch.setenv("ALLOCATION_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("LOYVERSE_API_TOKEN", "tok")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")

    cfg = Config.from_env()
    assert cfg.flask_port == 9000
    assert cfg.allocation_max_attempts == 5
    assert cfg.loyverse_api_token == "tok"
    assert cfg.cors_origins == ["http://a.test", "http://b.test"]


def test_rejects_zero_attempts() -> None:
    with pytest.raises(ValidationError):
        Config(allocation_max_attempts=0)


def test_warns_without_token(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("WARNING", logger="config"):
        Config(loyverse_api_token="")
    assert "LOYVERSE_API_TOKEN" in caplog.text
