"""Tests for environment-driven configuration."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from retrycase import ExponentialBackoff, RetryPolicy
from retrycase.foundation.config import RetrySettings, clear_settings_cache, get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)  # keep a developer's .env out of the way
    clear_settings_cache()
    yield
    clear_settings_cache()


def test_defaults() -> None:
    settings = get_settings()
    assert settings.debug is False
    assert settings.retry.max_attempts == 5
    assert settings.retry.base_delay == 1.0
    assert settings.retry.max_delay == 60.0
    assert settings.retry.multiplier == 2.0
    assert settings.retry.jitter is True
    assert settings.logging.level == "INFO"
    assert settings.logging.format == "console"


def test_cached() -> None:
    assert get_settings() is get_settings()


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYCASE_RETRY_MAX_ATTEMPTS", "9")
    monkeypatch.setenv("RETRYCASE_RETRY_BASE_DELAY", "0.5")
    monkeypatch.setenv("RETRYCASE_RETRY_JITTER", "false")
    monkeypatch.setenv("RETRYCASE_LOG_FORMAT", "json")

    settings = get_settings()

    assert settings.retry.max_attempts == 9
    assert settings.retry.base_delay == 0.5
    assert settings.retry.jitter is False
    assert settings.logging.format == "json"


def test_debug_forces_debug_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYCASE_DEBUG", "true")
    assert get_settings().log_level == "DEBUG"


def test_policy_picks_up_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYCASE_RETRY_MAX_ATTEMPTS", "2")
    monkeypatch.setenv("RETRYCASE_RETRY_BASE_DELAY", "0.1")
    monkeypatch.setenv("RETRYCASE_RETRY_MAX_DELAY", "0.4")
    monkeypatch.setenv("RETRYCASE_RETRY_JITTER", "0")

    policy = RetryPolicy.from_settings()

    assert policy.max_attempts == 2
    assert policy.backoff == ExponentialBackoff(base=0.1, max_delay=0.4, multiplier=2.0, jitter=False)


def test_max_delay_below_base_rejected() -> None:
    with pytest.raises(ValidationError):
        RetrySettings(base_delay=10.0, max_delay=1.0)


def test_negative_delay_rejected() -> None:
    with pytest.raises(ValidationError):
        RetrySettings(base_delay=-1.0)
