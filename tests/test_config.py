"""Tests for centralized Settings and the get_settings cache."""

from __future__ import annotations

from pathlib import Path

import pytest

from offers.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Clear get_settings lru_cache before each test."""
    get_settings.cache_clear()


class TestSettingsDefaults:
    def test_settings_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is False
        assert s.port == 8000
        assert s.db_path == Path("data/offers.db")
        assert s.audit_db_path == Path("data/audit.db")
        assert s.buyer_counter_enabled is False
        assert s.dispatch_max_attempts == 3
        assert s.api_token.get_secret_value() == ""
        assert s.sentry_dsn.get_secret_value() == ""

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OFFERS_PRODUCTION", "true")
        monkeypatch.setenv("OFFERS_PORT", "9090")
        monkeypatch.setenv("OFFERS_BUYER_COUNTER_ENABLED", "1")
        monkeypatch.setenv("OFFERS_API_TOKEN", "s3cret")

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is True
        assert s.port == 9090
        assert s.buyer_counter_enabled is True
        assert s.api_token.get_secret_value() == "s3cret"

    def test_unprefixed_env_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "1234")
        assert Settings(_env_file=None).port == 8000  # type: ignore[call-arg]

    def test_secret_not_in_repr(self) -> None:
        s = Settings(_env_file=None, api_token="s3cret")  # type: ignore[call-arg, arg-type]
        assert "s3cret" not in repr(s)


class TestGetSettings:
    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings()
        monkeypatch.setenv("OFFERS_PORT", "7070")
        get_settings.cache_clear()
        second = get_settings()

        assert first is not second
        assert second.port == 7070

    def test_invalid_settings_exit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OFFERS_PORT", "not-a-port")
        with pytest.raises(SystemExit) as exc_info:
            get_settings()
        assert exc_info.value.code == 1
