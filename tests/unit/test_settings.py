"""Tests for settings loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.config import Settings, get_settings, reset_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.ledger.over_decrement_policy == "clamp"
        assert settings.ledger.expiring_soon_days == 7
        assert settings.planning.usage_window_days == 30
        assert settings.count.large_variance_pct == 10.0
        assert settings.storage.journal_backend == "memory"
        assert settings.storage.db_path == Path("data") / "larder.db"

    def test_env_prefixes(self, monkeypatch):
        monkeypatch.setenv("LEDGER_OVER_DECREMENT_POLICY", "reject")
        monkeypatch.setenv("PLANNING_SAFETY_STOCK_FACTOR", "0.25")
        monkeypatch.setenv("COUNT_LARGE_VARIANCE_PCT", "5")

        settings = Settings()

        assert settings.ledger.over_decrement_policy == "reject"
        assert settings.planning.safety_stock_factor == 0.25
        assert settings.count.large_variance_pct == 5.0

    def test_invalid_policy_rejected(self, monkeypatch):
        monkeypatch.setenv("LEDGER_NON_POSITIVE_POLICY", "shrug")

        with pytest.raises(ValidationError):
            Settings()

    def test_singleton_reset(self):
        first = get_settings()

        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
