"""Tests for runtime settings."""

import pytest
from pydantic import ValidationError

from giftswap.settings import Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.bot_delay_min == 4.5
        assert settings.bot_delay_max == 5.5
        assert settings.max_bot_attempts == 10
        assert settings.bot_prefix == "bot_"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("GIFTSWAP_BOT_DELAY_MIN", "0")
        monkeypatch.setenv("GIFTSWAP_BOT_DELAY_MAX", "0.25")
        monkeypatch.setenv("GIFTSWAP_BOT_PREFIX", "cpu-")
        settings = Settings()
        assert settings.bot_delay_min == 0
        assert settings.bot_delay_max == 0.25
        assert settings.bot_prefix == "cpu-"

    def test_explicit_overrides_win(self, monkeypatch):
        monkeypatch.setenv("GIFTSWAP_MAX_BOT_ATTEMPTS", "4")
        assert get_settings().max_bot_attempts == 4
        assert get_settings(max_bot_attempts=2).max_bot_attempts == 2

    def test_delay_range_checked(self):
        with pytest.raises(ValidationError, match="bot_delay_max"):
            Settings(bot_delay_min=3, bot_delay_max=1)

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(max_bot_attempts=0)
