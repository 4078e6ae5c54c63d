"""Tests for configuration loading."""

import logging

import pytest
from pydantic import ValidationError

from termstore.core import config as config_module
from termstore.core.config import TermStoreConfig, configure_logging, get_config


@pytest.fixture(autouse=True)
def reset_global_config():
    config_module._config = None
    yield
    config_module._config = None


class TestTermStoreConfig:
    """Settings model."""

    def test_defaults(self, monkeypatch):
        for name in ["TERMSTORE_BASE_URL", "TERMSTORE_MAX_RETRIES", "TERMSTORE_LOG_LEVEL"]:
            monkeypatch.delenv(name, raising=False)

        config = TermStoreConfig()

        assert config.base_url is None
        assert config.termstore_path == "_api/v2.1/termstore"
        assert config.request_timeout == 30.0
        assert config.max_retries == 3
        assert config.proxy_url is None
        assert config.log_level == "INFO"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("TERMSTORE_BASE_URL", "https://contoso.sharepoint.com/sites/dev")
        monkeypatch.setenv("TERMSTORE_MAX_RETRIES", "0")
        monkeypatch.setenv("TERMSTORE_PROXY_URL", "http://127.0.0.1:8888")

        config = TermStoreConfig()

        assert config.base_url == "https://contoso.sharepoint.com/sites/dev"
        assert config.max_retries == 0
        assert config.proxy_url == "http://127.0.0.1:8888"

    def test_log_level_is_normalized(self):
        assert TermStoreConfig(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            TermStoreConfig(log_level="chatty")

    def test_relative_base_url_rejected(self):
        with pytest.raises(ValidationError):
            TermStoreConfig(base_url="sites/dev")

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValidationError):
            TermStoreConfig(request_timeout=0)

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            TermStoreConfig(max_retries=-1)


class TestGetConfig:
    """Global instance."""

    def test_cached(self):
        assert get_config() is get_config()

    def test_force_reload(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("TERMSTORE_USER_AGENT", "reloaded")
        second = get_config(force_reload=True)

        assert second is not first
        assert second.user_agent == "reloaded"

    def test_configure_logging_accepts_level_name(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))

        configure_logging("warning")

        assert calls["level"] == logging.WARNING
