"""Tests for environment-driven configuration."""

import pytest

from elastic_mcp.config import DEFAULT_TIMEOUT_MS, Config
from elastic_mcp.errors import ConfigError


class TestConfigLoad:
    def test_minimal_env(self):
        cfg = Config.load({"ELASTIC_URL": "https://es.example.com:9200"})
        assert cfg.elastic_url == "https://es.example.com:9200"
        assert cfg.timeout_ms == DEFAULT_TIMEOUT_MS
        assert cfg.skip_ssl_verify is False
        assert cfg.log_level == "info"
        assert cfg.api_key_encoded is None

    def test_all_variables(self):
        cfg = Config.load({
            "ELASTIC_URL": "http://localhost:9200/",
            "ELASTIC_API_KEY_ENCODED": "abc",
            "ELASTIC_API_KEY_ID": "id",
            "ELASTIC_API_KEY_SECRET": "secret",
            "ELASTIC_USERNAME": "elastic",
            "ELASTIC_PASSWORD": "changeme",
            "ELASTIC_SKIP_SSL_VERIFY": "true",
            "ELASTIC_TIMEOUT": "5000",
            "LOG_LEVEL": "DEBUG",
        })
        assert cfg.api_key_encoded == "abc"
        assert cfg.api_key_id == "id"
        assert cfg.api_key_secret == "secret"
        assert cfg.username == "elastic"
        assert cfg.password == "changeme"
        assert cfg.skip_ssl_verify is True
        assert cfg.timeout_ms == 5000
        assert cfg.log_level == "debug"

    def test_empty_strings_are_unset(self):
        cfg = Config.load({"ELASTIC_URL": "http://localhost:9200", "ELASTIC_API_KEY_ENCODED": ""})
        assert cfg.api_key_encoded is None

    def test_missing_url_is_fatal(self):
        with pytest.raises(ConfigError, match="ELASTIC_URL"):
            Config.load({"ELASTIC_API_KEY_ENCODED": "abc"})

    def test_relative_url_rejected(self):
        with pytest.raises(ConfigError):
            Config.load({"ELASTIC_URL": "localhost:9200"})

    @pytest.mark.parametrize("raw", ["soon", "0", "-5"])
    def test_bad_timeout_rejected(self, raw):
        with pytest.raises(ConfigError):
            Config.load({"ELASTIC_URL": "http://localhost:9200", "ELASTIC_TIMEOUT": raw})

    def test_skip_ssl_verify_only_for_truthy_values(self):
        cfg = Config.load({"ELASTIC_URL": "http://localhost:9200", "ELASTIC_SKIP_SSL_VERIFY": "no"})
        assert cfg.skip_ssl_verify is False

    def test_config_is_immutable(self):
        cfg = Config.load({"ELASTIC_URL": "http://localhost:9200"})
        with pytest.raises(AttributeError):
            cfg.elastic_url = "http://elsewhere:9200"  # type: ignore[misc]


class TestRedacted:
    def test_secrets_are_masked(self):
        cfg = Config(
            elastic_url="http://localhost:9200",
            api_key_encoded="abc",
            api_key_secret="secret",
            password="changeme",
            username="elastic",
        )
        view = cfg.redacted()
        assert view["api_key_encoded"] == "***"
        assert view["api_key_secret"] == "***"
        assert view["password"] == "***"
        assert view["username"] == "elastic"
        assert "changeme" not in str(view)
