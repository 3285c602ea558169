"""Tests for ProviderConfig and UserServiceConfig."""

from __future__ import annotations

from pathlib import Path

import pytest

from usersense.core.config import (
    PROVIDER_GEMINI,
    PROVIDER_MOCK,
    PROVIDER_OLLAMA,
    ProviderConfig,
    UserServiceConfig,
    normalize_provider,
)
from usersense.core.exceptions import ConfigurationError


class TestNormalizeProvider:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("ollama", PROVIDER_OLLAMA),
            ("local", PROVIDER_OLLAMA),
            ("LOCAL", PROVIDER_OLLAMA),
            ("gemini", PROVIDER_GEMINI),
            (" hosted ", PROVIDER_GEMINI),
            ("mock", PROVIDER_MOCK),
            (None, PROVIDER_OLLAMA),
            ("", PROVIDER_OLLAMA),
        ],
    )
    def test_aliases(self, name, expected):
        assert normalize_provider(name) == expected

    def test_unknown_defaults_to_local(self, caplog):
        with caplog.at_level("WARNING", logger="usersense"):
            assert normalize_provider("openai") == PROVIDER_OLLAMA
        assert "openai" in caplog.text


class TestProviderConfig:
    def test_defaults(self):
        config = ProviderConfig()
        assert config.provider == PROVIDER_OLLAMA
        assert config.mock is False
        assert config.mock_enabled is False
        assert config.request_timeout == 120.0
        assert config.rate_limit_backoff == 2.0
        assert config.port == 3001

    def test_provider_normalized_at_construction(self):
        assert ProviderConfig(provider="hosted").provider == PROVIDER_GEMINI

    def test_frozen(self):
        config = ProviderConfig()
        with pytest.raises(AttributeError):
            config.provider = "gemini"

    @pytest.mark.parametrize(
        "kwargs",
        [{"request_timeout": 0}, {"rate_limit_backoff": -1}, {"port": 0}, {"port": 70000}],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            ProviderConfig(**kwargs)

    def test_mock_enabled_by_provider_name(self):
        assert ProviderConfig(provider="mock").mock_enabled is True

    def test_from_env(self):
        config = ProviderConfig.from_env(
            {
                "AI_PROVIDER": "hosted",
                "MOCK_AI": "true",
                "OLLAMA_URL": "http://gpu-box:11434",
                "OLLAMA_MODEL": "mistral",
                "GEMINI_API_KEY": "secret",
                "GEMINI_MODEL": "gemini-pro",
                "AI_REQUEST_TIMEOUT": "30",
                "PORT": "4000",
                "LOG_LEVEL": "DEBUG",
            }
        )

        assert config.provider == PROVIDER_GEMINI
        assert config.mock is True
        assert config.mock_enabled is True
        assert config.ollama_url == "http://gpu-box:11434"
        assert config.ollama_model == "mistral"
        assert config.gemini_api_key == "secret"
        assert config.gemini_model == "gemini-pro"
        assert config.request_timeout == 30.0
        assert config.port == 4000
        assert config.log_level == "DEBUG"

    def test_from_env_empty_uses_defaults(self):
        config = ProviderConfig.from_env({})
        assert config == ProviderConfig()

    @pytest.mark.parametrize("value", ["1", "yes", "TRUE", "on"])
    def test_mock_flag_values(self, value):
        assert ProviderConfig.from_env({"MOCK_AI": value}).mock is True

    @pytest.mark.parametrize("value", ["0", "false", "", "nope"])
    def test_mock_flag_false_values(self, value):
        assert ProviderConfig.from_env({"MOCK_AI": value}).mock is False

    def test_invalid_number_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ProviderConfig.from_env({"AI_REQUEST_TIMEOUT": "soon"})
        assert exc_info.value.field == "AI_REQUEST_TIMEOUT"

    def test_invalid_port_raises(self):
        with pytest.raises(ConfigurationError):
            ProviderConfig.from_env({"PORT": "http"})


class TestUserServiceConfig:
    def test_defaults(self):
        config = UserServiceConfig()
        assert config.ai_base_url == "http://localhost:3001"
        assert config.ai_timeout == 120.0
        assert config.users_file == Path("Data") / "users.json"

    def test_from_env(self, tmp_path):
        config = UserServiceConfig.from_env(
            {
                "AI_SERVICE_BASE_URL": "http://ai:3001",
                "AI_CLIENT_TIMEOUT": "15",
                "USER_DATA_DIR": str(tmp_path),
                "USER_SERVICE_PORT": "9000",
            }
        )

        assert config.ai_base_url == "http://ai:3001"
        assert config.ai_timeout == 15.0
        assert config.users_file == tmp_path / "users.json"
        assert config.port == 9000

    def test_invalid_timeout(self):
        with pytest.raises(ConfigurationError):
            UserServiceConfig(ai_timeout=-5)
