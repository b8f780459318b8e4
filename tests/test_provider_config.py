"""
tests/test_provider_config.py

Tests for environment-driven provider configuration.
"""

import pytest

from refiner.llm.provider_config import ProviderConfig, load_key


ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "REFINER_ENV",
    "REFINER_CONNECT_TIMEOUT",
    "REFINER_READ_TIMEOUT",
    "REFINER_STREAM_DEADLINE",
    "REFINER_ALLOW_UNKNOWN_MODEL",
    "REFINER_LOG_LEVEL",
    "DEBUG",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadKey:
    def test_env_override(self, clean_env, tmp_path):
        clean_env.setenv("OPENAI_API_KEY", "  from-env  ")
        assert load_key(str(tmp_path / "openai.key")) == "from-env"

    def test_key_file(self, clean_env, tmp_path):
        key_file = tmp_path / "openai.key"
        key_file.write_text("from-file\n", encoding="utf-8")
        assert load_key(str(key_file)) == "from-file"

    def test_missing(self, clean_env, tmp_path):
        assert load_key(str(tmp_path / "openai.key")) is None
        assert load_key(None) is None


class TestFromEnv:
    def test_defaults(self, clean_env, tmp_path):
        config = ProviderConfig.from_env(str(tmp_path / "openai.key"))

        assert config.api_key is None
        assert config.completions_url == "https://api.openai.com/v1/chat/completions"
        assert not config.development
        assert config.stream_deadline == 300.0
        assert not config.allow_unknown_model

    def test_overrides(self, clean_env, tmp_path):
        clean_env.setenv("OPENAI_API_KEY", "sk-test")
        clean_env.setenv("OPENAI_BASE_URL", "http://localhost:11434/v1/")
        clean_env.setenv("REFINER_ENV", "Development")
        clean_env.setenv("REFINER_READ_TIMEOUT", "15")
        clean_env.setenv("REFINER_ALLOW_UNKNOWN_MODEL", "true")
        clean_env.setenv("REFINER_LOG_LEVEL", "debug")

        config = ProviderConfig.from_env(str(tmp_path / "openai.key"))

        assert config.api_key == "sk-test"
        assert config.completions_url == "http://localhost:11434/v1/chat/completions"
        assert config.development
        assert config.allow_unknown_model
        assert config.log_level == "DEBUG"
        assert config.timeout().read == 15.0

    def test_frozen(self):
        config = ProviderConfig(api_key="k")
        with pytest.raises(Exception):
            config.api_key = "other"
