"""Tests for configuration loading."""

import pytest

from loomflow.client import CompletionClient
from loomflow.config import ClientConfig, load_config
from loomflow.errors import ConfigurationError


def test_load_config_defaults_without_file(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"))
    assert config.client.api_key is None
    assert config.client.base_url == "https://openrouter.ai/api/v1"
    assert config.client.max_retries == 3
    assert config.client.timeout_ms == 60000
    assert config.client.timeout_seconds == 60.0
    assert config.scheduler.max_concurrency is None


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
client:
  default_model: openai/gpt-4
  max_retries: 5
  timeout_ms: 1500
scheduler:
  max_concurrency: 4
log_level: DEBUG
"""
    )
    monkeypatch.setenv("LOOMFLOW_CONFIG", str(config_path))

    config = load_config()
    assert config.client.default_model == "openai/gpt-4"
    assert config.client.max_retries == 5
    assert config.client.timeout_seconds == 1.5
    assert config.scheduler.max_concurrency == 4
    assert config.log_level == "DEBUG"


def test_environment_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("client:\n  base_url: https://file.example/v1\n")
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-env")
    monkeypatch.setenv("LOOMFLOW_BASE_URL", "https://env.example/v1")

    config = load_config(str(config_path))
    assert config.client.api_key.get_secret_value() == "sk-env"
    assert config.client.base_url == "https://env.example/v1"


def test_api_key_is_not_exposed_in_repr():
    config = ClientConfig(api_key="sk-secret")
    assert "sk-secret" not in repr(config)
    assert "sk-secret" not in str(config.model_dump())


@pytest.mark.parametrize("api_key", [None, "", "   "])
def test_client_requires_api_key(api_key):
    with pytest.raises(ConfigurationError):
        CompletionClient(ClientConfig(api_key=api_key))
