from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field, SecretStr

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODEL,
    DEFAULT_RETENTION_HOURS,
    DEFAULT_SITE_NAME,
    DEFAULT_SITE_URL,
    DEFAULT_TIMEOUT_MS,
)


class ClientConfig(BaseModel):
    """Settings for the completion service client."""

    api_key: Optional[SecretStr] = None
    base_url: str = DEFAULT_BASE_URL
    default_model: str = DEFAULT_MODEL
    site_url: str = DEFAULT_SITE_URL
    site_name: str = DEFAULT_SITE_NAME
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class SchedulerConfig(BaseModel):
    """Workflow scheduler settings."""

    max_concurrency: Optional[int] = Field(default=None, gt=0)
    retention_hours: float = DEFAULT_RETENTION_HOURS


class LoomflowConfig(BaseModel):
    """Top-level configuration model."""

    client: ClientConfig = Field(default_factory=ClientConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    log_level: str = "WARNING"


def load_config(path: Optional[str] = None) -> LoomflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to LOOMFLOW_CONFIG env
            variable or 'loomflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("LOOMFLOW_CONFIG", "loomflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = LoomflowConfig(**data)
    else:
        config = LoomflowConfig()

    env_api_key = os.getenv("LOOMFLOW_API_KEY") or os.getenv("OPENROUTER_API_KEY")
    if env_api_key:
        config.client.api_key = SecretStr(env_api_key)
    env_base_url = os.getenv("LOOMFLOW_BASE_URL")
    if env_base_url:
        config.client.base_url = env_base_url
    env_model = os.getenv("LOOMFLOW_DEFAULT_MODEL")
    if env_model:
        config.client.default_model = env_model
    return config
