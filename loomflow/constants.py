"""Shared defaults."""

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "anthropic/claude-3-sonnet"
DEFAULT_SITE_URL = "https://github.com/loomflow/loomflow"
DEFAULT_SITE_NAME = "loomflow"

DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT_MS = 60_000
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503})
BACKOFF_BASE = 2.0

DEFAULT_TEMPERATURE = 0.7
DEFAULT_STEP_MAX_TOKENS = 2000

DEFAULT_RETENTION_HOURS = 24.0
