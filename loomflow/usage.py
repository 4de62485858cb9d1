"""Token and cost bookkeeping for completion calls."""

from __future__ import annotations

import logging
from typing import Dict

from pydantic import BaseModel, Field

from .pricing import calculate_cost

logger = logging.getLogger(__name__)


class Usage(BaseModel):
    """Token usage reported by the completion service."""

    prompt_tokens: int = Field(ge=0)
    completion_tokens: int = Field(ge=0)
    total_tokens: int = Field(ge=0)


class ModelUsage(BaseModel):
    requests: int = 0
    tokens: int = 0
    cost: float = 0.0


class UsageStats(BaseModel):
    """Aggregated usage, overall and per model."""

    total_requests: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    by_model: Dict[str, ModelUsage] = Field(default_factory=dict)


class UsageAccountant:
    """Accumulates usage statistics from completed calls."""

    def __init__(self) -> None:
        self._stats = UsageStats()

    def _bucket(self, model: str) -> ModelUsage:
        bucket = self._stats.by_model.get(model)
        if bucket is None:
            bucket = self._stats.by_model[model] = ModelUsage()
        return bucket

    def update_stats(self, model: str, usage: Usage) -> float:
        """Record a completed call and return its cost."""
        cost = calculate_cost(model, usage.prompt_tokens, usage.completion_tokens)

        self._stats.total_requests += 1
        self._stats.total_tokens += usage.total_tokens
        self._stats.total_cost += cost

        bucket = self._bucket(model)
        bucket.requests += 1
        bucket.tokens += usage.total_tokens
        bucket.cost += cost

        logger.debug(
            f"Recorded {usage.total_tokens} tokens (${cost:.6f}) for model {model}"
        )
        return cost

    def record_request(self, model: str) -> None:
        """Count a call whose token usage is unknown (streamed responses)."""
        self._stats.total_requests += 1
        self._bucket(model).requests += 1

    def get_stats(self) -> UsageStats:
        return self._stats.model_copy(deep=True)

    def reset_stats(self) -> None:
        self._stats = UsageStats()
