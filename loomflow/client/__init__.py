"""Completion service client."""

from __future__ import annotations

from typing import Any, Optional

from ..config import ClientConfig
from ..usage import UsageAccountant
from .completion import CompletionClient
from .models import (
    Choice,
    ChunkChoice,
    CompletionChunk,
    CompletionRequest,
    CompletionResponse,
    Delta,
    Message,
)
from .streaming import SSEDecoder


def create_client(
    api_key: str, accountant: Optional[UsageAccountant] = None, **options: Any
) -> CompletionClient:
    """Build a client from an API key and optional ``ClientConfig`` fields."""
    return CompletionClient(ClientConfig(api_key=api_key, **options), accountant)


__all__ = [
    "Choice",
    "ChunkChoice",
    "CompletionChunk",
    "CompletionClient",
    "CompletionRequest",
    "CompletionResponse",
    "Delta",
    "Message",
    "SSEDecoder",
    "create_client",
]
