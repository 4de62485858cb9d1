"""Storage for workflow execution state."""

from __future__ import annotations

from .inmemory import InMemoryExecutionRepository
from .repository import ExecutionRepository

__all__ = [
    "ExecutionRepository",
    "InMemoryExecutionRepository",
]
