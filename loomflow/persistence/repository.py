"""Repository abstraction for execution state storage."""

from __future__ import annotations

from typing import Protocol

from ..contracts import ExecutionState


class ExecutionRepository(Protocol):
    """Protocol for execution state storage backends."""

    async def save(self, state: ExecutionState) -> None:
        """Store a new or updated execution state."""

    async def get(self, execution_id: str) -> ExecutionState | None:
        """Retrieve the execution state by id."""

    async def list_executions(self) -> list[ExecutionState]:
        """Return all stored execution states."""

    async def delete(self, execution_id: str) -> bool:
        """Remove an execution state; return whether it existed."""
