"""In-memory implementation of the execution repository."""

from __future__ import annotations

from typing import Dict

from ..contracts import ExecutionState
from .repository import ExecutionRepository


class InMemoryExecutionRepository(ExecutionRepository):
    """Store execution states in local memory.

    States are kept by reference, so the scheduler's updates are visible
    through ``get`` immediately. Data is not persisted across process
    restarts.
    """

    def __init__(self) -> None:
        self._executions: Dict[str, ExecutionState] = {}

    async def save(self, state: ExecutionState) -> None:
        self._executions[state.id] = state

    async def get(self, execution_id: str) -> ExecutionState | None:
        return self._executions.get(execution_id)

    async def list_executions(self) -> list[ExecutionState]:
        return list(self._executions.values())

    async def delete(self, execution_id: str) -> bool:
        return self._executions.pop(execution_id, None) is not None
