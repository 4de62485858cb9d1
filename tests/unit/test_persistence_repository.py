import pytest

from loomflow.contracts import ExecutionState
from loomflow.persistence import InMemoryExecutionRepository


@pytest.mark.asyncio
async def test_inmemory_repository_crud():
    repo = InMemoryExecutionRepository()
    state = ExecutionState(workflow_name="demo")

    await repo.save(state)
    assert await repo.get(state.id) is state
    assert [s.id for s in await repo.list_executions()] == [state.id]

    assert await repo.delete(state.id)
    assert not await repo.delete(state.id)
    assert await repo.get(state.id) is None
    assert await repo.list_executions() == []
