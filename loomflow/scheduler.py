"""Dependency-driven execution of workflow graphs."""

from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from .client import CompletionClient, CompletionRequest, Message
from .constants import (
    DEFAULT_RETENTION_HOURS,
    DEFAULT_STEP_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
)
from .contracts import (
    ExecutionState,
    StepDefinition,
    WorkflowCallbacks,
    WorkflowGraph,
)
from .errors import (
    DeadlockError,
    ExecutionCancelledError,
    LoomflowError,
    StepExecutionError,
)
from .persistence import ExecutionRepository, InMemoryExecutionRepository
from .utils.json_output import normalize_json_output

logger = logging.getLogger(__name__)


class WorkflowScheduler:
    """Runs workflow graphs against a completion client.

    Every step whose dependencies have completed is started immediately, so
    independent steps run concurrently. The first failing step fails the
    whole execution; steps already in flight may finish, but their results
    are discarded. A graph in which no step can make progress fails with a
    ``DeadlockError``.

    Args:
        client: Client used for every step.
        repository: Where execution states are kept. In-memory by default.
        max_concurrency: Upper bound on concurrently running steps. ``None``
            means no limit.
        default_model: Model for steps without a model override. Falls back
            to the client's default model.
    """

    def __init__(
        self,
        client: CompletionClient,
        repository: ExecutionRepository | None = None,
        max_concurrency: Optional[int] = None,
        default_model: Optional[str] = None,
    ) -> None:
        self._client = client
        self._repository = repository or InMemoryExecutionRepository()
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None
        self._default_model = default_model
        self._tasks: Dict[str, asyncio.Task] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Public API
    async def execute(
        self,
        graph: WorkflowGraph,
        callbacks: Optional[WorkflowCallbacks] = None,
        inputs: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Start running ``graph`` in the background.

        Args:
            graph: The workflow to run.
            callbacks: Optional progress hooks.
            inputs: Values available to prompt templates in addition to step
                outputs. They are not part of the results.

        Returns:
            Execution identifier for ``get_execution``/``wait``/``cancel_execution``.
        """
        state = ExecutionState(workflow_name=graph.name, inputs=dict(inputs or {}))
        await self._repository.save(state)
        self._lock_for(state.id)

        task = asyncio.create_task(
            self._run(graph, state, callbacks or WorkflowCallbacks()),
            name=f"loomflow-{state.id}",
        )
        self._tasks[state.id] = task
        task.add_done_callback(lambda _task: self._tasks.pop(state.id, None))

        logger.info(
            f"Started execution {state.id} of workflow '{graph.name}' "
            f"with {len(graph.steps)} steps"
        )
        return state.id

    async def wait(
        self, execution_id: str, timeout: Optional[float] = None
    ) -> ExecutionState | None:
        """Wait until the execution has stopped and return its final state."""
        task = self._tasks.get(execution_id)
        if task is not None:
            await asyncio.wait_for(asyncio.shield(task), timeout)
        return await self.get_execution(execution_id)

    async def run(
        self,
        graph: WorkflowGraph,
        callbacks: Optional[WorkflowCallbacks] = None,
        inputs: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionState:
        """Execute ``graph`` and wait for it to finish."""
        execution_id = await self.execute(graph, callbacks=callbacks, inputs=inputs)
        state = await self.wait(execution_id)
        if state is None:
            raise LoomflowError(f"Execution {execution_id} is no longer tracked")
        return state

    async def get_execution(self, execution_id: str) -> ExecutionState | None:
        """Return a snapshot of the execution state, or ``None`` if unknown."""
        state = await self._repository.get(execution_id)
        return state.model_copy(deep=True) if state is not None else None

    async def list_executions(self) -> List[ExecutionState]:
        return [s.model_copy(deep=True) for s in await self._repository.list_executions()]

    async def cancel_execution(self, execution_id: str) -> bool:
        """Stop scheduling further steps of an execution.

        Calls already in flight are not aborted; their results are discarded.
        Returns ``False`` if the execution is unknown or already finished.
        """
        state = await self._repository.get(execution_id)
        if state is None:
            return False
        error = ExecutionCancelledError("Workflow cancelled by user")
        async with self._lock_for(execution_id):
            state.record_step_error("cancelled", str(error))
            cancelled = state.fail(error)
        if cancelled:
            logger.info(f"Cancelled execution {execution_id}")
        return cancelled

    async def clear_executions(
        self, retention_hours: float = DEFAULT_RETENTION_HOURS
    ) -> int:
        """Drop finished executions that ended more than ``retention_hours`` ago."""
        cutoff = datetime.now(timezone.utc) - timedelta(hours=retention_hours)
        removed = 0
        for state in await self._repository.list_executions():
            if not state.is_terminal or state.end_time is None:
                continue
            if state.end_time <= cutoff and await self._repository.delete(state.id):
                self._locks.pop(state.id, None)
                removed += 1
        if removed:
            logger.info(f"Cleared {removed} finished executions")
        return removed

    # ------------------------------------------------------------------
    # Scheduling loop
    def _lock_for(self, execution_id: str) -> asyncio.Lock:
        lock = self._locks.get(execution_id)
        if lock is None:
            lock = self._locks[execution_id] = asyncio.Lock()
        return lock

    async def _run(
        self,
        graph: WorkflowGraph,
        state: ExecutionState,
        callbacks: WorkflowCallbacks,
    ) -> None:
        lock = self._lock_for(state.id)
        total = len(graph.steps)
        completed: Set[str] = set()
        in_flight: Dict[asyncio.Task, StepDefinition] = {}

        try:
            while not state.is_terminal:
                running = {step.id for step in in_flight.values()}
                ready = [
                    step
                    for step in graph.steps
                    if step.id not in completed
                    and step.id not in running
                    and all(dep in completed for dep in step.depends_on)
                ]

                if not ready and not in_flight:
                    if len(completed) < total:
                        blocked = [s.id for s in graph.steps if s.id not in completed]
                        await self._fail_deadlock(state, blocked, callbacks)
                    else:
                        await self._complete(state, callbacks)
                    break

                async with lock:
                    context = {**state.inputs, **state.results}
                    for step in ready:
                        state.mark_running(step.id)
                for step in ready:
                    logger.debug(f"Launching step '{step.id}' of execution {state.id}")
                    task = asyncio.create_task(self._execute_step(step, context))
                    in_flight[task] = step

                done, _ = await asyncio.wait(
                    in_flight, return_when=asyncio.FIRST_COMPLETED
                )
                for task in done:
                    step = in_flight.pop(task)
                    await self._fold(state, step, task, completed, total, callbacks)
        except asyncio.CancelledError:
            for task in in_flight:
                task.cancel()
            async with lock:
                state.fail(ExecutionCancelledError("Execution task was cancelled"))
            raise
        except Exception as exc:
            logger.exception(f"Execution {state.id} aborted unexpectedly")
            async with lock:
                state.fail(exc)
        finally:
            if in_flight:
                logger.debug(
                    f"Waiting for {len(in_flight)} in-flight steps of stopped "
                    f"execution {state.id}; their results will be discarded"
                )
                await asyncio.gather(*in_flight, return_exceptions=True)

    async def _fold(
        self,
        state: ExecutionState,
        step: StepDefinition,
        task: asyncio.Task,
        completed: Set[str],
        total: int,
        callbacks: WorkflowCallbacks,
    ) -> None:
        """Record the outcome of a finished step task."""
        if task.cancelled():
            return
        lock = self._lock_for(state.id)
        error = task.exception()

        if error is None:
            result = task.result()
            async with lock:
                if state.is_terminal:
                    logger.debug(f"Discarding result of step '{step.id}' ({state.status.value})")
                    return
                completed.add(step.id)
                state.record_result(step.output_key, result, len(completed), total)
                progress = state.progress
            logger.info(
                f"Step '{step.id}' completed for execution {state.id} ({progress:.0f}%)"
            )
            await self._notify(callbacks.on_step_complete, step.id, result)
            return

        cause = error.cause if isinstance(error, StepExecutionError) else error
        message = str(cause)
        async with lock:
            if state.is_terminal:
                logger.debug(f"Discarding failure of step '{step.id}': {message}")
                return
            state.record_step_error(step.id, message)
            state.fail(error)
        logger.error(f"Execution {state.id} failed at step '{step.id}': {message}")
        await self._notify(callbacks.on_error, step.id, message)

    async def _complete(self, state: ExecutionState, callbacks: WorkflowCallbacks) -> None:
        async with self._lock_for(state.id):
            if not state.complete():
                return
            results = dict(state.results)
        logger.info(f"Execution {state.id} completed")
        await self._notify(callbacks.on_workflow_complete, results)

    async def _fail_deadlock(
        self, state: ExecutionState, blocked: List[str], callbacks: WorkflowCallbacks
    ) -> None:
        error = DeadlockError(blocked)
        async with self._lock_for(state.id):
            for step_id in blocked:
                state.record_step_error(step_id, str(error))
            failed = state.fail(error)
        if not failed:
            return
        logger.error(f"Execution {state.id} failed: {error}")
        for step_id in blocked:
            await self._notify(callbacks.on_error, step_id, str(error))

    # ------------------------------------------------------------------
    # Step execution
    async def _execute_step(self, step: StepDefinition, context: Mapping[str, Any]) -> str:
        if self._semaphore is None:
            return await self._call_model(step, context)
        async with self._semaphore:
            return await self._call_model(step, context)

    def _build_request(self, step: StepDefinition, prompt: str) -> CompletionRequest:
        config = step.config
        messages = []
        if config.system_prompt:
            messages.append(Message(role="system", content=config.system_prompt))
        messages.append(Message(role="user", content=prompt))
        return CompletionRequest(
            model=config.model or self._default_model,
            messages=messages,
            temperature=(
                config.temperature if config.temperature is not None else DEFAULT_TEMPERATURE
            ),
            max_tokens=config.max_tokens or DEFAULT_STEP_MAX_TOKENS,
        )

    async def _call_model(self, step: StepDefinition, context: Mapping[str, Any]) -> str:
        request = self._build_request(step, step.template.resolve(context))
        kind = step.config.kind
        try:
            if kind == "stream":
                text = "".join([delta async for delta in self._client.stream_chat(request)])
            else:
                response = await self._client.chat(request)
                text = response.content
            if kind == "json":
                text = normalize_json_output(text)
        except Exception as exc:
            raise StepExecutionError(step.id, exc) from exc
        return text

    async def _notify(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            outcome = callback(*args)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            name = getattr(callback, "__name__", repr(callback))
            logger.exception(f"Workflow callback {name} raised")
