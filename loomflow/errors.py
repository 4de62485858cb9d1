"""Exception types raised by loomflow."""

from __future__ import annotations

from typing import Iterable, Optional


class LoomflowError(Exception):
    """Base class for all loomflow errors."""


class ConfigurationError(LoomflowError):
    """Required configuration is missing or invalid."""


class ValidationError(LoomflowError):
    """A request or definition failed validation before being sent."""


class GraphValidationError(ValidationError):
    """A workflow graph is malformed (duplicate ids, dangling dependencies)."""


class NetworkError(LoomflowError):
    """The completion service could not be reached."""


class RequestTimeoutError(NetworkError):
    """A request to the completion service exceeded its timeout."""


class ApiError(LoomflowError):
    """The completion service answered with a non-success status."""

    def __init__(
        self, message: str, status: Optional[int] = None, code: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"[{self.status}] {self.message}"


class SchemaError(LoomflowError):
    """A response did not match the expected schema."""


class DeadlockError(LoomflowError):
    """No step can run although the workflow is incomplete."""

    def __init__(self, blocked: Iterable[str]) -> None:
        self.blocked = sorted(blocked)
        super().__init__(
            "Workflow deadlock: circular dependencies or missing steps "
            f"(blocked: {', '.join(self.blocked)})"
        )


class ExecutionCancelledError(LoomflowError):
    """An execution was cancelled by the caller."""


class StepExecutionError(LoomflowError):
    """A step failed; wraps the underlying error."""

    def __init__(self, step_id: str, cause: BaseException) -> None:
        super().__init__(f"Step '{step_id}' failed: {cause}")
        self.step_id = step_id
        self.cause = cause


__all__ = [
    "LoomflowError",
    "ConfigurationError",
    "ValidationError",
    "GraphValidationError",
    "NetworkError",
    "RequestTimeoutError",
    "ApiError",
    "SchemaError",
    "DeadlockError",
    "ExecutionCancelledError",
    "StepExecutionError",
]
