"""loomflow: dependency-graph orchestration of language-model completions."""

from .builder import WorkflowBuilder
from .client import CompletionClient, CompletionRequest, CompletionResponse, Message, create_client
from .config import ClientConfig, LoomflowConfig, SchedulerConfig, load_config
from .contracts import (
    ChatStepConfig,
    ExecutionState,
    ExecutionStatus,
    JsonStepConfig,
    StepDefinition,
    StreamStepConfig,
    WorkflowCallbacks,
    WorkflowGraph,
)
from .errors import (
    ApiError,
    ConfigurationError,
    DeadlockError,
    ExecutionCancelledError,
    GraphValidationError,
    LoomflowError,
    NetworkError,
    RequestTimeoutError,
    SchemaError,
    StepExecutionError,
    ValidationError,
)
from .pricing import calculate_cost
from .scheduler import WorkflowScheduler
from .templating import CompiledTemplate, resolve
from .usage import UsageAccountant, UsageStats

__version__ = "0.1.0"
__all__ = [
    "ApiError",
    "ChatStepConfig",
    "ClientConfig",
    "CompiledTemplate",
    "CompletionClient",
    "CompletionRequest",
    "CompletionResponse",
    "ConfigurationError",
    "DeadlockError",
    "ExecutionCancelledError",
    "ExecutionState",
    "ExecutionStatus",
    "GraphValidationError",
    "JsonStepConfig",
    "LoomflowConfig",
    "LoomflowError",
    "Message",
    "NetworkError",
    "RequestTimeoutError",
    "SchedulerConfig",
    "SchemaError",
    "StepDefinition",
    "StepExecutionError",
    "StreamStepConfig",
    "UsageAccountant",
    "UsageStats",
    "ValidationError",
    "WorkflowBuilder",
    "WorkflowCallbacks",
    "WorkflowGraph",
    "WorkflowScheduler",
    "calculate_cost",
    "create_client",
    "load_config",
    "resolve",
]
