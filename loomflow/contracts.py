"""Core contracts for loomflow workflows."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Tuple, Union

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError as PydanticValidationError,
    model_validator,
)

from .errors import GraphValidationError
from .templating import CompiledTemplate


class _BaseStepConfig(BaseModel):
    """Per-step overrides shared by every step kind."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    system_prompt: Optional[str] = None


class ChatStepConfig(_BaseStepConfig):
    """Single request/response completion; the reply text is the result."""

    kind: Literal["chat"] = "chat"


class StreamStepConfig(_BaseStepConfig):
    """Streamed completion; the result is the concatenated increments."""

    kind: Literal["stream"] = "stream"


class JsonStepConfig(_BaseStepConfig):
    """Completion whose reply must be a JSON document."""

    kind: Literal["json"] = "json"


StepConfig = Annotated[
    Union[ChatStepConfig, StreamStepConfig, JsonStepConfig],
    Field(discriminator="kind"),
]


class StepDefinition(BaseModel):
    """Defines one step in a workflow."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    prompt: str
    depends_on: Tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("depends_on", "dependencies")
    )
    output_key: str = ""
    config: StepConfig = Field(default_factory=ChatStepConfig)

    _template: CompiledTemplate = PrivateAttr()

    @model_validator(mode="before")
    @classmethod
    def _default_names(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("id"):
            data = dict(data)
            data["name"] = data.get("name") or data["id"]
            data["output_key"] = data.get("output_key") or data["id"]
            config = data.get("config")
            if isinstance(config, dict) and "kind" not in config:
                data["config"] = {**config, "kind": "chat"}
        return data

    def model_post_init(self, __context: Any) -> None:
        self._template = CompiledTemplate(self.prompt)

    @property
    def template(self) -> CompiledTemplate:
        return self._template


class WorkflowGraph(BaseModel):
    """Ordered collection of steps.

    Step ids and output keys must be unique and every dependency must name a
    step of the graph. Cycles are not rejected here; the scheduler reports
    them as a deadlock.
    """

    model_config = ConfigDict(frozen=True)

    name: str = "workflow"
    description: str = ""
    steps: Tuple[StepDefinition, ...] = ()

    @model_validator(mode="wrap")
    @classmethod
    def _validate_graph(cls, data: Any, handler: Any) -> "WorkflowGraph":
        try:
            graph = handler(data)
        except PydanticValidationError as exc:
            raise GraphValidationError(_format_errors(exc)) from exc
        problems = graph._reference_problems()
        if problems:
            raise GraphValidationError("; ".join(problems))
        return graph

    def _reference_problems(self) -> List[str]:
        problems: List[str] = []
        ids: set[str] = set()
        output_keys: set[str] = set()
        for step in self.steps:
            if step.id in ids:
                problems.append(f"duplicate step id '{step.id}'")
            ids.add(step.id)
            if step.output_key in output_keys:
                problems.append(f"duplicate output key '{step.output_key}'")
            output_keys.add(step.output_key)

        for step in self.steps:
            for dep in step.depends_on:
                if dep not in ids:
                    problems.append(f"step '{step.id}' depends on unknown step '{dep}'")
        return problems

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowGraph":
        """Validate a plain mapping, raising ``GraphValidationError`` on problems."""
        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "WorkflowGraph":
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise GraphValidationError(f"{path}: expected a mapping at top level")
        return cls.from_dict(data)

    @property
    def step_ids(self) -> List[str]:
        return [step.id for step in self.steps]

    def get_step(self, step_id: str) -> Optional[StepDefinition]:
        return next((s for s in self.steps if s.id == step_id), None)


def _format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err["loc"])
        message = err["msg"].removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


class WorkflowCallbacks(BaseModel):
    """Optional hooks fired during execution; plain or coroutine functions."""

    on_step_complete: Optional[Callable[[str, str], Any]] = None
    on_workflow_complete: Optional[Callable[[Dict[str, str]], Any]] = None
    on_error: Optional[Callable[[str, str], Any]] = None


class ExecutionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({ExecutionStatus.COMPLETED, ExecutionStatus.FAILED})


class ExecutionState(BaseModel):
    """State of one workflow run.

    Only the scheduler mutates it, through the transition methods below.
    Every transition is ignored once the state is terminal, which freezes
    the outcome of a finished run.
    """

    id: str = Field(default_factory=lambda: f"workflow_{uuid.uuid4().hex}")
    workflow_name: str = ""
    status: ExecutionStatus = ExecutionStatus.PENDING
    inputs: Dict[str, Any] = Field(default_factory=dict)
    results: Dict[str, str] = Field(default_factory=dict)
    errors: Dict[str, str] = Field(default_factory=dict)
    progress: float = Field(default=0.0, ge=0, le=100)
    current_step_id: Optional[str] = None
    start_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def mark_running(self, step_id: str) -> bool:
        if self.is_terminal:
            return False
        self.status = ExecutionStatus.RUNNING
        self.current_step_id = step_id
        return True

    def record_result(
        self, output_key: str, result: str, completed: int, total: int
    ) -> bool:
        if self.is_terminal:
            return False
        self.results[output_key] = result
        self.progress = max(self.progress, completed / total * 100 if total else 100.0)
        return True

    def record_step_error(self, step_id: str, message: str) -> bool:
        if self.is_terminal:
            return False
        self.errors[step_id] = message
        return True

    def complete(self) -> bool:
        if self.is_terminal:
            return False
        self.status = ExecutionStatus.COMPLETED
        self.progress = 100.0
        self.current_step_id = None
        self.end_time = datetime.now(timezone.utc)
        return True

    def fail(self, error: BaseException) -> bool:
        if self.is_terminal:
            return False
        self.status = ExecutionStatus.FAILED
        self.error = str(error)
        self.error_type = type(error).__name__
        self.current_step_id = None
        self.end_time = datetime.now(timezone.utc)
        return True
