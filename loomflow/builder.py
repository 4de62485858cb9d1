"""Fluent construction of workflow graphs."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .contracts import StepDefinition, WorkflowGraph
from .errors import GraphValidationError


class WorkflowBuilder:
    """Collects step definitions and validates them into a ``WorkflowGraph``."""

    def __init__(self, name: str = "workflow", description: str = "") -> None:
        self._name = name
        self._description = description
        self._steps: List[StepDefinition] = []

    def add_step(
        self,
        step_id: str,
        prompt: str,
        depends_on: Iterable[str] = (),
        output_key: Optional[str] = None,
        name: Optional[str] = None,
        description: str = "",
        config: Optional[Dict[str, Any]] = None,
    ) -> StepDefinition:
        """Append a step.

        Args:
            step_id: Unique identifier of the step.
            prompt: Prompt template; ``{{key}}`` refers to earlier outputs or
                workflow inputs.
            depends_on: Ids of steps that must complete first.
            output_key: Key the result is stored under. Defaults to ``step_id``.
            name: Human readable name. Defaults to ``step_id``.
            description: Free-form description.
            config: Step configuration, e.g. ``{"kind": "json", "model": ...}``.
        """
        data: Dict[str, Any] = {
            "id": step_id,
            "prompt": prompt,
            "depends_on": tuple(depends_on),
            "output_key": output_key,
            "name": name,
            "description": description,
        }
        if config is not None:
            data["config"] = config
        try:
            step = StepDefinition.model_validate(data)
        except PydanticValidationError as exc:
            raise GraphValidationError(f"Invalid step '{step_id}': {exc}") from exc

        self._steps.append(step)
        return step

    def build(self) -> WorkflowGraph:
        """Validate the collected steps into an immutable graph."""
        return WorkflowGraph.from_dict(
            {
                "name": self._name,
                "description": self._description,
                "steps": list(self._steps),
            }
        )
