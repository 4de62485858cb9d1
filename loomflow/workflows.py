"""Pre-built workflow graphs."""

from __future__ import annotations

from typing import Callable, Dict, List

from .builder import WorkflowBuilder
from .contracts import WorkflowGraph


def code_review() -> WorkflowGraph:
    """Multi-perspective review of ``{{code}}``."""
    builder = WorkflowBuilder(
        "code_review", "Comprehensive code review with multiple reviewers"
    )
    builder.add_step(
        "analyze",
        "Analyze this code for structure, patterns, and potential issues:\n\n{{code}}",
        output_key="analysis",
        name="Code Analysis",
        config={"model": "openai/gpt-4-turbo", "temperature": 0.3},
    )
    builder.add_step(
        "security",
        "Review this code for security vulnerabilities:\n\n{{code}}\n\n"
        "Analysis: {{analysis}}",
        depends_on=["analyze"],
        name="Security Review",
        config={"model": "anthropic/claude-3-haiku", "temperature": 0.2},
    )
    builder.add_step(
        "performance",
        "Analyze performance implications of this code:\n\n{{code}}\n\n"
        "Analysis: {{analysis}}",
        depends_on=["analyze"],
        name="Performance Analysis",
        config={"model": "openai/gpt-3.5-turbo", "temperature": 0.4},
    )
    builder.add_step(
        "suggestions",
        "Based on the analysis, suggest improvements:\n\nCode: {{code}}\n"
        "Analysis: {{analysis}}\nSecurity: {{security}}\nPerformance: {{performance}}",
        depends_on=["analyze", "security", "performance"],
        name="Improvement Suggestions",
        config={"model": "openai/gpt-4-turbo", "temperature": 0.6},
    )
    return builder.build()


def content_creation() -> WorkflowGraph:
    """Research, outline, write and edit a piece about ``{{topic}}``."""
    builder = WorkflowBuilder(
        "content_creation", "Multi-step content creation and optimization"
    )
    builder.add_step(
        "research",
        "Research this topic comprehensively: {{topic}}",
        name="Topic Research",
        config={"temperature": 0.5},
    )
    builder.add_step(
        "outline",
        "Create a detailed outline for content about: {{topic}}\n\n"
        "Research: {{research}}",
        depends_on=["research"],
        name="Content Outline",
        config={"temperature": 0.4},
    )
    builder.add_step(
        "write",
        "Write comprehensive content about: {{topic}}\n\n"
        "Research: {{research}}\nOutline: {{outline}}",
        depends_on=["research", "outline"],
        output_key="content",
        name="Content Writing",
        config={"kind": "stream", "temperature": 0.7},
    )
    builder.add_step(
        "edit",
        "Edit and improve this content:\n\n{{content}}\n\n"
        "Make it more engaging and professional.",
        depends_on=["write"],
        output_key="edited",
        name="Content Editing",
        config={"model": "anthropic/claude-3-haiku", "temperature": 0.3},
    )
    return builder.build()


def software_delivery() -> WorkflowGraph:
    """Requirements, approach, architecture and code for ``{{request}}``.

    Each phase hands its JSON document to the next one.
    """
    builder = WorkflowBuilder(
        "software_delivery", "Analyst, method designer, architect and developer chain"
    )
    builder.add_step(
        "requirements",
        "Extract the functional and non-functional requirements of this "
        "request as JSON:\n\n{{request}}",
        name="Business Analysis",
        config={
            "kind": "json",
            "temperature": 0.3,
            "system_prompt": "You are a business analyst. Reply with a JSON object "
            "with keys 'functional', 'non_functional' and 'open_questions'.",
        },
    )
    builder.add_step(
        "approach",
        "Request: {{request}}\n\nRequirements:\n{{requirements}}\n\n"
        "Propose a technical approach as JSON.",
        depends_on=["requirements"],
        name="Method Design",
        config={
            "kind": "json",
            "temperature": 0.4,
            "system_prompt": "You are a method designer. Reply with a JSON object "
            "with keys 'methodology', 'technologies' and 'risks'.",
        },
    )
    builder.add_step(
        "architecture",
        "Request: {{request}}\n\nApproach:\n{{approach}}\n\n"
        "Design the system architecture as JSON.",
        depends_on=["approach"],
        name="Architecture",
        config={
            "kind": "json",
            "temperature": 0.4,
            "system_prompt": "You are a software architect. Reply with a JSON object "
            "with keys 'components', 'data_flow' and 'interfaces'.",
        },
    )
    builder.add_step(
        "code",
        "Request: {{request}}\n\nArchitecture:\n{{architecture}}\n\n"
        "Implement the core of this design.",
        depends_on=["architecture"],
        name="Implementation",
        config={
            "temperature": 0.2,
            "max_tokens": 4000,
            "system_prompt": "You are a senior developer. Reply with code only.",
        },
    )
    return builder.build()


TEMPLATES: Dict[str, Callable[[], WorkflowGraph]] = {
    "code_review": code_review,
    "content_creation": content_creation,
    "software_delivery": software_delivery,
}


def list_templates() -> List[str]:
    return sorted(TEMPLATES)


def get_template(name: str) -> WorkflowGraph:
    """Return a fresh graph for template ``name``; ``KeyError`` if unknown."""
    try:
        factory = TEMPLATES[name]
    except KeyError:
        raise KeyError(f"Unknown workflow template: {name}") from None
    return factory()
