"""Command line interface for running loomflow workflows."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import typer
import yaml

from loomflow import pricing, workflows
from loomflow.client import CompletionClient, CompletionRequest, Message
from loomflow.config import LoomflowConfig, load_config
from loomflow.contracts import (
    ExecutionState,
    ExecutionStatus,
    WorkflowCallbacks,
    WorkflowGraph,
)
from loomflow.errors import GraphValidationError, LoomflowError
from loomflow.scheduler import WorkflowScheduler
from loomflow.usage import UsageStats

app = typer.Typer(help="CLI for loomflow workflows")

# Command groups
templates_app = typer.Typer(help="Commands for built-in workflow templates")
models_app = typer.Typer(help="Commands for listing models")

app.add_typer(templates_app, name="templates")
app.add_typer(models_app, name="models")


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to a YAML config file"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)"
    ),
) -> None:
    """loomflow CLI entry point."""
    config = load_config(config_path)
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


def _build_client(config: LoomflowConfig) -> CompletionClient:
    return CompletionClient(config.client)


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _parse_inputs(pairs: Optional[List[str]]) -> Dict[str, str]:
    inputs: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--input")
        # key=@path reads the value from a file
        if value.startswith("@"):
            value = Path(value[1:]).read_text()
        inputs[key] = value
    return inputs


def _load_graph(workflow: Optional[Path], template: Optional[str]) -> WorkflowGraph:
    if (workflow is None) == (template is None):
        raise typer.BadParameter("Pass either a workflow file or --template")
    if template is not None:
        try:
            return workflows.get_template(template)
        except KeyError as exc:
            raise typer.BadParameter(str(exc.args[0]), param_hint="--template")
    return WorkflowGraph.from_yaml(workflow)


async def _run_graph(
    config: LoomflowConfig, graph: WorkflowGraph, inputs: Dict[str, str]
) -> Tuple[ExecutionState, UsageStats]:
    callbacks = WorkflowCallbacks(
        on_step_complete=lambda step_id, _result: typer.echo(
            f"completed: {step_id}", err=True
        ),
        on_error=lambda step_id, message: typer.echo(
            f"failed: {step_id}: {message}", err=True
        ),
    )
    async with _build_client(config) as client:
        scheduler = WorkflowScheduler(
            client, max_concurrency=config.scheduler.max_concurrency
        )
        state = await scheduler.run(graph, callbacks=callbacks, inputs=inputs)
        return state, client.get_stats()


@app.command("run")
def run_workflow(
    ctx: typer.Context,
    workflow: Optional[Path] = typer.Argument(None, help="YAML workflow definition"),
    template: Optional[str] = typer.Option(
        None, "--template", "-t", help="Run a built-in template instead of a file"
    ),
    inputs: Optional[List[str]] = typer.Option(
        None, "--input", "-i", help="Template input as key=value (repeatable)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the execution state as JSON"),
) -> None:
    """
    Execute a workflow and print its results.

    Example:
        loomflow run review.yaml --input code=@main.py
        loomflow run --template content_creation -i topic="sourdough bread"
    """
    config: LoomflowConfig = ctx.obj
    try:
        variables = _parse_inputs(inputs)
        graph = _load_graph(workflow, template)
        state, stats = asyncio.run(_run_graph(config, graph, variables))
    except (GraphValidationError, OSError) as exc:
        _fail(f"Invalid workflow: {exc}")
    except LoomflowError as exc:
        _fail(str(exc))

    if as_json:
        typer.echo(state.model_dump_json(indent=2))
    else:
        typer.echo(f"Execution {state.id}: {state.status.value}")
        for key, value in state.results.items():
            typer.echo(f"\n== {key} ==\n{value}")
        typer.echo(
            f"\nRequests: {stats.total_requests}  Tokens: {stats.total_tokens}  "
            f"Cost: ${stats.total_cost:.4f}"
        )

    if state.status != ExecutionStatus.COMPLETED:
        _fail(f"Workflow failed ({state.error_type}): {state.error}")


@app.command("validate")
def validate_workflow(workflow: Path) -> None:
    """Check a workflow file without running it."""
    try:
        graph = WorkflowGraph.from_yaml(workflow)
    except (GraphValidationError, OSError) as exc:
        _fail(f"Invalid workflow: {exc}")
    typer.echo(f"Workflow '{graph.name}' is valid ({len(graph.steps)} steps)")
    for step in graph.steps:
        deps = ", ".join(step.depends_on) or "-"
        placeholders = ", ".join(step.template.placeholders) or "-"
        typer.echo(
            f"  {step.id} [{step.config.kind}] -> {step.output_key}  "
            f"deps: {deps}  uses: {placeholders}"
        )


@templates_app.command("list")
def templates_list() -> None:
    """List built-in workflow templates."""
    for name in workflows.list_templates():
        graph = workflows.get_template(name)
        typer.echo(f"{name}\t{graph.description}")


@templates_app.command("show")
def templates_show(name: str) -> None:
    """Print a built-in template as YAML, ready to be edited and run."""
    try:
        graph = workflows.get_template(name)
    except KeyError as exc:
        _fail(str(exc.args[0]))
    typer.echo(yaml.safe_dump(graph.model_dump(mode="json"), sort_keys=False))


@models_app.command("list")
def models_list(
    provider: Optional[str] = typer.Option(None, help="Only show this provider"),
) -> None:
    """Show the pricing table (USD per 1M tokens)."""
    entries = pricing.get_all_models()
    if provider:
        entries = [e for e in entries if (e.provider or "").lower() == provider.lower()]
    if not entries:
        typer.echo("No models found")
        return
    for entry in entries:
        typer.echo(
            f"{entry.id}\t{entry.context_length}\t"
            f"{entry.prompt_price:g}\t{entry.completion_price:g}"
        )


@models_app.command("remote")
def models_remote(ctx: typer.Context) -> None:
    """List the models offered by the configured completion service."""

    async def _fetch(config: LoomflowConfig) -> list:
        async with _build_client(config) as client:
            return await client.get_models()

    try:
        models = asyncio.run(_fetch(ctx.obj))
    except LoomflowError as exc:
        _fail(str(exc))
    for model in models:
        typer.echo(model.get("id", model) if isinstance(model, dict) else model)


@app.command("chat")
def chat(
    ctx: typer.Context,
    prompt: str,
    model: Optional[str] = typer.Option(None, help="Model id (defaults to config)"),
    system: Optional[str] = typer.Option(None, help="Optional system prompt"),
    stream: bool = typer.Option(False, help="Print the answer as it is generated"),
) -> None:
    """Send a single prompt to the completion service."""
    messages = []
    if system:
        messages.append(Message(role="system", content=system))
    messages.append(Message(role="user", content=prompt))
    request = CompletionRequest(model=model, messages=messages)

    async def _chat(config: LoomflowConfig) -> None:
        async with _build_client(config) as client:
            if stream:
                async for delta in client.stream_chat(request):
                    typer.echo(delta, nl=False)
                typer.echo()
            else:
                response = await client.chat(request)
                typer.echo(response.content)

    try:
        asyncio.run(_chat(ctx.obj))
    except LoomflowError as exc:
        _fail(str(exc))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
