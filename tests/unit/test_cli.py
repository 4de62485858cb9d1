import json

import httpx
import pytest
from typer.testing import CliRunner

import loomflow.cli as cli
from loomflow.cli import app
from loomflow.client import CompletionClient
from loomflow.config import ClientConfig

runner = CliRunner()

WORKFLOW_YAML = """
name: greet
steps:
  - id: hello
    prompt: "Say hello to {{who}}"
  - id: shout
    prompt: "Shout: {{hello}}"
    depends_on: [hello]
"""


def _reply(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    prompt = body["messages"][-1]["content"]
    return httpx.Response(
        200,
        json={
            "id": "gen-1",
            "model": body["model"],
            "created": 1,
            "choices": [
                {"index": 0, "message": {"role": "assistant", "content": f"<{prompt}>"}}
            ],
            "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
        },
    )


@pytest.fixture
def scripted_client(monkeypatch):
    def _build(config):
        return CompletionClient(
            ClientConfig(api_key="sk-or-cli"), transport=httpx.MockTransport(_reply)
        )

    monkeypatch.setattr(cli, "_build_client", _build)


def test_templates_list_and_show():
    result = runner.invoke(app, ["templates", "list"])
    assert result.exit_code == 0, result.output
    for name in ("code_review", "content_creation", "software_delivery"):
        assert name in result.output

    result = runner.invoke(app, ["templates", "show", "code_review"])
    assert result.exit_code == 0, result.output
    assert "name: code_review" in result.output
    assert "security" in result.output

    result = runner.invoke(app, ["templates", "show", "nope"])
    assert result.exit_code == 1
    assert "Unknown workflow template: nope" in result.output


def test_models_list_with_provider_filter():
    result = runner.invoke(app, ["models", "list"])
    assert result.exit_code == 0, result.output
    assert "openai/gpt-4-turbo" in result.output

    result = runner.invoke(app, ["models", "list", "--provider", "anthropic"])
    assert result.exit_code == 0, result.output
    assert "anthropic/claude-3-opus" in result.output
    assert "openai/gpt-4" not in result.output

    result = runner.invoke(app, ["models", "list", "--provider", "OPENAI"])
    assert result.exit_code == 0, result.output
    assert "openai/gpt-3.5-turbo" in result.output
    assert "anthropic/" not in result.output

    result = runner.invoke(app, ["models", "list", "--provider", "nobody"])
    assert "No models found" in result.output


def test_validate_reports_steps_and_errors(tmp_path):
    good = tmp_path / "good.yaml"
    good.write_text(WORKFLOW_YAML)
    result = runner.invoke(app, ["validate", str(good)])
    assert result.exit_code == 0, result.output
    assert "Workflow 'greet' is valid (2 steps)" in result.output
    assert "shout [chat] -> shout" in result.output

    bad = tmp_path / "bad.yaml"
    bad.write_text("steps:\n  - id: a\n    prompt: p\n    depends_on: [ghost]\n")
    result = runner.invoke(app, ["validate", str(bad)])
    assert result.exit_code == 1
    assert "Invalid workflow" in result.output
    assert "ghost" in result.output


def test_run_workflow_file(tmp_path, scripted_client):
    path = tmp_path / "greet.yaml"
    path.write_text(WORKFLOW_YAML)

    result = runner.invoke(app, ["run", str(path), "--input", "who=world"])
    assert result.exit_code == 0, result.output
    assert ": completed" in result.output
    assert "== hello ==\n<Say hello to world>" in result.output
    assert "<Shout: <Say hello to world>>" in result.output
    assert "Requests: 2" in result.output


def test_run_reads_input_from_file(tmp_path, scripted_client):
    path = tmp_path / "greet.yaml"
    path.write_text(WORKFLOW_YAML)
    who = tmp_path / "who.txt"
    who.write_text("file contents")

    result = runner.invoke(app, ["run", str(path), "-i", f"who=@{who}", "--json"])
    assert result.exit_code == 0, result.output
    assert "Say hello to file contents" in result.output
    assert '"status": "completed"' in result.output


def test_run_reports_deadlock(tmp_path, scripted_client):
    path = tmp_path / "cycle.yaml"
    path.write_text(
        "steps:\n"
        "  - {id: a, prompt: x, depends_on: [b]}\n"
        "  - {id: b, prompt: y, depends_on: [a]}\n"
    )
    result = runner.invoke(app, ["run", str(path)])
    assert result.exit_code == 1
    assert "Workflow failed (DeadlockError)" in result.output


def test_chat_without_api_key_fails():
    result = runner.invoke(app, ["chat", "hello"])
    assert result.exit_code == 1
    assert "API key is required" in result.output


def test_chat_prints_reply(scripted_client):
    result = runner.invoke(app, ["chat", "hello", "--system", "be brief"])
    assert result.exit_code == 0, result.output
    assert "<hello>" in result.output
