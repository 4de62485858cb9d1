"""Shared fixtures: a scripted completion backend built on httpx.MockTransport."""

import json
from typing import Callable, List

import httpx
import pytest

from loomflow.client import CompletionClient
from loomflow.config import ClientConfig

API_KEY = "sk-or-test-key"
TEST_MODEL = "anthropic/claude-3-sonnet"


def make_completion_payload(
    content: str,
    model: str = TEST_MODEL,
    prompt_tokens: int = 10,
    completion_tokens: int = 5,
) -> dict:
    return {
        "id": "gen-123",
        "model": model,
        "created": 1700000000,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


def make_sse_body(parts: List[str], model: str = TEST_MODEL) -> str:
    frames = []
    for part in parts:
        chunk = {
            "id": "gen-123",
            "model": model,
            "created": 1700000000,
            "choices": [{"index": 0, "delta": {"content": part}, "finish_reason": None}],
        }
        frames.append(f"data: {json.dumps(chunk)}\n\n")
    frames.append("data: [DONE]\n\n")
    return "".join(frames)


class ScriptedBackend:
    """Answers requests with ``handler`` and records every request it sees."""

    def __init__(self, handler: Callable) -> None:
        self.requests: List[httpx.Request] = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request):
        self.requests.append(request)
        return self._handler(request)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def bodies(self) -> List[dict]:
        return [json.loads(r.content) for r in self.requests if r.content]


@pytest.fixture
def completion_payload():
    return make_completion_payload


@pytest.fixture
def sse_body():
    return make_sse_body


@pytest.fixture
def backend_factory():
    return ScriptedBackend


@pytest.fixture
def client_factory():
    def _make(backend: ScriptedBackend, **options) -> CompletionClient:
        config = ClientConfig(api_key=API_KEY, **options)
        return CompletionClient(config, transport=backend.transport)

    return _make


@pytest.fixture
def backoff_calls(monkeypatch):
    """Skip retry sleeps and record the attempts they were scheduled for."""
    attempts: List[int] = []

    async def fake_schedule_retry(attempt: int) -> None:
        attempts.append(attempt)

    monkeypatch.setattr("loomflow.utils.retry.schedule_retry", fake_schedule_retry)
    return attempts


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests independent of the developer's environment."""
    for name in (
        "LOOMFLOW_CONFIG",
        "LOOMFLOW_API_KEY",
        "OPENROUTER_API_KEY",
        "LOOMFLOW_BASE_URL",
        "LOOMFLOW_DEFAULT_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
