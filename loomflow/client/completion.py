"""HTTP client for an OpenAI-compatible chat completion service."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..config import ClientConfig
from ..constants import RETRYABLE_STATUS_CODES
from ..errors import (
    ApiError,
    ConfigurationError,
    NetworkError,
    RequestTimeoutError,
    SchemaError,
    ValidationError,
)
from ..usage import UsageAccountant, UsageStats
from ..utils import retry as retry_utils
from .models import CompletionChunk, CompletionRequest, CompletionResponse
from .streaming import SSEDecoder

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"
MODELS_PATH = "/models"
REDACTED = "***"


class CompletionClient:
    """Issues completion calls and records their usage.

    Request/response calls are retried on rate limiting and transient server
    errors with exponential backoff. Streaming calls are not retried.

    Args:
        config: Connection settings. ``config.api_key`` is required.
        accountant: Usage accountant to update; a private one is created when
            omitted.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in
            tests.
    """

    def __init__(
        self,
        config: ClientConfig,
        accountant: Optional[UsageAccountant] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        api_key = config.api_key.get_secret_value() if config.api_key else ""
        if not api_key.strip():
            raise ConfigurationError("API key is required")

        self._config = config
        self._api_key = api_key
        self.accountant = accountant or UsageAccountant()
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            headers=self._headers(),
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def default_model(self) -> str:
        return self._config.default_model

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self._config.site_url,
            "X-Title": self._config.site_name,
        }

    def _redact(self, text: str) -> str:
        return text.replace(self._api_key, REDACTED)

    # ------------------------------------------------------------------
    # Transport helpers
    async def _send(
        self, method: str, path: str, body: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        try:
            return await self._http.request(method, path, json=body)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                f"Request to {path} timed out after {self._config.timeout_ms} ms"
            ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(self._redact(f"Request to {path} failed: {exc}")) from exc

    def _api_error(self, response: httpx.Response) -> ApiError:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        error = payload.get("error") if isinstance(payload, dict) else None
        message: Optional[str] = None
        code: Optional[str] = None
        if isinstance(error, dict):
            message = error.get("message")
            code = str(error["code"]) if error.get("code") is not None else None
        elif isinstance(error, str):
            message = error
        if not message:
            message = f"HTTP {response.status_code}: {response.reason_phrase}"
        return ApiError(self._redact(message), status=response.status_code, code=code)

    async def _request(
        self, method: str, path: str, body: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Send a request, retrying transient failures, and decode the JSON body."""
        max_retries = self._config.max_retries
        attempt = 0
        while True:
            response = await self._send(method, path, body)
            if response.is_success:
                try:
                    return response.json()
                except ValueError as exc:
                    raise SchemaError(f"Response from {path} is not valid JSON") from exc

            error = self._api_error(response)
            if response.status_code not in RETRYABLE_STATUS_CODES or attempt >= max_retries:
                logger.error(f"{method} {path} failed: {error}")
                raise error

            logger.warning(
                f"{method} {path} returned {response.status_code}, "
                f"retrying ({attempt + 1}/{max_retries})"
            )
            await retry_utils.schedule_retry(attempt)
            attempt += 1

    # ------------------------------------------------------------------
    # Public API
    async def chat(self, request: CompletionRequest) -> CompletionResponse:
        """Run a request/response completion."""
        if not request.messages:
            raise ValidationError("Messages array cannot be empty")

        model = request.model or self._config.default_model
        data = await self._request(
            "POST", CHAT_COMPLETIONS_PATH, request.to_body(model, stream=False)
        )
        try:
            response = CompletionResponse.model_validate(data)
        except PydanticValidationError as exc:
            raise SchemaError(
                f"Unexpected completion response ({exc.error_count()} validation errors)"
            ) from exc

        self.accountant.update_stats(model, response.usage)
        return response

    async def stream_chat(self, request: CompletionRequest) -> AsyncIterator[str]:
        """Yield text increments of a streamed completion as they arrive.

        The returned iterator can be consumed once. Malformed frames are
        logged and skipped.
        """
        if not request.messages:
            raise ValidationError("Messages array cannot be empty")

        model = request.model or self._config.default_model
        body = request.to_body(model, stream=True)
        try:
            async with self._http.stream(
                "POST", CHAT_COMPLETIONS_PATH, json=body
            ) as response:
                if not response.is_success:
                    await response.aread()
                    error = self._api_error(response)
                    logger.error(f"Streaming completion failed: {error}")
                    raise error

                self.accountant.record_request(model)
                decoder = SSEDecoder()
                async for text in response.aiter_text():
                    for payload in decoder.feed(text):
                        delta = self._decode_chunk(payload)
                        if delta:
                            yield delta
                    if decoder.done:
                        break
                for payload in decoder.flush():
                    delta = self._decode_chunk(payload)
                    if delta:
                        yield delta
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                f"Streaming request timed out after {self._config.timeout_ms} ms"
            ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(self._redact(f"Streaming request failed: {exc}")) from exc

    def _decode_chunk(self, payload: str) -> Optional[str]:
        try:
            chunk = CompletionChunk.model_validate_json(payload)
        except PydanticValidationError as exc:
            logger.warning(
                f"Skipping malformed stream frame ({exc.error_count()} validation errors)"
            )
            return None
        logger.debug(f"Decoded stream frame {chunk.id}")
        return chunk.text

    async def get_models(self) -> List[Dict[str, Any]]:
        """List the models offered by the service."""
        data = await self._request("GET", MODELS_PATH)
        if isinstance(data, dict) and "data" in data:
            data = data["data"]
        if not isinstance(data, list):
            raise SchemaError("Expected a list of model descriptors")
        return data

    def get_stats(self) -> UsageStats:
        return self.accountant.get_stats()

    def reset_stats(self) -> None:
        self.accountant.reset_stats()

    # ------------------------------------------------------------------
    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "CompletionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
