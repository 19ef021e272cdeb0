"""Chat-completion API client with input ceiling and retry/backoff."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import httpx

from resume_optimizer.clients.retry import RetryPolicy, call_with_retry
from resume_optimizer.config import LLMConfig, PipelineConfig
from resume_optimizer.errors import (
    BadRequest,
    EmptyResponse,
    InputTooLarge,
    InsufficientCredits,
    NetworkFailure,
    RateLimited,
    ServerError,
    TransportError,
    Unauthorized,
)

logger = logging.getLogger(__name__)


@dataclass
class ModelReply:
    """Reply from the chat-completion endpoint including usage metadata."""

    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


class ChatCompletionClient:
    """Async client for an OpenAI-compatible chat-completion endpoint."""

    def __init__(
        self,
        api_key: str,
        llm_config: LLMConfig | None = None,
        pipeline_config: PipelineConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            raise ValueError("api_key is required")
        self.api_key = api_key
        self.config = llm_config or LLMConfig()
        self.max_input_chars = (pipeline_config or PipelineConfig()).max_input_chars
        self._http = http_client

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.config.referer,
            "X-Title": self.config.app_title,
        }

    def check_input_size(self, length: int) -> None:
        """Raise InputTooLarge if ``length`` exceeds the configured ceiling."""
        if length > self.max_input_chars:
            logger.error("Input too long: %d > %d characters", length, self.max_input_chars)
            raise InputTooLarge(length, self.max_input_chars)

    async def send(
        self,
        prompt: str,
        policy: RetryPolicy | None = None,
        *,
        model: str | None = None,
        input_length: int | None = None,
    ) -> ModelReply:
        """Send a prompt and return the model's reply text.

        Args:
            prompt: Full instruction text for the model.
            policy: Retry settings for this call (a fresh default if omitted).
            model: Model identifier overriding the configured one.
            input_length: Size of the user-supplied input to check against the
                ceiling. Defaults to the prompt length.

        Raises:
            InputTooLarge: before any network call when the input is too long.
            BadRequest, Unauthorized, InsufficientCredits: on HTTP 400/401/402.
            EmptyResponse: when the reply carries no message content.
            RetriesExhausted: when every attempt failed with a transient error.
        """
        self.check_input_size(len(prompt) if input_length is None else input_length)
        policy = policy or RetryPolicy()
        model = model or self.config.model
        logger.debug("LLM call: model=%s, prompt=%d chars", model, len(prompt))

        try:
            return await call_with_retry(lambda: self._post(prompt, model), policy)
        except TransportError as e:
            logger.error("LLM call failed: %r", e)
            raise

    async def _post(self, prompt: str, model: str) -> ModelReply:
        body = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
        }
        try:
            if self._http is not None:
                response = await self._http.post(
                    self.config.api_url, json=body, headers=self._headers()
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                    response = await client.post(
                        self.config.api_url, json=body, headers=self._headers()
                    )
        except httpx.TransportError as e:
            raise NetworkFailure(f"Network error connecting to chat-completion API: {e}") from e

        if response.is_error:
            raise _error_for_response(response)

        return _parse_reply(response, model)


def _error_message(response: httpx.Response) -> str:
    """Build a readable message from a JSON or plain-text error body."""
    text = response.text
    try:
        data = json.loads(text)
    except ValueError:
        return f"API error: {text} (Status: {response.status_code})"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"API error: {error['message']} (Code: {error.get('code') or response.status_code})"
    return f"API error: {text} (Status: {response.status_code})"


def _error_for_response(response: httpx.Response) -> TransportError:
    status = response.status_code
    message = _error_message(response)
    if status == 400:
        return BadRequest(
            f"Bad request; the prompt may be invalid or exceed the context length. {message}",
            status_code=status,
        )
    if status == 401:
        return Unauthorized(f"Invalid API key. {message}", status_code=status)
    if status == 402:
        return InsufficientCredits(f"Insufficient credits. {message}", status_code=status)
    if status == 429:
        return RateLimited(f"Rate limited. {message}", status_code=status)
    if status >= 500:
        return ServerError(f"Server error. {message}", status_code=status)
    return TransportError(message, status_code=status)


def _parse_reply(response: httpx.Response, model: str) -> ModelReply:
    try:
        data = response.json()
    except ValueError as e:
        raise EmptyResponse(
            f"Response body is not JSON: {response.text[:200]!r}", status_code=response.status_code
        ) from e

    content = None
    choices = data.get("choices") if isinstance(data, dict) else None
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        if isinstance(message, dict):
            content = message.get("content")
    if not isinstance(content, str) or not content.strip():
        raise EmptyResponse("No response content from chat-completion API", status_code=response.status_code)

    usage = data.get("usage")
    if not isinstance(usage, dict):
        usage = {}
    input_tokens = _token_count(usage.get("prompt_tokens"))
    output_tokens = _token_count(usage.get("completion_tokens"))
    logger.debug("LLM response: %d input, %d output tokens", input_tokens, output_tokens)
    return ModelReply(
        text=content,
        model=data.get("model") or model,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )


def _token_count(value) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError, OverflowError):
        return 0
