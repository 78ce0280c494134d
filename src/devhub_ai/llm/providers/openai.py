"""OpenAI-compatible Backends.

OpenAIBackend talks to the Chat Completions API. GroqBackend reuses it
against Groq's OpenAI-compatible endpoint; Groq has no json_schema
response format, so structured output falls back to JSON mode plus
schema instructions in the prompt.

Usage:
    >>> backend = OpenAIBackend(descriptor, KeyRing(["sk-..."]))
    >>> result = await backend.generate_text("gpt-4o-mini", "Hello!")
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import aclosing
from typing import Any, AsyncIterator, Optional, Sequence, Union

from devhub_ai.types import (
    ChatMessage,
    GenerationResult,
    ProviderRequestFailedError,
    TokenUsage,
)

from .http import HTTPBackend
from .parsing import schema_instructions

logger = logging.getLogger(__name__)


class OpenAIBackend(HTTPBackend):
    """Chat Completions backend."""

    BACKEND = "openai"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    COMPLETIONS_PATH = "/chat/completions"

    def _body(
        self,
        model: str,
        prompt: str,
        history: Sequence[ChatMessage],
        **extra: Any,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": model,
            "messages": self._build_messages(prompt, history),
            "max_tokens": self.config.max_tokens,
        }
        if self.config.temperature is not None:
            body["temperature"] = self.config.temperature
        body.update(extra)
        return body

    def _message_content(self, data: dict[str, Any]) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderRequestFailedError(
                self.provider_id, "response has no choices"
            ) from e
        return content or ""

    @staticmethod
    def _usage(data: dict[str, Any]) -> TokenUsage | None:
        usage = data.get("usage")
        if not usage:
            return None
        return TokenUsage(
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
        )

    async def generate_text(
        self,
        model: str,
        prompt: str,
        *,
        history: Sequence[ChatMessage] = (),
    ) -> GenerationResult:
        start_time = time.perf_counter()
        data = await self._post_json(self.COMPLETIONS_PATH, self._body(model, prompt, history))
        return GenerationResult(
            text=self._message_content(data),
            provider=self.provider_id,
            model=data.get("model", model),
            duration_ms=int((time.perf_counter() - start_time) * 1000),
            token_usage=self._usage(data),
            raw=data,
        )

    def _is_stream_end(self, event: Optional[str], data: str) -> bool:
        return data == "[DONE]"

    async def stream_text(
        self,
        model: str,
        prompt: str,
        *,
        history: Sequence[ChatMessage] = (),
    ) -> AsyncIterator[str]:
        body = self._body(model, prompt, history, stream=True)
        async with aclosing(self._stream_events(self.COMPLETIONS_PATH, body)) as events:
            async for _event, data in events:
                try:
                    payload = json.loads(data)
                except json.JSONDecodeError:
                    logger.debug(f"{self.provider_id}: skipping non-JSON stream line")
                    continue
                for choice in payload.get("choices") or []:
                    delta = (choice.get("delta") or {}).get("content")
                    if delta:
                        yield delta

    def _response_format(self, json_schema: dict, schema_name: str) -> dict[str, Any]:
        return {
            "type": "json_schema",
            "json_schema": {"name": schema_name, "schema": json_schema},
        }

    async def generate_object(
        self,
        model: str,
        prompt: str,
        json_schema: dict,
        *,
        schema_name: str = "response",
        history: Sequence[ChatMessage] = (),
    ) -> Union[str, dict[str, Any]]:
        body = self._body(
            model,
            prompt,
            history,
            response_format=self._response_format(json_schema, schema_name),
        )
        data = await self._post_json(self.COMPLETIONS_PATH, body)
        return self._message_content(data)


class GroqBackend(OpenAIBackend):
    """Groq backend (OpenAI-compatible API, JSON mode only)."""

    BACKEND = "groq"
    DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"

    def _response_format(self, json_schema: dict, schema_name: str) -> dict[str, Any]:
        return {"type": "json_object"}

    async def generate_object(
        self,
        model: str,
        prompt: str,
        json_schema: dict,
        *,
        schema_name: str = "response",
        history: Sequence[ChatMessage] = (),
    ) -> Union[str, dict[str, Any]]:
        return await super().generate_object(
            model,
            prompt + schema_instructions(json_schema),
            json_schema,
            schema_name=schema_name,
            history=history,
        )


__all__ = ["OpenAIBackend", "GroqBackend"]
