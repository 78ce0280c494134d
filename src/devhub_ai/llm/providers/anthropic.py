"""Anthropic Backend.

Messages API over httpx. System-role history entries are lifted into the
top-level system field; structured output uses a forced tool call whose
input_schema is the target JSON Schema.
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
    MessageRole,
    ProviderRequestFailedError,
    TokenUsage,
)

from .http import HTTPBackend

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicBackend(HTTPBackend):
    """Anthropic Messages API backend."""

    BACKEND = "anthropic"
    DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
    MESSAGES_PATH = "/messages"

    def _headers(self, key: str) -> dict[str, str]:
        return {"x-api-key": key, "anthropic-version": ANTHROPIC_VERSION}

    def _body(
        self,
        model: str,
        prompt: str,
        history: Sequence[ChatMessage],
        **extra: Any,
    ) -> dict[str, Any]:
        system_parts = [m.content for m in history if m.role == MessageRole.SYSTEM]
        turns = [m for m in history if m.role != MessageRole.SYSTEM]

        body: dict[str, Any] = {
            "model": model,
            "max_tokens": self.config.max_tokens,
            "messages": self._build_messages(prompt, turns),
        }
        if system_parts:
            body["system"] = "\n\n".join(system_parts)
        if self.config.temperature is not None:
            body["temperature"] = self.config.temperature
        body.update(extra)
        return body

    @staticmethod
    def _usage(data: dict[str, Any]) -> TokenUsage | None:
        usage = data.get("usage")
        if not usage:
            return None
        input_tokens = usage.get("input_tokens", 0)
        output_tokens = usage.get("output_tokens", 0)
        return TokenUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
        )

    async def generate_text(
        self,
        model: str,
        prompt: str,
        *,
        history: Sequence[ChatMessage] = (),
    ) -> GenerationResult:
        start_time = time.perf_counter()
        data = await self._post_json(self.MESSAGES_PATH, self._body(model, prompt, history))
        text = "".join(
            block.get("text", "")
            for block in data.get("content") or []
            if block.get("type") == "text"
        )
        return GenerationResult(
            text=text,
            provider=self.provider_id,
            model=data.get("model", model),
            duration_ms=int((time.perf_counter() - start_time) * 1000),
            token_usage=self._usage(data),
            raw=data,
        )

    def _is_stream_end(self, event: Optional[str], data: str) -> bool:
        if event is not None:
            return event == "message_stop"
        try:
            return json.loads(data).get("type") == "message_stop"
        except (json.JSONDecodeError, AttributeError):
            return False

    async def stream_text(
        self,
        model: str,
        prompt: str,
        *,
        history: Sequence[ChatMessage] = (),
    ) -> AsyncIterator[str]:
        body = self._body(model, prompt, history, stream=True)
        async with aclosing(self._stream_events(self.MESSAGES_PATH, body)) as events:
            async for event, data in events:
                try:
                    payload = json.loads(data)
                except json.JSONDecodeError:
                    logger.debug(f"{self.provider_id}: skipping non-JSON stream line")
                    continue

                kind = event or payload.get("type")
                if kind == "content_block_delta":
                    delta = payload.get("delta") or {}
                    if delta.get("type") == "text_delta" and delta.get("text"):
                        yield delta["text"]
                elif kind == "error":
                    error = payload.get("error") or {}
                    raise ProviderRequestFailedError(
                        self.provider_id, str(error.get("message", "stream error"))
                    )

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
            tools=[
                {
                    "name": schema_name,
                    "description": f"Return the {schema_name} object.",
                    "input_schema": json_schema,
                }
            ],
            tool_choice={"type": "tool", "name": schema_name},
        )
        data = await self._post_json(self.MESSAGES_PATH, body)

        for block in data.get("content") or []:
            if block.get("type") == "tool_use":
                return block.get("input") or {}

        # No tool call: hand back the text for JSON extraction
        return "".join(
            block.get("text", "")
            for block in data.get("content") or []
            if block.get("type") == "text"
        )


__all__ = ["AnthropicBackend", "ANTHROPIC_VERSION"]
