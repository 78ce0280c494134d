"""Gemini API Backend.

Direct API access to Google Gemini using the google-genai SDK.
One genai.Client is kept per API key so key rotation does not rebuild
clients on every request.

Requirements:
    pip install google-genai
"""

from __future__ import annotations

import logging
import time
from typing import Any, AsyncIterator, Optional, Sequence, Union

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from devhub_ai.config import OrchestratorConfig
from devhub_ai.registry.keys import KeyRing
from devhub_ai.types import (
    AuthenticationError,
    ChatMessage,
    GenerationResult,
    MessageRole,
    ProviderDescriptor,
    ProviderRequestFailedError,
    RateLimitError,
    TokenUsage,
)

from .base import BaseBackend
from .parsing import schema_instructions

logger = logging.getLogger(__name__)


class GeminiBackend(BaseBackend):
    """Gemini backend using google-genai's async client (client.aio.models)."""

    BACKEND = "gemini"

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        keys: Optional[KeyRing] = None,
        config: Optional[OrchestratorConfig] = None,
    ) -> None:
        super().__init__(descriptor, keys, config)
        self._clients: dict[str, Any] = {}

    def _get_client(self, key: str) -> Any:
        """Get or create the genai client for key."""
        if key not in self._clients:
            self._clients[key] = genai.Client(api_key=key)
        return self._clients[key]

    def _contents(
        self,
        prompt: str,
        history: Sequence[ChatMessage],
    ) -> tuple[list[types.Content], Optional[str]]:
        """Convert history + prompt into Gemini contents and a system instruction."""
        system_parts: list[str] = []
        contents: list[types.Content] = []
        for message in history:
            if message.role == MessageRole.SYSTEM:
                system_parts.append(message.content)
                continue
            role = "model" if message.role == MessageRole.ASSISTANT else "user"
            contents.append(types.Content(role=role, parts=[types.Part(text=message.content)]))
        contents.append(types.Content(role="user", parts=[types.Part(text=prompt)]))
        return contents, "\n\n".join(system_parts) or None

    def _config(
        self,
        system_instruction: Optional[str],
        **extra: Any,
    ) -> types.GenerateContentConfig:
        config_kwargs: dict[str, Any] = {"max_output_tokens": self.config.max_tokens}
        if system_instruction:
            config_kwargs["system_instruction"] = system_instruction
        if self.config.temperature is not None:
            config_kwargs["temperature"] = self.config.temperature
        config_kwargs.update(extra)
        return types.GenerateContentConfig(**config_kwargs)

    def _translate_error(self, key: str, error: genai_errors.APIError) -> ProviderRequestFailedError:
        code = getattr(error, "code", None)
        if code == 429:
            self._keys.report_failure(key, rate_limited=True)
            return RateLimitError(self.provider_id)
        self._keys.report_failure(key)
        if code in (401, 403):
            return AuthenticationError(self.provider_id, code)
        return ProviderRequestFailedError(self.provider_id, str(error), status_code=code)

    async def _generate(self, model: str, prompt: str, history: Sequence[ChatMessage], **extra: Any) -> Any:
        key = self._require_key()
        client = self._get_client(key)
        contents, system_instruction = self._contents(prompt, history)
        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=self._config(system_instruction, **extra),
            )
        except genai_errors.APIError as e:
            logger.error(f"Gemini API error: {e}")
            raise self._translate_error(key, e) from e
        except Exception:
            self._keys.report_failure(key)
            raise
        self._keys.report_success(key)
        return response

    async def generate_text(
        self,
        model: str,
        prompt: str,
        *,
        history: Sequence[ChatMessage] = (),
    ) -> GenerationResult:
        start_time = time.perf_counter()
        response = await self._generate(model, prompt, history)

        token_usage = None
        usage = getattr(response, "usage_metadata", None)
        if usage:
            token_usage = TokenUsage(
                input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
                output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
                total_tokens=getattr(usage, "total_token_count", 0) or 0,
            )

        return GenerationResult(
            text=response.text or "",
            provider=self.provider_id,
            model=model,
            duration_ms=int((time.perf_counter() - start_time) * 1000),
            token_usage=token_usage,
            raw=response,
        )

    async def stream_text(
        self,
        model: str,
        prompt: str,
        *,
        history: Sequence[ChatMessage] = (),
    ) -> AsyncIterator[str]:
        key = self._require_key()
        client = self._get_client(key)
        contents, system_instruction = self._contents(prompt, history)
        try:
            stream = await client.aio.models.generate_content_stream(
                model=model,
                contents=contents,
                config=self._config(system_instruction),
            )
            async for chunk in stream:
                if chunk.text:
                    yield chunk.text
        except genai_errors.APIError as e:
            logger.error(f"Gemini API streaming error: {e}")
            raise self._translate_error(key, e) from e
        except Exception:
            self._keys.report_failure(key)
            raise
        self._keys.report_success(key)

    async def generate_object(
        self,
        model: str,
        prompt: str,
        json_schema: dict,
        *,
        schema_name: str = "response",
        history: Sequence[ChatMessage] = (),
    ) -> Union[str, dict[str, Any]]:
        response = await self._generate(
            model,
            prompt + schema_instructions(json_schema),
            history,
            response_mime_type="application/json",
        )
        return response.text or ""

    async def aclose(self) -> None:
        self._clients.clear()


__all__ = ["GeminiBackend"]
