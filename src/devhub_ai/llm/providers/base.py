"""Base Backend Abstract Class.

Every remote provider is reached through one BaseBackend subclass that
implements the same capability interface:

    - generate_text(): single round-trip, finished text
    - stream_text(): async iterator of text chunks
    - generate_object(): JSON payload for a target schema (unvalidated)

The selector and executor never branch on provider identity; they only
call this interface.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Optional, Sequence, Union

from devhub_ai.config import OrchestratorConfig
from devhub_ai.registry.keys import KeyRing
from devhub_ai.types import (
    ChatMessage,
    GenerationResult,
    MessageRole,
    ProviderDescriptor,
    ProviderRequestFailedError,
)

from .parsing import schema_instructions

logger = logging.getLogger(__name__)


class BaseBackend(ABC):
    """Abstract base class for provider backends.

    Subclasses must implement generate_text() and stream_text().
    generate_object() defaults to prompting for JSON through
    generate_text(); backends with native structured output override it.
    """

    # Backend identifier used in the catalog (set by subclasses)
    BACKEND: str

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        keys: Optional[KeyRing] = None,
        config: Optional[OrchestratorConfig] = None,
    ) -> None:
        """Initialize backend.

        Args:
            descriptor: Provider this backend talks to
            keys: Key ring with the provider's credentials
            config: Shared settings (timeout, max_tokens, temperature)
        """
        self.descriptor = descriptor
        self.config = config or OrchestratorConfig()
        self._keys = keys if keys is not None else KeyRing([], name=descriptor.id)

    @property
    def provider_id(self) -> str:
        """Provider id string."""
        return self.descriptor.id

    @property
    def keys(self) -> KeyRing:
        return self._keys

    def _require_key(self) -> str:
        key = self._keys.current()
        if not key:
            raise ProviderRequestFailedError(self.provider_id, "no API key configured")
        return key

    @staticmethod
    def _build_messages(
        prompt: str,
        history: Sequence[ChatMessage] = (),
    ) -> list[dict[str, str]]:
        """Prior turns followed by the prompt as the final user message."""
        messages = [{"role": m.role.value, "content": m.content} for m in history]
        messages.append({"role": MessageRole.USER.value, "content": prompt})
        return messages

    # ========================================================================
    # Capability interface
    # ========================================================================

    @abstractmethod
    async def generate_text(
        self,
        model: str,
        prompt: str,
        *,
        history: Sequence[ChatMessage] = (),
    ) -> GenerationResult:
        """Run a prompt and return the finished text."""

    @abstractmethod
    def stream_text(
        self,
        model: str,
        prompt: str,
        *,
        history: Sequence[ChatMessage] = (),
    ) -> AsyncIterator[str]:
        """Stream text chunks as the provider produces them."""

    async def generate_object(
        self,
        model: str,
        prompt: str,
        json_schema: dict,
        *,
        schema_name: str = "response",
        history: Sequence[ChatMessage] = (),
    ) -> Union[str, dict[str, Any]]:
        """Ask for output matching json_schema.

        Returns:
            Either the parsed object (native structured output) or the raw
            text to be parsed by the caller. Validation is the caller's job.
        """
        result = await self.generate_text(
            model, prompt + schema_instructions(json_schema), history=history
        )
        return result.text

    async def aclose(self) -> None:
        """Release network resources."""

    async def __aenter__(self) -> BaseBackend:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider_id!r})"


__all__ = ["BaseBackend"]
