"""DevHub AI - Data Models.

Provider descriptors, selection results, generation results and
conversation messages.

Serialization:
    Dataclasses provide to_dict() and from_dict() where they cross the
    boundary to the portal (catalog files, API responses).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .config import Capability, MessageRole


@dataclass(frozen=True)
class ProviderCapabilities:
    """Fixed set of boolean traits for a provider."""
    streaming: bool = False
    function_calling: bool = False
    vision: bool = False
    long_context: bool = False

    def supports(self, capability: Capability) -> bool:
        """Check a single capability flag."""
        return bool(getattr(self, capability.value, False))

    def satisfies(self, required: frozenset[Capability] | set[Capability]) -> bool:
        """Check that every required capability is advertised."""
        return all(self.supports(cap) for cap in required)

    def to_dict(self) -> dict:
        return {
            "streaming": self.streaming,
            "function_calling": self.function_calling,
            "vision": self.vision,
            "long_context": self.long_context,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ProviderCapabilities:
        return cls(
            streaming=bool(data.get("streaming", False)),
            function_calling=bool(
                data.get("function_calling", data.get("functionCalling", False))
            ),
            vision=bool(data.get("vision", False)),
            long_context=bool(data.get("long_context", data.get("longContext", False))),
        )


@dataclass(frozen=True)
class ProviderDescriptor:
    """One integration target in the provider registry.

    Attributes:
        id: Unique symbolic name (also used to persist user preference)
        display_name: Human label
        models: Ordered model identifiers, first one is the default
        available: Whether credentials were present at registry construction
        priority: Lower sorts first
        capabilities: Provider traits used for task matching
        backend: Backend implementation name ("openai", "groq", ...)
        base_url: Optional endpoint override
        credential_env: Base environment variable holding the API key
    """
    id: str
    display_name: str
    models: tuple[str, ...]
    available: bool = False
    priority: int = 100
    capabilities: ProviderCapabilities = field(default_factory=ProviderCapabilities)
    backend: str = ""
    base_url: Optional[str] = None
    credential_env: Optional[str] = None

    @property
    def default_model(self) -> str:
        """First model in the list, or empty string if none are declared."""
        return self.models[0] if self.models else ""

    def with_availability(self, available: bool) -> ProviderDescriptor:
        """Return a copy with a different availability flag."""
        return ProviderDescriptor(
            id=self.id,
            display_name=self.display_name,
            models=self.models,
            available=available,
            priority=self.priority,
            capabilities=self.capabilities,
            backend=self.backend,
            base_url=self.base_url,
            credential_env=self.credential_env,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "models": list(self.models),
            "default_model": self.default_model,
            "available": self.available,
            "priority": self.priority,
            "capabilities": self.capabilities.to_dict(),
            "backend": self.backend,
            "base_url": self.base_url,
            "credential_env": self.credential_env,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ProviderDescriptor:
        provider_id = data["id"]
        return cls(
            id=provider_id,
            display_name=data.get("display_name", data.get("name", provider_id)),
            models=tuple(data.get("models", [])),
            available=bool(data.get("available", False)),
            priority=int(data.get("priority", 100)),
            capabilities=ProviderCapabilities.from_dict(data.get("capabilities", {})),
            backend=data.get("backend", provider_id),
            base_url=data.get("base_url"),
            credential_env=data.get("credential_env"),
        )


@dataclass(frozen=True)
class Selection:
    """Provider and model chosen for one request."""
    provider: ProviderDescriptor
    model: str

    @property
    def provider_id(self) -> str:
        return self.provider.id


@dataclass
class TokenUsage:
    """Token usage information."""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> dict:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class GenerationResult:
    """Finished text generation.

    Attributes:
        text: Generated text
        provider: Provider id that produced it
        model: Model name used
        duration_ms: Wall time of the request
        token_usage: Token counts if the provider reported them
        raw: Provider-native response, for debugging
    """
    text: str
    provider: str
    model: str
    duration_ms: int = 0
    token_usage: Optional[TokenUsage] = None
    raw: Any = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "provider": self.provider,
            "model": self.model,
            "duration_ms": self.duration_ms,
            "token_usage": self.token_usage.to_dict() if self.token_usage else None,
        }


@dataclass(frozen=True)
class ChatMessage:
    """One conversation entry."""
    role: MessageRole
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }


__all__ = [
    "ProviderCapabilities",
    "ProviderDescriptor",
    "Selection",
    "TokenUsage",
    "GenerationResult",
    "ChatMessage",
]
