"""Backend factory.

Maps a descriptor's backend name to its implementation and wires in a
KeyRing built from the registry's credentials.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from devhub_ai.config import OrchestratorConfig
from devhub_ai.registry.keys import KeyRing
from devhub_ai.types import InvalidConfigError, ProviderDescriptor

from .anthropic import AnthropicBackend
from .base import BaseBackend
from .gemini_api import GeminiBackend
from .openai import GroqBackend, OpenAIBackend

# Backend class mapping
BACKEND_CLASSES: dict[str, type[BaseBackend]] = {
    OpenAIBackend.BACKEND: OpenAIBackend,
    GroqBackend.BACKEND: GroqBackend,
    AnthropicBackend.BACKEND: AnthropicBackend,
    GeminiBackend.BACKEND: GeminiBackend,
}

# (descriptor, credentials, config) -> backend
BackendFactory = Callable[[ProviderDescriptor, Sequence[str], OrchestratorConfig], BaseBackend]


def create_backend(
    descriptor: ProviderDescriptor,
    keys: Sequence[str],
    config: Optional[OrchestratorConfig] = None,
) -> BaseBackend:
    """Create the backend for a provider.

    Args:
        descriptor: Provider to talk to
        keys: Its credentials (from ProviderRegistry.keys)
        config: Shared settings

    Returns:
        Backend instance with its own KeyRing

    Raises:
        InvalidConfigError: If the descriptor names an unknown backend
    """
    config = config or OrchestratorConfig()
    backend_name = descriptor.backend or descriptor.id
    backend_class = BACKEND_CLASSES.get(backend_name)
    if backend_class is None:
        raise InvalidConfigError(
            f"provider {descriptor.id} uses unknown backend '{backend_name}'"
        )

    ring = KeyRing(
        keys,
        name=descriptor.id,
        rate_limit_cooldown=config.rate_limit_cooldown,
        failure_cooldown=config.failure_cooldown,
        max_failures=config.max_key_failures,
    )
    return backend_class(descriptor, ring, config)


__all__ = ["BACKEND_CLASSES", "BackendFactory", "create_backend"]
