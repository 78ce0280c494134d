"""LLM module containing the provider backends."""

from devhub_ai.llm.providers import (
    AnthropicBackend,
    BaseBackend,
    GeminiBackend,
    GroqBackend,
    OpenAIBackend,
    create_backend,
)

__all__ = [
    "BaseBackend",
    "OpenAIBackend",
    "GroqBackend",
    "AnthropicBackend",
    "GeminiBackend",
    "create_backend",
]
