"""LLM provider backends.

This module provides:
- BaseBackend: Capability interface (generate_text, stream_text, generate_object)
- HTTPBackend: Shared httpx plumbing for REST providers
- OpenAIBackend / GroqBackend: Chat Completions (OpenAI-compatible)
- AnthropicBackend: Messages API
- GeminiBackend: google-genai SDK
- create_backend: Factory keyed by the catalog's backend name
"""

from devhub_ai.llm.providers.anthropic import AnthropicBackend
from devhub_ai.llm.providers.base import BaseBackend
from devhub_ai.llm.providers.factory import BACKEND_CLASSES, BackendFactory, create_backend
from devhub_ai.llm.providers.gemini_api import GeminiBackend
from devhub_ai.llm.providers.http import HTTPBackend
from devhub_ai.llm.providers.openai import GroqBackend, OpenAIBackend
from devhub_ai.llm.providers.parsing import extract_json, schema_instructions

__all__ = [
    "BaseBackend",
    "HTTPBackend",
    "OpenAIBackend",
    "GroqBackend",
    "AnthropicBackend",
    "GeminiBackend",
    "BACKEND_CLASSES",
    "BackendFactory",
    "create_backend",
    "extract_json",
    "schema_instructions",
]
