"""AI provider orchestration for the DevHub game-developer portal.

This package selects among several LLM providers (Groq, OpenAI, Anthropic,
Gemini) by task requirements and credential availability, composes prompts
from the active project's context, and falls back across providers when a
request fails.

Basic Usage:
    >>> from devhub_ai import OrchestratorSession, ProviderRegistry, TaskType
    >>> registry = ProviderRegistry.from_env()
    >>> async with OrchestratorSession(registry, TaskType.SCOPE) as session:
    ...     session.update_gdd(name="Lumen", genre="Puzzle")
    ...     result = await session.generate(SYSTEM_PROMPT, "Is this doable in 48h?")

Streaming Chat:
    >>> async with create_orchestrator(TaskType.CHAT) as session:
    ...     async for chunk in session.chat(SYSTEM_PROMPT, "Hi!"):
    ...         print(chunk, end="")

Fallback Across Providers:
    >>> async with RequestExecutor(registry) as executor:
    ...     result = await brainstorm(executor, BrainstormRequest(jam_theme="Roots"))

Credentials:
    GROQ_API_KEY, OPENAI_API_KEY, ANTHROPIC_API_KEY, GEMINI_API_KEY
    (plus numbered extras such as GROQ_API_KEY_2 for key rotation)
"""

__version__ = "0.1.0"

from devhub_ai.types import (
    # Enums
    Capability,
    MessageRole,
    RiskLevel,
    TaskType,
    TASK_REQUIREMENTS,
    # Data models
    ChatMessage,
    GenerationResult,
    ProviderCapabilities,
    ProviderDescriptor,
    Selection,
    TokenUsage,
    # Context
    GDD,
    OracleConcept,
    ProjectContext,
    RiskItem,
    ScopeReport,
    # Exceptions
    AllProvidersFailedError,
    AuthenticationError,
    InvalidConfigError,
    NoProvidersConfiguredError,
    OrchestrationError,
    ProviderRequestFailedError,
    ProviderTimeoutError,
    RateLimitError,
    SchemaValidationFailedError,
    UnknownProviderError,
)

# Configuration
from devhub_ai.config import CHAT_CONFIG, DEFAULT_CONFIG, OrchestratorConfig

# Registry
from devhub_ai.registry import KeyRing, ProviderRegistry, load_catalog

# Backends
from devhub_ai.llm.providers import (
    AnthropicBackend,
    BaseBackend,
    GeminiBackend,
    GroqBackend,
    OpenAIBackend,
    create_backend,
)

# Orchestration
from devhub_ai.orchestration import (
    ConversationHistory,
    OrchestratorSession,
    ProviderSelector,
    RequestExecutor,
    build_prompt,
    compose,
    create_orchestrator,
)

# Tasks
from devhub_ai.tasks import BrainstormRequest, BrainstormResult, brainstorm, describe_skill

__all__ = [
    # Version
    "__version__",
    # Enums
    "Capability",
    "TaskType",
    "MessageRole",
    "RiskLevel",
    "TASK_REQUIREMENTS",
    # Data models
    "ProviderCapabilities",
    "ProviderDescriptor",
    "Selection",
    "TokenUsage",
    "GenerationResult",
    "ChatMessage",
    # Context
    "GDD",
    "RiskItem",
    "ScopeReport",
    "OracleConcept",
    "ProjectContext",
    # Exceptions
    "OrchestrationError",
    "InvalidConfigError",
    "NoProvidersConfiguredError",
    "UnknownProviderError",
    "ProviderRequestFailedError",
    "RateLimitError",
    "AuthenticationError",
    "ProviderTimeoutError",
    "SchemaValidationFailedError",
    "AllProvidersFailedError",
    # Config
    "OrchestratorConfig",
    "DEFAULT_CONFIG",
    "CHAT_CONFIG",
    # Registry
    "ProviderRegistry",
    "KeyRing",
    "load_catalog",
    # Backends
    "BaseBackend",
    "OpenAIBackend",
    "GroqBackend",
    "AnthropicBackend",
    "GeminiBackend",
    "create_backend",
    # Orchestration
    "ProviderSelector",
    "compose",
    "build_prompt",
    "RequestExecutor",
    "ConversationHistory",
    "OrchestratorSession",
    "create_orchestrator",
    # Tasks
    "BrainstormRequest",
    "BrainstormResult",
    "brainstorm",
    "describe_skill",
]
