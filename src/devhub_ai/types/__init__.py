"""DevHub AI Types - Shared enums, data models, context and exceptions.

This package holds everything the orchestration layer and its callers
exchange:
    - Enums: TaskType, Capability, MessageRole, RiskLevel
    - Models: ProviderDescriptor, Selection, GenerationResult, ChatMessage
    - Context: ProjectContext, GDD, ScopeReport, OracleConcept
    - Exceptions: OrchestrationError and subclasses
"""

from .config import (
    TASK_REQUIREMENTS,
    Capability,
    MessageRole,
    RiskLevel,
    TaskType,
)
from .context import GDD, OracleConcept, ProjectContext, RiskItem, ScopeReport
from .exceptions import (
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
from .models import (
    ChatMessage,
    GenerationResult,
    ProviderCapabilities,
    ProviderDescriptor,
    Selection,
    TokenUsage,
)

__all__ = [
    # Enums
    "Capability",
    "TaskType",
    "MessageRole",
    "RiskLevel",
    "TASK_REQUIREMENTS",
    # Models
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
]
