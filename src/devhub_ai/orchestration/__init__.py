"""Provider orchestration: selection, prompt composition, execution, sessions."""

from .composer import compose
from .executor import FallbackOperation, RequestExecutor, build_prompt, validate_structured
from .history import ConversationHistory
from .selector import ProviderSelector
from .session import OrchestratorSession, create_orchestrator

__all__ = [
    "ProviderSelector",
    "compose",
    "build_prompt",
    "validate_structured",
    "RequestExecutor",
    "FallbackOperation",
    "ConversationHistory",
    "OrchestratorSession",
    "create_orchestrator",
]
