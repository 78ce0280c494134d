"""DevHub AI - Enums and static task mappings.

Task types and their capability requirements are static configuration,
not derived data.
"""

from __future__ import annotations

from enum import Enum


class Capability(Enum):
    """Boolean traits a provider may advertise."""
    STREAMING = "streaming"
    FUNCTION_CALLING = "function_calling"
    VISION = "vision"
    LONG_CONTEXT = "long_context"


class TaskType(Enum):
    """AI-assisted features of the portal.

    Attributes:
        ORACLE: Game idea brainstorming
        SCOPE: Scope / viability analysis
        KANBAN: Task planning
        ASSETS: Asset list planning
        CHAT: Free-form chat
    """
    ORACLE = "oracle"
    SCOPE = "scope"
    KANBAN = "kanban"
    ASSETS = "assets"
    CHAT = "chat"


class MessageRole(Enum):
    """Conversation message roles."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class RiskLevel(Enum):
    """Scope report risk traffic light."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


# Capabilities a provider must advertise to be picked for a task
TASK_REQUIREMENTS: dict[TaskType, frozenset[Capability]] = {
    TaskType.ORACLE: frozenset({Capability.LONG_CONTEXT}),
    TaskType.SCOPE: frozenset({Capability.FUNCTION_CALLING}),
    TaskType.KANBAN: frozenset({Capability.FUNCTION_CALLING}),
    TaskType.ASSETS: frozenset(),
    TaskType.CHAT: frozenset({Capability.STREAMING, Capability.LONG_CONTEXT}),
}


__all__ = [
    "Capability",
    "TaskType",
    "MessageRole",
    "RiskLevel",
    "TASK_REQUIREMENTS",
]
