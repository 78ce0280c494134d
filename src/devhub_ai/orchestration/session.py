"""Orchestrator Session.

One session per logical unit of work (a chat, a brainstorm run, a scope
analysis). It binds:

    - a TaskType
    - a ProjectContext (mutable, owned by the session)
    - an optional preferred provider id
    - a ConversationHistory
    - the id of the project currently being worked on

Sessions share nothing but the immutable registry, so independent sessions
may run concurrently. A single session is not safe for concurrent callers.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import AsyncIterator, Optional, TypeVar, Union

from pydantic import BaseModel

from devhub_ai.config import OrchestratorConfig
from devhub_ai.llm.providers import BackendFactory
from devhub_ai.registry import ProviderRegistry
from devhub_ai.types import (
    ChatMessage,
    GenerationResult,
    MessageRole,
    OracleConcept,
    ProjectContext,
    ScopeReport,
    TaskType,
)

from .executor import FallbackOperation, RequestExecutor
from .history import ConversationHistory

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class OrchestratorSession:
    """Stateful front end over a RequestExecutor.

    Example:
        >>> async with OrchestratorSession(registry, TaskType.CHAT) as session:
        ...     session.set_current_project("proj-1")
        ...     session.update_gdd(name="Lumen", genre="Puzzle")
        ...     async for chunk in session.chat(MENTOR_PROMPT, "How do I scope this?"):
        ...         print(chunk, end="")
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        task_type: TaskType,
        *,
        context: Optional[ProjectContext] = None,
        preferred_provider: Optional[str] = None,
        config: Optional[OrchestratorConfig] = None,
        backend_factory: Optional[BackendFactory] = None,
        executor: Optional[RequestExecutor] = None,
    ) -> None:
        """Initialize session.

        Args:
            registry: Shared provider registry
            task_type: Task this session performs
            context: Initial project context (a fresh one if None)
            preferred_provider: Provider id to use when available
            config: Executor settings (ignored when executor is given)
            backend_factory: Backend factory (ignored when executor is given)
            executor: Existing executor to reuse; the session will not close it
        """
        self.task_type = TaskType(task_type)
        self.preferred_provider = preferred_provider
        self._context = context if context is not None else ProjectContext()
        self._history = ConversationHistory()
        self._project_id: Optional[str] = None
        self._owns_executor = executor is None
        self._executor = executor or RequestExecutor(
            registry, config=config, backend_factory=backend_factory
        )

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    @property
    def registry(self) -> ProviderRegistry:
        return self._executor.registry

    @property
    def context(self) -> ProjectContext:
        return self._context

    @property
    def history(self) -> tuple[ChatMessage, ...]:
        """Snapshot of the conversation so far."""
        return self._history.snapshot()

    @property
    def project_id(self) -> Optional[str]:
        return self._project_id

    # ========================================================================
    # Project / context state
    # ========================================================================

    def set_current_project(self, project_id: Optional[str]) -> None:
        """Switch the active project.

        A different id clears the conversation and resets the context;
        the same id is a no-op.
        """
        if project_id == self._project_id:
            return
        logger.debug(f"Switching project {self._project_id} -> {project_id}")
        self._project_id = project_id
        self._history.clear()
        self._context = ProjectContext()

    def set_context(self, context: ProjectContext) -> None:
        """Replace the whole context."""
        self._context = context

    def update_gdd(self, **updates: Optional[str]) -> None:
        self._context.update_gdd(**updates)

    def set_scope_report(self, report: Optional[ScopeReport]) -> None:
        self._context.set_scope_report(report)

    def add_oracle_concept(self, concept: OracleConcept) -> None:
        self._context.add_oracle_concept(concept)

    def set_oracle_concepts(self, concepts: list[OracleConcept]) -> None:
        self._context.set_oracle_concepts(concepts)

    def select_concept(self, concept_id: str) -> None:
        self._context.select_concept(concept_id)

    # ========================================================================
    # Conversation
    # ========================================================================

    def add_message(self, role: Union[MessageRole, str], content: str) -> ChatMessage:
        return self._history.append(role, content)

    def clear_conversation(self) -> None:
        self._history.clear()

    def reset(self) -> None:
        """Forget project, context and conversation."""
        self._project_id = None
        self._history.clear()
        self._context = ProjectContext()

    # ========================================================================
    # Execution (delegates to the executor)
    # ========================================================================

    async def generate(
        self,
        system_prompt: str,
        user_message: str,
        *,
        include_history: bool = False,
    ) -> GenerationResult:
        history = self._history.snapshot() if include_history else ()
        return await self._executor.generate(
            self.task_type,
            system_prompt,
            user_message,
            context=self._context,
            preferred_id=self.preferred_provider,
            history=history,
        )

    def stream(
        self,
        system_prompt: str,
        user_message: str,
        *,
        history: tuple[ChatMessage, ...] = (),
    ) -> AsyncIterator[str]:
        return self._executor.stream(
            self.task_type,
            system_prompt,
            user_message,
            context=self._context,
            preferred_id=self.preferred_provider,
            history=history,
        )

    async def generate_structured(
        self,
        system_prompt: str,
        user_message: str,
        schema: type[M],
    ) -> M:
        return await self._executor.generate_structured(
            self.task_type,
            system_prompt,
            user_message,
            schema,
            context=self._context,
            preferred_id=self.preferred_provider,
        )

    async def execute_with_fallback(self, operation: FallbackOperation[T]) -> T:
        return await self._executor.execute_with_fallback(operation)

    async def chat(self, system_prompt: str, user_message: str) -> AsyncIterator[str]:
        """Stream a reply and record both sides of the exchange.

        The user message is recorded when iteration starts; earlier turns
        are sent as conversation history. The assistant reply is recorded
        only if the stream runs to completion.
        """
        prior = self._history.snapshot()
        self._history.append(MessageRole.USER, user_message)

        parts: list[str] = []
        async with aclosing(self.stream(system_prompt, user_message, history=prior)) as chunks:
            async for chunk in chunks:
                parts.append(chunk)
                yield chunk

        self._history.append(MessageRole.ASSISTANT, "".join(parts))

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def aclose(self) -> None:
        if self._owns_executor:
            await self._executor.aclose()

    async def __aenter__(self) -> OrchestratorSession:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"OrchestratorSession(task_type={self.task_type.value!r}, "
            f"project_id={self._project_id!r}, messages={len(self._history)})"
        )


def create_orchestrator(
    task_type: TaskType,
    context: Optional[ProjectContext] = None,
    registry: Optional[ProviderRegistry] = None,
    **kwargs,
) -> OrchestratorSession:
    """Create a session, building the registry from the environment if needed.

    Args:
        task_type: Task the session performs
        context: Initial project context
        registry: Provider registry (ProviderRegistry.from_env() if None)
        **kwargs: Passed to OrchestratorSession (preferred_provider, config, ...)
    """
    if registry is None:
        config = kwargs.get("config") or OrchestratorConfig()
        registry = ProviderRegistry.from_env(
            env_file=config.env_file, max_keys=config.max_keys_per_provider
        )
    return OrchestratorSession(registry, task_type, context=context, **kwargs)


__all__ = ["OrchestratorSession", "create_orchestrator"]
