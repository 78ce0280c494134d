"""Request Executor - run generations against the selected provider.

Three single-shot modes, each selecting a provider once and surfacing
failures directly:

    - generate(): finished text (GenerationResult)
    - stream(): lazy async iterator of text chunks
    - generate_structured(): pydantic-validated object

And one fallback entry point:

    - execute_with_fallback(operation): try operation(backend, model) on
      each available provider in priority order, return the first success.

Prompt assembly (all modes):
    system_prompt + "\\n\\n" + compose(context) + "\\n\\nUser Request:\\n" + user_message
with the context part dropped entirely when it composes to "".

Every attempt is bounded by OrchestratorConfig.timeout; a timeout is just
another provider failure. There is no retry of the same provider.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel, ValidationError

from devhub_ai.config import OrchestratorConfig
from devhub_ai.llm.providers import BaseBackend, BackendFactory, create_backend, extract_json
from devhub_ai.registry import ProviderRegistry
from devhub_ai.types import (
    AllProvidersFailedError,
    ChatMessage,
    GenerationResult,
    NoProvidersConfiguredError,
    OrchestrationError,
    ProjectContext,
    ProviderDescriptor,
    ProviderRequestFailedError,
    ProviderTimeoutError,
    SchemaValidationFailedError,
    Selection,
    TaskType,
)

from .composer import compose
from .selector import ProviderSelector

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

# operation(backend, model) -> awaitable result
FallbackOperation = Callable[[BaseBackend, str], Awaitable[T]]


def build_prompt(
    system_prompt: str,
    user_message: str,
    context: Optional[ProjectContext] = None,
) -> str:
    """Assemble the final prompt sent to a provider."""
    composed = compose(context)
    if composed:
        return f"{system_prompt}\n\n{composed}\n\nUser Request:\n{user_message}"
    return f"{system_prompt}\n\nUser Request:\n{user_message}"


def validate_structured(
    provider_id: str,
    schema: type[M],
    raw: Union[str, dict[str, Any], Any],
) -> M:
    """Validate a provider payload against a pydantic schema.

    Raises:
        SchemaValidationFailedError: If raw is not JSON or does not conform
    """
    data = raw
    if isinstance(raw, str):
        try:
            data = extract_json(raw)
        except ValueError as e:
            raise SchemaValidationFailedError(
                provider_id, schema.__name__, [str(e)], raw
            ) from e

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise SchemaValidationFailedError(
            provider_id, schema.__name__, e.errors(), raw
        ) from e


class RequestExecutor:
    """Executes generation requests with provider selection and fallback.

    Backends are created lazily, one per provider, and closed by aclose()
    (or by leaving ``async with``).

    Example:
        >>> async with RequestExecutor(ProviderRegistry.from_env()) as executor:
        ...     result = await executor.generate(
        ...         TaskType.CHAT, "You are a game design mentor.", "Name my game",
        ...     )
        ...     print(result.text)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        config: Optional[OrchestratorConfig] = None,
        backend_factory: Optional[BackendFactory] = None,
    ) -> None:
        """Initialize executor.

        Args:
            registry: Immutable provider registry
            config: Shared settings (timeout etc.)
            backend_factory: Builds a backend from (descriptor, keys, config);
                defaults to create_backend
        """
        self._registry = registry
        self._config = config or OrchestratorConfig()
        self._selector = ProviderSelector(registry)
        self._backend_factory = backend_factory or create_backend
        self._backends: dict[str, BaseBackend] = {}

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def selector(self) -> ProviderSelector:
        return self._selector

    def backend_for(self, descriptor: ProviderDescriptor) -> BaseBackend:
        """Get or create the backend for a provider."""
        backend = self._backends.get(descriptor.id)
        if backend is None:
            backend = self._backend_factory(
                descriptor, self._registry.keys(descriptor.id), self._config
            )
            self._backends[descriptor.id] = backend
        return backend

    def select(self, task_type: TaskType, preferred_id: Optional[str] = None) -> Selection:
        return self._selector.select(task_type, preferred_id)

    async def _attempt(self, provider_id: str, awaitable: Awaitable[T]) -> T:
        """Await one provider call under the timeout, normalizing failures."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self._config.timeout)
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(provider_id, self._config.timeout) from e
        except OrchestrationError:
            raise
        except Exception as e:
            raise ProviderRequestFailedError(provider_id, str(e)) from e

    # ========================================================================
    # Single-shot modes
    # ========================================================================

    async def generate(
        self,
        task_type: TaskType,
        system_prompt: str,
        user_message: str,
        *,
        context: Optional[ProjectContext] = None,
        preferred_id: Optional[str] = None,
        history: Sequence[ChatMessage] = (),
    ) -> GenerationResult:
        """Single round-trip text generation.

        Raises:
            NoProvidersConfiguredError, UnknownProviderError: On selection
            ProviderRequestFailedError: If the provider call fails
        """
        selection = self.select(task_type, preferred_id)
        backend = self.backend_for(selection.provider)
        prompt = build_prompt(system_prompt, user_message, context)
        return await self._attempt(
            selection.provider_id,
            backend.generate_text(selection.model, prompt, history=history),
        )

    def stream(
        self,
        task_type: TaskType,
        system_prompt: str,
        user_message: str,
        *,
        context: Optional[ProjectContext] = None,
        preferred_id: Optional[str] = None,
        history: Sequence[ChatMessage] = (),
    ) -> AsyncIterator[str]:
        """Stream text chunks from the selected provider.

        Selection happens immediately, so selection errors raise here rather
        than on first iteration. The returned iterator is lazy and cannot
        be restarted; closing it (break + aclose, or contextlib.aclosing)
        stops pulling and closes the provider stream.

        Raises:
            NoProvidersConfiguredError, UnknownProviderError: On selection

        Iteration raises:
            ProviderRequestFailedError: If the provider fails or a chunk
            does not arrive within the timeout
        """
        selection = self.select(task_type, preferred_id)
        backend = self.backend_for(selection.provider)
        prompt = build_prompt(system_prompt, user_message, context)
        chunks = backend.stream_text(selection.model, prompt, history=history)
        return self._guarded_stream(selection.provider_id, chunks)

    async def _guarded_stream(
        self,
        provider_id: str,
        chunks: AsyncIterator[str],
    ) -> AsyncIterator[str]:
        iterator = chunks.__aiter__()
        try:
            while True:
                try:
                    async with asyncio.timeout(self._config.timeout):
                        chunk = await iterator.__anext__()
                except StopAsyncIteration:
                    return
                except TimeoutError as e:
                    raise ProviderTimeoutError(provider_id, self._config.timeout) from e
                except OrchestrationError:
                    raise
                except Exception as e:
                    raise ProviderRequestFailedError(provider_id, str(e)) from e
                yield chunk
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    async def generate_structured(
        self,
        task_type: TaskType,
        system_prompt: str,
        user_message: str,
        schema: type[M],
        *,
        context: Optional[ProjectContext] = None,
        preferred_id: Optional[str] = None,
        history: Sequence[ChatMessage] = (),
    ) -> M:
        """Generate an object validated against a pydantic schema.

        Raises:
            NoProvidersConfiguredError, UnknownProviderError: On selection
            ProviderRequestFailedError: If the provider call fails
            SchemaValidationFailedError: If the response does not conform
        """
        selection = self.select(task_type, preferred_id)
        backend = self.backend_for(selection.provider)
        prompt = build_prompt(system_prompt, user_message, context)
        raw = await self._attempt(
            selection.provider_id,
            backend.generate_object(
                selection.model,
                prompt,
                schema.model_json_schema(),
                schema_name=schema.__name__,
                history=history,
            ),
        )
        return validate_structured(selection.provider_id, schema, raw)

    # ========================================================================
    # Fallback execution
    # ========================================================================

    async def execute_with_fallback(self, operation: FallbackOperation[T]) -> T:
        """Run operation on each available provider until one succeeds.

        Providers are tried in registry priority order, each once, with the
        attempt timeout. Failures are logged and the next provider is tried.
        SchemaValidationFailedError is not retried and propagates.

        Args:
            operation: Coroutine function taking (backend, model)

        Returns:
            The first successful result

        Raises:
            NoProvidersConfiguredError: If nothing is available
            AllProvidersFailedError: If every provider failed (chained from
                and referencing the last error)
        """
        available = self._registry.available()
        if not available:
            raise NoProvidersConfiguredError()

        errors: list[tuple[str, BaseException]] = []
        for descriptor in available:
            try:
                backend = self.backend_for(descriptor)
                return await asyncio.wait_for(
                    operation(backend, descriptor.default_model),
                    timeout=self._config.timeout,
                )
            except SchemaValidationFailedError:
                raise
            except asyncio.TimeoutError:
                error: BaseException = ProviderTimeoutError(descriptor.id, self._config.timeout)
                logger.warning(f"Provider {descriptor.id} failed: {error}")
                errors.append((descriptor.id, error))
            except Exception as e:
                logger.warning(f"Provider {descriptor.id} failed: {e}")
                errors.append((descriptor.id, e))

        raise AllProvidersFailedError(errors) from errors[-1][1]

    async def generate_with_fallback(
        self,
        system_prompt: str,
        user_message: str,
        *,
        context: Optional[ProjectContext] = None,
        history: Sequence[ChatMessage] = (),
    ) -> GenerationResult:
        """Text generation through execute_with_fallback()."""
        prompt = build_prompt(system_prompt, user_message, context)

        async def operation(backend: BaseBackend, model: str) -> GenerationResult:
            return await backend.generate_text(model, prompt, history=history)

        return await self.execute_with_fallback(operation)

    async def structured_with_fallback(
        self,
        system_prompt: str,
        user_message: str,
        schema: type[M],
        *,
        context: Optional[ProjectContext] = None,
        history: Sequence[ChatMessage] = (),
    ) -> tuple[M, str]:
        """Structured generation through execute_with_fallback().

        Returns:
            (validated object, id of the provider that produced it)
        """
        prompt = build_prompt(system_prompt, user_message, context)
        json_schema = schema.model_json_schema()

        async def operation(backend: BaseBackend, model: str) -> tuple[M, str]:
            raw = await backend.generate_object(
                model, prompt, json_schema, schema_name=schema.__name__, history=history
            )
            return validate_structured(backend.provider_id, schema, raw), backend.provider_id

        return await self.execute_with_fallback(operation)

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def aclose(self) -> None:
        """Close every backend created by this executor."""
        backends, self._backends = list(self._backends.values()), {}
        for backend in backends:
            try:
                await backend.aclose()
            except Exception as e:
                logger.warning(f"Error closing backend {backend.provider_id}: {e}")

    async def __aenter__(self) -> RequestExecutor:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


__all__ = [
    "RequestExecutor",
    "FallbackOperation",
    "build_prompt",
    "validate_structured",
]
