"""Test configuration for devhub-ai."""
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from devhub_ai.config import OrchestratorConfig
from devhub_ai.llm.providers import BaseBackend
from devhub_ai.registry import KeyRing, ProviderRegistry
from devhub_ai.types import (
    ChatMessage,
    GenerationResult,
    ProviderCapabilities,
    ProviderDescriptor,
)


class FakeBackend(BaseBackend):
    """In-memory backend that records calls and replays scripted behavior."""

    BACKEND = "fake"

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        keys: Optional[KeyRing] = None,
        config: Optional[OrchestratorConfig] = None,
        *,
        text: Optional[str] = None,
        error: Optional[BaseException] = None,
        chunks: Sequence[str] = (),
        payload: Any = None,
        delay: float = 0.0,
    ) -> None:
        super().__init__(descriptor, keys, config)
        self.text = text if text is not None else f"reply from {descriptor.id}"
        self.error = error
        self.chunks = list(chunks)
        self.payload = payload
        self.delay = delay
        self.calls: list[tuple[str, str, str, tuple[ChatMessage, ...]]] = []
        self.pulled = 0
        self.stream_closed = False
        self.closed = False

    async def _maybe_fail(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

    async def generate_text(self, model, prompt, *, history=()):
        self.calls.append(("text", model, prompt, tuple(history)))
        await self._maybe_fail()
        return GenerationResult(text=self.text, provider=self.provider_id, model=model)

    async def stream_text(self, model, prompt, *, history=()):
        self.calls.append(("stream", model, prompt, tuple(history)))
        try:
            for chunk in self.chunks:
                if self.delay:
                    await asyncio.sleep(self.delay)
                self.pulled += 1
                yield chunk
            if self.error is not None:
                raise self.error
        finally:
            self.stream_closed = True

    async def generate_object(self, model, prompt, json_schema, *, schema_name="response", history=()):
        self.calls.append(("object", model, prompt, tuple(history)))
        await self._maybe_fail()
        return self.payload

    async def aclose(self) -> None:
        self.closed = True


class FakeBackendFactory:
    """Backend factory handing out FakeBackends configured per provider id."""

    def __init__(self) -> None:
        self.behaviors: dict[str, dict[str, Any]] = {}
        self.created: dict[str, FakeBackend] = {}

    def configure(self, provider_id: str, **behavior: Any) -> None:
        self.behaviors[provider_id] = behavior

    def __call__(self, descriptor, keys, config) -> FakeBackend:
        backend = FakeBackend(
            descriptor,
            KeyRing(keys, name=descriptor.id),
            config,
            **self.behaviors.get(descriptor.id, {}),
        )
        self.created[descriptor.id] = backend
        return backend


def descriptor(
    provider_id: str,
    *,
    priority: int = 100,
    available: bool = True,
    models: Sequence[str] = ("model-1", "model-2"),
    backend: str = "fake",
    **capabilities: bool,
) -> ProviderDescriptor:
    return ProviderDescriptor(
        id=provider_id,
        display_name=provider_id.title(),
        models=tuple(models),
        available=available,
        priority=priority,
        capabilities=ProviderCapabilities(**capabilities),
        backend=backend,
    )


@pytest.fixture
def make_descriptor():
    """Factory for provider descriptors."""
    return descriptor


@pytest.fixture
def fake_factory():
    """Backend factory producing scripted FakeBackends."""
    return FakeBackendFactory()


@pytest.fixture
def registry():
    """Three available providers plus one without credentials.

    Priority order: alpha (1), beta (2), gamma (3); delta is unavailable.
    """
    return ProviderRegistry(
        [
            descriptor("beta", priority=2, streaming=True, function_calling=True, long_context=True),
            descriptor("alpha", priority=1, streaming=True, long_context=True),
            descriptor("gamma", priority=3, vision=True),
            descriptor("delta", priority=0, available=False, function_calling=True),
        ],
        keys={"alpha": ["a-key"], "beta": ["b-key"], "gamma": ["g-key"]},
    )


@pytest.fixture
def empty_registry():
    """Registry with nothing available."""
    return ProviderRegistry([descriptor("alpha", available=False)])


@pytest.fixture
def fast_config():
    """Config with a short attempt timeout."""
    return OrchestratorConfig(timeout=0.2)
