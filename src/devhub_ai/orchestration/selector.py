"""Provider Selector.

Chooses a provider and model for one request:

    1. No available providers            -> NoProvidersConfiguredError
    2. Available preferred provider      -> it, default model (no capability check)
    3. First available provider, in priority order, advertising every
       capability the task requires
    4. Otherwise the highest-priority available provider

A preferred id that is not registered at all is a caller bug and raises
UnknownProviderError; a registered but unavailable one is ignored.

Selection is pure: the same registry and inputs always give the same
answer.
"""

from __future__ import annotations

import logging
from typing import Optional

from devhub_ai.registry import ProviderRegistry
from devhub_ai.types import (
    TASK_REQUIREMENTS,
    NoProvidersConfiguredError,
    Selection,
    TaskType,
)

logger = logging.getLogger(__name__)


class ProviderSelector:
    """Pick provider + model for a task.

    Example:
        >>> selector = ProviderSelector(registry)
        >>> selection = selector.select(TaskType.SCOPE)
        >>> selection.provider.id, selection.model
        ('openai', 'gpt-4o-mini')
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def select(
        self,
        task_type: TaskType,
        preferred_id: Optional[str] = None,
    ) -> Selection:
        """Select a provider for task_type.

        Args:
            task_type: Task whose capability requirements apply
            preferred_id: Provider the caller wants, trusted to be suitable

        Returns:
            Selection with provider descriptor and model

        Raises:
            NoProvidersConfiguredError: If nothing is available
            UnknownProviderError: If preferred_id is not registered
        """
        available = self._registry.available()
        if not available:
            raise NoProvidersConfiguredError()

        if preferred_id:
            preferred = self._registry.get(preferred_id)
            if preferred.available:
                logger.debug(f"Using preferred provider {preferred.id} for {task_type.value}")
                return Selection(provider=preferred, model=preferred.default_model)
            logger.info(
                f"Preferred provider {preferred_id} is unavailable, selecting by capabilities"
            )

        requirements = TASK_REQUIREMENTS[task_type]
        for descriptor in available:
            if descriptor.capabilities.satisfies(requirements):
                logger.debug(f"Selected {descriptor.id} for {task_type.value}")
                return Selection(provider=descriptor, model=descriptor.default_model)

        fallback = available[0]
        logger.info(
            f"No provider satisfies {sorted(c.value for c in requirements)} "
            f"for {task_type.value}, degrading to {fallback.id}"
        )
        return Selection(provider=fallback, model=fallback.default_model)


__all__ = ["ProviderSelector"]
