"""DevHub AI Configuration.

This module defines the OrchestratorConfig class and preset configurations.
Provider credentials are not part of the config: the registry reads them
from an environment-style mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from devhub_ai.types import InvalidConfigError


@dataclass(frozen=True)
class OrchestratorConfig:
    """Settings shared by the executor, backends and key rings.

    Attributes:
        timeout: Seconds allowed per provider attempt (and per stream chunk)
        max_tokens: Output token limit sent to providers that require one
        temperature: Sampling temperature (None for provider default)
        max_keys_per_provider: How many numbered credentials to collect
            (X, X_2 ... X_n) for each provider
        rate_limit_cooldown: Seconds a rate-limited key is skipped
        failure_cooldown: Base seconds a repeatedly failing key is skipped
            (multiplied by its failure count)
        max_key_failures: Failures before a key enters cooldown
        env_file: Optional .env file consulted for missing credentials

    Example:
        >>> config = OrchestratorConfig(timeout=30.0)
        >>> fast = config.with_timeout(10.0)
    """
    timeout: float = 60.0
    max_tokens: int = 4096
    temperature: Optional[float] = None
    max_keys_per_provider: int = 5
    rate_limit_cooldown: float = 60.0
    failure_cooldown: float = 60.0
    max_key_failures: int = 3
    env_file: Optional[str] = None

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise InvalidConfigError(f"timeout must be positive, got {self.timeout}")
        if self.max_keys_per_provider < 1:
            raise InvalidConfigError("max_keys_per_provider must be at least 1")
        if self.max_key_failures < 1:
            raise InvalidConfigError("max_key_failures must be at least 1")

    def with_timeout(self, timeout: float) -> OrchestratorConfig:
        """Return a new config with a different attempt timeout."""
        return replace(self, timeout=timeout)

    def with_temperature(self, temperature: Optional[float]) -> OrchestratorConfig:
        """Return a new config with a different sampling temperature."""
        return replace(self, temperature=temperature)

    def with_env_file(self, env_file: Optional[str]) -> OrchestratorConfig:
        """Return a new config reading credentials from a .env file."""
        return replace(self, env_file=env_file)


# Default settings
DEFAULT_CONFIG = OrchestratorConfig()

# Short timeouts for interactive chat
CHAT_CONFIG = OrchestratorConfig(timeout=30.0)


__all__ = [
    "OrchestratorConfig",
    "DEFAULT_CONFIG",
    "CHAT_CONFIG",
]
