"""DevHub AI - Exception Classes.

This module defines all exceptions raised by the orchestration layer.
All exceptions inherit from OrchestrationError for easy catching.

Taxonomy:
    Selection-time (never retried):
        - NoProvidersConfiguredError
        - UnknownProviderError
    Execution-time:
        - ProviderRequestFailedError (RateLimitError, AuthenticationError,
          ProviderTimeoutError)
        - SchemaValidationFailedError
        - AllProvidersFailedError

Usage:
    try:
        result = await executor.generate(TaskType.CHAT, system, message)
    except OrchestrationError as e:
        print(f"AI error: {e}")
"""

from __future__ import annotations

from typing import Any, Optional


class OrchestrationError(Exception):
    """Base exception for all orchestration errors."""
    pass


class InvalidConfigError(OrchestrationError):
    """Raised when configuration or the provider catalog is invalid."""

    def __init__(self, message: str):
        super().__init__(f"Invalid configuration: {message}")


class NoProvidersConfiguredError(OrchestrationError):
    """Raised when no provider has credentials configured."""

    def __init__(self, message: str = ""):
        super().__init__(
            message
            or "No AI providers available. Please configure at least one API key."
        )


class UnknownProviderError(OrchestrationError):
    """Raised when a provider id is not present in the registry."""

    def __init__(self, provider_id: str):
        self.provider_id = provider_id
        super().__init__(f"Unknown provider: {provider_id}")


class ProviderRequestFailedError(OrchestrationError):
    """Raised when a single provider attempt fails.

    Covers network errors, authentication, rate limits, timeouts and
    malformed responses. Recovered by execute_with_fallback(), surfaced
    directly by single-shot calls.
    """

    def __init__(
        self,
        provider: str,
        message: str = "",
        *,
        status_code: Optional[int] = None,
    ):
        self.provider = provider
        self.status_code = status_code
        msg = f"Request to {provider} failed"
        if status_code is not None:
            msg += f" (HTTP {status_code})"
        if message:
            msg += f": {message}"
        super().__init__(msg)


class RateLimitError(ProviderRequestFailedError):
    """Raised when the provider rejects a request with a rate limit."""

    def __init__(self, provider: str, retry_after: float = 0):
        self.retry_after = retry_after
        message = "rate limit exceeded"
        if retry_after > 0:
            message += f", retry after {retry_after}s"
        super().__init__(provider, message, status_code=429)


class AuthenticationError(ProviderRequestFailedError):
    """Raised when the provider rejects the configured credential."""

    def __init__(self, provider: str, status_code: int = 401):
        super().__init__(provider, "authentication failed", status_code=status_code)


class ProviderTimeoutError(ProviderRequestFailedError):
    """Raised when a provider attempt exceeds its timeout."""

    def __init__(self, provider: str, timeout: float):
        self.timeout = timeout
        super().__init__(provider, f"timed out after {timeout}s")


class SchemaValidationFailedError(OrchestrationError):
    """Raised when a provider response does not match the requested schema.

    Distinct from ProviderRequestFailedError: the provider did respond.
    Never retried automatically.
    """

    def __init__(
        self,
        provider: str,
        schema_name: str,
        errors: Optional[list[Any]] = None,
        raw: Any = None,
    ):
        self.provider = provider
        self.schema_name = schema_name
        self.errors = errors or []
        self.raw = raw
        msg = f"Response from {provider} does not match schema {schema_name}"
        if self.errors:
            msg += f" ({len(self.errors)} error(s))"
        super().__init__(msg)


class AllProvidersFailedError(OrchestrationError):
    """Raised when every provider in a fallback run failed.

    Attributes:
        errors: (provider_id, exception) pairs in attempt order
        last_error: The exception raised by the last provider tried
    """

    def __init__(self, errors: list[tuple[str, BaseException]]):
        self.errors = errors
        self.last_error: Optional[BaseException] = errors[-1][1] if errors else None
        msg = "All AI providers failed"
        if self.last_error is not None:
            msg += f" (last error from {errors[-1][0]}: {self.last_error})"
        super().__init__(msg)


__all__ = [
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
