"""Provider Registry.

Static catalog of AI providers with availability computed once, at
construction, from credential presence. The registry is immutable
afterwards and is passed into executors and sessions explicitly, so
tests can build arbitrary registries without touching os.environ.

Usage:
    >>> registry = ProviderRegistry.from_env()
    >>> [p.id for p in registry.available()]
    ['groq', 'openai']

    >>> registry = ProviderRegistry([
    ...     ProviderDescriptor(id="a", display_name="A", models=("m",), available=True),
    ... ])
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Sequence, Union

import yaml

from devhub_ai.types import InvalidConfigError, ProviderDescriptor, UnknownProviderError

from .credentials import collect_keys, resolve_env

logger = logging.getLogger(__name__)

# Packaged default catalog
CATALOG_PATH = Path(__file__).parent / "catalog.yaml"


def load_catalog(path: Union[str, Path, None] = None) -> list[ProviderDescriptor]:
    """Load provider descriptors from a YAML catalog.

    Args:
        path: Catalog file (default: packaged catalog.yaml)

    Returns:
        Descriptors in declaration order, all marked unavailable

    Raises:
        InvalidConfigError: If the file is malformed
    """
    path = Path(path) if path else CATALOG_PATH
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise InvalidConfigError(f"cannot read provider catalog {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("providers"), list):
        raise InvalidConfigError(f"provider catalog {path} must define a 'providers' list")

    descriptors = []
    for entry in data["providers"]:
        if not isinstance(entry, dict) or "id" not in entry:
            raise InvalidConfigError(f"catalog entry without id in {path}: {entry!r}")
        descriptors.append(ProviderDescriptor.from_dict({**entry, "available": False}))
    return descriptors


class ProviderRegistry:
    """Immutable catalog of providers.

    Invariants:
        - Provider ids are unique
        - Available providers declare at least one model
    """

    def __init__(
        self,
        providers: Sequence[ProviderDescriptor],
        keys: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> None:
        """Initialize registry.

        Args:
            providers: Descriptors in declaration order
            keys: Credentials per provider id (for backends)

        Raises:
            InvalidConfigError: If an invariant is violated
        """
        seen: set[str] = set()
        for descriptor in providers:
            if descriptor.id in seen:
                raise InvalidConfigError(f"duplicate provider id: {descriptor.id}")
            seen.add(descriptor.id)
            if descriptor.available and not descriptor.models:
                raise InvalidConfigError(
                    f"provider {descriptor.id} is available but declares no models"
                )

        self._providers: tuple[ProviderDescriptor, ...] = tuple(providers)
        self._by_id: Mapping[str, ProviderDescriptor] = MappingProxyType(
            {p.id: p for p in self._providers}
        )
        self._keys: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {pid: tuple(k) for pid, k in (keys or {}).items()}
        )
        # Sort is stable, so equal priorities keep declaration order
        self._available: tuple[ProviderDescriptor, ...] = tuple(
            sorted((p for p in self._providers if p.available), key=lambda p: p.priority)
        )

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        *,
        env_file: Optional[str] = None,
        catalog: Union[str, Path, Sequence[ProviderDescriptor], None] = None,
        max_keys: int = 5,
    ) -> ProviderRegistry:
        """Build a registry from a catalog and credential mapping.

        A provider is available iff at least one of its credentials is
        present. Nothing is sent over the network.

        Args:
            env: Credential mapping (default: os.environ)
            env_file: Optional .env file for credentials missing from env
            catalog: Catalog path or descriptors (default: packaged catalog)
            max_keys: Numbered credentials collected per provider

        Returns:
            ProviderRegistry
        """
        if catalog is None or isinstance(catalog, (str, Path)):
            descriptors = load_catalog(catalog)
        else:
            descriptors = list(catalog)

        merged_env = resolve_env(env, env_file)

        providers: list[ProviderDescriptor] = []
        keys: dict[str, tuple[str, ...]] = {}
        for descriptor in descriptors:
            found = collect_keys(merged_env, descriptor.credential_env, max_keys)
            keys[descriptor.id] = found
            providers.append(descriptor.with_availability(bool(found)))
            if found:
                logger.info(f"Provider {descriptor.id}: {len(found)} API key(s) configured")
            else:
                logger.debug(f"Provider {descriptor.id}: no credentials, unavailable")

        return cls(providers, keys)

    def list(self) -> tuple[ProviderDescriptor, ...]:
        """All registered providers in declaration order."""
        return self._providers

    def available(self) -> tuple[ProviderDescriptor, ...]:
        """Available providers sorted by priority (ties: declaration order)."""
        return self._available

    def get(self, provider_id: str) -> ProviderDescriptor:
        """Look up a provider by id.

        Raises:
            UnknownProviderError: If id is not registered
        """
        try:
            return self._by_id[provider_id]
        except KeyError:
            raise UnknownProviderError(provider_id) from None

    def keys(self, provider_id: str) -> tuple[str, ...]:
        """Credentials collected for a provider (empty if none)."""
        self.get(provider_id)
        return self._keys.get(provider_id, ())

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._by_id

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def __repr__(self) -> str:
        ids = ", ".join(
            f"{p.id}{'' if p.available else ' (unavailable)'}" for p in self._providers
        )
        return f"ProviderRegistry([{ids}])"


__all__ = ["ProviderRegistry", "load_catalog", "CATALOG_PATH"]
