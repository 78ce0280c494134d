"""Provider registry, credential resolution and key rotation."""

from .credentials import collect_keys, load_env_file, resolve_env
from .keys import KeyRing, KeyState, KeyStats
from .registry import CATALOG_PATH, ProviderRegistry, load_catalog

__all__ = [
    "ProviderRegistry",
    "load_catalog",
    "CATALOG_PATH",
    "KeyRing",
    "KeyState",
    "KeyStats",
    "collect_keys",
    "load_env_file",
    "resolve_env",
]
