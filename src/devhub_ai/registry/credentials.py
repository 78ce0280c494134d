"""Credential Resolution.

Collects API keys for each provider from an environment-style mapping
and, optionally, a .env file. Only presence matters; keys are never
validated against the remote service and never logged.

Resolution priority:
    1. The mapping passed in (defaults to os.environ)
    2. The .env file, for variables missing from the mapping
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def load_env_file(env_file: str) -> dict[str, str]:
    """Parse KEY=VALUE lines from a .env file.

    Blank lines and comments are skipped; surrounding quotes are stripped.
    A missing file yields an empty dict.

    Args:
        env_file: Path to .env file

    Returns:
        Parsed variables
    """
    env_path = Path(env_file)
    if not env_path.exists():
        logger.debug(f".env file not found: {env_file}")
        return {}

    _warn_if_permissive(env_path)

    values: dict[str, str] = {}
    try:
        with open(env_path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if line.startswith("export "):
                    line = line[len("export "):]
                if "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip().strip('"').strip("'")
    except (IOError, OSError) as e:
        logger.warning(f"Failed to read .env file {env_file}: {e}")

    return values


def _warn_if_permissive(env_path: Path) -> None:
    try:
        mode = env_path.stat().st_mode
    except OSError:
        return
    if mode & (stat.S_IRGRP | stat.S_IROTH):
        logger.warning(
            f".env file {env_path} is readable by group/others; "
            f"consider chmod 600"
        )


def collect_keys(
    env: Mapping[str, str],
    base_name: Optional[str],
    max_keys: int = 5,
) -> tuple[str, ...]:
    """Collect numbered credentials for one provider.

    Looks up base_name, base_name_2 ... base_name_<max_keys>. Empty or
    whitespace-only values are ignored; duplicates are dropped.

    Example:
        >>> collect_keys({"GROQ_API_KEY": "a", "GROQ_API_KEY_3": "c"}, "GROQ_API_KEY")
        ('a', 'c')
    """
    if not base_name:
        return ()

    names = [base_name] + [f"{base_name}_{i}" for i in range(2, max_keys + 1)]
    keys: list[str] = []
    for name in names:
        value = env.get(name)
        if value and value.strip() and value.strip() not in keys:
            keys.append(value.strip())
    return tuple(keys)


def resolve_env(
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = None,
) -> dict[str, str]:
    """Merge the credential mapping with an optional .env file.

    Values already present in env win over the file.
    """
    merged: dict[str, str] = {}
    if env_file:
        merged.update(load_env_file(env_file))
    merged.update(os.environ if env is None else env)
    return merged


__all__ = [
    "load_env_file",
    "collect_keys",
    "resolve_env",
]
