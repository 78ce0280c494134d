"""KeyRing - rotating pool of API keys for one provider.

A provider may be configured with several keys (GROQ_API_KEY,
GROQ_API_KEY_2, ...). The ring hands out the current usable key and
rotates away from keys that hit a rate limit or keep failing.

Cooldown rules:
    - Rate-limited key: skipped for rate_limit_cooldown seconds
    - Key with >= max_failures failures: skipped for
      failure_cooldown * failure_count seconds, then reset
    - Success: failure count decremented by one
    - Every key cooling down: the first key is used anyway

The ring is per backend instance (mutable), while the registry that
supplied the keys stays immutable.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass
class KeyState:
    """Health of a single key."""
    key: str
    failure_count: int = 0
    last_failure: Optional[float] = None
    rate_limited_until: Optional[float] = None


@dataclass(frozen=True)
class KeyStats:
    """Snapshot of key ring health."""
    total: int
    available: int
    rate_limited: int
    in_cooldown: int

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "available": self.available,
            "rate_limited": self.rate_limited,
            "in_cooldown": self.in_cooldown,
        }


class KeyRing:
    """Rotating key pool with failure and rate-limit cooldowns.

    Example:
        >>> ring = KeyRing(["key-a", "key-b"], name="groq")
        >>> key = ring.current()
        >>> ring.report_failure(key, rate_limited=True)
        >>> ring.current()
        'key-b'
    """

    def __init__(
        self,
        keys: Sequence[str],
        *,
        name: str = "",
        rate_limit_cooldown: float = 60.0,
        failure_cooldown: float = 60.0,
        max_failures: int = 3,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._states = [KeyState(key=k) for k in keys]
        self._index = 0
        self._name = name or "provider"
        self._rate_limit_cooldown = rate_limit_cooldown
        self._failure_cooldown = failure_cooldown
        self._max_failures = max_failures
        self._clock = clock

    def __len__(self) -> int:
        return len(self._states)

    def __bool__(self) -> bool:
        return bool(self._states)

    def _is_available(self, state: KeyState, now: float) -> bool:
        if state.rate_limited_until is not None:
            if now < state.rate_limited_until:
                return False
            state.rate_limited_until = None

        if state.failure_count >= self._max_failures and state.last_failure is not None:
            cooldown = self._failure_cooldown * state.failure_count
            if now - state.last_failure < cooldown:
                return False
            state.failure_count = 0
            state.last_failure = None

        return True

    def current(self) -> Optional[str]:
        """Return the key to use for the next request.

        Returns:
            A key, or None if the ring is empty
        """
        if not self._states:
            return None

        now = self._clock()
        start = self._index
        while True:
            state = self._states[self._index]
            if self._is_available(state, now):
                return state.key
            self._index = (self._index + 1) % len(self._states)
            if self._index == start:
                break

        logger.warning(
            f"[{self._name}] All keys are in cooldown, using first key anyway"
        )
        return self._states[0].key

    def _find(self, key: Optional[str]) -> Optional[int]:
        if key is None:
            return self._index if self._states else None
        for i, state in enumerate(self._states):
            if state.key == key:
                return i
        return None

    def report_success(self, key: Optional[str] = None) -> None:
        """Record a successful request made with key (default: current)."""
        index = self._find(key)
        if index is None:
            return
        state = self._states[index]
        if state.failure_count > 0:
            state.failure_count -= 1

    def report_failure(self, key: Optional[str] = None, *, rate_limited: bool = False) -> None:
        """Record a failed request made with key and rotate to the next key."""
        index = self._find(key)
        if index is None:
            return

        state = self._states[index]
        now = self._clock()
        if rate_limited:
            state.rate_limited_until = now + self._rate_limit_cooldown
            logger.warning(
                f"[{self._name}] Key {index + 1} rate limited, "
                f"cooldown {self._rate_limit_cooldown}s"
            )
        else:
            state.failure_count += 1
            state.last_failure = now
            logger.warning(
                f"[{self._name}] Key {index + 1} failed "
                f"({state.failure_count}/{self._max_failures})"
            )

        if index == self._index:
            self.rotate()

    def rotate(self) -> None:
        """Move to the next key."""
        if len(self._states) <= 1:
            return
        previous = self._index
        self._index = (self._index + 1) % len(self._states)
        logger.debug(
            f"[{self._name}] Rotated from key {previous + 1} to key {self._index + 1}"
        )

    def stats(self) -> KeyStats:
        """Count keys by health without mutating their state."""
        now = self._clock()
        available = rate_limited = in_cooldown = 0

        for state in self._states:
            if state.rate_limited_until is not None and now < state.rate_limited_until:
                rate_limited += 1
            elif (
                state.failure_count >= self._max_failures
                and state.last_failure is not None
                and now - state.last_failure < self._failure_cooldown * state.failure_count
            ):
                in_cooldown += 1
            else:
                available += 1

        return KeyStats(
            total=len(self._states),
            available=available,
            rate_limited=rate_limited,
            in_cooldown=in_cooldown,
        )


__all__ = ["KeyRing", "KeyState", "KeyStats"]
