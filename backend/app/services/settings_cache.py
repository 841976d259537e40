"""Process-local TTL cache for decoded system settings."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from app.core.logging import get_logger

logger = get_logger(__name__)

# Distinguishes "not cached" from a cached None/False
MISSING = object()


class SettingsCache:
    """In-memory map of setting key to ``(decoded value, expiry instant)``.

    One instance lives for the lifetime of the process and is handed to every
    ``SettingsService``. Any successful settings write empties the whole map;
    the TTL bounds staleness if an invalidation is ever missed.
    """

    DEFAULT_TTL = 60.0

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            ttl: Default lifetime of an entry in seconds.
            clock: Monotonic time source (injectable for tests).
        """
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any:
        """Get a cached value if present and not expired.

        Returns:
            The decoded value, or ``MISSING`` when the caller must read through.
        """
        entry = self._entries.get(key)
        if entry is None:
            return MISSING

        value, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return MISSING
        return value

    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Install an entry, replacing any existing one for the same key."""
        lifetime = self.ttl if ttl is None else ttl
        self._entries[key] = (value, self._clock() + lifetime)

    def invalidate_all(self) -> None:
        """Drop every entry."""
        dropped = len(self._entries)
        self._entries = {}
        logger.debug("settings_cache_invalidated", dropped=dropped)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not MISSING
