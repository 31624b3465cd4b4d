"""Per-key transient cache with monotonic expiry."""

import time
from typing import Any


class TransientCache:
    """Holds values for a fixed number of seconds after they are set.

    Expired entries are dropped when read, and swept periodically on writes
    to bound memory usage.
    """

    def __init__(self, ttl: float = 60.0, cleanup_interval: float = 60.0) -> None:
        self.ttl = ttl
        self._entries: dict[str, tuple[float, Any]] = {}
        self._last_cleanup = time.monotonic()
        self._cleanup_interval = cleanup_interval

    def _cleanup_stale(self, now: float) -> None:
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now
        stale_keys = [key for key, (expires, _) in self._entries.items() if expires <= now]
        for key in stale_keys:
            del self._entries[key]

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value for *key*, or *default* if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires, value = entry
        if expires <= time.monotonic():
            del self._entries[key]
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Cache *value* under *key* for ``ttl`` seconds."""
        now = time.monotonic()
        self._cleanup_stale(now)
        self._entries[key] = (now + self.ttl, value)

    def delete(self, key: str) -> bool:
        """Drop *key*. Returns True if an entry (live or expired) was removed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        return len(self._entries)


_MISSING = object()
