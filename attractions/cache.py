"""
In-process TTL cache with lazy expiry.

Instances are created once per application and injected into the services
that need them, so tests can pass their own clock and start from empty.
"""

import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """Key/value cache whose entries expire after a time-to-live"""

    def __init__(self, default_ttl: float = 300, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self.clock = clock
        self._store: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Get a value, dropping it if it has expired"""
        item = self._store.get(key)
        if item is None:
            return None

        value, expires_at = item
        if expires_at <= self.clock():
            self._store.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store a value and sweep anything already expired"""
        ttl = self.default_ttl if ttl is None else ttl
        self._store[key] = (value, self.clock() + ttl)
        self.cleanup()

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def cleanup(self) -> int:
        """Remove expired entries, returning how many were dropped"""
        now = self.clock()
        expired = [k for k, (_, expires_at) in self._store.items() if expires_at <= now]
        for key in expired:
            del self._store[key]
        return len(expired)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
