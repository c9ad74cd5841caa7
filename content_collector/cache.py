"""Key/value cache with optional per-entry expiry.

Loader plugins use :class:`Cache` to avoid refetching the same remote data
within a collection run. Expiry is measured against a monotonic clock; an
entry whose deadline has passed is evicted the next time the cache is
touched, so callers never observe a stale value.

Example
-------
>>> cache = Cache()
>>> cache.set("url:https://example.invalid/a.json", {"a": 1}, ttl=1000)
>>> cache.get("url:https://example.invalid/a.json")
{'a': 1}
>>> cache.has("missing")
False
"""

from __future__ import annotations

import time
import typing as typ

_MISSING = object()


class Cache:
    """Unbounded cache whose entries may expire after ``ttl`` milliseconds."""

    def __init__(self, *, clock: typ.Callable[[], float] = time.monotonic) -> None:
        """Create an empty cache.

        Parameters
        ----------
        clock : Callable[[], float], optional
            Returns the current time in seconds. Defaults to
            :func:`time.monotonic`; tests pass a controllable clock.
        """
        self._clock = clock
        self._store: dict[typ.Hashable, typ.Any] = {}
        self._deadlines: dict[typ.Hashable, float] = {}

    def set(self, key: typ.Hashable, value: typ.Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key``, replacing any pending expiry.

        A falsy ``ttl`` stores the value without expiry.
        """
        self._store[key] = value
        self._deadlines.pop(key, None)
        if ttl:
            self._deadlines[key] = self._clock() + ttl / 1000

    def get(self, key: typ.Hashable, default: typ.Any = None) -> typ.Any:
        if self._expire(key):
            return default
        return self._store.get(key, default)

    def has(self, key: typ.Hashable) -> bool:
        if self._expire(key):
            return False
        return key in self._store

    def delete(self, key: typ.Hashable) -> bool:
        """Remove ``key``; return ``True`` when a live entry was removed."""
        if self._expire(key):
            return False
        self._deadlines.pop(key, None)
        return self._store.pop(key, _MISSING) is not _MISSING

    def clear(self) -> None:
        self._store.clear()
        self._deadlines.clear()

    def __contains__(self, key: object) -> bool:
        return self.has(typ.cast("typ.Hashable", key))

    def __len__(self) -> int:
        for key in list(self._deadlines):
            self._expire(key)
        return len(self._store)

    def _expire(self, key: typ.Hashable) -> bool:
        """Evict ``key`` if its deadline has passed and report whether it did."""
        deadline = self._deadlines.get(key)
        if deadline is None or self._clock() < deadline:
            return False
        del self._deadlines[key]
        self._store.pop(key, None)
        return True


__all__ = ["Cache"]
