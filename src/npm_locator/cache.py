"""In-memory LRU cache with per-entry expiry for scan responses."""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, TypeVar
from collections.abc import Callable, Hashable

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_MAX_AGE_SECONDS = 60 * 60
KEY_SEPARATOR = "\0"


@dataclass(slots=True)
class _Entry(Generic[V]):
    value: V
    expires_at: float


class LRUCache(Generic[K, V]):
    """Least-recently-used cache; entries also expire ``max_age_seconds`` after being set."""

    def __init__(
        self,
        max_size: int,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("Cache max_size must be at least 1")
        self._entries: OrderedDict[K, _Entry[V]] = OrderedDict()
        self._max_size = max_size
        self._max_age = max_age_seconds
        self._clock = clock

    def _live_entry(self, key: K) -> _Entry[V] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def get(self, key: K) -> V | None:
        entry = self._live_entry(key)
        if entry is None:
            return None
        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: K, value: V) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self._max_size:
            self._entries.popitem(last=False)
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + self._max_age)

    def has(self, key: K) -> bool:
        return self._live_entry(key) is not None

    def delete(self, key: K) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    @property
    def size(self) -> int:
        return len(self._entries)


def generate_cache_key(owner: str, repo: str, pkg: str, ref: str | None = None) -> str:
    """Join the request identifiers with NUL, which none of them can contain."""
    parts = [owner, repo, pkg]
    if ref:
        parts.append(ref)
    return KEY_SEPARATOR.join(parts)
