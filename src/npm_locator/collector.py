"""Collect distinct, normalized versions grouped by an arbitrary key."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Hashable

import structlog

from .parsers.semver import normalize

log = structlog.get_logger("npm_locator.collector")


class VersionCollector:
    """Set of normalized versions per key.

    Not safe for concurrent mutation; use one instance per scan.
    """

    def __init__(self) -> None:
        self._versions: dict[Hashable, set[str]] = defaultdict(set)

    def add(self, key: Hashable, raw: str) -> bool:
        """Record ``raw`` under ``key``; returns False when the version is rejected."""
        normalized = normalize(raw)
        if normalized is None:
            log.debug("collector.version_skipped", key=key, version=raw)
            return False
        self._versions[key].add(normalized)
        return True

    def get(self, key: Hashable) -> list[str]:
        versions = self._versions.get(key)
        if not versions:
            return []
        return sorted(versions)

    def get_all(self) -> list[str]:
        merged: set[str] = set()
        for versions in self._versions.values():
            merged.update(versions)
        return sorted(merged)

    def clear(self) -> None:
        self._versions.clear()

    @property
    def size(self) -> int:
        return len(self.get_all())
