"""Pick the manifests and lockfiles worth scanning out of a repository tree."""

from __future__ import annotations

from pathlib import PurePosixPath
from collections.abc import Iterable

from .dispatch import is_lockfile, is_manifest

EXCLUDES = {"node_modules", ".git"}


def discover_targets(paths: Iterable[str]) -> list[str]:
    """Return repository paths to scan: manifests first, then lockfiles.

    Targets include: package.json, package-lock.json, yarn.lock,
    pnpm-lock.yaml, bun.lock. Vendored copies under node_modules are skipped.
    """
    manifests: list[str] = []
    lockfiles: list[str] = []

    def should_skip(path: str) -> bool:
        parts = set(PurePosixPath(path).parts)
        return any(ex in parts for ex in EXCLUDES)

    for path in paths:
        if should_skip(path):
            continue
        if is_manifest(path):
            manifests.append(path)
        elif is_lockfile(path):
            lockfiles.append(path)

    return sorted(manifests) + sorted(lockfiles)
