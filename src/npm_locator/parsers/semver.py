"""Minimal semver range validation for declared and resolved versions.

Accepted expressions:
- exact versions (e.g., "1.2.3", "1.2", "1")
- a single range operator in front: ^ ~ >= <= > < =  (e.g., "^1.2.3", ">= 2.0")
- optional pre-release and build suffixes (e.g., "1.0.0-beta.1+build.5")

Rejected regardless of shape: workspace:, link:, file:, git+, http(s)://,
github: references, anything starting with "*", and "latest".
"""

from __future__ import annotations

import re

_SEMVER_RE = re.compile(
    r"^(\^|~|>=?|<=?|=)?\s*\d+(\.\d+)?(\.\d+)?(-[a-zA-Z0-9.-]+)?(\+[a-zA-Z0-9.-]+)?$",
    re.ASCII,
)

_EXCLUDED_PATTERNS = (
    re.compile(r"^workspace:", re.IGNORECASE),
    re.compile(r"^link:", re.IGNORECASE),
    re.compile(r"^file:", re.IGNORECASE),
    re.compile(r"^git\+", re.IGNORECASE),
    re.compile(r"^https?://", re.IGNORECASE),
    re.compile(r"^github:", re.IGNORECASE),
    re.compile(r"^\*"),
    re.compile(r"^latest$", re.IGNORECASE),
)

_QUOTES = "\"'"


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        value = value[1:-1].strip()
    return value


def is_excluded(value: str) -> bool:
    return any(pattern.search(value) for pattern in _EXCLUDED_PATTERNS)


def normalize(raw: str) -> str | None:
    """Return the canonical form of ``raw``, or None when it is not a usable version."""
    value = _unquote(raw)
    if is_excluded(value):
        return None
    if not _SEMVER_RE.match(value):
        return None
    return value


def is_valid_version(raw: str) -> bool:
    return normalize(raw) is not None
