"""GitHub rate limit snapshot model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from collections.abc import Mapping

_HEADER_PREFIX = "X-RateLimit-"


@dataclass(frozen=True)
class RateLimitInfo:
    """Rate limit state reported by the last GitHub API response."""

    limit: int
    remaining: int
    reset: int
    used: int
    resource: str

    def __post_init__(self) -> None:
        if self.limit < 0 or self.remaining < 0 or self.used < 0:
            raise ValueError("Rate limit counters must be non-negative")
        if not self.resource:
            raise ValueError("resource must be provided")

    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset, tz=timezone.utc)

    def to_dict(self) -> dict[str, object]:
        return {
            "limit": self.limit,
            "remaining": self.remaining,
            "reset": self.reset,
            "used": self.used,
            "resource": self.resource,
        }

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> RateLimitInfo | None:
        """Parse the ``X-RateLimit-*`` headers; ``None`` when any is missing or invalid."""
        try:
            return cls(
                limit=int(headers[_HEADER_PREFIX + "Limit"]),
                remaining=int(headers[_HEADER_PREFIX + "Remaining"]),
                reset=int(headers[_HEADER_PREFIX + "Reset"]),
                used=int(headers[_HEADER_PREFIX + "Used"]),
                resource=str(headers[_HEADER_PREFIX + "Resource"]),
            )
        except (KeyError, TypeError, ValueError):
            return None
