"""Data models for dependency occurrences and scan responses."""

from __future__ import annotations

from .dependency_record import (
    MANIFEST_SECTIONS,
    DependencyRecord,
    DependencyType,
    ExtractionMatch,
    SourceKind,
)
from .rate_limit import RateLimitInfo
from .scan_response import ScanResponse

__all__ = [
    "MANIFEST_SECTIONS",
    "DependencyRecord",
    "DependencyType",
    "ExtractionMatch",
    "RateLimitInfo",
    "ScanResponse",
    "SourceKind",
]
