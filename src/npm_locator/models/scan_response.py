"""Aggregate response for one repository scan."""

from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Iterable

from ..collector import VersionCollector
from .dependency_record import DependencyRecord


@dataclass(frozen=True)
class ScanResponse:
    """Every occurrence of ``pkg`` found in ``repo``, plus its distinct versions."""

    repo: str
    pkg: str
    sources: tuple[DependencyRecord, ...]
    versions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if "/" not in self.repo:
            raise ValueError("repo must be in owner/name form")
        if not self.pkg:
            raise ValueError("pkg must be non-empty")
        if list(self.versions) != sorted(set(self.versions)):
            raise ValueError("versions must be unique and sorted")

    @property
    def totals(self) -> dict[str, int]:
        return {
            "sources": len(self.sources),
            "files": len({record.path for record in self.sources}),
            "versions": len(self.versions),
        }

    def to_dict(self) -> dict[str, object]:
        return {
            "repo": self.repo,
            "pkg": self.pkg,
            "sources": [record.to_dict() for record in self.sources],
            "versions": list(self.versions),
            "totals": self.totals,
        }

    @classmethod
    def from_records(
        cls, *, repo: str, pkg: str, records: Iterable[DependencyRecord]
    ) -> ScanResponse:
        sources = tuple(records)
        collector = VersionCollector()
        for record in sources:
            collector.add(record.path, record.version)
        return cls(repo=repo, pkg=pkg, sources=sources, versions=tuple(collector.get_all()))
