"""Dependency occurrence models produced by the extractors."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SourceKind(str, Enum):
    """Which kind of file an occurrence was found in."""

    MANIFEST = "manifest"
    LOCKFILE = "lockfile"


class DependencyType(str, Enum):
    """Relation of the package to the project, using the manifest section names."""

    DEPENDENCIES = "dependencies"
    DEV_DEPENDENCIES = "devDependencies"
    PEER_DEPENDENCIES = "peerDependencies"
    OPTIONAL_DEPENDENCIES = "optionalDependencies"
    RESOLVED = "resolved"


MANIFEST_SECTIONS: tuple[DependencyType, ...] = (
    DependencyType.DEPENDENCIES,
    DependencyType.DEV_DEPENDENCIES,
    DependencyType.PEER_DEPENDENCIES,
    DependencyType.OPTIONAL_DEPENDENCIES,
)


@dataclass(frozen=True)
class ExtractionMatch:
    """A version string found at a given 1-indexed line."""

    version: str
    line_number: int

    def __post_init__(self) -> None:
        if self.line_number < 1:
            raise ValueError("line_number must be 1 or greater")


@dataclass(frozen=True)
class DependencyRecord:
    """One occurrence of the target package in one repository file."""

    path: str
    source_kind: SourceKind
    dependency_type: DependencyType
    version: str
    line_number: int
    line_url: str

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("path must be non-empty")
        if self.line_number < 1:
            raise ValueError("line_number must be 1 or greater")
        is_resolved = self.dependency_type is DependencyType.RESOLVED
        if is_resolved != (self.source_kind is SourceKind.LOCKFILE):
            raise ValueError(
                f"{self.source_kind.value} records cannot have dependency type "
                f"{self.dependency_type.value}"
            )

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "type": self.source_kind.value,
            "dependencyType": self.dependency_type.value,
            "version": self.version,
            "lineNumber": self.line_number,
            "lineUrl": self.line_url,
        }

    @classmethod
    def from_match(
        cls,
        match: ExtractionMatch,
        *,
        path: str,
        source_kind: SourceKind,
        dependency_type: DependencyType,
        line_url: str,
    ) -> DependencyRecord:
        return cls(
            path=path,
            source_kind=source_kind,
            dependency_type=dependency_type,
            version=match.version,
            line_number=match.line_number,
            line_url=line_url,
        )
