"""Route a repository file to the matching extractor and build result records.

``extract_records`` handles one already-fetched file. ``dispatch`` wraps the
fetch and the extraction so that a failure in one file is logged and reported
as a ``FileOutcome`` instead of interrupting the rest of the scan.
"""

from __future__ import annotations

from contextlib import closing
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Union
from collections.abc import Callable, Iterator

import structlog

from .models import DependencyRecord, DependencyType, ExtractionMatch, SourceKind
from .parsers import bun_lock, package_lock, pnpm_lock, yarn_lock
from .parsers.lines import ByteStream
from .parsers.package_json import find_in_manifest

log = structlog.get_logger("npm_locator.dispatch")

MANIFEST_NAME = "package.json"

LockfileExtractor = Callable[[Union[ByteStream, None], str], Iterator[ExtractionMatch]]

LOCKFILE_EXTRACTORS: dict[str, LockfileExtractor] = {
    "package-lock.json": package_lock.extract,
    "yarn.lock": yarn_lock.extract,
    "pnpm-lock.yaml": pnpm_lock.extract,
    "bun.lock": bun_lock.extract,
}

Source = Union[str, bytes, ByteStream, None]


@dataclass(frozen=True)
class FileOutcome:
    """Per-file result: the records found, or the error that stopped the file."""

    path: str
    records: tuple[DependencyRecord, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def classify_path(file_path: str) -> SourceKind | None:
    name = PurePosixPath(file_path).name
    if name == MANIFEST_NAME:
        return SourceKind.MANIFEST
    if name in LOCKFILE_EXTRACTORS:
        return SourceKind.LOCKFILE
    return None


def is_manifest(file_path: str) -> bool:
    return classify_path(file_path) is SourceKind.MANIFEST


def is_lockfile(file_path: str) -> bool:
    return classify_path(file_path) is SourceKind.LOCKFILE


def build_line_url(repo_url: str, ref: str, file_path: str, line_number: int) -> str:
    return f"{repo_url}/blob/{ref}/{file_path}#L{line_number}"


def _manifest_records(
    file_path: str, content: str | bytes, package_name: str, *, repo_url: str, ref: str
) -> list[DependencyRecord]:
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    records: list[DependencyRecord] = []
    for section, match in find_in_manifest(content, package_name):
        records.append(
            DependencyRecord.from_match(
                match,
                path=file_path,
                source_kind=SourceKind.MANIFEST,
                dependency_type=section,
                line_url=build_line_url(repo_url, ref, file_path, match.line_number),
            )
        )
    return records


def _lockfile_records(
    file_path: str, stream: ByteStream | None, package_name: str, *, repo_url: str, ref: str
) -> list[DependencyRecord]:
    extractor = LOCKFILE_EXTRACTORS[PurePosixPath(file_path).name]
    records: list[DependencyRecord] = []
    for match in extractor(stream, package_name):
        records.append(
            DependencyRecord.from_match(
                match,
                path=file_path,
                source_kind=SourceKind.LOCKFILE,
                dependency_type=DependencyType.RESOLVED,
                line_url=build_line_url(repo_url, ref, file_path, match.line_number),
            )
        )
        log.debug(
            "dispatch.lockfile_match",
            path=file_path,
            version=match.version,
            line_number=match.line_number,
        )
    return records


def extract_records(
    file_path: str,
    source: Source,
    package_name: str,
    *,
    repo_url: str,
    ref: str,
) -> list[DependencyRecord]:
    """Return every occurrence of ``package_name`` in one file.

    ``source`` is the full text for manifests and a byte stream for lockfiles.
    A stream handed in for an unrecognized path is closed unread.
    """
    kind = classify_path(file_path)
    if kind is SourceKind.MANIFEST:
        if source is None:
            log.warning("dispatch.no_body", path=file_path)
            return []
        if not isinstance(source, (str, bytes)):
            # Manifest handed over as a stream: read it whole.
            with closing(source):
                source = b"".join(source.iter_content(chunk_size=None))
        return _manifest_records(file_path, source, package_name, repo_url=repo_url, ref=ref)

    if kind is SourceKind.LOCKFILE:
        if isinstance(source, (str, bytes)):
            raise TypeError(f"Lockfile {file_path} must be supplied as a byte stream")
        return _lockfile_records(file_path, source, package_name, repo_url=repo_url, ref=ref)

    log.warning("dispatch.unrecognized_file", path=file_path)
    close = getattr(source, "close", None)
    if callable(close):
        close()
    return []


def dispatch(
    file_path: str,
    open_source: Callable[[], Source],
    package_name: str,
    *,
    repo_url: str,
    ref: str,
) -> FileOutcome:
    """Fetch and extract one file, turning any failure into an error outcome."""
    try:
        source = open_source()
        records = extract_records(file_path, source, package_name, repo_url=repo_url, ref=ref)
    except Exception as exc:
        log.error("dispatch.file_failed", path=file_path, error=str(exc), exc_info=True)
        return FileOutcome(path=file_path, error=str(exc) or exc.__class__.__name__)

    log.debug("dispatch.file_done", path=file_path, records=len(records))
    return FileOutcome(path=file_path, records=tuple(records))
