"""Stream bun.lock (text format) for one package's versions.

Any line naming the package is searched for the first semver-shaped token.
This over-matches on purpose; the version collector drops anything that is
not a version.
"""

from __future__ import annotations

import re
from contextlib import closing
from functools import partial
from collections.abc import Iterator

import structlog

from ..models import ExtractionMatch
from .lines import ByteStream, StreamScan

log = structlog.get_logger("npm_locator.parsers.lockfile")

_VERSION_RE = re.compile(r"""["']?([0-9]+\.[0-9]+\.[0-9]+[^"'\s]*)["']?""")


def extract(stream: ByteStream | None, package_name: str) -> Iterator[ExtractionMatch]:
    log.debug("lockfile.stream_start", format="bun", package=package_name)
    if stream is None:
        log.warning("lockfile.no_body", format="bun", package=package_name)
        return iter(())
    return StreamScan(stream, partial(_scan, package_name=package_name))


def _scan(lines: Iterator[tuple[int, str]], package_name: str) -> Iterator[ExtractionMatch]:
    with closing(lines):
        for line_number, line in lines:
            if package_name not in line:
                continue
            match = _VERSION_RE.search(line)
            if match:
                yield ExtractionMatch(version=match.group(1), line_number=line_number)

    log.debug("lockfile.stream_done", format="bun", package=package_name)
