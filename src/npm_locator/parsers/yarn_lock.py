"""Stream yarn v1 yarn.lock files for one package's resolved versions."""

from __future__ import annotations

import re
from contextlib import closing
from functools import partial
from collections.abc import Iterator

import structlog

from ..models import ExtractionMatch
from .lines import ByteStream, StreamScan

log = structlog.get_logger("npm_locator.parsers.lockfile")

_VERSION_RE = re.compile(r'^\s+version\s+"([^"]+)"')


def _is_header(line: str, package_name: str) -> bool:
    # lodash@^4.17.0:  or  "@types/node@^20", "@types/node@^20.1":
    return line.startswith(f"{package_name}@") or f'"{package_name}@' in line


def extract(stream: ByteStream | None, package_name: str) -> Iterator[ExtractionMatch]:
    """Yield the ``version "..."`` of every block whose header names ``package_name``.

    A block ends after its version line, at a blank line, or at the next
    unindented line, whichever comes first.
    """
    log.debug("lockfile.stream_start", format="yarn", package=package_name)
    if stream is None:
        log.warning("lockfile.no_body", format="yarn", package=package_name)
        return iter(())
    return StreamScan(stream, partial(_scan, package_name=package_name))


def _scan(lines: Iterator[tuple[int, str]], package_name: str) -> Iterator[ExtractionMatch]:
    in_block = False

    with closing(lines):
        for line_number, line in lines:
            if _is_header(line, package_name):
                in_block = True
                log.debug("lockfile.yarn_header", line_number=line_number, line=line.strip())
                continue

            if not in_block:
                continue

            if not line.strip() or not line.startswith((" ", "\t")):
                in_block = False
                continue

            match = _VERSION_RE.match(line)
            if match:
                yield ExtractionMatch(version=match.group(1), line_number=line_number)
                in_block = False

    log.debug("lockfile.stream_done", format="yarn", package=package_name)
