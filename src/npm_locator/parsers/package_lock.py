"""Stream npm package-lock.json for one package's resolved versions.

Works line by line on the pretty-printed lockfile: a line mentioning
``"node_modules/<pkg>"`` or ``"<pkg>"`` opens a block, brace depth is counted
per line, and every ``"version": "..."`` inside the block is reported. The
block closes once the depth drops to zero on a line with a closing brace.
Unusual formatting can cause missed or extra matches, never an error.
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

_VERSION_RE = re.compile(r'"version":\s*"([^"]+)"')


def extract(stream: ByteStream | None, package_name: str) -> Iterator[ExtractionMatch]:
    log.debug("lockfile.stream_start", format="npm", package=package_name)
    if stream is None:
        log.warning("lockfile.no_body", format="npm", package=package_name)
        return iter(())
    return StreamScan(stream, partial(_scan, package_name=package_name))


def _scan(lines: Iterator[tuple[int, str]], package_name: str) -> Iterator[ExtractionMatch]:
    markers = (f'"node_modules/{package_name}"', f'"{package_name}"')
    in_block = False
    depth = 0

    with closing(lines):
        for line_number, line in lines:
            if any(marker in line for marker in markers):
                in_block = True
                depth = 0

            if not in_block:
                continue

            depth += line.count("{") - line.count("}")

            match = _VERSION_RE.search(line)
            if match:
                yield ExtractionMatch(version=match.group(1), line_number=line_number)

            if depth <= 0 and "}" in line:
                in_block = False

    log.debug("lockfile.stream_done", format="npm", package=package_name)
