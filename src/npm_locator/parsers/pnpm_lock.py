"""Stream pnpm-lock.yaml for one package's resolved versions.

The key layout differs between pnpm releases, so two checks run on every line:

- package keys such as ``/lodash/4.17.21:`` (v5), ``/lodash@4.17.21:``
  (v6-v8) or ``lodash@4.17.21:`` (v9), from which the numeric version is taken;
- any line naming the package that also carries ``version: <value>``.

Both may fire for the same entry. Duplicates and non-version values are left
for the version collector to filter.
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

_KEY_VERSION_RE = re.compile(r"^(\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.+-]+)?)")
_INLINE_VERSION_RE = re.compile(r"version:\s*(\S+)")


def _key_pattern(package_name: str) -> re.Pattern[str]:
    return re.compile(r"""^\s+['"]?/?""" + re.escape(package_name) + r"""[/@]([^:'"\s]+)""")


def extract(stream: ByteStream | None, package_name: str) -> Iterator[ExtractionMatch]:
    log.debug("lockfile.stream_start", format="pnpm", package=package_name)
    if stream is None:
        log.warning("lockfile.no_body", format="pnpm", package=package_name)
        return iter(())
    return StreamScan(stream, partial(_scan, package_name=package_name))


def _scan(lines: Iterator[tuple[int, str]], package_name: str) -> Iterator[ExtractionMatch]:
    key_re = _key_pattern(package_name)

    with closing(lines):
        for line_number, line in lines:
            key_match = key_re.match(line)
            if key_match:
                version_match = _KEY_VERSION_RE.match(key_match.group(1).lstrip("/"))
                if version_match:
                    yield ExtractionMatch(version=version_match.group(1), line_number=line_number)

            if package_name in line:
                inline = _INLINE_VERSION_RE.search(line)
                if inline:
                    yield ExtractionMatch(version=inline.group(1), line_number=line_number)

    log.debug("lockfile.stream_done", format="pnpm", package=package_name)
