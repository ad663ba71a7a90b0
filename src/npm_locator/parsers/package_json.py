"""Find a package's declared ranges in package.json across dependency sections."""

from __future__ import annotations

import json
import re

import structlog

from ..models import MANIFEST_SECTIONS, DependencyType, ExtractionMatch

log = structlog.get_logger("npm_locator.parsers.manifest")

_SECTION_END = {"}", "},"}


def _key_pattern(key: str) -> re.Pattern[str]:
    return re.compile(r"""^["']""" + re.escape(key) + r"""["']\s*:""")


def find_line_number(content: str, package_name: str, section: str) -> int:
    """Return the 1-indexed line declaring ``package_name`` inside ``section``.

    This is a textual scan that assumes one key per line; minified or unusual
    layouts fall back to line 1.
    """
    section_re = _key_pattern(section)
    package_re = _key_pattern(package_name)
    in_section = False

    for index, line in enumerate(content.split("\n"), start=1):
        trimmed = line.strip()
        if section_re.match(trimmed):
            in_section = True
            continue
        if not in_section:
            continue
        if trimmed in _SECTION_END:
            in_section = False
            continue
        if package_re.match(trimmed):
            return index

    return 1


def find_in_manifest(
    content: str, package_name: str
) -> list[tuple[DependencyType, ExtractionMatch]]:
    """Return (section, match) pairs for ``package_name``.

    Sections are checked in order: dependencies, devDependencies,
    peerDependencies, optionalDependencies. Unparseable content yields [].
    """
    try:
        data = json.loads(content)
    except (ValueError, TypeError) as exc:
        log.warning("manifest.parse_failed", package=package_name, error=str(exc))
        return []

    if not isinstance(data, dict):
        log.warning("manifest.not_an_object", package=package_name)
        return []

    pairs: list[tuple[DependencyType, ExtractionMatch]] = []
    for section in MANIFEST_SECTIONS:
        deps = data.get(section.value)
        if not isinstance(deps, dict) or package_name not in deps:
            continue
        version = deps[package_name]
        line_number = find_line_number(content, package_name, section.value)
        pairs.append(
            (section, ExtractionMatch(version=str(version), line_number=line_number))
        )
        log.debug(
            "manifest.dependency_found",
            section=section.value,
            version=version,
            line_number=line_number,
        )

    return pairs
