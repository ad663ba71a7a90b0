"""Tests for the streaming lockfile extractors."""

from __future__ import annotations

import logging

import pytest
import requests

from npm_locator.collector import VersionCollector
from npm_locator.models import ExtractionMatch
from npm_locator.parsers import bun_lock, package_lock, pnpm_lock, yarn_lock


def versions(matches):
    return [(match.version, match.line_number) for match in matches]


# ── npm ──────────────────────────────────────────────────────────────────

NPM_LOCK_V3 = """{
  "name": "app",
  "lockfileVersion": 3,
  "packages": {
    "": {
      "name": "app",
      "dependencies": {
        "lodash": "^4.17.21"
      }
    },
    "node_modules/lodash": {
      "version": "4.17.21",
      "resolved": "https://registry.npmjs.org/lodash/-/lodash-4.17.21.tgz",
      "integrity": "sha512-abc"
    },
    "node_modules/react": {
      "version": "18.2.0"
    }
  }
}
"""

NPM_LOCK_V1 = """{
  "dependencies": {
    "lodash": {
      "version": "4.17.21",
      "requires": {
        "foo": "1.0.0"
      }
    },
    "bar": {
      "version": "1.0.0"
    }
  }
}
"""


class TestPackageLock:
    def test_single_line_block(self, make_stream):
        stream = make_stream('"node_modules/lodash": { "version": "4.17.21" }')
        assert versions(package_lock.extract(stream, "lodash")) == [("4.17.21", 1)]

    def test_packages_section(self, make_stream):
        matches = package_lock.extract(make_stream(NPM_LOCK_V3), "lodash")
        assert versions(matches) == [("4.17.21", 12)]

    def test_nested_braces_keep_block_open(self, make_stream):
        matches = package_lock.extract(make_stream(NPM_LOCK_V1), "lodash")
        assert versions(matches) == [("4.17.21", 4)]

    def test_nested_block_reports_every_version(self, make_stream):
        content = (
            '    "lodash": {\n'
            '      "version": "4.17.21",\n'
            '      "dependencies": {\n'
            '        "legacy-helper": {\n'
            '          "version": "1.0.0"\n'
            "        }\n"
            "      }\n"
            "    },\n"
            '    "react": {\n'
            '      "version": "18.2.0"\n'
            "    }\n"
        )
        matches = package_lock.extract(make_stream(content), "lodash")
        assert versions(matches) == [("4.17.21", 2), ("1.0.0", 5)]

    def test_other_package_versions_not_reported(self, make_stream):
        matches = package_lock.extract(make_stream(NPM_LOCK_V3), "react")
        assert versions(matches) == [("18.2.0", 17)]

    def test_similar_name_not_matched(self, make_stream):
        content = '    "node_modules/lodash.merge": {\n      "version": "4.6.2"\n    }\n'
        assert list(package_lock.extract(make_stream(content), "lodash")) == []

    def test_scoped_package(self, make_stream):
        content = (
            '    "node_modules/@types/node": {\n'
            '      "version": "20.11.5",\n'
            '      "dev": true\n'
            "    },\n"
        )
        matches = package_lock.extract(make_stream(content), "@types/node")
        assert versions(matches) == [("20.11.5", 2)]

    def test_nested_install_paths_are_not_markers(self, make_stream):
        content = (
            '    "node_modules/lodash": {\n'
            '      "version": "4.17.21"\n'
            "    },\n"
            '    "node_modules/legacy/node_modules/lodash": {\n'
            '      "version": "3.10.1"\n'
            "    }\n"
        )
        matches = package_lock.extract(make_stream(content), "lodash")
        assert versions(matches) == [("4.17.21", 2)]

    def test_missing_body(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert list(package_lock.extract(None, "lodash")) == []
        assert "lockfile.no_body" in caplog.text


# ── yarn ─────────────────────────────────────────────────────────────────

YARN_LOCK = """# THIS IS AN AUTOGENERATED FILE. DO NOT EDIT THIS FILE DIRECTLY.
# yarn lockfile v1


lodash@^4.17.0, lodash@^4.17.21:
  version "4.17.21"
  resolved "https://registry.yarnpkg.com/lodash/-/lodash-4.17.21.tgz#abc"
  integrity sha512-abc

react@^18.2.0:
  version "18.2.0"
  dependencies:
    loose-envify "^1.1.0"
"""


class TestYarnLock:
    def test_header_then_version(self, make_stream):
        stream = make_stream('lodash@^4.17.0:\n  version "4.17.21"')
        assert versions(yarn_lock.extract(stream, "lodash")) == [("4.17.21", 2)]

    def test_full_lockfile(self, make_stream):
        assert versions(yarn_lock.extract(make_stream(YARN_LOCK), "lodash")) == [
            ("4.17.21", 6)
        ]

    def test_dependency_reference_is_not_a_header(self, make_stream):
        assert versions(yarn_lock.extract(make_stream(YARN_LOCK), "loose-envify")) == []

    def test_blank_line_closes_block(self, make_stream):
        content = (
            "lodash@^4.17.0:\n"
            '  resolved "https://registry.yarnpkg.com/lodash/-/lodash-4.17.21.tgz"\n'
            "\n"
            "react@^18.2.0:\n"
            '  version "18.2.0"\n'
        )
        assert list(yarn_lock.extract(make_stream(content), "lodash")) == []

    def test_unindented_line_closes_block(self, make_stream):
        content = 'lodash@^4.17.0:\n  resolved "x"\nreact@^18.2.0:\n  version "18.2.0"\n'
        assert list(yarn_lock.extract(make_stream(content), "lodash")) == []

    def test_quoted_scoped_header(self, make_stream):
        content = '"@types/node@^20.0.0", "@types/node@^20.1.0":\n  version "20.11.5"\n'
        matches = yarn_lock.extract(make_stream(content), "@types/node")
        assert versions(matches) == [("20.11.5", 2)]

    def test_one_match_per_block(self, make_stream):
        content = (
            'lodash@^3.0.0:\n  version "3.10.1"\n\n'
            'lodash@^4.17.0:\n  version "4.17.21"\n'
        )
        assert versions(yarn_lock.extract(make_stream(content), "lodash")) == [
            ("3.10.1", 2),
            ("4.17.21", 5),
        ]

    def test_similar_name_not_matched(self, make_stream):
        content = 'lodash-es@^4.17.21:\n  version "4.17.21"\n'
        assert list(yarn_lock.extract(make_stream(content), "lodash")) == []

    def test_tab_indentation(self, make_stream):
        content = 'lodash@^4.17.0:\n\tversion "4.17.21"\n'
        assert versions(yarn_lock.extract(make_stream(content), "lodash")) == [
            ("4.17.21", 2)
        ]


# ── pnpm ─────────────────────────────────────────────────────────────────

PNPM_LOCK_V5 = """lockfileVersion: 5.4

packages:

  /lodash/4.17.21:
    resolution: {integrity: sha512-abc}
    dev: false
"""

PNPM_LOCK_V6 = """lockfileVersion: '6.0'

dependencies:
  lodash:
    specifier: ^4.17.21
    version: 4.17.21

packages:

  /lodash@4.17.21:
    resolution: {integrity: sha512-abc}
    dev: false
"""

PNPM_LOCK_V9 = """lockfileVersion: '9.0'

packages:

  '@babel/core@7.23.0':
    resolution: {integrity: sha512-abc}

  lodash@4.17.21:
    resolution: {integrity: sha512-def}
"""


class TestPnpmLock:
    def test_slash_separated_key(self, make_stream):
        assert versions(pnpm_lock.extract(make_stream(PNPM_LOCK_V5), "lodash")) == [
            ("4.17.21", 5)
        ]

    def test_at_separated_key(self, make_stream):
        assert versions(pnpm_lock.extract(make_stream(PNPM_LOCK_V6), "lodash")) == [
            ("4.17.21", 10)
        ]

    def test_unprefixed_key(self, make_stream):
        assert versions(pnpm_lock.extract(make_stream(PNPM_LOCK_V9), "lodash")) == [
            ("4.17.21", 8)
        ]

    def test_quoted_scoped_key(self, make_stream):
        matches = pnpm_lock.extract(make_stream(PNPM_LOCK_V9), "@babel/core")
        assert versions(matches) == [("7.23.0", 5)]

    def test_peer_suffix_dropped(self, make_stream):
        content = "packages:\n  /react-dom@18.2.0(react@18.2.0):\n    dev: false\n"
        matches = pnpm_lock.extract(make_stream(content), "react-dom")
        assert versions(matches) == [("18.2.0", 2)]

    def test_prerelease_kept(self, make_stream):
        content = "packages:\n  /next@14.1.0-canary.3:\n    dev: false\n"
        assert versions(pnpm_lock.extract(make_stream(content), "next")) == [
            ("14.1.0-canary.3", 2)
        ]

    def test_longer_name_with_same_prefix_not_matched(self, make_stream):
        content = "packages:\n  /react-dom@18.2.0(react@18.2.0):\n    dev: false\n"
        assert list(pnpm_lock.extract(make_stream(content), "react")) == []

    def test_inline_version_field(self, make_stream):
        content = "dependencies:\n  lodash: {specifier: ^4.17.21, version: 4.17.21}\n"
        matches = list(pnpm_lock.extract(make_stream(content), "lodash"))
        # Raw token kept as found; the collector rejects the trailing brace.
        assert versions(matches) == [("4.17.21}", 2)]

    def test_key_and_inline_strategies_both_report(self, make_stream):
        content = (
            "dependencies:\n"
            "  lodash: {specifier: ^4.17.21, version: 4.17.21}\n"
            "\n"
            "packages:\n"
            "  /lodash@4.17.21:\n"
            "    dev: false\n"
        )
        matches = list(pnpm_lock.extract(make_stream(content), "lodash"))
        assert versions(matches) == [("4.17.21}", 2), ("4.17.21", 5)]

        collector = VersionCollector()
        for match in matches:
            collector.add("pnpm-lock.yaml", match.version)
        assert collector.get("pnpm-lock.yaml") == ["4.17.21"]


# ── bun ──────────────────────────────────────────────────────────────────

BUN_LOCK = """{
  "lockfileVersion": 1,
  "workspaces": {
    "": {
      "name": "app",
      "dependencies": {
        "lodash": "^4.17.21",
      },
    },
  },
  "packages": {
    "lodash": ["lodash@4.17.21", "", {}, "sha512-abc"],
  }
}
"""


class TestBunLock:
    def test_every_naming_line_reports_first_version(self, make_stream):
        assert versions(bun_lock.extract(make_stream(BUN_LOCK), "lodash")) == [
            ("4.17.21", 7),
            ("4.17.21", 12),
        ]

    def test_prerelease_suffix(self, make_stream):
        content = '    "next": ["next@14.1.0-canary.3", "", {}, "sha512-abc"],\n'
        assert versions(bun_lock.extract(make_stream(content), "next")) == [
            ("14.1.0-canary.3", 1)
        ]

    def test_missing_package(self, make_stream):
        assert list(bun_lock.extract(make_stream(BUN_LOCK), "react")) == []


# ── stream release, every format ─────────────────────────────────────────

SAMPLES = {
    "npm": (package_lock.extract, NPM_LOCK_V3),
    "yarn": (yarn_lock.extract, YARN_LOCK),
    "pnpm": (pnpm_lock.extract, PNPM_LOCK_V6),
    "bun": (bun_lock.extract, BUN_LOCK),
}


@pytest.mark.parametrize("fmt", sorted(SAMPLES))
class TestStreamRelease:
    def test_closed_once_after_full_read(self, fmt, make_stream):
        extract, content = SAMPLES[fmt]
        stream = make_stream(content)
        assert list(extract(stream, "lodash"))
        assert stream.close_calls == 1

    def test_closed_once_when_consumer_stops_early(self, fmt, make_stream):
        extract, content = SAMPLES[fmt]
        stream = make_stream(content)
        matches = extract(stream, "lodash")
        first = next(matches)
        assert isinstance(first, ExtractionMatch)
        matches.close()
        assert stream.close_calls == 1

    def test_closed_when_consumer_never_reads(self, fmt, make_stream):
        extract, content = SAMPLES[fmt]
        stream = make_stream(content)
        matches = extract(stream, "lodash")
        matches.close()
        assert stream.close_calls == 1
        assert stream.chunks_read == 0

    def test_closed_once_on_transport_error(self, fmt, make_stream):
        extract, content = SAMPLES[fmt]
        stream = make_stream(content, fail_after=2)
        with pytest.raises(requests.ConnectionError):
            list(extract(stream, "lodash"))
        assert stream.close_calls == 1

    def test_closed_when_package_absent(self, fmt, make_stream):
        extract, content = SAMPLES[fmt]
        stream = make_stream(content)
        assert list(extract(stream, "not-in-this-lockfile")) == []
        assert stream.close_calls == 1

    def test_no_body(self, fmt):
        extract, _ = SAMPLES[fmt]
        assert list(extract(None, "lodash")) == []
