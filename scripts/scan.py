#!/usr/bin/env python3
"""Local CLI entrypoint to run the scanner without installing the console script.

Usage:
  python scripts/scan.py OWNER/REPO PACKAGE [--branch REF] [--format json|markdown]

This calls the same npm_locator.cli.main used by the ``npm-locator`` command.
"""

from __future__ import annotations

from npm_locator.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
