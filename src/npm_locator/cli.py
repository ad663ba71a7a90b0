"""Command-line entrypoint: scan a GitHub repository for one npm package."""

from __future__ import annotations

import argparse
import json
import sys

from .config import ConfigError, load_settings
from .core import Scanner
from .github_client import GitHubApiError
from .logging_config import setup_logging
from .summary import render_summary
from .validators import InvalidRequestError

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_GITHUB = 2


def _split_repository(value: str) -> tuple[str, str]:
    owner, sep, repo = value.partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise argparse.ArgumentTypeError(f"expected OWNER/REPO, got {value!r}")
    return owner, repo


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="npm-locator", description=__doc__)
    parser.add_argument(
        "repository",
        type=_split_repository,
        help="GitHub repository as OWNER/REPO",
    )
    parser.add_argument("package", help="npm package name, e.g. react or @types/node")
    parser.add_argument(
        "--branch",
        default=None,
        help="Branch, tag or commit to scan (default: the repository's default branch)",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=("json", "markdown"),
        default="json",
        help="Output format",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a JSON settings file (default: $NPM_LOCATOR_CONFIG)",
    )
    parser.add_argument(
        "--rate-limit",
        action="store_true",
        help="Print the GitHub API quota left after the scan to stderr as JSON",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    owner, repo = args.repository

    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging(settings.log_level, settings.log_format)

    try:
        with Scanner.from_settings(settings) as scanner:
            response = scanner.scan(owner, repo, args.package, branch=args.branch)
            rate_limit = scanner.rate_limit
    except InvalidRequestError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except GitHubApiError as exc:
        print(f"ERROR: GitHub request failed ({exc.status_code}): {exc}", file=sys.stderr)
        return EXIT_GITHUB

    report = response.to_dict()
    if args.output_format == "markdown":
        print(render_summary(report), end="")
    else:
        print(json.dumps(report, indent=2))

    if args.rate_limit:
        quota = rate_limit.to_dict() if rate_limit is not None else None
        print(json.dumps({"rateLimit": quota}), file=sys.stderr)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
