"""Core scanning entrypoint.

Resolves a ref, lists the repository tree, and runs every manifest and
lockfile through the dispatcher. Files are read from GitHub directly; nothing
is cloned. A failure in one file never stops the others.
"""

from __future__ import annotations

from functools import partial
from typing import Protocol

import structlog

from .cache import LRUCache, generate_cache_key
from .config import Settings
from .discovery import discover_targets
from .dispatch import dispatch, is_manifest
from .github_client import GitHubClient, GitTree
from .models import DependencyRecord, RateLimitInfo, ScanResponse
from .parsers.lines import ByteStream
from .validators import validate_request, validate_response

log = structlog.get_logger("npm_locator.scan")

GITHUB_WEB_URL = "https://github.com"


class RepositoryClient(Protocol):
    """The transport operations the scanner needs; GitHubClient implements them."""

    def get_default_branch(self, owner: str, repo: str) -> str: ...

    def get_commit_sha(self, owner: str, repo: str, ref: str) -> str: ...

    def get_tree(self, owner: str, repo: str, sha: str) -> GitTree: ...

    def open_raw_file(self, owner: str, repo: str, sha: str, path: str) -> ByteStream: ...

    def fetch_raw_text(self, owner: str, repo: str, sha: str, path: str) -> str: ...


def scan_repository(
    owner: str,
    repo: str,
    package_name: str,
    *,
    client: RepositoryClient,
    branch: str | None = None,
    cache: LRUCache[str, ScanResponse] | None = None,
) -> ScanResponse:
    """Find every declaration and resolution of ``package_name`` in ``owner/repo``.

    Params:
        owner, repo: the GitHub repository
        package_name: npm package to look for, scoped or not
        client: transport used for the API and raw file reads
        branch: branch, tag or SHA to scan; the default branch when None
        cache: optional response cache shared across calls

    Raises InvalidRequestError for malformed identifiers and GitHubApiError
    when the ref or tree cannot be resolved. Per-file failures are logged and
    skipped.
    """
    validate_request(owner, repo, package_name, branch)

    cache_key = generate_cache_key(owner, repo, package_name, branch)
    if cache is not None:
        cached = cache.get(cache_key)
        if cached is not None:
            log.info("scan.cache_hit", owner=owner, repo=repo, package=package_name)
            return cached
        log.info("scan.cache_miss", owner=owner, repo=repo, package=package_name)

    log.info("scan.started", owner=owner, repo=repo, package=package_name, branch=branch)

    ref = branch or client.get_default_branch(owner, repo)
    commit_sha = client.get_commit_sha(owner, repo, ref)
    log.debug("scan.ref_resolved", ref=ref, sha=commit_sha)

    tree = client.get_tree(owner, repo, commit_sha)
    if tree.truncated:
        log.warning("scan.tree_truncated", owner=owner, repo=repo, sha=commit_sha)

    targets = discover_targets(tree.blob_paths())
    log.info(
        "scan.files_discovered",
        manifests=sum(1 for path in targets if is_manifest(path)),
        lockfiles=sum(1 for path in targets if not is_manifest(path)),
    )

    repo_url = f"{GITHUB_WEB_URL}/{owner}/{repo}"
    records: list[DependencyRecord] = []
    failed: list[str] = []

    for path in targets:
        opener = client.fetch_raw_text if is_manifest(path) else client.open_raw_file
        open_source = partial(opener, owner, repo, commit_sha, path)
        outcome = dispatch(path, open_source, package_name, repo_url=repo_url, ref=ref)
        if outcome.ok:
            records.extend(outcome.records)
        else:
            failed.append(path)

    response = ScanResponse.from_records(repo=f"{owner}/{repo}", pkg=package_name, records=records)
    validate_response(response.to_dict())

    if cache is not None:
        cache.set(cache_key, response)

    log.info(
        "scan.completed",
        owner=owner,
        repo=repo,
        package=package_name,
        sources=len(response.sources),
        failed_files=len(failed),
    )
    return response


class Scanner:
    """A client and response cache owned by one caller, reused across scans."""

    def __init__(
        self,
        client: RepositoryClient,
        cache: LRUCache[str, ScanResponse] | None = None,
    ) -> None:
        self.client = client
        self.cache = cache

    @classmethod
    def from_settings(cls, settings: Settings) -> Scanner:
        client = GitHubClient(settings.github_token, timeout=settings.request_timeout)
        cache: LRUCache[str, ScanResponse] = LRUCache(
            settings.cache_max_size, settings.cache_max_age_seconds
        )
        return cls(client, cache)

    def scan(
        self, owner: str, repo: str, package_name: str, branch: str | None = None
    ) -> ScanResponse:
        response = scan_repository(
            owner, repo, package_name, client=self.client, branch=branch, cache=self.cache
        )
        rate_limit = self.rate_limit
        if rate_limit is not None:
            log.info("scan.rate_limit", **rate_limit.to_dict())
        return response

    @property
    def rate_limit(self) -> RateLimitInfo | None:
        """Quota reported by the client's most recent GitHub response, if any."""
        return getattr(self.client, "last_rate_limit", None)

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> Scanner:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
