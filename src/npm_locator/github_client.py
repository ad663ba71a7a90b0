"""GitHub REST and raw-content access used by the repository scanner.

Only public repository data is read. A bearer token, when available, is
passed through to raise the API rate limit.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import requests
import structlog
from requests import Response
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from .models import RateLimitInfo

log = structlog.get_logger("npm_locator.github")

API_BASE_URL = "https://api.github.com"
RAW_BASE_URL = "https://raw.githubusercontent.com"
USER_AGENT = "npm-locator (repository dependency version discovery)"


class GitHubApiError(RuntimeError):
    """Raised when a GitHub request fails or returns an unexpected status."""

    def __init__(self, message: str, status_code: int, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class TreeEntry:
    path: str
    type: str
    size: int | None = None


@dataclass(frozen=True)
class GitTree:
    """Recursive listing of a commit's files."""

    sha: str
    entries: tuple[TreeEntry, ...]
    truncated: bool = False

    def blob_paths(self) -> list[str]:
        return [entry.path for entry in self.entries if entry.type == "blob"]

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> GitTree:
        entries = []
        for item in payload.get("tree") or []:
            if not isinstance(item, dict) or not isinstance(item.get("path"), str):
                continue
            entries.append(
                TreeEntry(path=item["path"], type=str(item.get("type", "")), size=item.get("size"))
            )
        return cls(
            sha=str(payload.get("sha", "")),
            entries=tuple(entries),
            truncated=bool(payload.get("truncated", False)),
        )


class GitHubClient:
    """Thin synchronous wrapper around the GitHub REST API and raw file host."""

    def __init__(
        self,
        token: str | None = None,
        *,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._token = token or os.environ.get("GITHUB_TOKEN") or None
        self._session = session or requests.Session()
        self._timeout = timeout
        self._last_rate_limit: RateLimitInfo | None = None

    @property
    def last_rate_limit(self) -> RateLimitInfo | None:
        return self._last_rate_limit

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _api_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _raw_headers(self) -> dict[str, str]:
        headers = {"User-Agent": USER_AGENT}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_fixed(2),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    )
    def _http_get(self, url: str, *, headers: dict[str, str], stream: bool = False) -> Response:
        return self._session.get(url, headers=headers, timeout=self._timeout, stream=stream)

    def _get_json(self, url: str) -> Any:
        try:
            response = self._http_get(url, headers=self._api_headers())
        except requests.RequestException as exc:
            raise GitHubApiError(f"GitHub API request failed: {exc}", 502) from exc
        return self._handle_response(response)

    def _handle_response(self, response: Response) -> Any:
        rate_limit = RateLimitInfo.from_headers(response.headers)
        if rate_limit is None:
            log.warning(
                "github.rate_limit_headers_invalid",
                status=response.status_code,
                url=response.url,
            )
        else:
            log.debug(
                "github.response",
                status=response.status_code,
                url=response.url,
                remaining=rate_limit.remaining,
            )
        self._last_rate_limit = rate_limit

        if response.status_code == 404:
            raise GitHubApiError(f"Resource not found: {response.url}", 404)

        if response.status_code == 403 and rate_limit is not None and rate_limit.remaining == 0:
            raise GitHubApiError(
                f"GitHub API rate limit exceeded. Resets at {rate_limit.reset_at.isoformat()}",
                502,
            )

        if not response.ok:
            raise GitHubApiError(
                f"GitHub API request failed: {response.reason}",
                response.status_code,
                response.text,
            )

        return response.json()

    def get_default_branch(self, owner: str, repo: str) -> str:
        log.debug("github.default_branch", owner=owner, repo=repo)
        data = self._get_json(f"{API_BASE_URL}/repos/{owner}/{repo}")
        return str(data["default_branch"])

    def get_commit_sha(self, owner: str, repo: str, ref: str) -> str:
        log.debug("github.commit_sha", owner=owner, repo=repo, ref=ref)
        data = self._get_json(f"{API_BASE_URL}/repos/{owner}/{repo}/commits/{ref}")
        return str(data["sha"])

    def get_tree(self, owner: str, repo: str, sha: str) -> GitTree:
        log.debug("github.tree", owner=owner, repo=repo, sha=sha)
        data = self._get_json(f"{API_BASE_URL}/repos/{owner}/{repo}/git/trees/{sha}?recursive=1")
        return GitTree.from_payload(data)

    def open_raw_file(self, owner: str, repo: str, sha: str, path: str) -> Response:
        """Open a streaming response for a file; the caller must close it."""
        log.debug("github.raw_file", owner=owner, repo=repo, sha=sha, path=path)
        url = f"{RAW_BASE_URL}/{owner}/{repo}/{sha}/{path}"
        try:
            response = self._http_get(url, headers=self._raw_headers(), stream=True)
        except requests.RequestException as exc:
            raise GitHubApiError(f"Failed to fetch raw file {path}: {exc}", 502) from exc

        if not response.ok:
            response.close()
            raise GitHubApiError(
                f"Failed to fetch raw file {path}: {response.reason}", response.status_code
            )
        return response

    def fetch_raw_text(self, owner: str, repo: str, sha: str, path: str) -> str:
        with self.open_raw_file(owner, repo, sha, path) as response:
            response.encoding = response.encoding or "utf-8"
            return response.text
