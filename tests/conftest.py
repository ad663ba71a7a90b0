"""Shared pytest fixtures: fake byte streams, in-memory HTTP responses, a fake GitHub client."""

from __future__ import annotations

import io
import json
from typing import Any

import pytest
import requests
import structlog
from requests.structures import CaseInsensitiveDict

from npm_locator.github_client import GitHubApiError, GitTree, TreeEntry


@pytest.fixture(autouse=True, scope="session")
def _structlog_to_stdlib():
    """Route structlog through stdlib logging so stdout stays clean and caplog sees events."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


# ── byte streams ─────────────────────────────────────────────────────────


class FakeStream:
    """Chunked byte stream that records how often it was closed."""

    def __init__(
        self,
        data: bytes | str,
        chunk_size: int = 7,
        fail_after: int | None = None,
    ) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._chunks = [data[i : i + chunk_size] for i in range(0, len(data), chunk_size)]
        self._fail_after = fail_after
        self.chunks_read = 0
        self.close_calls = 0

    def iter_content(self, chunk_size: int | None = None):
        for chunk in self._chunks:
            if self._fail_after is not None and self.chunks_read >= self._fail_after:
                raise requests.ConnectionError("connection reset by peer")
            self.chunks_read += 1
            yield chunk

    def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def make_stream():
    return FakeStream


# ── HTTP responses ───────────────────────────────────────────────────────

_REASONS = {200: "OK", 403: "Forbidden", 404: "Not Found", 500: "Internal Server Error"}


def build_response(
    status: int = 200,
    *,
    json_body: Any = None,
    body: bytes = b"",
    headers: dict[str, str] | None = None,
    url: str = "https://api.github.com/repos/acme/app",
) -> requests.Response:
    """Build a real requests.Response backed by an in-memory body."""
    if json_body is not None:
        body = json.dumps(json_body).encode("utf-8")
    response = requests.Response()
    response.status_code = status
    response.reason = _REASONS.get(status, "")
    response.url = url
    response.headers = CaseInsensitiveDict(headers or {})
    response.encoding = "utf-8"
    response.raw = io.BytesIO(body)
    return response


@pytest.fixture
def make_response():
    return build_response


# ── fake repository client ───────────────────────────────────────────────


class FakeRepositoryClient:
    """In-memory stand-in for GitHubClient serving a fixed tree."""

    def __init__(
        self,
        files: dict[str, str],
        *,
        default_branch: str = "main",
        extra_paths: tuple[str, ...] = (),
        failing: tuple[str, ...] = (),
        truncated: bool = False,
    ) -> None:
        self.files = files
        self.default_branch = default_branch
        self.extra_paths = extra_paths
        self.failing = set(failing)
        self.truncated = truncated
        self.calls: list[tuple[str, ...]] = []
        self.streams: list[FakeStream] = []

    def get_default_branch(self, owner: str, repo: str) -> str:
        self.calls.append(("default_branch", owner, repo))
        return self.default_branch

    def get_commit_sha(self, owner: str, repo: str, ref: str) -> str:
        self.calls.append(("commit_sha", ref))
        return "0123abcd"

    def get_tree(self, owner: str, repo: str, sha: str) -> GitTree:
        self.calls.append(("tree", sha))
        entries = [TreeEntry(path=path, type="blob") for path in self.files]
        entries += [TreeEntry(path=path, type="blob") for path in self.extra_paths]
        entries.append(TreeEntry(path="packages", type="tree"))
        return GitTree(sha=sha, entries=tuple(entries), truncated=self.truncated)

    def _check(self, path: str) -> None:
        if path in self.failing:
            raise GitHubApiError(f"Failed to fetch raw file {path}: Not Found", 404)

    def open_raw_file(self, owner: str, repo: str, sha: str, path: str) -> FakeStream:
        self.calls.append(("open", path))
        self._check(path)
        stream = FakeStream(self.files[path])
        self.streams.append(stream)
        return stream

    def fetch_raw_text(self, owner: str, repo: str, sha: str, path: str) -> str:
        self.calls.append(("fetch", path))
        self._check(path)
        return self.files[path]


@pytest.fixture
def fake_client_factory():
    return FakeRepositoryClient
