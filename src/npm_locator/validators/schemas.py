"""JSON Schema checks for scan requests and scan responses."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any
from collections.abc import Iterable

from jsonschema import Draft202012Validator

_SCHEMA_DIR = Path(__file__).resolve().parents[1] / "schemas"
REQUEST_SCHEMA_PATH = _SCHEMA_DIR / "scan-request.schema.json"
RESPONSE_SCHEMA_PATH = _SCHEMA_DIR / "scan-response.schema.json"

_FIELD_MESSAGES = {
    "owner": "Invalid owner name. Must contain only alphanumeric characters and hyphens.",
    "repo": (
        "Invalid repository name. Must contain only alphanumeric characters, "
        "hyphens, periods, and underscores."
    ),
    "pkg": "Invalid package name.",
    "branch": "Invalid branch name. Must be non-empty and contain no NUL characters.",
}


class InvalidRequestError(ValueError):
    """Raised when owner, repo, package or branch identifiers are malformed."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors))


def _load_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


@lru_cache(maxsize=None)
def _validator(path: Path) -> Draft202012Validator:
    return Draft202012Validator(_load_json(path))


def _format_errors(errors: Iterable) -> str:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"- {pointer or '<root>'}: {error.message}")
    return "\n".join(messages)


def validate_request(owner: str, repo: str, pkg: str, branch: str | None = None) -> None:
    """Raise InvalidRequestError listing every malformed identifier."""
    document: dict[str, Any] = {"owner": owner, "repo": repo, "pkg": pkg}
    if branch is not None:
        document["branch"] = branch

    fields = list(_FIELD_MESSAGES)

    def field_of(error) -> str:
        return str(error.path[0]) if error.path else ""

    def rank(error) -> int:
        field = field_of(error)
        return fields.index(field) if field in fields else len(fields)

    validator = _validator(REQUEST_SCHEMA_PATH)
    messages: list[str] = []
    for error in sorted(validator.iter_errors(document), key=rank):
        message = _FIELD_MESSAGES.get(field_of(error), error.message)
        if message not in messages:
            messages.append(message)
    if messages:
        raise InvalidRequestError(messages)


def validate_response(document: dict[str, Any]) -> None:
    """Raise ValueError when a scan response does not match the published shape."""
    validator = _validator(RESPONSE_SCHEMA_PATH)
    errors = sorted(validator.iter_errors(document), key=lambda e: list(e.path))
    if errors:
        raise ValueError("Scan response failed validation:\n" + _format_errors(errors))
