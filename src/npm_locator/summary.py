"""Human-readable Markdown rendering of a scan response."""

from __future__ import annotations

from typing import Any


def _cell(value: object) -> str:
    return str(value).replace("|", "\\|")


def render_summary(report: dict[str, Any]) -> str:
    """Return a Markdown string with totals and a table of every occurrence."""
    totals = report.get("totals", {})
    sources = report.get("sources", [])
    versions = report.get("versions", [])

    lines = []
    lines.append(f"# {report.get('pkg', '')} in {report.get('repo', '')}")
    lines.append("")
    lines.append(
        f"Files: {totals.get('files', 0)} | Occurrences: {totals.get('sources', 0)}"
        f" | Distinct versions: {totals.get('versions', 0)}"
    )
    if versions:
        lines.append("")
        lines.append("Versions: " + ", ".join(f"`{v}`" for v in versions))
    lines.append("")
    lines.append("| File | Type | Dependency type | Version | Line |")
    lines.append("| --- | --- | --- | --- | --- |")

    for source in sources:
        path = _cell(source.get("path", ""))
        kind = _cell(source.get("type", ""))
        dep_type = _cell(source.get("dependencyType", ""))
        version = _cell(source.get("version", ""))
        line_number = source.get("lineNumber", "")
        url = source.get("lineUrl", "")
        line_cell = f"[L{line_number}]({url})" if url else f"L{line_number}"
        lines.append(f"| {path} | {kind} | {dep_type} | `{version}` | {line_cell} |")

    if not sources:
        lines.append("| (not found) | n/a | n/a | n/a | n/a |")

    return "\n".join(lines) + "\n"
