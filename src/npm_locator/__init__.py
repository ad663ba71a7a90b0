"""npm-locator core package.

Finds the version ranges and resolved versions of a single npm package across
a repository's manifests and lockfiles, reading files straight from GitHub.
"""

__all__ = [
    "core",
]
