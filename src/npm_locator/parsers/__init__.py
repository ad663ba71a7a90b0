"""Manifest and lockfile extractors for npm, yarn v1, pnpm and bun."""
