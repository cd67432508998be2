"""CLI commands for importlens."""

__all__ = [
    "check",
    "modules",
    "resolve",
    "run",
    "search_paths",
]
