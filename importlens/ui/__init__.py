"""UI helpers for the importlens CLI."""

from .error_display import display_import_error

__all__ = ["display_import_error"]
