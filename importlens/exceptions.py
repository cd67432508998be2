"""Import resolution errors.

Every error subclasses ImportError so code written against Python's own
import machinery keeps catching them.
"""

import builtins


class ImportResolutionError(ImportError):
    """Base class for errors raised while resolving or loading a module."""

    def __init__(self, message: str, *, name: str | None = None, path: str | None = None):
        super().__init__(message, name=name, path=path)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ModuleNotFoundError(ImportResolutionError, builtins.ModuleNotFoundError):
    """A dotted name could not be mapped to a source location."""


class RelativeImportError(ImportResolutionError):
    """A relative import has no parent package or climbs past the top-level package."""

    def __init__(self, message: str, *, name: str | None = None, beyond_top: bool = False):
        super().__init__(message, name=name)
        self.beyond_top = beyond_top


class ModuleLoadError(ImportResolutionError):
    """A module's source could not be read, parsed or executed."""

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        path: str | None = None,
        lineno: int | None = None,
    ):
        super().__init__(message, name=name, path=path)
        self.lineno = lineno


class CircularImportError(ImportResolutionError):
    """A name was requested from a module that is still executing."""


__all__ = [
    "CircularImportError",
    "ImportResolutionError",
    "ModuleLoadError",
    "ModuleNotFoundError",
    "RelativeImportError",
]
