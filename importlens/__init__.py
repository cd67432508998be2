"""importlens - module and package import resolution for Python source trees."""

from .exceptions import CircularImportError
from .exceptions import ImportResolutionError
from .exceptions import ModuleLoadError
from .exceptions import ModuleNotFoundError
from .exceptions import RelativeImportError
from .module_resolution import ImportResolver
from .module_resolution import ModuleCache
from .module_resolution import ModuleLoader
from .module_resolution import ModuleRegistry
from .module_resolution import ModuleSpec
from .module_resolution import resolve_name

__all__ = [
    "CircularImportError",
    "ImportResolutionError",
    "ImportResolver",
    "ModuleCache",
    "ModuleLoader",
    "ModuleLoadError",
    "ModuleNotFoundError",
    "ModuleRegistry",
    "ModuleSpec",
    "RelativeImportError",
    "resolve_name",
]
