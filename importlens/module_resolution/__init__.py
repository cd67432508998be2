"""Module resolution - registry, resolver, loader and cache.

This package maps dotted names to source files, resolves relative and
absolute imports against the importing module's package, and executes
modules in a private import world.
"""

from .cache import CacheEntry
from .cache import ModuleCache
from .loader import ModuleLoader
from .models import ImportStatement
from .models import ModuleSpec
from .models import ResolvedImport
from .parser import ModuleInfo
from .parser import parse
from .registry import ModuleRegistry
from .resolvers import ImportResolver
from .resolvers import package_of
from .resolvers import resolve_name
from .resolvers import split_relative

__all__ = [
    "CacheEntry",
    "ImportResolver",
    "ImportStatement",
    "ModuleCache",
    "ModuleInfo",
    "ModuleLoader",
    "ModuleRegistry",
    "ModuleSpec",
    "ResolvedImport",
    "package_of",
    "parse",
    "resolve_name",
    "split_relative",
]
