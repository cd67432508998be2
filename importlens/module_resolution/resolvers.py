"""Import resolver - turns import statements into canonical names.

Resolution of a statement inside module M:
1. Relative names are anchored on M's package (__package__)
2. The canonical name is looked up in the project registry
3. Absolute names missing from the project fall back to installed/stdlib modules
"""

import importlib.util
import logging
import sys
from pathlib import Path

from ..exceptions import ModuleLoadError
from ..exceptions import ModuleNotFoundError
from ..exceptions import RelativeImportError
from .models import ImportStatement
from .models import MemberKind
from .models import ModuleSpec
from .models import ResolvedImport
from .parser import ModuleInfo
from .parser import parse
from .registry import ModuleRegistry

logger = logging.getLogger(__name__)


def resolve_name(name: str, package: str | None, level: int) -> str:
    """Resolve a possibly relative module name to a canonical one.

    Args:
        name: Name as written after the dots (may be "" for "from . import x")
        package: __package__ of the importing module
        level: Number of leading dots (0 for absolute imports)

    Returns:
        Canonical dotted name

    Raises:
        ValueError: Negative level, or empty absolute name
        RelativeImportError: No parent package, or climbing past the top-level package
    """
    if level < 0:
        raise ValueError("level must be >= 0")

    if level == 0:
        if not name:
            raise ValueError("Empty module name")
        return name

    if not package:
        raise RelativeImportError(
            "attempted relative import with no known parent package",
            name=name or None,
        )

    bits = package.rsplit(".", level - 1)
    if len(bits) < level:
        raise RelativeImportError(
            "attempted relative import beyond top-level package",
            name=name or None,
            beyond_top=True,
        )

    base = bits[0]
    return f"{base}.{name}" if name else base


def split_relative(reference: str) -> tuple[str, int]:
    """Split "..utils.io" into ("utils.io", 2)."""
    stripped = reference.lstrip(".")
    return stripped, len(reference) - len(stripped)


def package_of(module_name: str, is_package: bool) -> str | None:
    """__package__ for a module; scripts run as __main__ have none."""
    if module_name == "__main__":
        return None
    return module_name if is_package else module_name.rpartition(".")[0]


def is_system_module(name: str) -> bool:
    """Check whether the top-level part of name is stdlib or installed.

    Only the top-level name is looked up so no package code gets imported.
    """
    top = name.partition(".")[0]
    if top in sys.builtin_module_names or top in sys.stdlib_module_names:
        return True
    try:
        return importlib.util.find_spec(top) is not None
    except (ImportError, ValueError):
        return False


def is_project_name(registry: ModuleRegistry, name: str, system_fallback: bool = True) -> bool:
    """Whether the top-level part of name is served by the project.

    A project namespace package loses against a real stdlib/installed module
    of the same name, as it does on sys.path.
    """
    top = name.partition(".")[0]
    try:
        spec = registry.find_spec(top)
    except ModuleNotFoundError:
        return False
    if spec.kind == "namespace" and system_fallback and is_system_module(top):
        return False
    return True


class ImportResolver:
    """Resolves import statements against a ModuleRegistry."""

    def __init__(
        self,
        registry: ModuleRegistry,
        system_fallback: bool = True,
        layers: dict[Path, str] | None = None,
    ):
        """Initialize resolver.

        Args:
            registry: Project module registry
            system_fallback: Accept absolute imports of installed/stdlib modules
            layers: Optional search root -> layer label (cli, env, project, ...)
        """
        self.registry = registry
        self.system_fallback = system_fallback
        self.layers = layers or {}
        self._infos: dict[str, ModuleInfo] = {}

    def info(self, spec: ModuleSpec) -> ModuleInfo:
        """Parsed view of a module, memoised per name.

        Raises:
            ModuleLoadError: Source unreadable or invalid
        """
        if spec.name not in self._infos:
            self._infos[spec.name] = parse(spec)
        return self._infos[spec.name]

    def resolve(self, statement: ImportStatement, importer: ModuleSpec | None = None) -> ResolvedImport:
        """Resolve a statement written inside importer.

        Args:
            statement: Import statement as parsed from source
            importer: Spec of the module containing the statement; None for a script

        Returns:
            ResolvedImport (location "unresolved" when the target cannot be found)

        Raises:
            RelativeImportError: Relative import without a usable parent package
        """
        package = importer.package if importer is not None else None
        target = resolve_name(statement.module, package, statement.level)

        spec: ModuleSpec | None = None
        location = "unresolved"
        in_project = statement.level > 0 or is_project_name(self.registry, target, self.system_fallback)
        if in_project and self.registry.contains(target):
            spec = self.registry.find_spec(target)
            location = "project"
        elif not in_project and self.system_fallback and is_system_module(target):
            location = "system"

        members: dict[str, MemberKind] = {}
        for name in statement.names:
            members[name] = self._resolve_member(target, spec, name)

        logger.debug(f"[resolver:resolve] {statement.render()} -> {target} ({location})")
        return ResolvedImport(statement=statement, target=target, spec=spec, location=location, members=members)

    def _resolve_member(self, target: str, spec: ModuleSpec | None, name: str) -> MemberKind:
        if spec is None or name == "*":
            return "unknown"

        # Attribute lookup comes first, like "from X import name" at runtime
        try:
            info = self.info(spec)
        except ModuleLoadError:
            info = None

        if info is not None and name in info.bound_names:
            return "attribute"

        if spec.is_package and self.registry.contains(f"{target}.{name}"):
            return "submodule"

        if info is None or info.has_getattr or info.has_star_import:
            return "unknown"

        return "missing"

    def resolve_with_layer(
        self, name: str, importer: ModuleSpec | None = None, level: int = 0
    ) -> tuple[ModuleSpec, str]:
        """Resolve a reference and report which search layer provided it.

        Returns:
            Tuple of (ModuleSpec, layer_name). layer_name is the label given for
            the module's search root, or the root path itself when unlabelled.

        Raises:
            RelativeImportError: Bad relative reference
            ModuleNotFoundError: Name not in the project
        """
        package = importer.package if importer is not None else None
        target = resolve_name(name, package, level)
        spec = self.registry.find_spec(target)
        layer = self.layers.get(spec.root, str(spec.root))
        logger.debug(f"[resolver:resolve] {target} -> {layer}")
        return spec, layer

    def __repr__(self) -> str:
        fallback = "system fallback" if self.system_fallback else "project only"
        return f"ImportResolver({self.registry!r}, {fallback})"
