"""Search-path registry mapping dotted names to source locations.

Lookup follows the same rules as Python's path-based finder:
- A directory with an __init__.py is a regular package and wins immediately
- Otherwise <name>.py is a module and wins immediately
- Otherwise a plain directory is remembered as a namespace portion and the
  search continues; if nothing else matches, all portions form a namespace package
"""

import keyword
import logging
from collections.abc import Iterable
from pathlib import Path

from ..exceptions import ModuleNotFoundError
from .models import ModuleSpec

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".py"
PACKAGE_INIT = "__init__.py"


def _validate_name(name: str) -> None:
    if not name:
        raise ValueError("Empty module name")
    if name.startswith("."):
        raise ValueError(f"Relative name '{name}' must be resolved before lookup")
    if any(not part for part in name.split(".")):
        raise ValueError(f"Malformed module name: '{name}'")


def _is_importable_name(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)


class ModuleRegistry:
    """Registry of importable modules under an ordered list of search roots."""

    def __init__(self, search_paths: Iterable[str | Path]):
        """Initialize registry.

        Args:
            search_paths: Root directories in priority order (like sys.path).
                Duplicates are dropped, first occurrence wins.
        """
        roots: list[Path] = []
        for entry in search_paths:
            path = Path(entry).expanduser().resolve()
            if path not in roots:
                roots.append(path)
        self._search_paths = roots
        self._specs: dict[str, ModuleSpec] = {}

    @property
    def search_paths(self) -> list[Path]:
        return list(self._search_paths)

    def find_spec(self, name: str) -> ModuleSpec:
        """Map a canonical dotted name to its spec.

        Args:
            name: Absolute dotted name (e.g., "app.utils.helpers")

        Returns:
            ModuleSpec for the name

        Raises:
            ValueError: Empty or malformed name
            ModuleNotFoundError: Name (or one of its parents) not found
        """
        _validate_name(name)

        if name in self._specs:
            return self._specs[name]

        parent, _, tail = name.rpartition(".")
        if parent:
            parent_spec = self.find_spec(parent)
            if not parent_spec.is_package:
                raise ModuleNotFoundError(
                    f"No module named '{name}'; '{parent}' is not a package",
                    name=name,
                )
            spec = self._search(name, tail, parent_spec.search_locations, parent_spec.root)
        else:
            spec = self._search(name, tail, self._search_paths, None)

        if spec is None:
            logger.debug(f"[registry:find] {name} -> not found")
            raise ModuleNotFoundError(f"No module named '{name}'", name=name)

        logger.debug(f"[registry:find] {name} -> {spec.kind} ({spec.origin or spec.search_locations[0]})")
        self._specs[name] = spec
        return spec

    def _search(self, name: str, part: str, directories: list[Path], root: Path | None) -> ModuleSpec | None:
        portions: list[Path] = []

        for directory in directories:
            candidate = directory / part

            if candidate.is_dir():
                init_file = candidate / PACKAGE_INIT
                if init_file.is_file():
                    return ModuleSpec(
                        name=name,
                        kind="package",
                        origin=init_file,
                        search_locations=[candidate],
                        root=root or directory,
                    )

            source_file = directory / f"{part}{SOURCE_SUFFIX}"
            if source_file.is_file():
                return ModuleSpec(name=name, kind="module", origin=source_file, root=root or directory)

            if candidate.is_dir():
                portions.append(candidate)

        if portions:
            return ModuleSpec(
                name=name,
                kind="namespace",
                origin=None,
                search_locations=portions,
                root=root or portions[0].parent,
            )

        return None

    def root_for(self, name: str) -> Path:
        """Search root providing a name."""
        return self.find_spec(name).root

    def contains(self, name: str) -> bool:
        try:
            self.find_spec(name)
        except ModuleNotFoundError:
            return False
        return True

    def iter_modules(self, prefix: str = "") -> list[ModuleSpec]:
        """List every importable module reachable from the roots.

        Args:
            prefix: Optional package name; only it and its descendants are listed

        Returns:
            Specs sorted by name. Shadowed duplicates are skipped and namespace
            packages without any modules below them are left out.
        """
        found: dict[str, ModuleSpec] = {}

        if prefix:
            base = self.find_spec(prefix)
            found[base.name] = base
            if base.is_package:
                self._walk(base, found)
        else:
            for top_name in self._child_names(self._search_paths):
                self._collect(top_name, found)

        return [found[name] for name in sorted(found)]

    def _collect(self, name: str, found: dict[str, ModuleSpec]) -> bool:
        """Add name (and its descendants) to found; report whether anything was added."""
        try:
            spec = self.find_spec(name)
        except ModuleNotFoundError:
            return False

        if spec.kind == "namespace":
            # Only list namespace packages that actually hold code
            below: dict[str, ModuleSpec] = {}
            self._walk(spec, below)
            if not below:
                return False
            found[name] = spec
            found.update(below)
            return True

        found[name] = spec
        if spec.is_package:
            self._walk(spec, found)
        return True

    def _walk(self, spec: ModuleSpec, found: dict[str, ModuleSpec]) -> None:
        for child in self._child_names(spec.search_locations):
            self._collect(f"{spec.name}.{child}", found)

    def _child_names(self, directories: Iterable[Path]) -> list[str]:
        names: list[str] = []
        for directory in directories:
            if not directory.is_dir():
                continue
            for entry in sorted(directory.iterdir()):
                if entry.is_dir():
                    candidate = entry.name
                elif entry.suffix == SOURCE_SUFFIX and entry.name != PACKAGE_INIT:
                    candidate = entry.stem
                else:
                    continue
                if candidate == "__pycache__" or not _is_importable_name(candidate):
                    continue
                if candidate not in names:
                    names.append(candidate)
        return names

    def invalidate_caches(self) -> None:
        """Forget memoised lookups (call after files change on disk)."""
        self._specs.clear()
        logger.debug("[registry:invalidate] cleared memoised specs")

    def __repr__(self) -> str:
        return f"ModuleRegistry({len(self._search_paths)} roots)"
