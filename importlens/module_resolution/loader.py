"""Module loader - executes project modules in an isolated import world.

Modules are created, cached and executed the way the interpreter does it,
but the cache is private and the import statement inside executed code is
routed back here through a custom __import__. sys.modules is never touched
for project modules; stdlib and installed packages go through the real
import system when system fallback is enabled.
"""

import builtins
import importlib.machinery
import logging
import tokenize
from collections.abc import Mapping
from collections.abc import Sequence
from pathlib import Path
from types import CodeType
from types import ModuleType
from typing import Any

from ..exceptions import CircularImportError
from ..exceptions import ImportResolutionError
from ..exceptions import ModuleLoadError
from ..exceptions import ModuleNotFoundError
from .cache import ModuleCache
from .models import ModuleSpec
from .parser import read_source
from .registry import ModuleRegistry
from .resolvers import is_project_name
from .resolvers import resolve_name

logger = logging.getLogger(__name__)


def _package_from_globals(globals: Mapping[str, Any] | None) -> str | None:
    """Work out __package__ of the module calling import."""
    if not globals:
        return None
    package = globals.get("__package__")
    if package is not None:
        return package
    spec = globals.get("__spec__")
    if spec is not None:
        return spec.parent
    name = globals.get("__name__", "")
    if name == "__main__":
        return None
    return name if "__path__" in globals else name.rpartition(".")[0]


class ModuleLoader:
    """Loads and executes modules found in a ModuleRegistry."""

    def __init__(
        self,
        registry: ModuleRegistry,
        cache: ModuleCache | None = None,
        system_fallback: bool = True,
    ):
        """Initialize loader.

        Args:
            registry: Where project modules are found
            cache: Loaded-module cache (a fresh one by default)
            system_fallback: Import names missing from the project via the
                real interpreter (stdlib, installed packages)
        """
        self.registry = registry
        self.cache = cache if cache is not None else ModuleCache()
        self.system_fallback = system_fallback
        self._builtins = dict(vars(builtins))
        self._builtins["__import__"] = self.import_module

    def load(self, name: str) -> ModuleType:
        """Import a canonical project module, executing parents first.

        Raises:
            ModuleNotFoundError: Name not in the registry
            ModuleLoadError: Module code failed
        """
        entry = self.cache.get(name)
        if entry is not None:
            return entry.module

        parent, _, child = name.rpartition(".")
        if parent:
            self.load(parent)
            # The parent's __init__ may have imported us already
            entry = self.cache.get(name)
            if entry is not None:
                return entry.module

        spec = self.registry.find_spec(name)
        module = self._execute(spec)

        if parent:
            parent_entry = self.cache.get(parent)
            if parent_entry is not None:
                setattr(parent_entry.module, child, module)

        return module

    def import_module(
        self,
        name: str,
        globals: Mapping[str, Any] | None = None,
        locals: Mapping[str, Any] | None = None,
        fromlist: Sequence[str] | None = (),
        level: int = 0,
    ) -> ModuleType:
        """__import__ replacement installed into executed modules."""
        package = _package_from_globals(globals) if level > 0 else None
        absolute = resolve_name(name, package, level)
        top = absolute.partition(".")[0]

        # Relative imports always stay inside the project
        if level == 0 and not is_project_name(self.registry, top, self.system_fallback):
            return self._system_import(absolute, fromlist)

        module = self.load(absolute)

        if fromlist:
            return self._handle_fromlist(module, fromlist)

        if level == 0:
            return self.load(top)

        # "__import__('.a.b', level=1)" without fromlist returns the module for ".a"
        cut_off = len(name) - len(name.partition(".")[0])
        return self.load(absolute[: len(absolute) - cut_off])

    def _system_import(self, name: str, fromlist: Sequence[str] | None) -> ModuleType:
        if not self.system_fallback:
            raise ModuleNotFoundError(f"No module named '{name}'", name=name)
        logger.debug(f"[loader:system] {name}")
        try:
            return builtins.__import__(name, None, None, fromlist or (), 0)
        except builtins.ModuleNotFoundError as e:
            raise ModuleNotFoundError(str(e), name=e.name or name) from e

    def _handle_fromlist(self, module: ModuleType, fromlist: Sequence[str], recursive: bool = False) -> ModuleType:
        """Load submodules named in "from package import a, b"."""
        for item in fromlist:
            if item == "*":
                if not recursive and hasattr(module, "__all__") and hasattr(module, "__path__"):
                    self._handle_fromlist(module, module.__all__, recursive=True)
                continue

            if hasattr(module, item):
                continue

            if hasattr(module, "__path__"):
                submodule = f"{module.__name__}.{item}"
                try:
                    self.load(submodule)
                    continue
                except ModuleNotFoundError as e:
                    # Only swallow the lookup failure of this very submodule
                    if e.name != submodule:
                        raise
                if recursive:
                    continue

            self._missing_name(module, item)

        return module

    def _missing_name(self, module: ModuleType, item: str) -> None:
        location = getattr(module, "__file__", None) or "unknown location"
        entry = self.cache.get(module.__name__)
        if entry is not None and entry.is_loading:
            raise CircularImportError(
                f"cannot import name '{item}' from partially initialized module '{module.__name__}' "
                f"(most likely due to a circular import) ({location})",
                name=module.__name__,
                path=getattr(module, "__file__", None),
            )
        raise ImportResolutionError(
            f"cannot import name '{item}' from '{module.__name__}' ({location})",
            name=module.__name__,
            path=getattr(module, "__file__", None),
        )

    def _new_module(self, spec: ModuleSpec) -> ModuleType:
        module = ModuleType(spec.name)
        origin = str(spec.origin) if spec.origin else None

        machinery_spec = importlib.machinery.ModuleSpec(spec.name, self, origin=origin, is_package=spec.is_package)
        machinery_spec.has_location = origin is not None
        if spec.is_package:
            machinery_spec.submodule_search_locations = [str(path) for path in spec.search_locations]
            module.__path__ = list(machinery_spec.submodule_search_locations)

        if origin is not None:
            module.__file__ = origin
        module.__package__ = spec.package
        module.__loader__ = self
        module.__spec__ = machinery_spec
        module.__builtins__ = self._builtins
        return module

    def _compile(self, source: str, filename: str, name: str) -> CodeType:
        try:
            return compile(source, filename, "exec", dont_inherit=True)
        except SyntaxError as e:
            raise ModuleLoadError(
                f"Syntax error in '{name}' at line {e.lineno}: {e.msg}",
                name=name,
                path=filename,
                lineno=e.lineno,
            ) from e
        except ValueError as e:
            raise ModuleLoadError(f"Cannot compile '{name}': {e}", name=name, path=filename) from e

    def _execute(self, spec: ModuleSpec) -> ModuleType:
        module = self._new_module(spec)
        self.cache.begin(spec.name, module, spec)
        logger.debug(f"[loader:exec] {spec.name} ({spec.kind})")

        try:
            if spec.origin is not None:
                code = self._compile(read_source(spec), str(spec.origin), spec.name)
                exec(code, module.__dict__)
        except ImportResolutionError:
            self.cache.discard(spec.name)
            raise
        except Exception as e:
            self.cache.discard(spec.name)
            logger.debug(f"[loader:exec] {spec.name} failed: {e.__class__.__name__}: {e}")
            raise ModuleLoadError(
                f"Error while executing '{spec.name}': {e.__class__.__name__}: {e}",
                name=spec.name,
                path=str(spec.origin),
            ) from e
        except BaseException:
            # SystemExit, KeyboardInterrupt: never leave the name half-loaded
            self.cache.discard(spec.name)
            raise

        self.cache.complete(spec.name)
        return module

    def run_path(self, path: str | Path) -> ModuleType:
        """Execute a script file as __main__.

        The script has no package, so relative imports inside it raise
        RelativeImportError. Its absolute imports go through this loader.
        """
        script = Path(path).resolve()
        module = ModuleType("__main__")
        module.__file__ = str(script)
        module.__package__ = None
        module.__loader__ = self
        module.__spec__ = None
        module.__builtins__ = self._builtins

        try:
            with tokenize.open(script) as f:
                source = f.read()
        except (OSError, SyntaxError, UnicodeDecodeError) as e:
            raise ModuleLoadError(f"Cannot read script {script}: {e}", name="__main__", path=str(script)) from e

        code = self._compile(source, str(script), "__main__")
        logger.debug(f"[loader:run] {script}")
        try:
            exec(code, module.__dict__)
        except ImportResolutionError:
            raise
        except Exception as e:
            raise ModuleLoadError(
                f"Error while executing {script.name}: {e.__class__.__name__}: {e}",
                name="__main__",
                path=str(script),
            ) from e
        return module

    def loaded_modules(self) -> list[str]:
        """Names of fully executed modules, in load order."""
        return [entry.name for entry in self.cache.entries() if not entry.is_loading]

    def __repr__(self) -> str:
        return f"ModuleLoader({self.registry!r}, {self.cache!r})"
