"""CLI-specific path policy and dependency injection helpers.

This module centralizes the search-root policy of the CLI.
Libraries receive roots via injection; this module provides the CLI's choices.

Search root order (highest precedence first):
1. --path options on the command line
2. IMPORTLENS_PATH environment variable (os.pathsep separated, like PYTHONPATH)
3. Local, project and user settings files
4. The current directory, when nothing above configured a root
"""

import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .module_resolution import ImportResolver
from .module_resolution import ModuleCache
from .module_resolution import ModuleLoader
from .module_resolution import ModuleRegistry
from .settings import SettingsManager

PATH_ENV_VAR = "IMPORTLENS_PATH"


def get_search_roots_with_layer(
    cli_paths: Iterable[str | Path] = (),
    settings_manager: SettingsManager | None = None,
) -> list[tuple[Path, str]]:
    """Assemble search roots, each labelled with the layer that supplied it.

    Args:
        cli_paths: Roots given on the command line
        settings_manager: Settings source (default: standard locations)

    Returns:
        List of (absolute_path, layer) without duplicates; layer is one of
        cli, env, local, project, user, cwd
    """
    roots: list[tuple[Path, str]] = []

    for entry in cli_paths:
        roots.append((Path(entry).expanduser().resolve(), "cli"))

    if env_value := os.environ.get(PATH_ENV_VAR):
        for entry in env_value.split(os.pathsep):
            if entry:
                roots.append((Path(entry).expanduser().resolve(), "env"))

    if settings_manager is None:
        settings_manager = SettingsManager()
    roots.extend(settings_manager.get_search_paths_with_layer())

    if not roots:
        roots.append((Path.cwd().resolve(), "cwd"))

    unique: list[tuple[Path, str]] = []
    seen: set[Path] = set()
    for root, layer in roots:
        if root not in seen:
            seen.add(root)
            unique.append((root, layer))
    return unique


def get_system_fallback(no_system: bool = False, settings_manager: SettingsManager | None = None) -> bool:
    """--no-system wins; otherwise settings decide (default on)."""
    if no_system:
        return False
    if settings_manager is None:
        settings_manager = SettingsManager()
    return settings_manager.get_system_fallback()


def create_registry(roots_with_layer: list[tuple[Path, str]]) -> ModuleRegistry:
    return ModuleRegistry(root for root, _layer in roots_with_layer)


def create_resolver(
    registry: ModuleRegistry,
    roots_with_layer: list[tuple[Path, str]] | None = None,
    system_fallback: bool = True,
) -> ImportResolver:
    """Create resolver with layer labels for the CLI's "where from" output."""
    layers = dict(roots_with_layer or [])
    return ImportResolver(registry, system_fallback=system_fallback, layers=layers)


def create_loader(registry: ModuleRegistry, system_fallback: bool = True) -> ModuleLoader:
    return ModuleLoader(registry, cache=ModuleCache(), system_fallback=system_fallback)


@dataclass
class ResolutionContext:
    """Registry, resolver and loader sharing one set of search roots."""

    roots: list[tuple[Path, str]]
    registry: ModuleRegistry
    resolver: ImportResolver
    loader: ModuleLoader

    @property
    def system_fallback(self) -> bool:
        return self.resolver.system_fallback


def create_resolution_context(
    cli_paths: Iterable[str | Path] = (),
    no_system: bool = False,
    settings_manager: SettingsManager | None = None,
) -> ResolutionContext:
    """Wire up everything a command needs from CLI options and settings.

    Raises:
        pydantic.ValidationError: A settings file holds invalid values
    """
    if settings_manager is None:
        settings_manager = SettingsManager()
    roots = get_search_roots_with_layer(cli_paths, settings_manager)
    system_fallback = get_system_fallback(no_system, settings_manager)
    registry = create_registry(roots)
    return ResolutionContext(
        roots=roots,
        registry=registry,
        resolver=create_resolver(registry, roots, system_fallback),
        loader=create_loader(registry, system_fallback),
    )
