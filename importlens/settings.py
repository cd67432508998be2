"""Settings manager for importlens settings.yaml files.

Manages three-scope settings system:
- User global (~/.importlens/settings.yaml)
- Project (.importlens/settings.yaml)
- Local (.importlens/settings.local.yaml)
"""

import logging
from pathlib import Path
from typing import Any
from typing import Literal

import yaml
from pydantic import BaseModel
from pydantic import Field

logger = logging.getLogger(__name__)

SettingsScope = Literal["local", "project", "user"]


class ImportlensSettings(BaseModel):
    """Validated contents of one settings file (or of the merged view)."""

    search_paths: list[str] = Field(default_factory=list, description="Search roots, highest priority first")
    system_fallback: bool | None = Field(None, description="Accept stdlib/installed modules for absolute imports")


class SettingsManager:
    """Manages settings across user/project/local scopes."""

    def __init__(self, importlens_dir: Path | None = None, user_dir: Path | None = None):
        """Initialize settings manager with standard paths.

        Args:
            importlens_dir: Directory holding project/local settings (for testing).
                          If None, uses .importlens in current directory.
            user_dir: Directory holding user settings (for testing).
                     If None, uses ~/.importlens.
        """
        if importlens_dir is None:
            importlens_dir = Path.cwd() / ".importlens"
        if user_dir is None:
            user_dir = Path.home() / ".importlens"

        self.user_settings_file = user_dir / "settings.yaml"
        self.project_settings_file = importlens_dir / "settings.yaml"
        self.local_settings_file = importlens_dir / "settings.local.yaml"

    def _scope_files(self) -> list[tuple[SettingsScope, Path]]:
        """Settings files, highest priority first."""
        return [
            ("local", self.local_settings_file),
            ("project", self.project_settings_file),
            ("user", self.user_settings_file),
        ]

    def load_scope(self, scope: SettingsScope) -> ImportlensSettings:
        """Load and validate one scope.

        Raises:
            pydantic.ValidationError: Settings present but invalid
        """
        path = dict(self._scope_files())[scope]
        return ImportlensSettings.model_validate(self._read_settings(path) or {})

    def get_search_paths_with_layer(self) -> list[tuple[Path, SettingsScope]]:
        """Configured search roots labelled with the scope they came from.

        Relative entries resolve against the directory that contains the
        settings folder (the project root, or the home directory for user
        settings).

        Returns:
            List of (absolute_path, scope) in priority order
        """
        roots: list[tuple[Path, SettingsScope]] = []
        for scope, path in self._scope_files():
            settings = self.load_scope(scope)
            base = path.parent.parent
            for entry in settings.search_paths:
                root = Path(entry).expanduser()
                if not root.is_absolute():
                    root = base / root
                roots.append((root.resolve(), scope))
        return roots

    def get_system_fallback(self) -> bool:
        """Resolution order: local, project, user, then True."""
        for scope, _path in self._scope_files():
            value = self.load_scope(scope).system_fallback
            if value is not None:
                return value
        return True

    def get_merged_settings(self) -> ImportlensSettings:
        return ImportlensSettings(
            search_paths=[str(root) for root, _scope in self.get_search_paths_with_layer()],
            system_fallback=self.get_system_fallback(),
        )

    def add_search_path(self, path: str, scope: SettingsScope = "project") -> None:
        """Append a search root to a scope's settings file.

        Args:
            path: Directory to add (kept as written)
            scope: "user", "project", or "local"
        """
        target = dict(self._scope_files())[scope]
        settings = self._read_settings(target) or {}
        search_paths = list(settings.get("search_paths") or [])
        if path not in search_paths:
            search_paths.append(path)
        settings["search_paths"] = search_paths
        self._write_settings(target, settings)
        logger.info(f"Added search path {path} to {scope} settings")

    def remove_search_path(self, path: str, scope: SettingsScope = "project") -> bool:
        """Remove a search root from a scope's settings file.

        Returns:
            True if the path was present
        """
        target = dict(self._scope_files())[scope]
        settings = self._read_settings(target)
        if not settings or path not in (settings.get("search_paths") or []):
            return False
        settings["search_paths"] = [p for p in settings["search_paths"] if p != path]
        if not settings["search_paths"]:
            del settings["search_paths"]
        self._write_settings(target, settings)
        logger.info(f"Removed search path {path} from {scope} settings")
        return True

    def _read_settings(self, path: Path) -> dict[str, Any] | None:
        """Read settings from YAML file.

        Malformed files are logged and treated as empty.
        """
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read settings from {path}: {e}")
            return None

        if data is None:
            return None
        if not isinstance(data, dict):
            logger.warning(f"Ignoring {path}: expected a mapping, got {type(data).__name__}")
            return None
        return data

    def _write_settings(self, path: Path, settings: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(settings, f, default_flow_style=False, sort_keys=False)
