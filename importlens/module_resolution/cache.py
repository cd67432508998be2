"""Cache of loaded modules keyed by canonical name.

Plays the role sys.modules plays for the interpreter, but stays private to
one ModuleLoader so executed project code never leaks into the host process.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field
from datetime import UTC
from datetime import datetime
from types import ModuleType
from typing import Literal

from .models import ModuleSpec

logger = logging.getLogger(__name__)

ModuleState = Literal["loading", "loaded"]


@dataclass
class CacheEntry:
    """A module in the cache."""

    name: str
    module: ModuleType
    spec: ModuleSpec
    state: ModuleState = "loading"
    loaded_at: datetime | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_loading(self) -> bool:
        return self.state == "loading"


class ModuleCache:
    """At most one entry per canonical name."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def get(self, name: str) -> CacheEntry | None:
        return self._entries.get(name)

    def begin(self, name: str, module: ModuleType, spec: ModuleSpec) -> CacheEntry:
        """Insert a module that is about to execute.

        Raises:
            ValueError: Name already cached
        """
        if name in self._entries:
            raise ValueError(f"Module '{name}' is already cached ({self._entries[name].state})")
        entry = CacheEntry(name=name, module=module, spec=spec)
        self._entries[name] = entry
        logger.debug(f"[cache:begin] {name}")
        return entry

    def complete(self, name: str) -> None:
        """Mark a module as fully executed."""
        entry = self._entries[name]
        entry.state = "loaded"
        entry.loaded_at = datetime.now(UTC)
        logger.debug(f"[cache:complete] {name}")

    def discard(self, name: str) -> None:
        if self._entries.pop(name, None) is not None:
            logger.debug(f"[cache:discard] {name}")

    def clear(self) -> None:
        self._entries.clear()

    def loading(self) -> list[str]:
        """Names whose code is executing right now, outermost first."""
        return [name for name, entry in self._entries.items() if entry.is_loading]

    def entries(self) -> list[CacheEntry]:
        return list(self._entries.values())

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ModuleCache({len(self._entries)} modules, {len(self.loading())} loading)"
