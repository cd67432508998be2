"""Pydantic schemas shared by the registry, resolver and loader."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

ModuleKind = Literal["module", "package", "namespace"]
MemberKind = Literal["submodule", "attribute", "missing", "unknown"]
Location = Literal["project", "system", "unresolved"]


class ModuleSpec(BaseModel):
    """Where a canonical dotted name lives on disk."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Canonical dotted module name")
    kind: ModuleKind = Field(..., description="Plain module, regular package or namespace package")
    origin: Path | None = Field(None, description="Source file (__init__.py for packages, None for namespaces)")
    search_locations: list[Path] = Field(
        default_factory=list, description="Directories searched for submodules (empty for plain modules)"
    )
    root: Path = Field(..., description="Search root the top-level name was found under")

    @property
    def is_package(self) -> bool:
        return self.kind != "module"

    @property
    def parent(self) -> str:
        return self.name.rpartition(".")[0]

    @property
    def package(self) -> str:
        """Value of __package__ inside the module."""
        return self.name if self.is_package else self.parent


class ImportStatement(BaseModel):
    """One import as written in source.

    ``import a.b as c`` becomes module="a.b", names=[], aliases={"a.b": "c"}.
    ``from ..pkg import x`` becomes module="pkg", names=["x"], level=2.
    """

    module: str = Field("", description="Dotted name after 'from', or the imported name for 'import'")
    names: list[str] = Field(default_factory=list, description="Imported names for 'from' imports")
    level: int = Field(0, ge=0, description="Number of leading dots")
    lineno: int = Field(0, description="Source line of the statement")
    aliases: dict[str, str] = Field(default_factory=dict, description="Imported name -> local alias")
    guarded: bool = Field(False, description="Inside try/except ImportError or 'if TYPE_CHECKING:'")

    @property
    def is_from(self) -> bool:
        return bool(self.names)

    def render(self) -> str:
        """Reconstruct the statement as source text."""
        dotted = "." * self.level + self.module
        if not self.names:
            alias = self.aliases.get(self.module)
            return f"import {dotted}" + (f" as {alias}" if alias else "")
        parts = []
        for name in self.names:
            alias = self.aliases.get(name)
            parts.append(f"{name} as {alias}" if alias else name)
        return f"from {dotted} import {', '.join(parts)}"


class ResolvedImport(BaseModel):
    """Outcome of resolving one ImportStatement."""

    statement: ImportStatement
    target: str = Field(..., description="Canonical name the statement refers to")
    spec: ModuleSpec | None = Field(None, description="Registry entry for the target, if any")
    location: Location = Field("unresolved", description="Where the target was found")
    members: dict[str, MemberKind] = Field(
        default_factory=dict, description="Resolution of each name in a 'from' import"
    )

    @property
    def resolved(self) -> bool:
        return self.location != "unresolved"

    @property
    def missing_names(self) -> list[str]:
        return [name for name, kind in self.members.items() if kind == "missing"]
