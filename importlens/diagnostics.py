"""Project-wide import check.

Walks every module the registry can see, resolves each import statement and
reports the ones that would fail at import time.
"""

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel
from pydantic import Field

from .exceptions import ModuleLoadError
from .exceptions import RelativeImportError
from .module_resolution import ImportResolver
from .module_resolution import ModuleSpec

logger = logging.getLogger(__name__)

Severity = Literal["error", "warning"]


class Diagnostic(BaseModel):
    """One problem found in a module."""

    module: str = Field(..., description="Module containing the problem")
    path: Path | None = Field(None, description="Source file")
    lineno: int = Field(0, description="Line of the offending statement")
    severity: Severity = Field("error")
    code: str = Field(..., description="unresolved-import, missing-name, relative-*, syntax-error")
    message: str


class CheckReport(BaseModel):
    """Result of check_project."""

    modules_checked: int = 0
    imports_checked: int = 0
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "error"]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "warning"]

    @property
    def ok(self) -> bool:
        return not self.errors


def check_module(resolver: ImportResolver, spec: ModuleSpec) -> tuple[int, list[Diagnostic]]:
    """Check the imports of one module.

    Returns:
        Tuple of (imports_checked, diagnostics)
    """
    diagnostics: list[Diagnostic] = []

    try:
        info = resolver.info(spec)
    except ModuleLoadError as e:
        diagnostics.append(
            Diagnostic(
                module=spec.name,
                path=spec.origin,
                lineno=e.lineno or 0,
                code="syntax-error",
                message=str(e),
            )
        )
        return 0, diagnostics

    for statement in info.imports:
        severity: Severity = "warning" if statement.guarded else "error"

        try:
            resolved = resolver.resolve(statement, spec)
        except RelativeImportError as e:
            diagnostics.append(
                Diagnostic(
                    module=spec.name,
                    path=spec.origin,
                    lineno=statement.lineno,
                    severity=severity,
                    code="relative-beyond-top" if e.beyond_top else "relative-no-parent",
                    message=f"{statement.render()}: {e}",
                )
            )
            continue

        if not resolved.resolved:
            diagnostics.append(
                Diagnostic(
                    module=spec.name,
                    path=spec.origin,
                    lineno=statement.lineno,
                    severity=severity,
                    code="unresolved-import",
                    message=f"{statement.render()}: No module named '{resolved.target}'",
                )
            )
            continue

        for name in resolved.missing_names:
            diagnostics.append(
                Diagnostic(
                    module=spec.name,
                    path=spec.origin,
                    lineno=statement.lineno,
                    severity=severity,
                    code="missing-name",
                    message=f"{statement.render()}: cannot import name '{name}' from '{resolved.target}'",
                )
            )

    return len(info.imports), diagnostics


def check_project(resolver: ImportResolver, prefix: str = "") -> CheckReport:
    """Check every module reachable from the resolver's registry.

    Args:
        resolver: Resolver bound to the project registry
        prefix: Optional package name restricting the walk

    Returns:
        CheckReport with diagnostics in module order
    """
    report = CheckReport()

    for spec in resolver.registry.iter_modules(prefix):
        imports_checked, diagnostics = check_module(resolver, spec)
        report.modules_checked += 1
        report.imports_checked += imports_checked
        report.diagnostics.extend(diagnostics)

    logger.info(
        f"[check] {report.modules_checked} modules, {report.imports_checked} imports, "
        f"{len(report.errors)} errors, {len(report.warnings)} warnings"
    )
    return report
