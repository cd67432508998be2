"""Static reading of module source: imports, bindings and exports.

Nothing here executes user code; everything comes from the ast.
"""

import ast
import logging
import tokenize
from dataclasses import dataclass
from dataclasses import field

from ..exceptions import ModuleLoadError
from .models import ImportStatement
from .models import ModuleSpec

logger = logging.getLogger(__name__)

IMPORT_ERROR_NAMES = {"ImportError", "ModuleNotFoundError"}


@dataclass
class ModuleInfo:
    """What a module imports and binds, read without executing it."""

    spec: ModuleSpec
    imports: list[ImportStatement] = field(default_factory=list)
    bound_names: set[str] = field(default_factory=set)
    all_names: list[str] | None = None
    has_getattr: bool = False
    has_star_import: bool = False

    @property
    def exports(self) -> list[str]:
        """Names a star import would bring in."""
        if self.all_names is not None:
            return list(self.all_names)
        return sorted(name for name in self.bound_names if not name.startswith("_"))


def read_source(spec: ModuleSpec) -> str:
    """Read module source, honouring PEP 263 coding cookies.

    Namespace packages have no source and read as "".
    """
    if spec.origin is None:
        return ""
    try:
        with tokenize.open(spec.origin) as f:
            return f.read()
    except (OSError, SyntaxError, UnicodeDecodeError) as e:
        raise ModuleLoadError(
            f"Cannot read source of '{spec.name}': {e}",
            name=spec.name,
            path=str(spec.origin),
        ) from e


def parse_tree(source: str, spec: ModuleSpec) -> ast.Module:
    filename = str(spec.origin) if spec.origin else f"<namespace {spec.name}>"
    try:
        return ast.parse(source, filename=filename)
    except SyntaxError as e:
        raise ModuleLoadError(
            f"Syntax error in '{spec.name}' at line {e.lineno}: {e.msg}",
            name=spec.name,
            path=filename,
            lineno=e.lineno,
        ) from e
    except ValueError as e:
        # Source containing null bytes
        raise ModuleLoadError(f"Cannot parse '{spec.name}': {e}", name=spec.name, path=filename) from e


def parse(spec: ModuleSpec) -> ModuleInfo:
    """Parse a module into a ModuleInfo.

    Raises:
        ModuleLoadError: Source unreadable or not valid Python
    """
    tree = parse_tree(read_source(spec), spec)

    collector = _ImportCollector()
    collector.visit(tree)

    bound = _bound_names(tree.body)
    info = ModuleInfo(
        spec=spec,
        imports=collector.statements,
        bound_names=bound,
        all_names=_literal_all(tree.body),
        has_getattr="__getattr__" in bound,
        has_star_import=any(
            isinstance(node, ast.ImportFrom) and any(alias.name == "*" for alias in node.names)
            for node in _top_level_statements(tree.body)
        ),
    )
    logger.debug(f"[parser:parse] {spec.name}: {len(info.imports)} imports, {len(info.bound_names)} names")
    return info


class _ImportCollector(ast.NodeVisitor):
    """Collect every import statement in source order, nested ones included."""

    def __init__(self) -> None:
        self.statements: list[ImportStatement] = []
        self._guard_depth = 0

    @property
    def _guarded(self) -> bool:
        return self._guard_depth > 0

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self.statements.append(
                ImportStatement(
                    module=alias.name,
                    lineno=node.lineno,
                    aliases={alias.name: alias.asname} if alias.asname else {},
                    guarded=self._guarded,
                )
            )

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        self.statements.append(
            ImportStatement(
                module=node.module or "",
                names=[alias.name for alias in node.names],
                level=node.level or 0,
                lineno=node.lineno,
                aliases={alias.name: alias.asname for alias in node.names if alias.asname},
                guarded=self._guarded,
            )
        )

    def visit_Try(self, node: ast.Try) -> None:
        guarded = any(_catches_import_error(handler) for handler in node.handlers)
        self._visit_block(node.body, guarded)
        for handler in node.handlers:
            self.visit(handler)
        self._visit_block(node.orelse, False)
        self._visit_block(node.finalbody, False)

    visit_TryStar = visit_Try

    def visit_If(self, node: ast.If) -> None:
        self.visit(node.test)
        self._visit_block(node.body, _is_type_checking(node.test))
        self._visit_block(node.orelse, False)

    def _visit_block(self, body: list[ast.stmt], guarded: bool) -> None:
        if guarded:
            self._guard_depth += 1
        try:
            for statement in body:
                self.visit(statement)
        finally:
            if guarded:
                self._guard_depth -= 1


def _catches_import_error(handler: ast.ExceptHandler) -> bool:
    if handler.type is None:
        return True
    candidates = handler.type.elts if isinstance(handler.type, ast.Tuple) else [handler.type]
    for candidate in candidates:
        if isinstance(candidate, ast.Name) and candidate.id in IMPORT_ERROR_NAMES:
            return True
        if isinstance(candidate, ast.Attribute) and candidate.attr in IMPORT_ERROR_NAMES:
            return True
    return False


def _is_type_checking(test: ast.expr) -> bool:
    if isinstance(test, ast.Name):
        return test.id == "TYPE_CHECKING"
    if isinstance(test, ast.Attribute):
        return test.attr == "TYPE_CHECKING"
    return False


def _top_level_statements(body: list[ast.stmt]):
    """Yield module-level statements, descending into compound blocks but not defs."""
    for node in body:
        yield node
        if isinstance(node, ast.If | ast.For | ast.AsyncFor | ast.While | ast.With | ast.AsyncWith):
            yield from _top_level_statements(node.body)
            yield from _top_level_statements(getattr(node, "orelse", []))
        elif isinstance(node, ast.Try | ast.TryStar):
            yield from _top_level_statements(node.body)
            for handler in node.handlers:
                yield from _top_level_statements(handler.body)
            yield from _top_level_statements(node.orelse)
            yield from _top_level_statements(node.finalbody)
        elif isinstance(node, ast.Match):
            for case in node.cases:
                yield from _top_level_statements(case.body)


def _target_names(target: ast.expr) -> set[str]:
    if isinstance(target, ast.Name):
        return {target.id}
    if isinstance(target, ast.Tuple | ast.List):
        names: set[str] = set()
        for element in target.elts:
            names |= _target_names(element)
        return names
    if isinstance(target, ast.Starred):
        return _target_names(target.value)
    return set()


def _bound_names(body: list[ast.stmt]) -> set[str]:
    """Names bound at module level."""
    names: set[str] = set()
    for node in _top_level_statements(body):
        if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef):
            names.add(node.name)
        elif isinstance(node, ast.Assign):
            for target in node.targets:
                names |= _target_names(target)
        elif isinstance(node, ast.AugAssign):
            names |= _target_names(node.target)
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            names |= _target_names(node.target)
        elif isinstance(node, ast.Import):
            for alias in node.names:
                names.add(alias.asname or alias.name.partition(".")[0])
        elif isinstance(node, ast.ImportFrom):
            for alias in node.names:
                if alias.name != "*":
                    names.add(alias.asname or alias.name)
        elif isinstance(node, ast.For | ast.AsyncFor):
            names |= _target_names(node.target)
        elif isinstance(node, ast.With | ast.AsyncWith):
            for item in node.items:
                if item.optional_vars is not None:
                    names |= _target_names(item.optional_vars)
    return names


def _literal_all(body: list[ast.stmt]) -> list[str] | None:
    """__all__ when it is built from literal lists/tuples of strings."""
    result: list[str] | None = None
    for node in _top_level_statements(body):
        if isinstance(node, ast.Assign) and any(
            isinstance(target, ast.Name) and target.id == "__all__" for target in node.targets
        ):
            value = _literal_strings(node.value)
            if value is None:
                return None
            result = value
        elif isinstance(node, ast.AugAssign) and isinstance(node.target, ast.Name) and node.target.id == "__all__":
            value = _literal_strings(node.value)
            if value is None or result is None:
                return None
            result = result + value
    return result


def _literal_strings(node: ast.expr) -> list[str] | None:
    try:
        value = ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError):
        return None
    if isinstance(value, list | tuple) and all(isinstance(item, str) for item in value):
        return list(value)
    return None
