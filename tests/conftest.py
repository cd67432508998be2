"""Pytest configuration for importlens tests."""

import logging
from pathlib import Path
from textwrap import dedent

import pytest

from importlens import console as console_module


def _write(base: Path, files: dict[str, str]) -> Path:
    """Write files relative to base; keys ending in "/" create empty directories."""
    for relative, content in files.items():
        path = base / relative
        if relative.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(content).lstrip("\n"), encoding="utf-8")
    return base


@pytest.fixture
def write_tree(tmp_path: Path):
    """Build throw-away source trees: write_tree({"pkg/__init__.py": ""}, "src")."""

    def _make(files: dict[str, str], subdir: str = "src") -> Path:
        return _write(tmp_path / subdir, files)

    return _make


@pytest.fixture
def shop_project(write_tree) -> Path:
    """A small project laid out like the classic package tutorial.

    src/
      calculator.py            plain module
      shop/__init__.py         re-exports Cart
      shop/cart.py             relative imports
      shop/pricing.py          absolute import of calculator
      shop/payments/__init__.py
      shop/payments/card.py    two-level relative import
    """
    return write_tree(
        {
            "calculator.py": """
                PI = 3.14159


                def add(a, b):
                    return a + b
            """,
            "shop/__init__.py": """
                from .cart import Cart

                __all__ = ["Cart"]
            """,
            "shop/cart.py": """
                from . import pricing
                from .pricing import total


                class Cart:
                    def __init__(self, prices):
                        self.prices = list(prices)

                    def total(self):
                        return total(self.prices)
            """,
            "shop/pricing.py": """
                import json
                from calculator import add


                def total(prices):
                    result = 0
                    for price in prices:
                        result = add(result, price)
                    return result
            """,
            "shop/payments/__init__.py": "",
            "shop/payments/card.py": """
                from ..pricing import total

                FEE = total([1, 2])
            """,
        }
    )


@pytest.fixture
def isolated_cli(tmp_path: Path, monkeypatch):
    """Run CLI commands with an empty home, a clean environment and a wide console."""
    home = tmp_path / "home"
    home.mkdir()
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(workdir)
    monkeypatch.delenv("IMPORTLENS_PATH", raising=False)
    monkeypatch.delenv("IMPORTLENS_LOG_PATH", raising=False)
    monkeypatch.setattr(console_module.console, "width", 200)
    monkeypatch.setattr(console_module.error_console, "width", 200)
    return workdir


@pytest.fixture
def restore_root_logger():
    """Undo handlers and level changes made to the root logger."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
