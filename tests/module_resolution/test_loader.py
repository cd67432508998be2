"""Tests for executing modules in the isolated loader."""

import json
import sys
from pathlib import Path

import pytest

from importlens.exceptions import CircularImportError
from importlens.exceptions import ImportResolutionError
from importlens.exceptions import ModuleLoadError
from importlens.exceptions import ModuleNotFoundError
from importlens.exceptions import RelativeImportError
from importlens.module_resolution import ModuleLoader
from importlens.module_resolution import ModuleRegistry


@pytest.fixture
def loader(shop_project: Path) -> ModuleLoader:
    return ModuleLoader(ModuleRegistry([shop_project]))


def test_load_plain_module(loader: ModuleLoader):
    calculator = loader.load("calculator")

    assert calculator.add(2, 3) == 5
    assert calculator.__name__ == "calculator"
    assert calculator.__package__ == ""
    assert calculator.__spec__.name == "calculator"
    assert "calculator" not in sys.modules


def test_load_submodule_executes_parents_first(loader: ModuleLoader):
    card = loader.load("shop.payments.card")

    assert card.FEE == 3
    assert card.__package__ == "shop.payments"
    assert list(loader.cache) == [
        "shop",
        "shop.cart",
        "shop.pricing",
        "calculator",
        "shop.payments",
        "shop.payments.card",
    ]
    assert loader.loaded_modules() == list(loader.cache)


def test_submodules_bound_on_parent(loader: ModuleLoader):
    shop = loader.load("shop")

    assert shop.cart is loader.load("shop.cart")
    assert shop.pricing is loader.load("shop.pricing")
    assert shop.__path__ == [str(loader.registry.find_spec("shop").search_locations[0])]
    assert shop.Cart([1, 2, 3]).total() == 6


def test_modules_are_cached(loader: ModuleLoader):
    assert loader.load("shop.cart") is loader.load("shop.cart")


def test_system_modules_use_real_import(loader: ModuleLoader):
    pricing = loader.load("shop.pricing")

    assert pricing.json is json


def test_system_modules_rejected_without_fallback(shop_project: Path):
    loader = ModuleLoader(ModuleRegistry([shop_project]), system_fallback=False)

    with pytest.raises(ModuleNotFoundError, match="No module named 'json'"):
        loader.load("shop.pricing")

    assert "shop.pricing" not in loader.cache


def test_import_module_returns_top_level_without_fromlist(loader: ModuleLoader):
    top = loader.import_module("shop.payments.card")
    leaf = loader.import_module("shop.payments.card", fromlist=["FEE"])

    assert top.__name__ == "shop"
    assert leaf.__name__ == "shop.payments.card"


def test_import_module_relative_uses_package_from_globals(loader: ModuleLoader):
    module = loader.import_module("pricing", globals={"__package__": "shop.payments"}, fromlist=["total"], level=2)

    assert module.__name__ == "shop.pricing"


def test_import_module_relative_without_package(loader: ModuleLoader):
    with pytest.raises(RelativeImportError, match="no known parent package"):
        loader.import_module("pricing", globals={"__name__": "__main__"}, fromlist=["total"], level=1)


def test_missing_name_from_module(write_tree):
    root = write_tree({"consumer.py": "from calc import divide\n", "calc.py": "def add(a, b):\n    return a + b\n"})
    loader = ModuleLoader(ModuleRegistry([root]))

    with pytest.raises(ImportResolutionError, match="cannot import name 'divide' from 'calc'"):
        loader.load("consumer")

    assert "consumer" not in loader.cache
    assert "calc" in loader.cache


def test_missing_project_module(loader: ModuleLoader):
    with pytest.raises(ModuleNotFoundError, match="No module named 'shop.inventory'"):
        loader.load("shop.inventory")


def test_circular_from_import_is_reported(write_tree):
    root = write_tree(
        {
            "orders.py": """
                from customers import lookup


                def place():
                    return lookup()
            """,
            "customers.py": """
                from orders import place


                def lookup():
                    return "customer"
            """,
        }
    )
    loader = ModuleLoader(ModuleRegistry([root]))

    with pytest.raises(CircularImportError) as exc_info:
        loader.load("orders")

    assert "partially initialized module 'orders'" in str(exc_info.value)
    assert "circular import" in str(exc_info.value)
    assert len(loader.cache) == 0


def test_circular_module_imports_are_allowed(write_tree):
    root = write_tree(
        {
            "ping.py": """
                import pong

                NAME = "ping"


                def other():
                    return pong.NAME
            """,
            "pong.py": """
                import ping

                NAME = "pong"


                def other():
                    return ping.NAME
            """,
        }
    )
    loader = ModuleLoader(ModuleRegistry([root]))

    ping = loader.load("ping")
    pong = loader.load("pong")

    assert ping.other() == "pong"
    assert pong.other() == "ping"
    assert loader.cache.loading() == []


def test_execution_error_is_wrapped_and_retried(write_tree):
    root = write_tree({"fragile.py": "RATIO = 1 / 0\n"})
    loader = ModuleLoader(ModuleRegistry([root]))

    with pytest.raises(ModuleLoadError) as exc_info:
        loader.load("fragile")

    assert isinstance(exc_info.value.__cause__, ZeroDivisionError)
    assert "ZeroDivisionError" in str(exc_info.value)
    assert "fragile" not in loader.cache

    with pytest.raises(ModuleLoadError):
        loader.load("fragile")


def test_syntax_error_while_loading(write_tree):
    root = write_tree({"broken.py": "def oops(:\n"})
    loader = ModuleLoader(ModuleRegistry([root]))

    with pytest.raises(ModuleLoadError) as exc_info:
        loader.load("broken")

    assert exc_info.value.lineno == 1


def test_namespace_package(write_tree):
    first = write_tree({"zephyr_ns/alpha.py": "NAME = 'alpha'"}, "first")
    second = write_tree({"zephyr_ns/beta.py": "from zephyr_ns.alpha import NAME as OTHER\nNAME = 'beta'"}, "second")
    loader = ModuleLoader(ModuleRegistry([first, second]))

    beta = loader.load("zephyr_ns.beta")
    zephyr_ns = loader.load("zephyr_ns")

    assert beta.OTHER == "alpha"
    assert not hasattr(zephyr_ns, "__file__")
    assert zephyr_ns.__path__ == [str(first.resolve() / "zephyr_ns"), str(second.resolve() / "zephyr_ns")]


def test_star_import_loads_submodules_from_all(write_tree):
    root = write_tree(
        {
            "widgets/__init__.py": '__all__ = ["buttons"]\n',
            "widgets/buttons.py": "KIND = 'button'\n",
            "screen.py": "from widgets import *\nRESULT = buttons.KIND\n",
        }
    )
    loader = ModuleLoader(ModuleRegistry([root]))

    assert loader.load("screen").RESULT == "button"


def test_main_guard_only_runs_for_scripts(write_tree):
    root = write_tree(
        {
            "tool.py": """
                from calculator import add

                RAN_AS_SCRIPT = False
                if __name__ == "__main__":
                    RAN_AS_SCRIPT = add(1, 1) == 2
            """,
            "calculator.py": "def add(a, b):\n    return a + b\n",
        }
    )
    loader = ModuleLoader(ModuleRegistry([root]))

    assert loader.load("tool").RAN_AS_SCRIPT is False

    script = ModuleLoader(ModuleRegistry([root])).run_path(root / "tool.py")
    assert script.__name__ == "__main__"
    assert script.RAN_AS_SCRIPT is True


def test_run_path_relative_import_fails(write_tree):
    root = write_tree({"shop/__init__.py": "", "shop/cart.py": "from .pricing import total\n"})
    loader = ModuleLoader(ModuleRegistry([root]))

    with pytest.raises(RelativeImportError, match="no known parent package"):
        loader.run_path(root / "shop" / "cart.py")


def test_run_path_wraps_script_errors(write_tree):
    root = write_tree({"script.py": "raise RuntimeError('boom')\n"})

    with pytest.raises(ModuleLoadError, match="RuntimeError: boom"):
        ModuleLoader(ModuleRegistry([root])).run_path(root / "script.py")


def test_system_exit_does_not_leave_module_loading(write_tree):
    root = write_tree({"quits.py": "raise SystemExit(3)\n", "user.py": "from quits import anything\n"})
    loader = ModuleLoader(ModuleRegistry([root]))

    with pytest.raises(SystemExit):
        loader.load("quits")

    assert loader.cache.loading() == []
    assert "quits" not in loader.cache

    # A second attempt re-executes instead of reporting a circular import
    with pytest.raises(SystemExit):
        loader.load("user")
    assert len(loader.cache) == 0


def test_relative_import_inside_namespace_named_like_stdlib(write_tree):
    root = write_tree({"email/a.py": "from . import b\n", "email/b.py": "X = 1\n"})
    loader = ModuleLoader(ModuleRegistry([root]))

    module = loader.load("email.a")

    assert module.b.X == 1
    assert module.b is loader.load("email.b")
    assert loader.cache.get("email").spec.kind == "namespace"


def test_run_path_honours_coding_cookie(write_tree):
    root = write_tree({})
    root.mkdir(parents=True, exist_ok=True)
    script = root / "latin.py"
    script.write_bytes(b"# -*- coding: latin-1 -*-\nNAME = '\xe9'\n")

    module = ModuleLoader(ModuleRegistry([root])).run_path(script)

    assert module.NAME == "é"


def test_run_path_undecodable_script(write_tree):
    root = write_tree({})
    root.mkdir(parents=True, exist_ok=True)
    script = root / "garbled.py"
    script.write_bytes(b"NAME = '\xe9'\n")

    with pytest.raises(ModuleLoadError, match="Cannot read script"):
        ModuleLoader(ModuleRegistry([root])).run_path(script)
