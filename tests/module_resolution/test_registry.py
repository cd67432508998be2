"""Tests for ModuleRegistry name -> source location mapping."""

from pathlib import Path

import pytest

from importlens.exceptions import ModuleNotFoundError
from importlens.module_resolution import ModuleRegistry


def test_plain_module(shop_project: Path):
    registry = ModuleRegistry([shop_project])

    spec = registry.find_spec("calculator")

    assert spec.kind == "module"
    assert spec.origin == shop_project.resolve() / "calculator.py"
    assert spec.search_locations == []
    assert spec.package == ""
    assert spec.root == shop_project.resolve()
    assert not spec.is_package


def test_regular_package(shop_project: Path):
    registry = ModuleRegistry([shop_project])

    spec = registry.find_spec("shop")

    assert spec.kind == "package"
    assert spec.origin == shop_project.resolve() / "shop" / "__init__.py"
    assert spec.search_locations == [shop_project.resolve() / "shop"]
    assert spec.package == "shop"
    assert spec.is_package


def test_submodule_uses_parent_search_locations(shop_project: Path):
    registry = ModuleRegistry([shop_project])

    spec = registry.find_spec("shop.payments.card")

    assert spec.kind == "module"
    assert spec.origin == shop_project.resolve() / "shop" / "payments" / "card.py"
    assert spec.parent == "shop.payments"
    assert spec.package == "shop.payments"
    assert spec.root == shop_project.resolve()


def test_package_wins_over_module_in_same_directory(write_tree):
    root = write_tree({"tools/__init__.py": "", "tools.py": ""})

    spec = ModuleRegistry([root]).find_spec("tools")

    assert spec.kind == "package"


def test_first_root_wins(write_tree):
    first = write_tree({"helpers.py": "WHERE = 'first'"}, "first")
    second = write_tree({"helpers.py": "WHERE = 'second'"}, "second")

    spec = ModuleRegistry([first, second]).find_spec("helpers")

    assert spec.origin == first.resolve() / "helpers.py"
    assert spec.root == first.resolve()


def test_module_later_on_path_beats_namespace_directory(write_tree):
    first = write_tree({"plugins/": ""}, "first")
    second = write_tree({"plugins.py": ""}, "second")

    spec = ModuleRegistry([first, second]).find_spec("plugins")

    assert spec.kind == "module"
    assert spec.origin == second.resolve() / "plugins.py"


def test_namespace_package_spans_roots(write_tree):
    first = write_tree({"acme/alpha.py": "NAME = 'alpha'"}, "first")
    second = write_tree({"acme/beta.py": "NAME = 'beta'"}, "second")
    registry = ModuleRegistry([first, second])

    spec = registry.find_spec("acme")

    assert spec.kind == "namespace"
    assert spec.origin is None
    assert spec.search_locations == [first.resolve() / "acme", second.resolve() / "acme"]
    assert registry.find_spec("acme.alpha").origin == first.resolve() / "acme" / "alpha.py"
    assert registry.find_spec("acme.beta").origin == second.resolve() / "acme" / "beta.py"


def test_missing_module(shop_project: Path):
    registry = ModuleRegistry([shop_project])

    with pytest.raises(ModuleNotFoundError) as exc_info:
        registry.find_spec("shop.inventory")

    assert str(exc_info.value) == "No module named 'shop.inventory'"
    assert exc_info.value.name == "shop.inventory"
    assert isinstance(exc_info.value, ImportError)


def test_submodule_of_plain_module(shop_project: Path):
    registry = ModuleRegistry([shop_project])

    with pytest.raises(ModuleNotFoundError, match="'calculator' is not a package"):
        registry.find_spec("calculator.advanced")


@pytest.mark.parametrize("name", ["", ".shop", "shop..cart", "shop."])
def test_malformed_names(shop_project: Path, name: str):
    with pytest.raises(ValueError):
        ModuleRegistry([shop_project]).find_spec(name)


def test_duplicate_roots_are_dropped(shop_project: Path):
    registry = ModuleRegistry([shop_project, shop_project / ".", str(shop_project)])

    assert registry.search_paths == [shop_project.resolve()]


def test_missing_root_never_matches(tmp_path: Path, shop_project: Path):
    registry = ModuleRegistry([tmp_path / "nowhere", shop_project])

    assert registry.find_spec("calculator").root == shop_project.resolve()


def test_specs_are_memoised_until_invalidated(write_tree):
    root = write_tree({"volatile.py": ""})
    registry = ModuleRegistry([root])
    registry.find_spec("volatile")

    (root / "volatile.py").unlink()
    assert registry.find_spec("volatile").kind == "module"

    registry.invalidate_caches()
    with pytest.raises(ModuleNotFoundError):
        registry.find_spec("volatile")


def test_iter_modules(shop_project: Path):
    (shop_project / "shop" / "__pycache__").mkdir()
    (shop_project / "shop" / "__pycache__" / "cart.cpython-312.pyc").write_bytes(b"")
    (shop_project / "docs").mkdir()
    (shop_project / "docs" / "index.md").write_text("not code")
    (shop_project / "not-a-module.py").write_text("")

    names = [spec.name for spec in ModuleRegistry([shop_project]).iter_modules()]

    assert names == [
        "calculator",
        "shop",
        "shop.cart",
        "shop.payments",
        "shop.payments.card",
        "shop.pricing",
    ]


def test_iter_modules_with_prefix(shop_project: Path):
    names = [spec.name for spec in ModuleRegistry([shop_project]).iter_modules("shop.payments")]

    assert names == ["shop.payments", "shop.payments.card"]


def test_iter_modules_skips_shadowed_duplicates(write_tree):
    first = write_tree({"helpers.py": ""}, "first")
    second = write_tree({"helpers.py": "", "extra.py": ""}, "second")

    specs = ModuleRegistry([first, second]).iter_modules()

    assert [spec.name for spec in specs] == ["extra", "helpers"]
    assert specs[1].root == first.resolve()


def test_iter_modules_includes_namespace_packages_with_code(write_tree):
    root = write_tree({"acme/tools/hammer.py": "", "empty/nested/": ""})

    names = [spec.name for spec in ModuleRegistry([root]).iter_modules()]

    assert names == ["acme", "acme.tools", "acme.tools.hammer"]
