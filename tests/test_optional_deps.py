from __future__ import annotations

import re
import sys
from pathlib import Path

import pytest

# Ensure src-layout imports work when running tests from repo checkout.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from treekit._optional_deps import import_optional_attr  # noqa: E402


def test_optional_import_error_contains_install_hint() -> None:
    with pytest.raises(ModuleNotFoundError) as exc_info:
        import_optional_attr(
            module_name="missing_feature_module.app",
            attr_name="main",
            package="treekit",
            feature="treekit.cli",
            extra="cli",
            required_modules=("missing_feature_module",),
        )

    message = str(exc_info.value)
    assert "treekit.cli is unavailable" in message
    assert re.search(r'pip install "treekit\[cli\]"', message)
    assert "pdm sync -G dev -G cli" in message
    assert exc_info.value.name == "missing_feature_module"


def test_unrelated_missing_module_is_not_rewritten() -> None:
    with pytest.raises(ModuleNotFoundError) as exc_info:
        import_optional_attr(
            module_name="missing_feature_module",
            attr_name="main",
            package="treekit",
            feature="treekit.cli",
            extra="cli",
            required_modules=("rich",),
        )

    assert "unavailable" not in str(exc_info.value)


def test_attribute_is_returned_from_present_module() -> None:
    fn_join = import_optional_attr(
        module_name="os.path",
        attr_name="join",
        package="treekit",
        feature="treekit.cli",
        extra="cli",
        required_modules=("rich",),
    )
    assert fn_join("a", "b") == str(Path("a") / "b")


def test_cli_attributes_resolve_lazily() -> None:
    import treekit.cli as cli

    assert callable(cli.main)
    with pytest.raises(AttributeError):
        getattr(cli, "not_there")
