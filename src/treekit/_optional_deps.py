from __future__ import annotations

from collections.abc import Sequence
from importlib import import_module
from typing import Any


def import_optional_attr(
    *,
    module_name: str,
    attr_name: str,
    package: str,
    feature: str,
    extra: str,
    required_modules: Sequence[str],
) -> Any:
    """Fetch ``attr_name`` from a module that needs an optional extra.

    A missing top-level package listed in ``required_modules`` becomes a
    ``ModuleNotFoundError`` naming the extra to install. Any other import
    error propagates unchanged.
    """
    try:
        module = import_module(module_name, package=package)
    except ModuleNotFoundError as exc:
        c_missing_root = (exc.name or "").partition(".")[0]
        if c_missing_root not in required_modules:
            raise
        raise ModuleNotFoundError(
            f"{feature} is unavailable. Missing optional dependency "
            f"`{exc.name}`. Install it with `pip install \"treekit[{extra}]\"` "
            f"or `pdm sync -G dev -G {extra}` in a checkout.",
            name=exc.name,
        ) from exc
    return getattr(module, attr_name)
