from __future__ import annotations

import types
from typing import Any, TypeGuard


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_assignable(candidate: object, target: object) -> bool:
    """Return true when ``candidate`` can be used where ``target`` is expected.

    Non-class targets (``Any``, unions, generic aliases) only match themselves.
    Runtime-checkable protocols are honoured through ``issubclass``.
    """
    if candidate is target:
        return True
    if not is_runtime_class(candidate) or not is_runtime_class(target):
        return False
    try:
        return issubclass(candidate, target)
    except TypeError:
        return False


def is_proxyable_class(candidate: object) -> bool:
    """Return true when a forwarding subclass can be generated for ``candidate``."""
    if not is_runtime_class(candidate):
        return False
    if candidate.__module__ == "builtins":
        return False
    return not getattr(candidate, "__final__", False)


__all__ = ["is_assignable", "is_proxyable_class", "is_runtime_class"]
