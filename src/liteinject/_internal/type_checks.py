from __future__ import annotations

import types
from typing import Any, TypeGuard, TypeVar


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_open_generic_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true for an unparametrized generic class such as ``Repository``.

    Args:
        candidate: Value being checked.

    """
    if not is_runtime_class(candidate):
        return False
    parameters = getattr(candidate, "__parameters__", ())
    return bool(parameters) and all(isinstance(parameter, TypeVar) for parameter in parameters)


def type_parameter_count(candidate: object) -> int:
    return len(getattr(candidate, "__parameters__", ()))


__all__ = ["is_open_generic_class", "is_runtime_class", "type_parameter_count"]
