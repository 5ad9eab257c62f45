from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar, get_args, get_origin

from liteinject._internal.type_checks import is_open_generic_class


def contains_typevar(value: Any) -> bool:
    """Return whether a type expression still contains a ``TypeVar``.

    Args:
        value: Type expression or object to inspect.

    Returns:
        ``True`` when any nested node contains a TypeVar, else ``False``.

    """
    if isinstance(value, TypeVar):
        return True

    origin = get_origin(value)
    if origin is not None:
        return any(contains_typevar(argument) for argument in get_args(value))

    parameters = getattr(value, "__parameters__", ())
    return any(isinstance(parameter, TypeVar) for parameter in parameters)


def substitute_typevars(value: Any, *, mapping: Mapping[TypeVar, Any]) -> Any:
    """Substitute TypeVars in a type expression using a resolved mapping.

    Used when closing an open generic registration, so that a constructor
    parameter annotated as ``list[T]`` on ``SqlRepository[T]`` becomes
    ``list[int]`` for ``SqlRepository[int]``.

    Args:
        value: Type expression template that may contain TypeVars.
        mapping: Mapping from template TypeVars to concrete type arguments.

    Returns:
        The substituted type expression with available TypeVars replaced.

    """
    if isinstance(value, TypeVar):
        return mapping.get(value, value)

    origin = get_origin(value)
    if origin is None:
        return value

    arguments = get_args(value)
    if not arguments:
        return value

    substituted_arguments = tuple(
        substitute_typevars(argument, mapping=mapping) for argument in arguments
    )
    if substituted_arguments == arguments:
        return value
    return rebuild_alias(origin=origin, args=substituted_arguments, fallback=value)


def typevar_mapping(closed: Any) -> dict[TypeVar, Any]:
    """Return the ``TypeVar -> argument`` mapping of a closed generic alias.

    ``typevar_mapping(SqlRepository[int])`` returns ``{T: int}``. Non-generic
    values map to an empty dict.
    """
    origin = get_origin(closed)
    if origin is None:
        return {}
    parameters = getattr(origin, "__parameters__", ())
    arguments = get_args(closed)
    if len(parameters) != len(arguments):
        return {}
    return dict(zip(parameters, arguments))


def split_closed_generic(contract_type: Any) -> tuple[Any, tuple[Any, ...]] | None:
    """Split ``Repository[int]`` into ``(Repository, (int,))``.

    Returns ``None`` unless the origin is an open generic class and the alias is
    fully closed.
    """
    origin = get_origin(contract_type)
    if origin is None or not is_open_generic_class(origin):
        return None
    arguments = get_args(contract_type)
    if not arguments or contains_typevar(contract_type):
        return None
    return origin, arguments


def rebuild_alias(*, origin: Any, args: tuple[Any, ...], fallback: Any) -> Any:
    try:
        if len(args) == 1:
            return origin[args[0]]
        return origin[args]
    except TypeError:
        return fallback