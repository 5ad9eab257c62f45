from __future__ import annotations

import inspect
import logging
import threading
import types
from dataclasses import dataclass
from inspect import Parameter
from typing import TYPE_CHECKING, Any, Union, get_args, get_origin, get_type_hints

from typing_extensions import get_overloads

from liteinject._internal.generics import substitute_typevars, typevar_mapping
from liteinject.exceptions import (
    AmbiguousConstructorError,
    ConstructorAnnotationError,
    MissingConstructorError,
)

if TYPE_CHECKING:
    from liteinject.injector import Injector
    from liteinject.registry import ServiceRegistry

logger = logging.getLogger(__name__)

_NO_ANNOTATION: Any = object()
_VARIADIC_KINDS = (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD)


@dataclass(frozen=True, slots=True)
class ConstructorParameter:
    """A single injectable constructor parameter."""

    name: str
    annotation: Any
    default: Any
    kind: Any

    @property
    def has_default(self) -> bool:
        return self.default is not Parameter.empty

    @property
    def has_annotation(self) -> bool:
        return self.annotation is not _NO_ANNOTATION

    def describe(self) -> str:
        if not self.has_annotation:
            return self.name
        annotation = (
            self.annotation.__qualname__
            if isinstance(self.annotation, type) and not isinstance(self.annotation, types.GenericAlias)
            else repr(self.annotation)
        )
        return f"{self.name}: {annotation}"


@dataclass(frozen=True, slots=True)
class ConstructorInfo:
    """One candidate constructor of an instance type."""

    parameters: tuple[ConstructorParameter, ...]

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def describe(self) -> str:
        return ", ".join(parameter.describe() for parameter in self.parameters)


class ConstructorSelector:
    """Pick the constructor of an instance type and build instances with it.

    Candidate constructors are the overload signatures declared for
    ``__init__``; a class without overloads has the single signature of its
    ``__init__``. Overloads are read with ``typing_extensions.get_overloads``,
    so on Python 3.10 they must be declared with ``typing_extensions.overload``;
    overloads declared with ``typing.overload`` are only visible from 3.11 on.
    Candidates are sorted by parameter count, descending, and the
    first one whose parameters are all satisfiable wins. A parameter is
    satisfiable when it has a default or its annotated type is registered.

    The walk never goes back: once a constructor has won, only candidates with
    the same parameter count are still checked, and a second satisfiable one is
    reported as ambiguous. The winner is memoized per instance type.
    """

    def __init__(self, registry: ServiceRegistry) -> None:
        self._registry = registry
        self._selected: dict[Any, ConstructorInfo] = {}
        self._lock = threading.Lock()

    def select(self, instance_type: Any) -> ConstructorInfo:
        """Return the constructor used to build ``instance_type``.

        Raises:
            MissingConstructorError: No candidate has all parameters satisfiable.
            AmbiguousConstructorError: Two satisfiable candidates tie on the
                maximal parameter count.
            ConstructorAnnotationError: The type hints of a candidate cannot be
                evaluated.

        """
        selected = self._selected.get(instance_type)
        if selected is not None:
            return selected

        selected = self._select_constructor(instance_type)
        with self._lock:
            return self._selected.setdefault(instance_type, selected)

    def create_instance(self, instance_type: Any, injector: Injector) -> Any:
        """Build a new ``instance_type`` with constructor dependencies resolved by ``injector``."""
        constructor = self.select(instance_type)
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for parameter in constructor.parameters:
            value = self._resolve_argument(parameter, injector)
            if parameter.kind is Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[parameter.name] = value
        return instance_type(*args, **kwargs)

    def _resolve_argument(self, parameter: ConstructorParameter, injector: Injector) -> Any:
        if not parameter.has_annotation:
            return parameter.default
        if parameter.has_default:
            value = injector.try_resolve(parameter.annotation)
            return parameter.default if value is None else value
        return injector.resolve(parameter.annotation)

    def _select_constructor(self, instance_type: Any) -> ConstructorInfo:
        candidates = sorted(
            self._get_constructors(instance_type),
            key=lambda constructor: constructor.arity,
            reverse=True,
        )

        max_length = -1
        winner: ConstructorInfo | None = None
        unresolved: list[str] = []
        for constructor in candidates:
            if max_length > constructor.arity:
                break

            unresolved_parameters = [
                parameter
                for parameter in constructor.parameters
                if not self._is_satisfiable(parameter)
            ]
            if unresolved_parameters:
                unresolved.extend(parameter.describe() for parameter in unresolved_parameters)
                continue

            if winner is not None and max_length == constructor.arity:
                raise AmbiguousConstructorError(
                    instance_type,
                    [constructor.describe(), winner.describe()],
                )
            winner = constructor
            max_length = constructor.arity

        if winner is None:
            raise MissingConstructorError(instance_type, unresolved)

        logger.debug(
            "Selected constructor (%s) for %r out of %d candidate(s)",
            winner.describe(),
            instance_type,
            len(candidates),
        )
        return winner

    def _is_satisfiable(self, parameter: ConstructorParameter) -> bool:
        if parameter.has_default:
            return True
        return parameter.has_annotation and self._registry.is_registered(parameter.annotation)

    def _get_constructors(self, instance_type: Any) -> list[ConstructorInfo]:
        origin = get_origin(instance_type) or instance_type
        mapping = typevar_mapping(instance_type)
        init = getattr(origin, "__init__", None)

        overloads = get_overloads(init) if inspect.isfunction(init) else []
        if overloads:
            return [
                self._build_constructor(origin, function, mapping)
                for function in overloads
            ]

        if not inspect.isfunction(init):
            # ``object.__init__`` or a C-level initializer: only the zero-argument call.
            return [ConstructorInfo(parameters=())]
        return [self._build_constructor(origin, init, mapping)]

    def _build_constructor(
        self,
        origin: type[Any],
        function: Any,
        mapping: dict[Any, Any],
    ) -> ConstructorInfo:
        signature = inspect.signature(function)
        hints = _get_type_hints(origin, function)

        parameters: list[ConstructorParameter] = []
        for index, (name, parameter) in enumerate(signature.parameters.items()):
            if index == 0:
                # self
                continue
            if parameter.kind in _VARIADIC_KINDS:
                continue
            annotation = hints.get(name, _NO_ANNOTATION)
            if annotation is not _NO_ANNOTATION:
                annotation = _unwrap_optional(substitute_typevars(annotation, mapping=mapping))
            parameters.append(
                ConstructorParameter(
                    name=name,
                    annotation=annotation,
                    default=parameter.default,
                    kind=parameter.kind,
                ),
            )
        return ConstructorInfo(parameters=tuple(parameters))


def _get_type_hints(origin: type[Any], function: Any) -> dict[str, Any]:
    try:
        hints = get_type_hints(function, include_extras=True)
    except NameError as exc:
        raise ConstructorAnnotationError(origin, exc.name) from exc
    except TypeError as exc:
        raise ConstructorAnnotationError(origin, None) from exc

    hints.pop("return", None)
    return hints


def _unwrap_optional(annotation: Any) -> Any:
    """Return ``T`` for ``T | None`` / ``Optional[T]``, otherwise the annotation itself."""
    if get_origin(annotation) not in (Union, types.UnionType):
        return annotation
    arguments = [argument for argument in get_args(annotation) if argument is not type(None)]
    if len(arguments) == 1:
        return arguments[0]
    return annotation
