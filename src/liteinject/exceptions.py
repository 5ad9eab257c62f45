from __future__ import annotations

from collections.abc import Sequence
from types import GenericAlias
from typing import Any


def _type_name(value: Any) -> str:
    if isinstance(value, type) and not isinstance(value, GenericAlias):
        return value.__qualname__
    return repr(value)


class LiteInjectError(Exception):
    """Represent a base class for all liteinject-specific failures.

    Catch this type when you want to handle any liteinject error path without
    matching each concrete exception class individually.
    """


class InvalidRegistrationError(LiteInjectError):
    """Signal an invalid registration entry or registration call.

    Raised when a ``ServiceEntry`` is built with none or more than one of
    ``instance``/``factory``/``instance_type``, and by registration APIs such as
    ``Container.add_concrete`` and ``Container.add_factory`` when arguments are
    invalid.
    """


class MismatchedMultipleRegistrationError(InvalidRegistrationError):
    """Signal mixing single and multiple registrations for one contract.

    A contract registered with ``allow_multiple=True`` collects every entry in
    registration order. Registering a plain entry for the same contract (or the
    other way around) would silently drop registrations, so it is rejected.
    """

    def __init__(self, contract_type: Any) -> None:
        self.contract_type = contract_type
        super().__init__(
            f"Contract {_type_name(contract_type)} mixes single and multiple registrations.",
        )


class MissingConstructorError(LiteInjectError):
    """Signal that a constructible entry has no eligible constructor.

    A constructor is eligible when every parameter either has a default value
    or is annotated with a type the registry can resolve.

    Typical fixes include registering the missing parameter types or adding
    default values for optional collaborators.
    """

    def __init__(self, instance_type: Any, unresolved: Sequence[str] = ()) -> None:
        self.instance_type = instance_type
        self.unresolved = tuple(unresolved)
        details = ", ".join(self.unresolved) or "no public constructor"
        super().__init__(
            f"No eligible constructor found for {_type_name(instance_type)} "
            f"(unresolved parameters: {details}).",
        )


class ConstructorAnnotationError(LiteInjectError):
    """Signal that the type hints of a constructor cannot be evaluated.

    Raised during constructor selection when an annotation of ``__init__``
    names something that is not importable from the defining module, for
    example a forward reference to a class defined only under
    ``TYPE_CHECKING``. Every parameter of such a constructor would otherwise
    lose its annotation and registered dependencies would be skipped.

    Typical fixes include importing the annotated type at runtime or
    defining it before the class is resolved.
    """

    def __init__(self, instance_type: Any, name: str | None) -> None:
        self.instance_type = instance_type
        self.name = name
        subject = f"'{name}'" if name else "an annotation"
        super().__init__(
            f"Cannot evaluate constructor type hints of {_type_name(instance_type)}: "
            f"{subject} could not be resolved.",
        )


class AmbiguousConstructorError(LiteInjectError):
    """Signal that two constructors tie on the maximal satisfiable parameter count.

    The selector never picks arbitrarily between equally qualified constructors.
    Remove one of the overloads or change the registrations so that only one of
    them is satisfiable.
    """

    def __init__(self, instance_type: Any, constructors: Sequence[str]) -> None:
        self.instance_type = instance_type
        self.constructors = tuple(constructors)
        super().__init__(
            f"Ambiguous constructors for {_type_name(instance_type)}: "
            + " and ".join(f"({signature})" for signature in self.constructors)
            + ".",
        )


class NoImplementationForContractError(LiteInjectError):
    """Signal that no registration satisfies a required contract.

    Raised by ``resolve`` on a total miss and by sources that require exactly
    one underlying registration (``Lazy``, ``LazyWithMetadata``,
    ``ExportFactory`` and friends) when none exists.
    """

    def __init__(self, contract_type: Any) -> None:
        self.contract_type = contract_type
        super().__init__(f"No implementation registered for contract {_type_name(contract_type)}.")


class AmbiguousMatchError(LiteInjectError):
    """Signal more than one registration where exactly one is required.

    Sequence shapes (``list[T]``, ``tuple[T, ...]``) never raise this error;
    request one of them to receive every registration.
    """

    def __init__(self, contract_type: Any, count: int) -> None:
        self.contract_type = contract_type
        self.count = count
        super().__init__(
            f"Contract {_type_name(contract_type)} has {count} registrations, expected exactly one.",
        )


class ObjectDisposedError(LiteInjectError):
    """Signal resolution through a closed injector or a closed container."""


class CircularDependencyError(LiteInjectError):
    """Signal that producing a service requires the service itself.

    ``chain`` lists the contracts being produced on the current call stack,
    ending with the contract that closed the cycle. Break the cycle with a
    ``Lazy[T]`` or ``ExportFactory[T]`` dependency.
    """

    def __init__(self, chain: Sequence[Any]) -> None:
        self.chain = tuple(chain)
        rendered = " -> ".join(_type_name(contract) for contract in self.chain)
        super().__init__(f"Circular dependency detected: {rendered}.")
