"""Tests for the exception hierarchy and messages."""

import pytest

from liteinject.exceptions import (
    AmbiguousConstructorError,
    AmbiguousMatchError,
    CircularDependencyError,
    ConstructorAnnotationError,
    InvalidRegistrationError,
    LiteInjectError,
    MismatchedMultipleRegistrationError,
    MissingConstructorError,
    NoImplementationForContractError,
    ObjectDisposedError,
)


class Thing:
    pass


@pytest.mark.parametrize(
    "exc_class",
    [
        AmbiguousConstructorError,
        AmbiguousMatchError,
        CircularDependencyError,
        ConstructorAnnotationError,
        InvalidRegistrationError,
        MismatchedMultipleRegistrationError,
        MissingConstructorError,
        NoImplementationForContractError,
        ObjectDisposedError,
    ],
)
def test_all_errors_derive_from_base(exc_class: type[Exception]) -> None:
    assert issubclass(exc_class, LiteInjectError)


def test_mismatched_multiple_is_an_invalid_registration() -> None:
    assert issubclass(MismatchedMultipleRegistrationError, InvalidRegistrationError)


class TestMessages:
    def test_no_implementation(self) -> None:
        error = NoImplementationForContractError(Thing)

        assert error.contract_type is Thing
        assert str(error) == "No implementation registered for contract Thing."

    def test_ambiguous_match(self) -> None:
        error = AmbiguousMatchError(Thing, 3)

        assert error.count == 3
        assert str(error) == "Contract Thing has 3 registrations, expected exactly one."

    def test_missing_constructor_lists_unresolved(self) -> None:
        error = MissingConstructorError(Thing, ["a: int", "b: str"])

        assert error.unresolved == ("a: int", "b: str")
        assert str(error) == "No eligible constructor found for Thing (unresolved parameters: a: int, b: str)."

    def test_missing_constructor_without_details(self) -> None:
        assert "no public constructor" in str(MissingConstructorError(Thing))

    def test_ambiguous_constructor(self) -> None:
        error = AmbiguousConstructorError(Thing, ["a: int", "b: str"])

        assert error.constructors == ("a: int", "b: str")
        assert str(error) == "Ambiguous constructors for Thing: (a: int) and (b: str)."

    def test_mismatched_multiple(self) -> None:
        error = MismatchedMultipleRegistrationError(Thing)

        assert str(error) == "Contract Thing mixes single and multiple registrations."

    def test_circular(self) -> None:
        error = CircularDependencyError([Thing, int, Thing])

        assert error.chain == (Thing, int, Thing)
        assert str(error) == "Circular dependency detected: Thing -> int -> Thing."

    def test_non_class_contract_uses_repr(self) -> None:
        error = NoImplementationForContractError(list[Thing])

        assert "list[" in str(error)
