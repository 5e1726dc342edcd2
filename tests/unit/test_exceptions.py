from derivedforms.exceptions import (
    CyclicDependencyError,
    DanglingReferenceError,
    DivisionByZeroError,
    FormStoreError,
    FormulaError,
    FormulaSyntaxError,
    InvalidParentError,
    PackageError,
    SchemaResolutionError,
    SettingsError,
    TypeMismatchError,
)
from derivedforms.typing.enums import ErrorKind


def test_root_exception_hierarchy() -> None:
    assert issubclass(SettingsError, PackageError)
    assert issubclass(FormStoreError, PackageError)
    assert issubclass(FormulaError, PackageError)
    assert issubclass(SchemaResolutionError, PackageError)


def test_formula_errors_carry_their_kind() -> None:
    assert TypeMismatchError("bad").kind == ErrorKind.TYPE_MISMATCH
    assert DivisionByZeroError("zero").kind == ErrorKind.DIVISION_BY_ZERO
    assert FormulaSyntaxError("oops").kind == ErrorKind.SYNTAX_ERROR


def test_syntax_error_message_includes_position() -> None:
    assert str(FormulaSyntaxError("Unexpected token ')'", position=4)) == "Unexpected token ')' (at position 4)"
    assert str(FormulaSyntaxError("Formula is empty")) == "Formula is empty"


def test_dangling_reference_is_an_invalid_parent() -> None:
    error = DanglingReferenceError("total", "Parent field(s) not found in schema: gone", ("gone",))

    assert isinstance(error, InvalidParentError)
    assert error.kind == ErrorKind.DANGLING_REFERENCE
    assert str(error) == "Field 'total': Parent field(s) not found in schema: gone"


def test_cyclic_dependency_error_kind() -> None:
    error = CyclicDependencyError("a", "Circular dependency detected", ("b",))

    assert error.kind == ErrorKind.CYCLIC_DEPENDENCY
    assert error.related_field_ids == ("b",)


def test_settings_error_message() -> None:
    assert str(SettingsError(exc=ValueError("boom"))) == "Failed to load settings: boom"
