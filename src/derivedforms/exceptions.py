"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass, field

from derivedforms.typing.enums import ErrorKind


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass
class FormStoreError(PackageError):
    """Raised when form loading/saving constraints are violated."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class FormulaError(PackageError):
    """Raised when a formula cannot be parsed or evaluated."""

    message: str
    kind: ErrorKind = field(default=ErrorKind.SYNTAX_ERROR, kw_only=True)

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class FormulaSyntaxError(FormulaError):
    """Raised when formula text does not match the grammar."""

    position: int | None = None
    kind: ErrorKind = field(default=ErrorKind.SYNTAX_ERROR, kw_only=True)

    def __str__(self) -> str:
        """Return error message payload."""
        if self.position is None:
            return self.message
        return f"{self.message} (at position {self.position})"


@dataclass(frozen=True)
class UnboundVariableError(FormulaError):
    """Raised when a formula references a name missing from the environment."""

    kind: ErrorKind = field(default=ErrorKind.UNBOUND_VARIABLE, kw_only=True)


@dataclass(frozen=True)
class TypeMismatchError(FormulaError):
    """Raised when an operator or function receives operands of the wrong type."""

    kind: ErrorKind = field(default=ErrorKind.TYPE_MISMATCH, kw_only=True)


@dataclass(frozen=True)
class UnknownFunctionError(FormulaError):
    """Raised when a formula calls a function outside the whitelist."""

    kind: ErrorKind = field(default=ErrorKind.UNKNOWN_FUNCTION, kw_only=True)


@dataclass(frozen=True)
class DivisionByZeroError(FormulaError):
    """Raised when a formula divides or takes a modulo by zero."""

    kind: ErrorKind = field(default=ErrorKind.DIVISION_BY_ZERO, kw_only=True)


@dataclass(frozen=True)
class EvaluationLimitExceededError(FormulaError):
    """Raised when a formula exceeds the configured depth, step or length cap."""

    kind: ErrorKind = field(default=ErrorKind.EVALUATION_LIMIT_EXCEEDED, kw_only=True)


@dataclass(frozen=True)
class SchemaResolutionError(PackageError):
    """Raised when a derived field cannot be ordered for evaluation."""

    field_id: str
    message: str
    related_field_ids: tuple[str, ...] = ()
    kind: ErrorKind = field(default=ErrorKind.INVALID_PARENT, kw_only=True)

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Field '{self.field_id}': {self.message}"


@dataclass(frozen=True)
class CyclicDependencyError(SchemaResolutionError):
    """Raised when a derived field lies on a dependency cycle."""

    kind: ErrorKind = field(default=ErrorKind.CYCLIC_DEPENDENCY, kw_only=True)


@dataclass(frozen=True)
class InvalidParentError(SchemaResolutionError):
    """Raised when a parent reference is not allowed by the schema contract."""

    kind: ErrorKind = field(default=ErrorKind.INVALID_PARENT, kw_only=True)


@dataclass(frozen=True)
class DanglingReferenceError(InvalidParentError):
    """Raised when a parent id does not exist in the schema."""

    kind: ErrorKind = field(default=ErrorKind.DANGLING_REFERENCE, kw_only=True)


@dataclass(frozen=True)
class DuplicateVariableNameError(SchemaResolutionError):
    """Raised when two parents of one derived field bind the same variable name."""

    kind: ErrorKind = field(default=ErrorKind.DUPLICATE_VARIABLE_NAME, kw_only=True)
