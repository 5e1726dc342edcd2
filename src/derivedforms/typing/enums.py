"""Project enums."""

from __future__ import annotations

from enum import StrEnum


class _EnumMixin(StrEnum):
    """Shared conversion helpers for user-facing enums."""

    @classmethod
    def from_str(cls, value: str) -> _EnumMixin:
        """Parse enum from string.

        Args:
            value: Raw string value.

        Raises:
            ValueError: If the value is not supported.

        Returns:
            _EnumMixin: Parsed enum value.
        """
        try:
            return cls(value)
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            message = f"Unsupported {cls.__name__} value '{value}'. Expected one of: {supported}"
            raise ValueError(message) from exc

    def to_str(self) -> str:
        """Return string representation.

        Returns:
            str: Enum string value.
        """
        return self.value


class FieldType(_EnumMixin):
    """Supported form field types."""

    TEXT = "text"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"


class RuleType(_EnumMixin):
    """Supported validation rule types."""

    REQUIRED = "required"
    NOT_EMPTY = "notEmpty"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    EMAIL = "email"
    PASSWORD = "password"  # noqa: S105


class ErrorKind(_EnumMixin):
    """Kinds of derivation errors reported by the engine."""

    SYNTAX_ERROR = "syntax_error"
    UNBOUND_VARIABLE = "unbound_variable"
    TYPE_MISMATCH = "type_mismatch"
    UNKNOWN_FUNCTION = "unknown_function"
    DIVISION_BY_ZERO = "division_by_zero"
    EVALUATION_LIMIT_EXCEEDED = "evaluation_limit_exceeded"
    CYCLIC_DEPENDENCY = "cyclic_dependency"
    DANGLING_REFERENCE = "dangling_reference"
    INVALID_PARENT = "invalid_parent"
    DUPLICATE_VARIABLE_NAME = "duplicate_variable_name"
