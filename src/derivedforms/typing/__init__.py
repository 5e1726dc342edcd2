"""Typing-centric domain modules."""

from derivedforms.typing.enums import ErrorKind, FieldType, RuleType
from derivedforms.typing.models import (
    ERROR_SENTINEL,
    DerivationIssue,
    DerivedConfig,
    ErrorMap,
    FieldValue,
    FormEvaluation,
    FormField,
    FormSchema,
    SelectOption,
    ValidationRule,
    ValueMap,
)
from derivedforms.typing.protocol import Clock, FormRepository

__all__ = [
    "ERROR_SENTINEL",
    "Clock",
    "DerivationIssue",
    "DerivedConfig",
    "ErrorKind",
    "ErrorMap",
    "FieldType",
    "FieldValue",
    "FormEvaluation",
    "FormField",
    "FormRepository",
    "FormSchema",
    "RuleType",
    "SelectOption",
    "ValidationRule",
    "ValueMap",
]
