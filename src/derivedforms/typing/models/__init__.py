"""Core domain model exports."""

from derivedforms.typing.models.evaluation import ERROR_SENTINEL, DerivationIssue, FormEvaluation
from derivedforms.typing.models.schema import (
    DerivedConfig,
    ErrorMap,
    FieldValue,
    FormField,
    FormSchema,
    SelectOption,
    ValidationRule,
    ValueMap,
    utc_now_iso,
)

__all__ = [
    "ERROR_SENTINEL",
    "DerivationIssue",
    "DerivedConfig",
    "ErrorMap",
    "FieldValue",
    "FormEvaluation",
    "FormField",
    "FormSchema",
    "SelectOption",
    "ValidationRule",
    "ValueMap",
    "utc_now_iso",
]
