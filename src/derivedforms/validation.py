"""Per-field validation rule pipeline."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from derivedforms.typing.enums import RuleType

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from derivedforms.typing.models import ErrorMap, FieldValue, FormField, ValidationRule

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_MIN_LENGTH = 8
_DIGIT = re.compile(r"\d")


def is_absent(value: FieldValue) -> bool:
    """Return whether a value counts as not provided.

    Args:
        value (FieldValue): Field value.

    Returns:
        bool: True for null, empty string and empty list.
    """
    return value is None or value == "" or (isinstance(value, list) and not value)


def _required(rule: ValidationRule, value: FieldValue) -> bool:
    if rule.value is False:
        return True
    return not is_absent(value)


def _not_empty(_rule: ValidationRule, value: FieldValue) -> bool:
    return not (isinstance(value, str) and value != "" and not value.strip())


def _min_length(rule: ValidationRule, value: FieldValue) -> bool:
    if not isinstance(value, str) or is_absent(value):
        return True
    return len(value) >= int(rule.value)  # type: ignore[arg-type]


def _max_length(rule: ValidationRule, value: FieldValue) -> bool:
    if not isinstance(value, str) or is_absent(value):
        return True
    return len(value) <= int(rule.value)  # type: ignore[arg-type]


def _email(_rule: ValidationRule, value: FieldValue) -> bool:
    if not isinstance(value, str) or is_absent(value):
        return True
    return EMAIL_PATTERN.match(value) is not None


def _password(_rule: ValidationRule, value: FieldValue) -> bool:
    if not isinstance(value, str) or is_absent(value):
        return True
    return len(value) >= PASSWORD_MIN_LENGTH and _DIGIT.search(value) is not None


_CHECKS: dict[RuleType, Callable[[ValidationRule, FieldValue], bool]] = {
    RuleType.REQUIRED: _required,
    RuleType.NOT_EMPTY: _not_empty,
    RuleType.MIN_LENGTH: _min_length,
    RuleType.MAX_LENGTH: _max_length,
    RuleType.EMAIL: _email,
    RuleType.PASSWORD: _password,
}


def check_rule(rule: ValidationRule, value: FieldValue) -> bool:
    """Return whether a value satisfies one rule.

    Args:
        rule (ValidationRule): Rule to apply.
        value (FieldValue): Field value.

    Returns:
        bool: True when the rule passes.
    """
    return _CHECKS[rule.type](rule, value)


def validate_field(field: FormField, value: FieldValue) -> list[str]:
    """Collect the messages of every rule the value violates.

    Rules run in declaration order and never short-circuit.

    Args:
        field (FormField): Field definition.
        value (FieldValue): Field value.

    Returns:
        list[str]: Failure messages in rule order.
    """
    return [rule.message for rule in field.validation_rules if not check_rule(rule, value)]


def validate_form(fields: Iterable[FormField], values: Mapping[str, FieldValue]) -> ErrorMap:
    """Validate every non-derived field of a form.

    Args:
        fields (Iterable[FormField]): Schema fields.
        values (Mapping[str, FieldValue]): Current values.

    Returns:
        ErrorMap: Messages per field id, fields without errors omitted.
    """
    errors: ErrorMap = {}
    for field in fields:
        if field.is_derived:
            continue
        messages = validate_field(field, values.get(field.id))
        if messages:
            errors[field.id] = messages
    return errors


def has_validation_errors(errors: Mapping[str, list[str]]) -> bool:
    """Return whether any field reports at least one message.

    Args:
        errors (Mapping[str, list[str]]): Error map.

    Returns:
        bool: True when form submission must be blocked.
    """
    return any(messages for messages in errors.values())
