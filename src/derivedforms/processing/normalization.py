"""Typed field value normalization helpers."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from derivedforms.typing.enums import FieldType

if TYPE_CHECKING:
    from derivedforms.typing.models import FieldValue, FormField

# Decimal exponent above which values stay raw text instead of becoming numbers.
_MAX_DECIMAL_EXPONENT = 308


def normalize_field_value(*, value: FieldValue, form_field: FormField) -> FieldValue:
    """Coerce a raw input value to the representation of its field type.

    Normalizing an already normalized value returns it unchanged.

    Args:
        value (FieldValue): Raw input value.
        form_field (FormField): Field descriptor.

    Returns:
        FieldValue: Normalized value.
    """
    if form_field.type == FieldType.NUMBER and isinstance(value, str):
        return _normalize_number(value)
    if form_field.type == FieldType.CHECKBOX:
        return _normalize_checkbox(value)
    if form_field.type == FieldType.DATE and isinstance(value, str):
        return value.strip()
    return value


def _normalize_number(value: str) -> FieldValue:
    compact = value.strip().replace(" ", "").replace(",", ".")
    if not compact:
        return value
    try:
        number = Decimal(compact)
    except InvalidOperation:
        return value
    if not number.is_finite() or number.adjusted() > _MAX_DECIMAL_EXPONENT:
        return value
    if number == number.to_integral_value():
        return int(number)
    return float(number)


def _normalize_checkbox(value: FieldValue) -> FieldValue:
    if isinstance(value, str):
        return [value] if value else []
    return value
