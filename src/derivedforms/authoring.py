"""Helpers for writing derived field formulas."""

from __future__ import annotations

from typing import TYPE_CHECKING

from derivedforms.resolver import variable_name
from derivedforms.typing.enums import FieldType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from derivedforms.typing.models import FormField

__all__ = ["available_parent_fields", "formula_reference", "sample_formulas", "variable_name"]


def formula_reference(parent: FormField) -> str:
    """Return the text a formula uses to reference a parent field.

    Args:
        parent (FormField): Parent field.

    Returns:
        str: Label variable name, or a braced id reference when the label has no usable characters.
    """
    return variable_name(parent.label) or f"{{{parent.id}}}"


def available_parent_fields(current: FormField, fields: Iterable[FormField]) -> list[FormField]:
    """List the fields a derived field may pick as parents.

    Args:
        current (FormField): Field being configured.
        fields (Iterable[FormField]): All fields of the form.

    Returns:
        list[FormField]: Non-derived, non-checkbox fields other than `current`.
    """
    return [
        item
        for item in fields
        if item.id != current.id and not item.is_derived and item.type != FieldType.CHECKBOX
    ]


def sample_formulas(parent_fields: list[FormField]) -> list[str]:
    """Suggest formulas for a set of selected parents.

    Args:
        parent_fields (list[FormField]): Selected parent fields.

    Returns:
        list[str]: Suggested formulas, possibly empty.
    """
    formulas: list[str] = []

    date_field = next((item for item in parent_fields if item.type == FieldType.DATE), None)
    if date_field is not None:
        formulas.append(f"calculateAge({formula_reference(date_field)})")

    numbers = [formula_reference(item) for item in parent_fields if item.type == FieldType.NUMBER]
    if len(numbers) >= 2:  # noqa: PLR2004
        formulas.append(f"{numbers[0]} + {numbers[1]}")
        formulas.append(f"{numbers[0]} * {numbers[1]}")

    texts = [formula_reference(item) for item in parent_fields if item.type == FieldType.TEXT]
    if len(texts) >= 2:  # noqa: PLR2004
        formulas.append(f"{texts[0]} + ' ' + {texts[1]}")

    return formulas
