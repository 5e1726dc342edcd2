"""Pure schema editing operations.

Every function returns a new `FormSchema` and leaves its input untouched.
Field `order` values stay dense (`0..n-1`) after removals and moves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic.alias_generators import to_snake

from derivedforms.logging import get_logger
from derivedforms.typing.models import FormField, FormSchema, utc_now_iso

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = get_logger(__name__)


def _with_fields(schema: FormSchema, fields: list[FormField]) -> FormSchema:
    renumbered = [item.model_copy(update={"order": index}) for index, item in enumerate(fields)]
    return schema.model_copy(update={"fields": renumbered, "updated_at": utc_now_iso()})


def add_field(schema: FormSchema, payload: Mapping[str, Any]) -> FormSchema:
    """Append a field to a schema.

    Args:
        schema (FormSchema): Source schema.
        payload (Mapping[str, Any]): Field attributes, camelCase or snake_case.
            A missing `id` is replaced by a generated uuid.

    Returns:
        FormSchema: Schema with the new field appended.
    """
    data = dict(payload)
    if not data.get("id"):
        data["id"] = str(uuid4())
    data["order"] = len(schema.fields)
    new_field = FormField.model_validate(data)
    fields = [*schema.ordered_fields(), new_field]
    # Re-validating catches a duplicate id.
    updated = FormSchema.model_validate(
        _with_fields(schema, fields).model_dump(),
    )
    logger.debug("Field added", extra={"schema_id": schema.id, "field_id": new_field.id})
    return updated


def update_field(schema: FormSchema, field_id: str, changes: Mapping[str, Any]) -> FormSchema:
    """Apply attribute changes to one field.

    Args:
        schema (FormSchema): Source schema.
        field_id (str): Identifier of the field to change.
        changes (Mapping[str, Any]): Attributes to overwrite, camelCase or snake_case.

    Returns:
        FormSchema: Updated schema, or the input schema when `field_id` is unknown.
    """
    if field_id not in schema.field_by_id():
        logger.debug("Field not found, schema unchanged", extra={"schema_id": schema.id, "field_id": field_id})
        return schema
    fields: list[FormField] = []
    for item in schema.ordered_fields():
        if item.id == field_id:
            merged = {**item.model_dump(), **{to_snake(key): value for key, value in changes.items()}}
            merged.pop("id", None)
            merged.pop("order", None)
            item = FormField.model_validate({**merged, "id": field_id, "order": item.order})  # noqa: PLW2901
        fields.append(item)
    return _with_fields(schema, fields)


def remove_field(schema: FormSchema, field_id: str) -> FormSchema:
    """Remove one field and renumber the remaining ones.

    Derived fields that referenced the removed field keep the reference and
    report it as a dangling parent at evaluation time.

    Args:
        schema (FormSchema): Source schema.
        field_id (str): Identifier of the field to remove.

    Returns:
        FormSchema: Schema without the field.
    """
    fields = [item for item in schema.ordered_fields() if item.id != field_id]
    logger.debug("Field removed", extra={"schema_id": schema.id, "field_id": field_id})
    return _with_fields(schema, fields)


def reorder_fields(schema: FormSchema, from_index: int, to_index: int) -> FormSchema:
    """Move the field at `from_index` to `to_index`.

    Args:
        schema (FormSchema): Source schema.
        from_index (int): Current display position.
        to_index (int): Target display position.

    Raises:
        IndexError: If either index is outside the field list.

    Returns:
        FormSchema: Schema with dense, updated `order` values.
    """
    fields = schema.ordered_fields()
    size = len(fields)
    if not (0 <= from_index < size and 0 <= to_index < size):
        message = f"Cannot move field from {from_index} to {to_index} in a form of {size} fields"
        raise IndexError(message)
    moved = fields.pop(from_index)
    fields.insert(to_index, moved)
    return _with_fields(schema, fields)
