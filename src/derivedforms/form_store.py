"""Filesystem-backed form schema store."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import TYPE_CHECKING, cast
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from derivedforms.exceptions import FormStoreError
from derivedforms.logging import get_logger
from derivedforms.resolver import ensure_resolvable
from derivedforms.typing.models import FormField, FormSchema, utc_now_iso

if TYPE_CHECKING:
    from collections.abc import Iterator

_FORM_FILE_VERSION = 1
_FORM_FILE_SUFFIX = ".form.json"

logger = get_logger(__name__)


class FormStore(BaseModel):
    """Filesystem implementation of the form repository.

    Each form lives in its own `<slug>-<id>.form.json` file wrapped in a
    versioned envelope.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    root: Path = Field(description="Store directory root.")
    allow_derived_parents: bool = Field(
        default=False,
        description="Whether dependency checks accept derived fields as parents.",
    )

    def model_post_init(self, __context: object, /) -> None:
        """Ensure the store directory exists after model initialization.

        Args:
            __context (object): Pydantic model context.
        """
        self.root.mkdir(parents=True, exist_ok=True)

    def form_path(self, *, form_name: str, form_id: str) -> Path:
        """Build the file path of a form.

        Args:
            form_name (str): Form name.
            form_id (str): Form identifier.

        Returns:
            Path: Form file path.
        """
        safe_name = re.sub(r"[^a-z0-9._-]+", "-", form_name.lower()).strip("-")
        if not safe_name:
            safe_name = "form"
        safe_id = re.sub(r"[^A-Za-z0-9._-]+", "-", form_id)
        return self.root / f"{safe_name}-{safe_id}{_FORM_FILE_SUFFIX}"

    def list_forms(self) -> list[Path]:
        """List stored form files.

        Returns:
            list[Path]: Form files.
        """
        return sorted(self.root.glob(f"*{_FORM_FILE_SUFFIX}"))

    def save(self, schema: FormSchema, *, check_dependencies: bool = False) -> str:
        """Persist a new form.

        Args:
            schema (FormSchema): Form schema.
            check_dependencies (bool): Refuse forms whose derived fields cannot be resolved.

        Raises:
            FormStoreError: If the form has no fields or its id is already stored.
            SchemaResolutionError: If `check_dependencies` is set and a derived field is unresolvable.

        Returns:
            str: Stored form id.
        """
        if not schema.fields:
            raise FormStoreError(message="Cannot save empty form")
        if check_dependencies:
            ensure_resolvable(schema.fields, allow_derived_parents=self.allow_derived_parents)
        if self._find_path(schema.id) is not None:
            raise FormStoreError(message=f"Form already stored: {schema.id}")
        path = self._write(schema)
        logger.info("Form saved", extra={"form_id": schema.id, "form_path": str(path)})
        return schema.id

    def load(self, form_id: str) -> FormSchema:
        """Load one form by id.

        Args:
            form_id (str): Form identifier.

        Raises:
            FormStoreError: If the form is not stored.

        Returns:
            FormSchema: Stored form.
        """
        path = self._find_path(form_id)
        if path is None:
            raise FormStoreError(message=f"Form not found: {form_id}")
        return load_form_file(path)

    def load_all(self) -> list[FormSchema]:
        """Load every stored form.

        Returns:
            list[FormSchema]: Readable stored forms ordered by creation time.
        """
        forms = [schema for _, schema in self._iter_forms()]
        return sorted(forms, key=lambda form: (form.created_at, form.id))

    def update(self, form_id: str, schema: FormSchema) -> None:
        """Replace a stored form.

        Args:
            form_id (str): Identifier of the stored form.
            schema (FormSchema): New form payload.

        Raises:
            FormStoreError: If the form is not stored or the payload id differs.
        """
        if schema.id != form_id:
            raise FormStoreError(message=f"Form id mismatch: expected '{form_id}', got '{schema.id}'")
        previous = self._find_path(form_id)
        if previous is None:
            raise FormStoreError(message=f"Form not found: {form_id}")
        path = self._write(schema)
        if previous != path:
            previous.unlink()
        logger.info("Form updated", extra={"form_id": form_id, "form_path": str(path)})

    def delete(self, form_id: str) -> None:
        """Delete a stored form.

        Args:
            form_id (str): Form identifier.

        Raises:
            FormStoreError: If the form is not stored.
        """
        path = self._find_path(form_id)
        if path is None:
            raise FormStoreError(message=f"Form not found: {form_id}")
        path.unlink()
        logger.info("Form deleted", extra={"form_id": form_id})

    def import_legacy(self, path: Path) -> list[str]:
        """Import a JSON array of forms exported from browser storage.

        Every item is validated before any form is written. Forms whose id is
        already stored, or repeated within the payload, are skipped.

        Args:
            path (Path): JSON file holding a list of form objects.

        Raises:
            FormStoreError: If the file does not contain a JSON array or an item is invalid.

        Returns:
            list[str]: Ids of the imported forms.
        """
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, list):
            raise FormStoreError(message="Legacy payload must be a JSON array of forms")
        schemas = [_validate_form_payload(_migrate_form_payload(item)) for item in payload]
        stored_ids = {schema.id for _, schema in self._iter_forms()}
        imported: list[str] = []
        for schema in schemas:
            if schema.id in stored_ids:
                logger.info("Skipping already stored form", extra={"form_id": schema.id})
                continue
            stored_ids.add(schema.id)
            imported.append(self.save(schema))
        return imported

    def _write(self, schema: FormSchema) -> Path:
        path = self.form_path(form_name=schema.name, form_id=schema.id)
        envelope = {
            "form_file_version": _FORM_FILE_VERSION,
            "form": schema.model_dump(mode="json", by_alias=True),
        }
        path.write_text(json.dumps(envelope, indent=2, sort_keys=True), encoding="utf-8")
        return path

    def _iter_forms(self) -> Iterator[tuple[Path, FormSchema]]:
        for path in self.list_forms():
            try:
                schema = load_form_file(path)
            except FormStoreError as exc:
                logger.warning("Skipping unreadable form file", extra={"form_path": str(path), "error": str(exc)})
                continue
            yield path, schema

    def _find_path(self, form_id: str) -> Path | None:
        for path, schema in self._iter_forms():
            if schema.id == form_id:
                return path
        return None


def load_form_file(path: Path) -> FormSchema:
    """Load a form schema from a JSON file.

    Both versioned envelopes and bare form objects are accepted.

    Args:
        path (Path): Form file path.

    Returns:
        FormSchema: Loaded form.
    """
    _validate_form_file_path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise FormStoreError(message=f"Form file is not valid JSON: {path}") from exc
    return _validate_form_payload(_migrate_form_payload(payload))


def build_form_schema(name: str, fields: list[FormField]) -> FormSchema:
    """Create a form schema with a generated id and timestamps.

    Args:
        name (str): Form name.
        fields (list[FormField]): Form fields.

    Returns:
        FormSchema: New form schema.
    """
    now = utc_now_iso()
    return FormSchema(id=str(uuid4()), name=name, fields=fields, created_at=now, updated_at=now)


def _migrate_form_payload(payload: object) -> dict[str, object]:
    """Migrate a stored payload to the current model format.

    Args:
        payload (object): Raw JSON payload.

    Raises:
        FormStoreError: If payload is not a JSON object.

    Returns:
        dict[str, object]: Form object payload.
    """
    if not isinstance(payload, dict):
        raise FormStoreError(message="Form payload must be a JSON object")

    payload_obj = cast("dict[str, object]", payload)
    form_object = payload_obj
    embedded_form = payload_obj.get("form")
    if isinstance(embedded_form, dict):
        form_object = cast("dict[str, object]", embedded_form)

    migrated = dict(form_object)
    fields = migrated.get("fields")
    if isinstance(fields, list):
        migrated["fields"] = [_migrate_field_payload(item, index) for index, item in enumerate(fields)]
    return migrated


def _migrate_field_payload(payload: object, index: int) -> object:
    if not isinstance(payload, dict):
        return payload
    migrated = dict(payload)
    migrated.setdefault("order", index)
    migrated.setdefault("validationRules", [])
    migrated.setdefault("isDerived", False)
    return migrated


def _validate_form_payload(payload: dict[str, object]) -> FormSchema:
    try:
        return FormSchema.model_validate(payload)
    except ValidationError as exc:
        raise FormStoreError(message=f"Invalid form payload: {exc}") from exc


def _validate_form_file_path(path: Path) -> None:
    """Validate form file path before loading.

    Args:
        path (Path): Form file path.

    Raises:
        FormStoreError: If path is not a `pathlib.Path` or not a readable JSON file.
    """
    if not isinstance(path, Path):
        raise FormStoreError(message=f"Form path must be a pathlib.Path instance, got: {type(path)!r}")
    if not path.is_file():
        raise FormStoreError(message=f"Form path is not a file: {path}")
    if path.suffix != ".json":
        raise FormStoreError(message=f"Form path must be a JSON file: {path}")
