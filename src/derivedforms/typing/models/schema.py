"""Form schema domain models."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from derivedforms.typing.enums import FieldType, RuleType

FieldValue = str | int | float | bool | list[str | int | float | bool | None] | None
ValueMap = dict[str, FieldValue]
ErrorMap = dict[str, list[str]]

_LENGTH_RULES = frozenset({RuleType.MIN_LENGTH, RuleType.MAX_LENGTH})


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat()


class _CamelModel(BaseModel):
    """Base model reading and writing the camelCase keys of stored forms."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class SelectOption(_CamelModel):
    """Choice offered by select, radio and checkbox fields."""

    value: str
    label: str


class ValidationRule(_CamelModel):
    """Single validation rule attached to a field."""

    type: RuleType
    value: int | float | str | bool | None = None
    message: str

    @model_validator(mode="after")
    def _validate_length_parameter(self) -> ValidationRule:
        """Ensure length rules carry a non-negative integer parameter.

        Raises:
            ValueError: If the rule parameter is missing or invalid.

        Returns:
            ValidationRule: Validated rule.
        """
        if self.type not in _LENGTH_RULES:
            return self
        if isinstance(self.value, bool) or not isinstance(self.value, int | float):
            raise ValueError(f"{self.type} rule requires a numeric value")  # noqa: TRY003
        if self.value < 0 or int(self.value) != self.value:
            raise ValueError(f"{self.type} rule requires a non-negative integer value")  # noqa: TRY003
        self.value = int(self.value)
        return self


class DerivedConfig(_CamelModel):
    """Formula configuration of a derived field."""

    parent_field_ids: list[str] = Field(default_factory=list)
    formula: str
    description: str | None = None

    @field_validator("parent_field_ids")
    @classmethod
    def _deduplicate_parents(cls, value: list[str]) -> list[str]:
        """Keep the first occurrence of each parent id.

        Args:
            value (list[str]): Declared parent ids.

        Returns:
            list[str]: Ordered parent ids without duplicates.
        """
        return list(dict.fromkeys(value))


class FormField(_CamelModel):
    """Single form field definition."""

    id: str
    type: FieldType
    label: str
    required: bool = False
    default_value: FieldValue = None
    placeholder: str | None = None
    options: list[SelectOption] = Field(default_factory=list)
    min: float | None = None
    max: float | None = None
    step: float | None = None
    validation_rules: list[ValidationRule] = Field(default_factory=list)
    is_derived: bool = False
    derived_config: DerivedConfig | None = None
    order: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _validate_derived_config(self) -> FormField:
        """Ensure derived fields carry a formula configuration.

        Raises:
            ValueError: If a derived field has no derived configuration.

        Returns:
            FormField: Validated field.
        """
        if self.is_derived and self.derived_config is None:
            raise ValueError(f"Derived field '{self.id}' requires a derivedConfig")  # noqa: TRY003
        return self

    @property
    def parent_field_ids(self) -> list[str]:
        """Return declared parent ids, empty for non-derived fields."""
        if not self.is_derived or self.derived_config is None:
            return []
        return self.derived_config.parent_field_ids


class FormSchema(_CamelModel):
    """Schema describing a form."""

    id: str
    name: str
    fields: list[FormField] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    @field_validator("fields")
    @classmethod
    def _validate_unique_ids(cls, value: list[FormField]) -> list[FormField]:
        """Ensure field ids are unique within the schema.

        Args:
            value (list[FormField]): Schema fields.

        Raises:
            ValueError: If two fields share an id.

        Returns:
            list[FormField]: Validated fields.
        """
        seen: set[str] = set()
        duplicates: set[str] = set()
        for item in value:
            if item.id in seen:
                duplicates.add(item.id)
            seen.add(item.id)
        if duplicates:
            raise ValueError(f"Duplicate field ids: {', '.join(sorted(duplicates))}")  # noqa: TRY003
        return value

    def field_by_id(self) -> dict[str, FormField]:
        """Return fields indexed by id."""
        return {item.id: item for item in self.fields}

    def ordered_fields(self) -> list[FormField]:
        """Return fields sorted by display position."""
        return sorted(self.fields, key=lambda item: (item.order, item.id))
