"""Evaluation result models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from derivedforms.typing.enums import ErrorKind
from derivedforms.typing.models.schema import ErrorMap, ValueMap

if TYPE_CHECKING:
    from derivedforms.exceptions import FormulaError, SchemaResolutionError

ERROR_SENTINEL = "Error in calculation"


class DerivationIssue(BaseModel):
    """Derivation error recorded for one derived field."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    kind: ErrorKind
    message: str
    related_field_ids: list[str] = Field(default_factory=list)

    @classmethod
    def from_error(cls, error: FormulaError | SchemaResolutionError) -> DerivationIssue:
        """Build an issue from an engine exception.

        Args:
            error (FormulaError | SchemaResolutionError): Formula or resolution error.

        Returns:
            DerivationIssue: Serializable issue.
        """
        related = list(getattr(error, "related_field_ids", ()))
        return cls(kind=error.kind, message=str(error), related_field_ids=related)


class FormEvaluation(BaseModel):
    """Values and errors produced by one evaluation pass."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    values: ValueMap = Field(default_factory=dict)
    errors: ErrorMap = Field(default_factory=dict)
    derivation_errors: dict[str, DerivationIssue] = Field(default_factory=dict)

    @property
    def has_validation_errors(self) -> bool:
        """Return whether any field reports a validation message."""
        return any(messages for messages in self.errors.values())

    @property
    def can_submit(self) -> bool:
        """Return whether the form may be submitted.

        Derivation errors are shown to the user but do not block submission.
        """
        return not self.has_validation_errors
