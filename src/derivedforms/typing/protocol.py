"""Collaborator interfaces."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from datetime import date

    from derivedforms.typing.models import FormSchema


class FormRepository(Protocol):
    """Persistence collaborator storing form schemas."""

    def save(self, schema: FormSchema) -> str:
        """Persist a new form schema.

        Args:
            schema: Form schema to store.

        Returns:
            str: Identifier of the stored schema.
        """

    def load(self, schema_id: str) -> FormSchema:
        """Load one stored form schema.

        Args:
            schema_id: Identifier of the stored schema.

        Returns:
            FormSchema: Stored schema.
        """

    def load_all(self) -> list[FormSchema]:
        """Load every stored form schema.

        Returns:
            list[FormSchema]: Stored schemas.
        """

    def delete(self, schema_id: str) -> None:
        """Delete a stored form schema.

        Args:
            schema_id: Identifier of the schema to delete.
        """

    def update(self, schema_id: str, schema: FormSchema) -> None:
        """Replace a stored form schema.

        Args:
            schema_id: Identifier of the schema to replace.
            schema: New schema payload.
        """


class Clock(Protocol):
    """Source of the current calendar date."""

    def __call__(self) -> date:
        """Return today's date."""
