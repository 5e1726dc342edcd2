"""Form evaluation coordinator."""

from __future__ import annotations

from typing import TYPE_CHECKING

from derivedforms.exceptions import FormulaError
from derivedforms.formula import EvaluationLimits, Interpreter, default_functions, system_clock
from derivedforms.logging import form_log_context, get_logger
from derivedforms.processing import normalize_field_value
from derivedforms.resolver import build_environment, resolve_dependencies
from derivedforms.settings import Settings, get_settings
from derivedforms.typing.models import ERROR_SENTINEL, DerivationIssue, FormEvaluation
from derivedforms.validation import validate_form

if TYPE_CHECKING:
    from collections.abc import Mapping

    from derivedforms.formula import FormulaFunction
    from derivedforms.typing.models import FieldValue, FormField, FormSchema, ValueMap
    from derivedforms.typing.protocol import Clock

logger = get_logger(__name__)


class FormEvaluator:
    """Evaluate form schemas against raw input values.

    One pass computes every derived field exactly once in dependency order, so
    the returned values are a fixed point: evaluating them again returns them
    unchanged.
    """

    def __init__(self, *, settings: Settings | None = None, clock: Clock | None = None) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or system_clock
        self._limits = EvaluationLimits.from_settings(self._settings)

    def evaluate(self, schema: FormSchema, raw_values: Mapping[str, FieldValue]) -> FormEvaluation:
        """Compute derived values and validation errors.

        Args:
            schema (FormSchema): Form schema, treated as read-only.
            raw_values (Mapping[str, FieldValue]): Values entered by the user.

        Returns:
            FormEvaluation: Merged values, validation errors and derivation errors.
        """
        with form_log_context(schema_id=schema.id):
            fields_by_id = schema.field_by_id()
            values = self._initial_values(schema.fields, raw_values)
            derivation_errors: dict[str, DerivationIssue] = {}

            resolution = resolve_dependencies(
                schema.fields,
                allow_derived_parents=self._settings.allow_derived_parents,
            )
            for field_id, resolution_error in resolution.errors.items():
                values[field_id] = ERROR_SENTINEL
                derivation_errors[field_id] = DerivationIssue.from_error(resolution_error)
                logger.warning(
                    "Derived field cannot be resolved",
                    extra={"field_id": field_id, "kind": resolution_error.kind.value},
                )

            functions = default_functions(self._clock)
            for field_id in resolution.order:
                derived = fields_by_id[field_id]
                try:
                    values[field_id] = self._compute(derived, fields_by_id, values, functions)
                except FormulaError as exc:
                    values[field_id] = ERROR_SENTINEL
                    derivation_errors[field_id] = DerivationIssue.from_error(exc)
                    logger.warning(
                        "Derived field formula failed",
                        extra={"field_id": field_id, "kind": exc.kind.value, "error": str(exc)},
                    )

            errors = validate_form(schema.fields, values)
            logger.debug(
                "Form evaluated",
                extra={
                    "derived_count": len(resolution.order),
                    "derivation_error_count": len(derivation_errors),
                    "validation_error_count": len(errors),
                },
            )
        return FormEvaluation(values=values, errors=errors, derivation_errors=derivation_errors)

    @staticmethod
    def _initial_values(fields: list[FormField], raw_values: Mapping[str, FieldValue]) -> ValueMap:
        values: ValueMap = dict(raw_values)
        for form_field in fields:
            if form_field.is_derived:
                continue
            raw = raw_values[form_field.id] if form_field.id in raw_values else form_field.default_value
            values[form_field.id] = normalize_field_value(value=raw, form_field=form_field)
        return values

    def _compute(
        self,
        derived: FormField,
        fields_by_id: Mapping[str, FormField],
        values: ValueMap,
        functions: Mapping[str, FormulaFunction],
    ) -> FieldValue:
        if derived.derived_config is None:
            return None
        environment = build_environment(derived, fields_by_id, values)
        interpreter = Interpreter(environment, functions, limits=self._limits)
        result = interpreter.evaluate(derived.derived_config.formula)
        logger.debug("Derived field computed", extra={"field_id": derived.id})
        return result  # type: ignore[return-value]


def evaluate_form(
    schema: FormSchema,
    raw_values: Mapping[str, FieldValue],
    *,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> FormEvaluation:
    """Evaluate a form schema against raw input values.

    Args:
        schema (FormSchema): Form schema.
        raw_values (Mapping[str, FieldValue]): Values entered by the user.
        settings (Settings | None): Runtime settings; defaults to the cached settings.
        clock (Clock | None): Source of the current date.

    Returns:
        FormEvaluation: Merged values, validation errors and derivation errors.
    """
    return FormEvaluator(settings=settings, clock=clock).evaluate(schema, raw_values)
