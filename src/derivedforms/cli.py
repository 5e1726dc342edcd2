"""CLI entry point for DerivedForms."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from derivedforms import __version__, logger
from derivedforms.engine import evaluate_form
from derivedforms.exceptions import FormStoreError, PackageError
from derivedforms.form_store import FormStore, load_form_file
from derivedforms.formula import EvaluationLimits, check_formula
from derivedforms.logging import configure_logging
from derivedforms.resolver import resolve_dependencies
from derivedforms.settings import Settings, get_settings
from derivedforms.typing.models import DerivationIssue, FormSchema


def _date_from_cli(value: str) -> date:
    """Convert `--today` CLI value into a date.

    Args:
        value (str): CLI value in `YYYY-MM-DD` format.

    Raises:
        argparse.ArgumentTypeError: If value is not an ISO date.

    Returns:
        date: Parsed date.
    """
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--today must be an ISO date (YYYY-MM-DD)") from exc  # noqa: TRY003


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="derivedforms")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    evaluate_parser = subparsers.add_parser("evaluate", help="Compute derived values and validation errors")
    evaluate_parser.add_argument("--schema", required=True, type=Path, dest="schema_path")
    evaluate_parser.add_argument("--values", type=Path, default=None, dest="values_path")
    evaluate_parser.add_argument("--today", type=_date_from_cli, default=None)
    evaluate_parser.add_argument("--output", type=Path, default=None, dest="output_path")

    check_parser = subparsers.add_parser("check", help="Check derived fields of a form schema")
    check_parser.add_argument("--schema", required=True, type=Path, dest="schema_path")

    subparsers.add_parser("list", help="List stored forms")

    save_parser = subparsers.add_parser("save", help="Store a form schema")
    save_parser.add_argument("--schema", required=True, type=Path, dest="schema_path")
    save_parser.add_argument(
        "--strict",
        action="store_true",
        help="Refuse forms whose derived fields cannot be resolved",
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a stored form")
    delete_parser.add_argument("form_id")

    return parser


def _load_values(path: Path | None) -> dict[str, object]:
    if path is None:
        return {}
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise FormStoreError(message=f"Values file must hold a JSON object: {path}")
    return payload


def _run_evaluate(args: argparse.Namespace, settings: Settings) -> int:
    schema = load_form_file(args.schema_path)
    values = _load_values(args.values_path)
    today = args.today
    clock = (lambda: today) if today is not None else None
    evaluation = evaluate_form(schema, values, settings=settings, clock=clock)  # type: ignore[arg-type]

    rendered = evaluation.model_dump_json(indent=2, by_alias=True)
    if args.output_path is None:
        sys.stdout.write(rendered + "\n")
    else:
        args.output_path.parent.mkdir(parents=True, exist_ok=True)
        args.output_path.write_text(rendered, encoding="utf-8")
        logger.info("Evaluation written", extra={"output_path": str(args.output_path)})
    return 0


def collect_schema_issues(schema: FormSchema, settings: Settings) -> dict[str, DerivationIssue]:
    """Collect derived fields that cannot be evaluated whatever the input.

    Args:
        schema (FormSchema): Form schema.
        settings (Settings): Runtime settings.

    Returns:
        dict[str, DerivationIssue]: Issues keyed by derived field id.
    """
    resolution = resolve_dependencies(schema.fields, allow_derived_parents=settings.allow_derived_parents)
    issues = {field_id: DerivationIssue.from_error(error) for field_id, error in resolution.errors.items()}
    limits = EvaluationLimits.from_settings(settings)
    for form_field in schema.ordered_fields():
        if form_field.id in issues or form_field.derived_config is None:
            continue
        error = check_formula(form_field.derived_config.formula, limits=limits)
        if error is not None:
            issues[form_field.id] = DerivationIssue.from_error(error)
    return issues


def _run_check(args: argparse.Namespace, settings: Settings) -> int:
    schema = load_form_file(args.schema_path)
    issues = collect_schema_issues(schema, settings)
    for field_id, issue in issues.items():
        logger.error(
            "Derived field is invalid",
            extra={"field_id": field_id, "kind": issue.kind.value, "error": issue.message},
        )
    if issues:
        return 1
    logger.info("Schema is valid", extra={"schema_id": schema.id})
    return 0


def _run_list(store: FormStore) -> int:
    for schema in store.load_all():
        sys.stdout.write(f"{schema.id}\t{schema.name}\t{len(schema.fields)} fields\n")
    return 0


def _run_save(args: argparse.Namespace, store: FormStore) -> int:
    schema = load_form_file(args.schema_path)
    form_id = store.save(schema, check_dependencies=args.strict)
    sys.stdout.write(f"{form_id}\n")
    return 0


def _run_delete(args: argparse.Namespace, store: FormStore) -> int:
    store.delete(args.form_id)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv (list[str] | None): Arguments, defaults to `sys.argv[1:]`.

    Returns:
        int: Exit code (0 for success, 1 for error).
    """
    settings = get_settings()
    configure_logging(settings=settings)

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == "evaluate":
            return _run_evaluate(args, settings)
        if args.command == "check":
            return _run_check(args, settings)
        store = FormStore(root=Path(settings.forms_dir), allow_derived_parents=settings.allow_derived_parents)
        if args.command == "list":
            return _run_list(store)
        if args.command == "save":
            return _run_save(args, store)
        return _run_delete(args, store)
    except PackageError:
        logger.exception("Command failed", extra={"command": args.command})
        return 1
    except json.JSONDecodeError:
        logger.exception("Invalid JSON input", extra={"command": args.command})
        return 1
    except KeyboardInterrupt:
        logger.info("Command aborted by user")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
