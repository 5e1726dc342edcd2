from __future__ import annotations

import json
from argparse import Namespace
from datetime import date
from pathlib import Path

import pytest

from derivedforms import cli
from derivedforms.settings import Settings
from derivedforms.typing.enums import ErrorKind, FieldType
from derivedforms.typing.models import DerivedConfig, FormField, FormSchema


def _schema(formula: str = "width * height", parents: list[str] | None = None) -> FormSchema:
    return FormSchema(
        id="area-form",
        name="Area",
        fields=[
            FormField(id="w", type=FieldType.NUMBER, label="Width"),
            FormField(id="h", type=FieldType.NUMBER, label="Height", order=1),
            FormField(
                id="area",
                type=FieldType.NUMBER,
                label="Area",
                is_derived=True,
                derived_config=DerivedConfig(parent_field_ids=parents or ["w", "h"], formula=formula),
                order=2,
            ),
        ],
    )


def _write(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_build_parser_supports_version_flag(capsys) -> None:
    parser = cli.build_parser()

    with pytest.raises(SystemExit) as exc_info:
        parser.parse_args(["--version"])
    assert exc_info.value.code == 0

    captured = capsys.readouterr()
    assert "0.1.0" in captured.out


def test_today_argument_is_parsed_as_date() -> None:
    args = cli.build_parser().parse_args(["evaluate", "--schema", "form.json", "--today", "2024-01-10"])

    assert args.today == date(2024, 1, 10)
    assert args.schema_path == Path("form.json")


def test_today_argument_rejects_invalid_dates(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.build_parser().parse_args(["evaluate", "--schema", "form.json", "--today", "10/01/2024"])

    assert exc_info.value.code == 2
    assert "--today must be an ISO date" in capsys.readouterr().err


def test_collect_schema_issues_reports_resolution_and_syntax_errors() -> None:
    settings = Settings()

    assert cli.collect_schema_issues(_schema(), settings) == {}
    assert cli.collect_schema_issues(_schema("width *"), settings)["area"].kind == ErrorKind.SYNTAX_ERROR
    dangling = cli.collect_schema_issues(_schema(parents=["w", "gone"]), settings)
    assert dangling["area"].kind == ErrorKind.DANGLING_REFERENCE


def test_main_evaluate_writes_output(mocker, tmp_path: Path) -> None:
    mocker.patch("derivedforms.cli.get_settings", return_value=Settings())
    schema_path = _write(tmp_path / "area.json", _schema().model_dump(mode="json", by_alias=True))
    values_path = _write(tmp_path / "values.json", {"w": 4, "h": "5"})
    output_path = tmp_path / "out" / "result.json"

    result = cli.main(
        ["evaluate", "--schema", str(schema_path), "--values", str(values_path), "--output", str(output_path)],
    )

    assert result == 0
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["values"] == {"w": 4, "h": 5, "area": 20}
    assert payload["derivationErrors"] == {}


def test_main_evaluate_returns_error_on_missing_schema(mocker, tmp_path: Path) -> None:
    mocker.patch("derivedforms.cli.get_settings", return_value=Settings())

    assert cli.main(["evaluate", "--schema", str(tmp_path / "missing.json")]) == 1


def test_main_check_exit_codes(mocker, tmp_path: Path) -> None:
    mocker.patch("derivedforms.cli.get_settings", return_value=Settings())
    valid = _write(tmp_path / "valid.json", _schema().model_dump(mode="json", by_alias=True))
    invalid = _write(tmp_path / "invalid.json", _schema("width +").model_dump(mode="json", by_alias=True))

    assert cli.main(["check", "--schema", str(valid)]) == 0
    assert cli.main(["check", "--schema", str(invalid)]) == 1


def test_main_store_commands(mocker, tmp_path: Path, capsys) -> None:
    settings = Settings(forms_dir=str(tmp_path / "forms"))
    mocker.patch("derivedforms.cli.get_settings", return_value=settings)
    schema_path = _write(tmp_path / "area.json", _schema().model_dump(mode="json", by_alias=True))

    assert cli.main(["save", "--schema", str(schema_path)]) == 0
    assert cli.main(["list"]) == 0
    listed = capsys.readouterr().out
    assert "area-form\tArea\t3 fields" in listed

    assert cli.main(["delete", "area-form"]) == 0
    assert cli.main(["delete", "area-form"]) == 1


def test_main_strict_save_refuses_unresolvable_schema(mocker, tmp_path: Path) -> None:
    settings = Settings(forms_dir=str(tmp_path / "forms"))
    mocker.patch("derivedforms.cli.get_settings", return_value=settings)
    dangling = _schema(parents=["w", "gone"]).model_dump(mode="json", by_alias=True)
    schema_path = _write(tmp_path / "dangling.json", dangling)

    assert cli.main(["save", "--strict", "--schema", str(schema_path)]) == 1
    assert list((tmp_path / "forms").glob("*.form.json")) == []
    assert cli.main(["save", "--schema", str(schema_path)]) == 0


def test_main_without_command_prints_help(mocker, capsys) -> None:
    mocker.patch("derivedforms.cli.get_settings", return_value=Settings())
    parser = mocker.Mock()
    parser.parse_args.return_value = Namespace(command=None)
    mocker.patch("derivedforms.cli.build_parser", return_value=parser)

    assert cli.main([]) == 0
    parser.print_help.assert_called_once()
