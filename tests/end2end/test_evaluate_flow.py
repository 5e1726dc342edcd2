from __future__ import annotations

import json
import sys
from subprocess import run as subprocess_run  # noqa: S404
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

_LEGACY_FORM = {
    "id": "b7c1",
    "name": "Registration",
    "createdAt": "2024-01-01T09:00:00.000Z",
    "updatedAt": "2024-01-01T09:00:00.000Z",
    "fields": [
        {
            "id": "1704099600001",
            "type": "text",
            "label": "Full Name",
            "required": True,
            "validationRules": [{"type": "required", "message": "Full name is required"}],
            "isDerived": False,
            "order": 0,
        },
        {
            "id": "1704099600002",
            "type": "date",
            "label": "Date of Birth",
            "required": False,
            "validationRules": [],
            "isDerived": False,
            "order": 1,
        },
        {
            "id": "1704099600003",
            "type": "number",
            "label": "Age",
            "required": False,
            "validationRules": [],
            "isDerived": True,
            "derivedConfig": {"parentFieldIds": ["1704099600002"], "formula": "calculateAge(dateofbirth)"},
            "order": 2,
        },
    ],
}


def test_evaluate_command_prints_evaluation(tmp_path: Path) -> None:
    schema_path = tmp_path / "registration.json"
    schema_path.write_text(json.dumps(_LEGACY_FORM), encoding="utf-8")
    values_path = tmp_path / "values.json"
    values_path.write_text(json.dumps({"1704099600002": "2000-06-15"}), encoding="utf-8")

    result = subprocess_run(  # noqa: S603
        [
            sys.executable,
            "-m",
            "derivedforms.cli",
            "evaluate",
            "--schema",
            str(schema_path),
            "--values",
            str(values_path),
            "--today",
            "2024-01-10",
        ],
        capture_output=True,
        text=True,
        check=False,
        cwd=tmp_path,
    )

    assert result.returncode == 0
    payload = json.loads(result.stdout)
    assert payload["values"]["1704099600003"] == 23
    assert payload["errors"] == {"1704099600001": ["Full name is required"]}
    assert payload["derivationErrors"] == {}
