from __future__ import annotations

import json

from derivedforms import logger as package_logger
from derivedforms.logging import configure_logging, form_log_context, get_logger
from derivedforms.settings import Settings


def test_stdlib_logger_is_configured(capsys) -> None:
    configure_logging(settings=Settings(log_json=False, log_level="INFO"), force=True)
    logger = get_logger("tests")
    logger.info("hello")

    captured = capsys.readouterr()
    assert "hello" in captured.err.lower()


def test_extra_payload_and_context_are_flattened(capsys) -> None:
    configure_logging(settings=Settings(log_json=True, log_level="INFO"), force=True)
    logger = get_logger("tests")

    with form_log_context(schema_id="form-1"):
        logger.info("Derived field computed", extra={"field_id": "age"})

    line = capsys.readouterr().err.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["message"] == "Derived field computed"
    assert payload["field_id"] == "age"
    assert payload["schema_id"] == "form-1"
    assert "extra" not in payload


def test_package_logger_created_on_import() -> None:
    assert callable(getattr(package_logger, "info", None))
