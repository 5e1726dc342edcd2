"""DerivedForms package."""

from derivedforms.exceptions import (
    FormStoreError,
    FormulaError,
    PackageError,
    SchemaResolutionError,
    SettingsError,
)
from derivedforms.logging import configure_logging, get_logger
from derivedforms.settings import Settings, get_settings

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("derivedforms")

from derivedforms.engine import FormEvaluator, evaluate_form  # noqa: E402

__all__ = [
    "FormEvaluator",
    "FormStoreError",
    "FormulaError",
    "PackageError",
    "SchemaResolutionError",
    "Settings",
    "SettingsError",
    "__version__",
    "configure_logging",
    "evaluate_form",
    "get_logger",
    "get_settings",
    "logger",
]
