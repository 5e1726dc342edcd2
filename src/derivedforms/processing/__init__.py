"""Input processing helpers."""

from derivedforms.processing.normalization import normalize_field_value

__all__ = [
    "normalize_field_value",
]
