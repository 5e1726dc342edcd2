"""Whitelisted functions callable from formulas."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from derivedforms.exceptions import TypeMismatchError

if TYPE_CHECKING:
    from collections.abc import Callable

    from derivedforms.typing.protocol import Clock

# Names resolved by calling the zero-argument function when they are not bound.
PSEUDO_VARIABLES = frozenset({"today"})


@dataclass(frozen=True, slots=True)
class FormulaFunction:
    """Function exposed to formulas."""

    name: str
    arity: int
    implementation: Callable[..., object]
    description: str = ""


def system_clock() -> date:
    """Return the local calendar date."""
    return date.today()  # noqa: DTZ011


def parse_date(value: str) -> date:
    """Parse an ISO date or datetime string into a calendar date.

    Args:
        value (str): ISO 8601 text, e.g. `2000-06-15` or `2000-06-15T08:30:00Z`.

    Raises:
        TypeMismatchError: If the text is not a valid ISO date.

    Returns:
        date: Parsed calendar date.
    """
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError as exc:
        raise TypeMismatchError(f"'{value}' is not a valid date") from exc


def calculate_age(birth_date: object, today: date) -> int:
    """Return the number of whole years between a birth date and today.

    Args:
        birth_date (object): ISO date string; empty or null yields 0.
        today (date): Reference date.

    Raises:
        TypeMismatchError: If the argument is not a date string.

    Returns:
        int: Age in whole years.
    """
    if birth_date is None or birth_date == "":
        return 0
    if not isinstance(birth_date, str):
        raise TypeMismatchError(f"calculateAge expects a date string, got {type(birth_date).__name__}")
    birth = parse_date(birth_date)
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def default_functions(clock: Clock = system_clock) -> dict[str, FormulaFunction]:
    """Build the function whitelist bound to a clock.

    The clock is read on every call so `today` is never memoized.

    Args:
        clock (Clock): Source of the current date.

    Returns:
        dict[str, FormulaFunction]: Functions by formula name.
    """
    return {
        "calculateAge": FormulaFunction(
            name="calculateAge",
            arity=1,
            implementation=lambda birth_date: calculate_age(birth_date, clock()),
            description="Whole years elapsed since the given date.",
        ),
        "today": FormulaFunction(
            name="today",
            arity=0,
            implementation=lambda: clock().isoformat(),
            description="Current date as an ISO string.",
        ),
    }
