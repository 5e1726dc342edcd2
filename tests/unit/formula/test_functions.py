from __future__ import annotations

from datetime import date

import pytest

from derivedforms.exceptions import TypeMismatchError
from derivedforms.formula import calculate_age, default_functions, parse_date


@pytest.mark.parametrize(
    ("birth_date", "today", "expected"),
    [
        ("2000-06-15", date(2024, 1, 10), 23),
        ("2000-06-15", date(2024, 6, 15), 24),
        ("2000-06-15", date(2024, 6, 14), 23),
        ("2000-01-01", date(2000, 1, 1), 0),
        ("2000-02-29", date(2023, 2, 28), 22),
        ("2000-02-29", date(2023, 3, 1), 23),
        ("2000-06-15T08:30:00Z", date(2024, 7, 1), 24),
    ],
)
def test_calculate_age(birth_date: str, today: date, expected: int) -> None:
    assert calculate_age(birth_date, today) == expected


def test_calculate_age_of_missing_date_is_zero() -> None:
    assert calculate_age(None, date(2024, 1, 10)) == 0
    assert calculate_age("", date(2024, 1, 10)) == 0


def test_calculate_age_rejects_non_strings() -> None:
    with pytest.raises(TypeMismatchError, match="expects a date string"):
        calculate_age(2000, date(2024, 1, 10))


def test_parse_date_rejects_garbage() -> None:
    with pytest.raises(TypeMismatchError, match="not a valid date"):
        parse_date("15/06/2000")


def test_default_functions_read_clock_on_every_call() -> None:
    calls: list[date] = []
    dates = iter([date(2024, 1, 10), date(2024, 1, 11)])

    def _clock() -> date:
        current = next(dates)
        calls.append(current)
        return current

    today = default_functions(_clock)["today"]

    assert today.implementation() == "2024-01-10"
    assert today.implementation() == "2024-01-11"
    assert len(calls) == 2


def test_default_function_arity() -> None:
    functions = default_functions()

    assert functions["calculateAge"].arity == 1
    assert functions["today"].arity == 0
