from __future__ import annotations

import pytest

from derivedforms.exceptions import EvaluationLimitExceededError, FormulaSyntaxError
from derivedforms.formula import BinaryOp, FunctionCall, Identifier, Literal, UnaryOp, parse


def test_multiplication_binds_tighter_than_addition() -> None:
    tree = parse("a + b * 2")

    assert tree == BinaryOp(
        "+",
        Identifier("a", 0),
        BinaryOp("*", Identifier("b", 4), Literal(2)),
    )


def test_binary_operators_are_left_associative() -> None:
    tree = parse("10 - 4 - 3")

    assert tree == BinaryOp("-", BinaryOp("-", Literal(10), Literal(4)), Literal(3))


def test_logical_precedence() -> None:
    tree = parse("a || b && c == 1")

    assert isinstance(tree, BinaryOp)
    assert tree.operator == "||"
    assert isinstance(tree.right, BinaryOp)
    assert tree.right.operator == "&&"


def test_unary_and_parentheses() -> None:
    tree = parse("-(a + 1)")

    assert tree == UnaryOp("-", BinaryOp("+", Identifier("a", 2), Literal(1)))


def test_literals() -> None:
    assert parse("1.5") == Literal(1.5)
    assert parse("7") == Literal(7)
    assert parse("'x'") == Literal("x")
    assert parse("true") == Literal(True)  # noqa: FBT003
    assert parse("null") == Literal(None)


def test_function_calls() -> None:
    assert parse("today()") == FunctionCall("today", (), 0)
    assert parse("calculateAge({birth-date})") == FunctionCall("calculateAge", (Identifier("birth-date", 13),), 0)


@pytest.mark.parametrize(
    ("formula", "message"),
    [
        ("", "Formula is empty"),
        ("   ", "Formula is empty"),
        ("a +", "Unexpected token 'end of formula'"),
        ("(a + 1", "Expected '\\)'"),
        ("a b", "Unexpected token 'b'"),
        ("f(a,)", "Unexpected token '\\)'"),
        (")", "Unexpected token '\\)'"),
    ],
)
def test_malformed_formulas_raise_syntax_errors(formula: str, message: str) -> None:
    with pytest.raises(FormulaSyntaxError, match=message):
        parse(formula)


def test_syntax_error_reports_position() -> None:
    with pytest.raises(FormulaSyntaxError) as exc_info:
        parse("a + * b")

    assert exc_info.value.position == 4


def test_nesting_depth_is_bounded() -> None:
    with pytest.raises(EvaluationLimitExceededError):
        parse("(" * 10 + "1" + ")" * 10, max_depth=5)

    assert parse("(" * 5 + "1" + ")" * 5, max_depth=5) == Literal(1)


def test_long_operator_chains_count_towards_depth() -> None:
    with pytest.raises(EvaluationLimitExceededError):
        parse(" + ".join(["1"] * 20), max_depth=10)

    assert isinstance(parse(" + ".join(["1"] * 10), max_depth=10), BinaryOp)


def test_number_literal_outside_float_range_is_rejected() -> None:
    with pytest.raises(FormulaSyntaxError, match="too large") as exc_info:
        parse("2 * 1" + "0" * 400 + ".5")

    assert exc_info.value.position == 4
