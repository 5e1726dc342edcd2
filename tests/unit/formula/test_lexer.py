from __future__ import annotations

import pytest

from derivedforms.exceptions import FormulaSyntaxError
from derivedforms.formula import TokenType, tokenize


def _types(source: str) -> list[TokenType]:
    return [token.type for token in tokenize(source)]


def test_tokenize_arithmetic_expression() -> None:
    tokens = tokenize("width * 2.5 + .5")

    assert [(token.type, token.value) for token in tokens] == [
        (TokenType.IDENTIFIER, "width"),
        (TokenType.OPERATOR, "*"),
        (TokenType.NUMBER, "2.5"),
        (TokenType.OPERATOR, "+"),
        (TokenType.NUMBER, ".5"),
        (TokenType.EOF, ""),
    ]


def test_longest_operator_wins() -> None:
    tokens = tokenize("a<=b!=c&&!d")

    assert [token.value for token in tokens if token.type is TokenType.OPERATOR] == ["<=", "!=", "&&", "!"]


def test_string_literals_support_both_quotes_and_escapes() -> None:
    tokens = tokenize("'it\\'s' + \"a\\nb\"")

    assert tokens[0].value == "it's"
    assert tokens[2].value == "a\nb"


def test_keywords_and_field_references() -> None:
    tokens = tokenize("true || { 3f2a-b1 } || null")

    assert tokens[0].type is TokenType.KEYWORD
    assert tokens[2].type is TokenType.FIELD_REF
    assert tokens[2].value == "3f2a-b1"
    assert tokens[4].type is TokenType.KEYWORD


def test_identifiers_accept_dollar_and_underscore() -> None:
    assert _types("$total _x1") == [TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.EOF]


def test_token_positions_point_into_source() -> None:
    tokens = tokenize("  ab + 1")

    assert [token.position for token in tokens] == [2, 5, 7, 8]


@pytest.mark.parametrize(
    ("source", "message"),
    [
        ("'open", "Unterminated string literal"),
        ("{open", "Unterminated field reference"),
        ("{ }", "Empty field reference"),
        ("12abc", "Invalid number literal"),
        ("a = b", "Unexpected character '='"),
        ("a & b", "Unexpected character '&'"),
        ("a.b", "Unexpected character '.'"),
    ],
)
def test_invalid_sources_raise_syntax_errors(source: str, message: str) -> None:
    with pytest.raises(FormulaSyntaxError, match=message):
        tokenize(source)
