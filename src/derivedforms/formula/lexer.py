"""Tokenizer for the formula language."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from derivedforms.exceptions import FormulaSyntaxError


class TokenType(Enum):
    """Kinds of lexical tokens."""

    NUMBER = "number"
    STRING = "string"
    IDENTIFIER = "identifier"
    FIELD_REF = "field_ref"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """Single lexical token with its source position."""

    type: TokenType
    value: str
    position: int


KEYWORDS = frozenset({"true", "false", "null"})

# Longest operators first so `<=` wins over `<`.
_OPERATORS = ("==", "!=", "<=", ">=", "&&", "||", "+", "-", "*", "/", "%", "<", ">", "!")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}
_SINGLE_CHAR = {"(": TokenType.LPAREN, ")": TokenType.RPAREN, ",": TokenType.COMMA}


def _is_digit(char: str) -> bool:
    return len(char) == 1 and "0" <= char <= "9"


def _is_identifier_start(char: str) -> bool:
    return len(char) == 1 and char.isascii() and (char.isalpha() or char in "_$")


def _is_identifier_part(char: str) -> bool:
    return len(char) == 1 and char.isascii() and (char.isalnum() or char in "_$")


class Lexer:
    """Turn formula text into a list of tokens."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0

    def tokenize(self) -> list[Token]:
        """Tokenize the whole source.

        Raises:
            FormulaSyntaxError: On an unexpected character or unterminated literal.

        Returns:
            list[Token]: Tokens terminated by an EOF token.
        """
        tokens: list[Token] = []
        source = self._source
        while self._pos < len(source):
            char = source[self._pos]
            if char.isspace():
                self._pos += 1
            elif _is_digit(char) or (char == "." and _is_digit(self._peek(1))):
                tokens.append(self._read_number())
            elif char in "'\"":
                tokens.append(self._read_string(char))
            elif char == "{":
                tokens.append(self._read_field_ref())
            elif _is_identifier_start(char):
                tokens.append(self._read_identifier())
            elif char in _SINGLE_CHAR:
                tokens.append(Token(_SINGLE_CHAR[char], char, self._pos))
                self._pos += 1
            else:
                tokens.append(self._read_operator())
        tokens.append(Token(TokenType.EOF, "", self._pos))
        return tokens

    def _peek(self, offset: int = 0) -> str:
        index = self._pos + offset
        return self._source[index] if index < len(self._source) else ""

    def _read_number(self) -> Token:
        start = self._pos
        seen_dot = False
        while self._pos < len(self._source):
            char = self._source[self._pos]
            if _is_digit(char):
                self._pos += 1
            elif char == "." and not seen_dot and _is_digit(self._peek(1)):
                seen_dot = True
                self._pos += 1
            else:
                break
        if _is_identifier_start(self._peek()):
            raise FormulaSyntaxError("Invalid number literal", position=start)
        return Token(TokenType.NUMBER, self._source[start : self._pos], start)

    def _read_string(self, quote: str) -> Token:
        start = self._pos
        self._pos += 1
        chars: list[str] = []
        while self._pos < len(self._source):
            char = self._source[self._pos]
            if char == quote:
                self._pos += 1
                return Token(TokenType.STRING, "".join(chars), start)
            if char == "\\":
                escaped = self._peek(1)
                if not escaped:
                    break
                chars.append(_ESCAPES.get(escaped, escaped))
                self._pos += 2
                continue
            chars.append(char)
            self._pos += 1
        raise FormulaSyntaxError("Unterminated string literal", position=start)

    def _read_field_ref(self) -> Token:
        start = self._pos
        end = self._source.find("}", start + 1)
        if end == -1:
            raise FormulaSyntaxError("Unterminated field reference", position=start)
        name = self._source[start + 1 : end].strip()
        if not name:
            raise FormulaSyntaxError("Empty field reference", position=start)
        self._pos = end + 1
        return Token(TokenType.FIELD_REF, name, start)

    def _read_identifier(self) -> Token:
        start = self._pos
        while self._pos < len(self._source) and _is_identifier_part(self._source[self._pos]):
            self._pos += 1
        name = self._source[start : self._pos]
        token_type = TokenType.KEYWORD if name in KEYWORDS else TokenType.IDENTIFIER
        return Token(token_type, name, start)

    def _read_operator(self) -> Token:
        start = self._pos
        for operator in _OPERATORS:
            if self._source.startswith(operator, start):
                self._pos += len(operator)
                return Token(TokenType.OPERATOR, operator, start)
        raise FormulaSyntaxError(f"Unexpected character '{self._source[start]}'", position=start)


def tokenize(source: str) -> list[Token]:
    """Tokenize formula text.

    Args:
        source (str): Formula text.

    Returns:
        list[Token]: Tokens terminated by an EOF token.
    """
    return Lexer(source).tokenize()
