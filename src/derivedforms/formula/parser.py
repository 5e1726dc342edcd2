"""Recursive-descent parser producing the formula AST."""

from __future__ import annotations

import math
from dataclasses import dataclass

from derivedforms.exceptions import EvaluationLimitExceededError, FormulaSyntaxError
from derivedforms.formula.lexer import Token, TokenType, tokenize

DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True, slots=True)
class Literal:
    """Number, string, boolean or null constant."""

    value: str | int | float | bool | None


@dataclass(frozen=True, slots=True)
class Identifier:
    """Name looked up in the bound environment."""

    name: str
    position: int


@dataclass(frozen=True, slots=True)
class UnaryOp:
    """Prefix `-` or `!` applied to an operand."""

    operator: str
    operand: Node


@dataclass(frozen=True, slots=True)
class BinaryOp:
    """Arithmetic, comparison or logical operation."""

    operator: str
    left: Node
    right: Node


@dataclass(frozen=True, slots=True)
class FunctionCall:
    """Call of a whitelisted function."""

    name: str
    arguments: tuple[Node, ...]
    position: int


Node = Literal | Identifier | UnaryOp | BinaryOp | FunctionCall

# Binary precedence levels, lowest first.
_BINARY_LEVELS: tuple[frozenset[str], ...] = (
    frozenset({"||"}),
    frozenset({"&&"}),
    frozenset({"==", "!="}),
    frozenset({"<", "<=", ">", ">="}),
    frozenset({"+", "-"}),
    frozenset({"*", "/", "%"}),
)
_UNARY_OPERATORS = frozenset({"-", "!"})
_KEYWORD_VALUES: dict[str, bool | None] = {"true": True, "false": False, "null": None}


class Parser:
    """Parse a token stream into an expression tree.

    Nesting is bounded by `max_depth` so a pathological formula fails with
    `EvaluationLimitExceededError` instead of exhausting the interpreter stack.
    """

    def __init__(self, tokens: list[Token], *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._tokens = tokens
        self._index = 0
        self._depth = 0
        self._max_depth = max_depth

    def parse(self) -> Node:
        """Parse a complete expression.

        Raises:
            FormulaSyntaxError: If the tokens do not form one expression.

        Returns:
            Node: Root of the expression tree.
        """
        if self._current.type is TokenType.EOF:
            raise FormulaSyntaxError("Formula is empty", position=0)
        node = self._parse_binary(0)
        if self._current.type is not TokenType.EOF:
            raise FormulaSyntaxError(
                f"Unexpected token '{self._current.value}'",
                position=self._current.position,
            )
        return node

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.type is not TokenType.EOF:
            self._index += 1
        return token

    def _expect(self, token_type: TokenType, description: str) -> Token:
        token = self._current
        if token.type is not token_type:
            found = token.value or "end of formula"
            raise FormulaSyntaxError(f"Expected {description}, found '{found}'", position=token.position)
        return self._advance()

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > self._max_depth:
            raise EvaluationLimitExceededError(f"Formula nesting exceeds the maximum depth of {self._max_depth}")

    def _leave(self) -> None:
        self._depth -= 1

    def _is_operator(self, operators: frozenset[str]) -> bool:
        token = self._current
        return token.type is TokenType.OPERATOR and token.value in operators

    def _parse_binary(self, level: int) -> Node:
        if level == len(_BINARY_LEVELS):
            return self._parse_unary()
        operators = _BINARY_LEVELS[level]
        node = self._parse_binary(level + 1)
        # Each chained operator deepens the left-leaning tree by one level.
        chained = 0
        while self._is_operator(operators):
            operator = self._advance().value
            self._enter()
            chained += 1
            right = self._parse_binary(level + 1)
            node = BinaryOp(operator, node, right)
        self._depth -= chained
        return node

    def _parse_unary(self) -> Node:
        if self._is_operator(_UNARY_OPERATORS):
            operator = self._advance().value
            self._enter()
            operand = self._parse_unary()
            self._leave()
            return UnaryOp(operator, operand)
        return self._parse_primary()

    def _parse_primary(self) -> Node:
        token = self._current
        match token.type:
            case TokenType.NUMBER:
                self._advance()
                return Literal(_number_literal(token))
            case TokenType.STRING:
                self._advance()
                return Literal(token.value)
            case TokenType.KEYWORD:
                self._advance()
                return Literal(_KEYWORD_VALUES[token.value])
            case TokenType.FIELD_REF:
                self._advance()
                return Identifier(token.value, token.position)
            case TokenType.IDENTIFIER:
                self._advance()
                if self._current.type is TokenType.LPAREN:
                    return self._parse_call(token)
                return Identifier(token.value, token.position)
            case TokenType.LPAREN:
                self._advance()
                self._enter()
                node = self._parse_binary(0)
                self._leave()
                self._expect(TokenType.RPAREN, "')'")
                return node
            case _:
                found = token.value or "end of formula"
                raise FormulaSyntaxError(f"Unexpected token '{found}'", position=token.position)

    def _parse_call(self, name_token: Token) -> FunctionCall:
        self._expect(TokenType.LPAREN, "'('")
        self._enter()
        arguments: list[Node] = []
        if self._current.type is not TokenType.RPAREN:
            arguments.append(self._parse_binary(0))
            while self._current.type is TokenType.COMMA:
                self._advance()
                arguments.append(self._parse_binary(0))
        self._leave()
        self._expect(TokenType.RPAREN, "')'")
        return FunctionCall(name_token.value, tuple(arguments), name_token.position)


def _number_literal(token: Token) -> int | float:
    try:
        value = float(token.value) if "." in token.value else int(token.value)
    except ValueError as exc:
        raise FormulaSyntaxError("Number literal is too large", position=token.position) from exc
    if isinstance(value, float) and not math.isfinite(value):
        raise FormulaSyntaxError("Number literal is too large", position=token.position)
    return value


def parse(formula: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Node:
    """Parse formula text into an expression tree.

    Args:
        formula (str): Formula text.
        max_depth (int): Maximum nesting depth.

    Raises:
        EvaluationLimitExceededError: If the formula nests deeper than the interpreter stack allows.

    Returns:
        Node: Root of the expression tree.
    """
    try:
        return Parser(tokenize(formula), max_depth=max_depth).parse()
    except RecursionError as exc:
        raise EvaluationLimitExceededError("Formula nesting exceeds the interpreter stack") from exc
