"""Restricted formula language for derived fields.

This package provides:
- Lexer: tokenizes formula text
- Parser: produces an expression tree from tokens
- Interpreter: evaluates a tree against bound variables and whitelisted functions
"""

from derivedforms.formula.evaluator import (
    EvalError,
    EvaluationLimits,
    Interpreter,
    check_formula,
    evaluate,
    is_truthy,
)
from derivedforms.formula.functions import (
    PSEUDO_VARIABLES,
    FormulaFunction,
    calculate_age,
    default_functions,
    parse_date,
    system_clock,
)
from derivedforms.formula.lexer import Lexer, Token, TokenType, tokenize
from derivedforms.formula.parser import (
    BinaryOp,
    FunctionCall,
    Identifier,
    Literal,
    Node,
    Parser,
    UnaryOp,
    parse,
)

__all__ = [
    "PSEUDO_VARIABLES",
    "BinaryOp",
    "EvalError",
    "EvaluationLimits",
    "FormulaFunction",
    "FunctionCall",
    "Identifier",
    "Interpreter",
    "Lexer",
    "Literal",
    "Node",
    "Parser",
    "Token",
    "TokenType",
    "UnaryOp",
    "calculate_age",
    "check_formula",
    "default_functions",
    "evaluate",
    "is_truthy",
    "parse",
    "parse_date",
    "system_clock",
    "tokenize",
]
