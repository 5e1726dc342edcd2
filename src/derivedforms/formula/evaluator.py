"""Sandboxed evaluation of parsed formulas."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from derivedforms.exceptions import (
    DivisionByZeroError,
    EvaluationLimitExceededError,
    FormulaError,
    TypeMismatchError,
    UnboundVariableError,
    UnknownFunctionError,
)
from derivedforms.formula.functions import PSEUDO_VARIABLES, FormulaFunction, default_functions, system_clock
from derivedforms.formula.parser import (
    DEFAULT_MAX_DEPTH,
    BinaryOp,
    FunctionCall,
    Identifier,
    Literal,
    Node,
    UnaryOp,
    parse,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from derivedforms.settings import Settings
    from derivedforms.typing.enums import ErrorKind
    from derivedforms.typing.protocol import Clock


@dataclass(frozen=True, slots=True)
class EvaluationLimits:
    """Resource caps applied to a single formula."""

    max_depth: int = DEFAULT_MAX_DEPTH
    max_steps: int = 10_000
    max_length: int = 2_000

    @classmethod
    def from_settings(cls, settings: Settings) -> EvaluationLimits:
        """Build limits from runtime settings.

        Args:
            settings (Settings): Runtime settings.

        Returns:
            EvaluationLimits: Configured limits.
        """
        return cls(
            max_depth=settings.formula_max_depth,
            max_steps=settings.formula_max_steps,
            max_length=settings.formula_max_length,
        )


@dataclass(frozen=True, slots=True)
class EvalError:
    """Formula failure returned instead of raised."""

    kind: ErrorKind
    message: str
    error: FormulaError

    @classmethod
    def from_exception(cls, error: FormulaError) -> EvalError:
        """Wrap a formula exception.

        Args:
            error (FormulaError): Raised formula error.

        Returns:
            EvalError: Error value.
        """
        return cls(kind=error.kind, message=str(error), error=error)


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _type_name(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "array"
    return type(value).__name__


def _to_text(value: object) -> str:
    """Render a value the way string concatenation shows it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list | tuple):
        return ",".join(_to_text(item) for item in value)
    return str(value)


def is_truthy(value: object) -> bool:
    """Return formula truthiness: null, false, 0, empty string and empty list are falsy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0
    if isinstance(value, str | list | tuple):
        return len(value) > 0
    return True


def _normalize_number(value: float) -> int | float:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeMismatchError("Arithmetic result is not a finite number")
        if value.is_integer():
            return int(value)
    return value


def _strict_equals(left: object, right: object) -> bool:
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right) and not (left is None and right is None):
        return False
    return left == right


def _require_numbers(operator: str, left: object, right: object) -> tuple[int | float, int | float]:
    if not (_is_number(left) and _is_number(right)):
        message = f"Operator '{operator}' needs numbers, got {_type_name(left)} and {_type_name(right)}"
        raise TypeMismatchError(message)
    return left, right  # type: ignore[return-value]


def _remainder(left: int | float, right: int | float) -> int | float:
    """Return the remainder carrying the sign of the dividend."""
    result = abs(left) % abs(right)
    return -result if left < 0 else result


class Interpreter:
    """Evaluate formulas against a bound environment.

    Only names present in `environment`, the whitelisted `functions` and the
    pseudo-variables backed by zero-argument functions can be reached.
    """

    def __init__(
        self,
        environment: Mapping[str, object],
        functions: Mapping[str, FormulaFunction | Callable[..., object]] | None = None,
        *,
        limits: EvaluationLimits | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._environment = dict(environment)
        registry = default_functions(clock or system_clock) if functions is None else functions
        self._functions = {name: _as_formula_function(name, fn) for name, fn in registry.items()}
        self._limits = limits or EvaluationLimits()
        self._steps = 0

    def evaluate(self, formula: str) -> object:
        """Parse and evaluate a formula.

        Args:
            formula (str): Formula text.

        Raises:
            FormulaError: If the formula cannot be parsed or evaluated.

        Returns:
            object: Computed value.
        """
        if len(formula) > self._limits.max_length:
            raise EvaluationLimitExceededError(
                f"Formula length {len(formula)} exceeds the maximum of {self._limits.max_length}",
            )
        tree = parse(formula, max_depth=self._limits.max_depth)
        self._steps = 0
        try:
            return self.evaluate_node(tree)
        except RecursionError as exc:
            raise EvaluationLimitExceededError("Formula nesting exceeds the interpreter stack") from exc

    def evaluate_node(self, node: Node) -> object:
        """Evaluate an already parsed expression tree.

        Args:
            node (Node): Expression tree.

        Returns:
            object: Computed value.
        """
        self._steps += 1
        if self._steps > self._limits.max_steps:
            raise EvaluationLimitExceededError(
                f"Formula evaluation exceeds the maximum of {self._limits.max_steps} steps",
            )
        match node:
            case Literal(value=value):
                return value
            case Identifier(name=name):
                return self._lookup(name)
            case UnaryOp(operator=operator, operand=operand):
                return self._unary(operator, self.evaluate_node(operand))
            case BinaryOp(operator="&&", left=left, right=right):
                value = self.evaluate_node(left)
                return self.evaluate_node(right) if is_truthy(value) else value
            case BinaryOp(operator="||", left=left, right=right):
                value = self.evaluate_node(left)
                return value if is_truthy(value) else self.evaluate_node(right)
            case BinaryOp(operator=operator, left=left, right=right):
                return self._binary(operator, self.evaluate_node(left), self.evaluate_node(right))
            case FunctionCall(name=name, arguments=arguments):
                return self._call(name, arguments)
        raise TypeMismatchError(f"Unsupported expression node {type(node).__name__}")

    def _lookup(self, name: str) -> object:
        if name in self._environment:
            return self._environment[name]
        function = self._functions.get(name)
        if name in PSEUDO_VARIABLES and function is not None:
            return function.implementation()
        raise UnboundVariableError(f"Unknown variable '{name}'")

    def _call(self, name: str, arguments: tuple[Node, ...]) -> object:
        function = self._functions.get(name)
        if function is None:
            raise UnknownFunctionError(f"Unknown function '{name}'")
        if function.arity >= 0 and len(arguments) != function.arity:
            raise TypeMismatchError(
                f"Function '{name}' takes {function.arity} argument(s), got {len(arguments)}",
            )
        values = [self.evaluate_node(argument) for argument in arguments]
        try:
            return function.implementation(*values)
        except FormulaError:
            raise
        except (TypeError, ValueError) as exc:
            raise TypeMismatchError(f"Function '{name}' failed: {exc}") from exc

    @staticmethod
    def _unary(operator: str, value: object) -> object:
        if operator == "!":
            return not is_truthy(value)
        if not _is_number(value):
            raise TypeMismatchError(f"Operator '-' needs a number, got {_type_name(value)}")
        return -value  # type: ignore[operator]

    @staticmethod
    def _binary(operator: str, left: object, right: object) -> object:
        try:
            return _apply_binary(operator, left, right)
        except (OverflowError, ValueError) as exc:
            raise TypeMismatchError(f"Operator '{operator}' result is out of range: {exc}") from exc


def _apply_binary(operator: str, left: object, right: object) -> object:  # noqa: C901, PLR0911
    match operator:
        case "+":
            if isinstance(left, str) or isinstance(right, str):
                return _to_text(left) + _to_text(right)
            lhs, rhs = _require_numbers(operator, left, right)
            return _normalize_number(lhs + rhs)
        case "-" | "*":
            lhs, rhs = _require_numbers(operator, left, right)
            return _normalize_number(lhs - rhs if operator == "-" else lhs * rhs)
        case "/" | "%":
            lhs, rhs = _require_numbers(operator, left, right)
            if rhs == 0:
                raise DivisionByZeroError(f"Operator '{operator}' with a zero divisor")
            return _normalize_number(lhs / rhs if operator == "/" else _remainder(lhs, rhs))
        case "==":
            return _strict_equals(left, right)
        case "!=":
            return not _strict_equals(left, right)
        case "<" | "<=" | ">" | ">=":
            comparable = (_is_number(left) and _is_number(right)) or (
                isinstance(left, str) and isinstance(right, str)
            )
            if not comparable:
                message = f"Cannot compare {_type_name(left)} and {_type_name(right)} with '{operator}'"
                raise TypeMismatchError(message)
            return _COMPARISONS[operator](left, right)
    raise TypeMismatchError(f"Unsupported operator '{operator}'")


_COMPARISONS: dict[str, Callable[[object, object], bool]] = {
    "<": lambda left, right: left < right,  # type: ignore[operator]
    "<=": lambda left, right: left <= right,  # type: ignore[operator]
    ">": lambda left, right: left > right,  # type: ignore[operator]
    ">=": lambda left, right: left >= right,  # type: ignore[operator]
}


def _as_formula_function(name: str, function: FormulaFunction | Callable[..., object]) -> FormulaFunction:
    if isinstance(function, FormulaFunction):
        return function
    return FormulaFunction(name=name, arity=-1, implementation=function)


def evaluate(
    formula: str,
    environment: Mapping[str, object],
    functions: Mapping[str, FormulaFunction | Callable[..., object]] | None = None,
    *,
    limits: EvaluationLimits | None = None,
    clock: Clock | None = None,
) -> object | EvalError:
    """Evaluate a formula, returning an `EvalError` instead of raising.

    Args:
        formula (str): Formula text.
        environment (Mapping[str, object]): Variable bindings.
        functions (Mapping | None): Function whitelist; defaults to the built-in functions.
        limits (EvaluationLimits | None): Resource caps.
        clock (Clock | None): Source of the current date for the built-in functions.

    Returns:
        object | EvalError: Computed value or the typed error.
    """
    try:
        return Interpreter(environment, functions, limits=limits, clock=clock).evaluate(formula)
    except FormulaError as exc:
        return EvalError.from_exception(exc)


def check_formula(formula: str, *, limits: EvaluationLimits | None = None) -> FormulaError | None:
    """Parse a formula without evaluating it.

    Args:
        formula (str): Formula text.
        limits (EvaluationLimits | None): Resource caps.

    Returns:
        FormulaError | None: The parse error, or None when the formula is well formed.
    """
    limits = limits or EvaluationLimits()
    if len(formula) > limits.max_length:
        return EvaluationLimitExceededError(
            f"Formula length {len(formula)} exceeds the maximum of {limits.max_length}",
        )
    try:
        parse(formula, max_depth=limits.max_depth)
    except FormulaError as exc:
        return exc
    return None
