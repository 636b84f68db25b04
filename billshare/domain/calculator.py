"""Keypad calculator.

The expression is built key by key and is never free-form text. After ``=``
the calculator is in the result state: the next digit starts a new
expression, while an operator keeps building on the result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal, DecimalException

ERROR_DISPLAY = "Error"
HISTORY_SIZE = 5

OPERATORS = ("+", "-", "×", "÷")
INPUT_KEYS = frozenset("0123456789.()")

_ALLOWED = re.compile(r"^[0-9+\-*/().\s]*$")
_NUMBER_SPLIT = re.compile(r"[+\-×÷()]")
_TOKEN = re.compile(r"\s*(?:(\d+\.?\d*|\.\d+)|(.))")


class ExpressionError(ValueError):
    """Raised when an expression cannot be evaluated."""


@dataclass(frozen=True)
class CalculatorState:
    expression: str = "0"
    last_expression: str = ""
    history: tuple[str, ...] = ()
    is_result: bool = False


def press_key(state: CalculatorState, key: str) -> CalculatorState:
    """Handle a digit, decimal point or parenthesis key."""
    if key not in INPUT_KEYS:
        raise ValueError(f"Unsupported calculator key: {key!r}")
    if state.is_result:
        return replace(state, expression=key, is_result=False)
    if state.expression == "0" and key != ".":
        return replace(state, expression=key)
    if key == "." and "." in _NUMBER_SPLIT.split(state.expression)[-1]:
        return state
    return replace(state, expression=state.expression + key)


def press_operator(state: CalculatorState, operator: str) -> CalculatorState:
    """Append an operator, replacing a trailing one instead of stacking."""
    if operator not in OPERATORS:
        raise ValueError(f"Unsupported calculator operator: {operator!r}")
    expression = state.expression.rstrip()
    if expression[-1:] in OPERATORS:
        return replace(state, expression=expression[:-1] + operator, is_result=False)
    return replace(state, expression=state.expression + operator, is_result=False)


def clear() -> CalculatorState:
    return CalculatorState()


def delete(state: CalculatorState) -> CalculatorState:
    """Remove the last character. In the result state this clears everything."""
    if state.is_result:
        return clear()
    expression = state.expression[:-1] if len(state.expression) > 1 else "0"
    return replace(state, expression=expression)


class _Parser:
    """Recursive descent over ``+ - * /`` with parentheses and unary signs."""

    def __init__(self, text: str) -> None:
        self.tokens: list[str] = []
        for match in _TOKEN.finditer(text):
            number, symbol = match.groups()
            if number is not None:
                self.tokens.append(number)
            elif symbol is not None and not symbol.isspace():
                self.tokens.append(symbol)
        self.pos = 0

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _take(self) -> str:
        token = self._peek()
        if token is None:
            raise ExpressionError("Unexpected end of expression")
        self.pos += 1
        return token

    def parse(self) -> Decimal:
        value = self._expression()
        if self._peek() is not None:
            raise ExpressionError(f"Unexpected token {self._peek()!r}")
        return value

    def _expression(self) -> Decimal:
        value = self._term()
        while self._peek() in ("+", "-"):
            if self._take() == "+":
                value = value + self._term()
            else:
                value = value - self._term()
        return value

    def _term(self) -> Decimal:
        value = self._factor()
        while self._peek() in ("*", "/"):
            if self._take() == "*":
                value = value * self._factor()
            else:
                value = value / self._factor()
        return value

    def _factor(self) -> Decimal:
        token = self._take()
        if token == "+":
            return self._factor()
        if token == "-":
            return -self._factor()
        if token == "(":
            value = self._expression()
            if self._take() != ")":
                raise ExpressionError("Expected ')'")
            return value
        if token[0].isdigit() or token[0] == ".":
            return Decimal(token)
        raise ExpressionError(f"Unexpected token {token!r}")


def evaluate_expression(expression: str) -> str:
    """
    Evaluate a keypad expression and format the result.

    The result is rounded to two decimals with trailing zeros removed.

    Raises:
        ExpressionError: For unbalanced parentheses, disallowed characters,
            malformed input, division by zero or non-finite results.
    """
    if expression.count("(") != expression.count(")"):
        raise ExpressionError("Mismatched parentheses")
    sanitized = expression.replace("×", "*").replace("÷", "/")
    if not _ALLOWED.match(sanitized):
        raise ExpressionError("Invalid characters")
    try:
        value = _Parser(sanitized).parse()
        if not value.is_finite():
            raise ExpressionError("Invalid operation")
        rounded = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except DecimalException as e:
        raise ExpressionError("Invalid operation") from e

    if rounded == 0:
        return "0"
    return f"{rounded.normalize():f}"


def evaluate(state: CalculatorState) -> CalculatorState:
    """Evaluate the current expression and record it in the history."""
    if state.is_result:
        return state
    try:
        result = evaluate_expression(state.expression)
    except ExpressionError:
        return replace(
            state,
            expression=ERROR_DISPLAY,
            last_expression=state.expression,
            is_result=True,
        )
    history = (state.history + (f"{state.expression} = {result}",))[-HISTORY_SIZE:]
    return CalculatorState(
        expression=result,
        last_expression=f"{state.expression} =",
        history=history,
        is_result=True,
    )
