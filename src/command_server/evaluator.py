"""Arithmetic for the calculate command."""

from __future__ import annotations

from enum import Enum

from .errors import DivisionByZeroError


class Operation(str, Enum):
    """Supported calculator operations."""

    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"


def evaluate(operation: Operation, a: float, b: float) -> float:
    """Apply `operation` to `a` and `b` using IEEE-754 double arithmetic.

    NaN and infinite operands are accepted and propagate normally. Only a
    zero divisor is rejected.

    Raises:
        DivisionByZeroError: If dividing by zero
    """
    match operation:
        case Operation.ADD:
            return a + b
        case Operation.SUBTRACT:
            return a - b
        case Operation.MULTIPLY:
            return a * b
        case Operation.DIVIDE:
            if b == 0.0:
                raise DivisionByZeroError()
            return a / b
