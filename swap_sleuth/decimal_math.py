"""
Arbitrary-precision helpers for pool math.

All concentrated-liquidity calculations run under WORK_CONTEXT, a Decimal
context with 78 significant digits (~259 bits). That keeps products of two
~96-bit fixed-point quantities far below one part in 2^128 of rounding error.
Never substitute floats here; floats are for display only.
"""

from decimal import Decimal, Context, ROUND_HALF_EVEN, InvalidOperation
from typing import Union

from .exceptions import DivisionByZeroError, InvalidIntegerError

WORK_PRECISION = 78

WORK_CONTEXT = Context(prec=WORK_PRECISION, rounding=ROUND_HALF_EVEN)

ZERO = Decimal(0)
ONE = Decimal(1)

# 2^96, the Q64.96 fixed-point scale used for sqrtPriceX96
Q96 = Decimal(2**96)

Number = Union[int, float, str, Decimal]


def parse_uint(text: str) -> Decimal:
    """
    Parse a base-10 unsigned integer string into an exact Decimal.

    Only ASCII digits are accepted: no sign, whitespace, separators or
    exponent.

    Raises:
        InvalidIntegerError: If text is not a well-formed non-negative integer
    """
    if not isinstance(text, str) or not text:
        raise InvalidIntegerError(f"invalid integer: {text!r}", text)
    if not (text.isascii() and text.isdigit()):
        raise InvalidIntegerError(f"invalid integer: {text!r}", text)
    # int() keeps every digit; Decimal(int) is exact regardless of context
    return Decimal(int(text))


def pow10(n: int) -> Decimal:
    """Return 10^n exactly."""
    if n < 0:
        raise ValueError(f"exponent must be non-negative: {n}")
    return Decimal(10**n)


def to_decimal(value: Number) -> Decimal:
    """
    Convert a human-entered number to Decimal.

    Floats go through their shortest repr so 0.001 becomes Decimal("0.001"),
    not the binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a numeric amount")
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"not a number: {value!r}") from e


def add(a: Decimal, b: Decimal) -> Decimal:
    return WORK_CONTEXT.add(a, b)


def sub(a: Decimal, b: Decimal) -> Decimal:
    return WORK_CONTEXT.subtract(a, b)


def mul(a: Decimal, b: Decimal) -> Decimal:
    return WORK_CONTEXT.multiply(a, b)


def div(a: Decimal, b: Decimal) -> Decimal:
    """
    Divide a by b at working precision.

    Raises:
        DivisionByZeroError: If b is zero
    """
    if b == 0:
        raise DivisionByZeroError(f"division by zero: {a} / {b}", {"dividend": str(a)})
    return WORK_CONTEXT.divide(a, b)
