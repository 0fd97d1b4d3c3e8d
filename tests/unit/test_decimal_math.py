"""Tests for the arbitrary-precision helpers."""

from decimal import Decimal

import pytest

from swap_sleuth.decimal_math import (
    Q96,
    WORK_PRECISION,
    add,
    div,
    mul,
    parse_uint,
    pow10,
    sub,
    to_decimal,
)
from swap_sleuth.exceptions import DivisionByZeroError, InvalidIntegerError


def test_parse_uint_exact_for_large_values():
    value = 2**192 + 1
    assert parse_uint(str(value)) == Decimal(value)


@pytest.mark.parametrize("text", ["", "-1", "+1", "1.0", "1e3", "0x10", " 1", "1_000", "١٢"])
def test_parse_uint_rejects_malformed(text):
    with pytest.raises(InvalidIntegerError) as exc_info:
        parse_uint(text)
    assert exc_info.value.details["value"] == text


def test_parse_uint_rejects_non_string():
    with pytest.raises(InvalidIntegerError):
        parse_uint(123)


def test_pow10():
    assert pow10(0) == 1
    assert pow10(18) == Decimal(10**18)
    with pytest.raises(ValueError):
        pow10(-1)


def test_to_decimal_uses_float_repr():
    assert to_decimal(0.001) == Decimal("0.001")
    assert to_decimal("12.5") == Decimal("12.5")
    assert to_decimal(7) == Decimal(7)


def test_to_decimal_rejects_bad_input():
    with pytest.raises(TypeError):
        to_decimal(True)
    with pytest.raises(ValueError):
        to_decimal("abc")


def test_working_precision_keeps_q96_products():
    # (2^96 + 1)^2 needs ~58 significant digits and must stay exact
    x = Q96 + 1
    assert mul(x, x) == Decimal((2**96 + 1) ** 2)
    assert WORK_PRECISION >= 78


def test_division_round_trip():
    a = parse_uint(str(2**128 + 12345))
    assert div(mul(a, Q96), Q96) == a


def test_add_sub():
    assert add(Decimal(1), Decimal(2)) == 3
    assert sub(Decimal(1), Decimal(2)) == -1


def test_division_by_zero():
    with pytest.raises(DivisionByZeroError):
        div(Decimal(1), Decimal(0))
    with pytest.raises(ArithmeticError):
        div(Decimal(1), Decimal(0))
