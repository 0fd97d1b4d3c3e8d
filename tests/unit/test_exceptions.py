"""Tests for the exceptions module."""

import pytest

from swap_sleuth.exceptions import (
    ConfigurationError,
    ConnectorError,
    DivisionByZeroError,
    FetchError,
    InsufficientLiquidityError,
    InvalidFeeError,
    InvalidFeePercentageError,
    InvalidIntegerError,
    ParseError,
    PoolMathError,
    SwapSleuthError,
    ValidationError,
)


def test_base_exception():
    """Test the base exception class."""
    error = SwapSleuthError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = SwapSleuthError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_parse_and_fetch_errors_carry_key():
    parse = ParseError("bad json", key="orderbook:binance:BTC/USDT")
    fetch = FetchError("missing", key="orderbook:kraken:BTC/USD")
    assert parse.key == "orderbook:binance:BTC/USDT"
    assert fetch.key == "orderbook:kraken:BTC/USD"
    assert isinstance(parse, SwapSleuthError)
    assert isinstance(fetch, SwapSleuthError)


def test_validation_error():
    error = ValidationError("no asks", exchange="binance", side="asks")
    assert error.exchange == "binance"
    assert error.side == "asks"


def test_configuration_errors():
    error = InvalidFeePercentageError("too high", field="taker_fee_pct")
    assert isinstance(error, ConfigurationError)
    assert error.field == "taker_fee_pct"


def test_connector_error():
    error = ConnectorError("timeout", exchange="binance")
    assert error.exchange == "binance"
    assert str(error) == "timeout"


@pytest.mark.parametrize(
    "error",
    [
        InvalidIntegerError("bad", "12a"),
        DivisionByZeroError("zero"),
        InvalidFeeError("fee", 1_000_000),
        InsufficientLiquidityError("drained", pool_id="0xpool", amount_in=5),
    ],
)
def test_pool_math_errors_are_arithmetic_errors(error):
    assert isinstance(error, PoolMathError)
    assert isinstance(error, ArithmeticError)
    assert isinstance(error, SwapSleuthError)


def test_pool_math_error_details():
    assert InvalidIntegerError("bad", "12a").details == {"value": "12a"}
    assert InvalidFeeError("fee", 1_000_000).fee_rate_micros == 1_000_000
    error = InsufficientLiquidityError("drained", pool_id="0xpool", amount_in=5)
    assert error.details == {"pool_id": "0xpool", "amount_in": 5}
