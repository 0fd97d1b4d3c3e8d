"""Tests for order book types and the JSON codec."""

import json
from decimal import Decimal

import pytest

from swap_sleuth.exceptions import ParseError
from swap_sleuth.types import (
    ArbitrageOpportunity,
    NormalizedBook,
    book_from_dict,
    make_book,
    parse_order_book,
)


def book_json(**overrides):
    doc = {
        "exchange": "binance",
        "pair": "BTC/USDT",
        "bids": [[60000.5, 0.25], [59999.0, 1.0]],
        "asks": [[60001.0, 0.5]],
        "timestamp": 1700000000,
    }
    doc.update(overrides)
    return json.dumps(doc)


def test_parse_order_book_uses_decimals():
    book = parse_order_book(book_json())
    assert book.key == "binance:BTC/USDT"
    assert book.bids[0] == (Decimal("60000.5"), Decimal("0.25"))
    assert book.timestamp == 1700000000
    assert isinstance(book.asks[0][0], Decimal)


def test_best_levels_do_not_assume_sorting():
    book = make_book(
        "binance",
        "BTC/USDT",
        bids=[[99, 1], [101, 2], [100, 3]],
        asks=[[105, 1], [103, 2], [104, 3]],
    )
    assert book.best_bid() == (Decimal(101), Decimal(2))
    assert book.best_ask() == (Decimal(103), Decimal(2))


def test_empty_sides():
    book = NormalizedBook(exchange="x", pair="A/B")
    assert book.best_bid() is None
    assert book.best_ask() is None


def test_zero_levels_dropped():
    book = parse_order_book(book_json(bids=[[0, 1], [100, 0], [99, 1]], asks=[]))
    assert book.bids == ((Decimal(99), Decimal(1)),)
    assert book.asks == ()


def test_levels_are_immutable_tuples():
    book = make_book("binance", "BTC/USDT", bids=[[1, 1]])
    assert isinstance(book.bids, tuple)
    with pytest.raises(AttributeError):
        book.bids = ()


def test_to_json_round_trip():
    book = make_book("binance", "BTC/USDT", bids=[[100.5, 2]], asks=[[101, 1]], timestamp=5)
    again = parse_order_book(book.to_json())
    assert again == book


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[]",
        json.dumps({"pair": "BTC/USDT"}),
        json.dumps({"exchange": "binance"}),
        book_json(bids="oops"),
        book_json(bids=[[1]]),
        book_json(bids=[["abc", 1]]),
        book_json(asks=[[-1, 1]]),
        book_json(timestamp="yesterday"),
        book_json(timestamp=True),
    ],
)
def test_parse_errors(raw):
    with pytest.raises(ParseError):
        parse_order_book(raw)


def test_parse_error_carries_key():
    with pytest.raises(ParseError) as exc_info:
        parse_order_book(book_json(bids="oops"), key="orderbook:binance:BTC/USDT")
    assert exc_info.value.key == "orderbook:binance:BTC/USDT"


def test_string_numbers_accepted():
    book = book_from_dict(
        {"exchange": "kraken", "pair": "BTC/USD", "bids": [["100.1", "2"]], "asks": []}
    )
    assert book.bids == ((Decimal("100.1"), Decimal(2)),)
    assert book.timestamp == 0


def make_opportunity(**overrides):
    fields = dict(
        buy_exchange="uniswap-v3-exact",
        sell_exchange="binance",
        pair="BTC/USDT",
        buy_price=Decimal(100),
        sell_price=Decimal(105),
        size=Decimal(1),
        gross_profit_per_unit=Decimal(5),
        estimated_fees=Decimal(2),
        net_profit=Decimal(3),
        roi_percentage=Decimal(3),
        timestamp=1700000000.0,
    )
    fields.update(overrides)
    return ArbitrageOpportunity(**fields)


def test_opportunity_equality_ignores_metadata():
    a = make_opportunity()
    b = make_opportunity(timestamp=1800000000.0)
    assert a.id != b.id
    assert a == b


def test_opportunity_derived_fields():
    opp = make_opportunity(size=Decimal(2))
    assert opp.gross_profit == Decimal(10)
    assert opp.spread_pct == Decimal(5)


def test_opportunity_to_dict():
    data = make_opportunity().to_dict()
    assert data["pair"] == "BTC/USDT"
    assert data["net_profit"] == 3.0
    assert isinstance(data["roi_percentage"], float)
    json.dumps(data)


def test_format_log():
    line = make_opportunity().format_log()
    assert "Buy uniswap-v3-exact" in line
    assert "net $3.00" in line
