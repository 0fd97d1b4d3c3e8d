"""Tests for the Binance order-book connector."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import ccxt.async_support as ccxt
import pytest

from cex.binance import BinanceConnector, normalize_ccxt_book
from swap_sleuth.exceptions import ConnectorError

CCXT_BOOK = {
    "symbol": "BTC/USDT",
    "bids": [[60000.1, 0.5], [59999.9, 0.0], [59999.0, 1.2]],
    "asks": [[60000.2, 0.3], [60001.0, 2.0]],
    "timestamp": 1700000000123,
    "nonce": 123,
}


def test_normalize_ccxt_book():
    book = normalize_ccxt_book(CCXT_BOOK, "binance", "BTC/USDT", depth=5)

    assert book.key == "binance:BTC/USDT"
    assert book.timestamp == 1700000000
    assert book.bids == (
        (Decimal("60000.1"), Decimal("0.5")),
        (Decimal("59999.0"), Decimal("1.2")),
    )
    assert book.best_ask() == (Decimal("60000.2"), Decimal("0.3"))


def test_normalize_respects_depth():
    book = normalize_ccxt_book(CCXT_BOOK, "binance", "BTC/USDT", depth=1)
    assert len(book.bids) == 1
    assert len(book.asks) == 1


def test_normalize_malformed_book():
    with pytest.raises(ConnectorError):
        normalize_ccxt_book({"bids": [[-1, 1]], "asks": []}, "binance", "BTC/USDT")
    with pytest.raises(ConnectorError):
        normalize_ccxt_book(None, "binance", "BTC/USDT")


@pytest.mark.asyncio
async def test_fetch_order_book_uses_depth():
    exchange = MagicMock()
    exchange.fetch_order_book = AsyncMock(return_value=CCXT_BOOK)
    exchange.close = AsyncMock()
    connector = BinanceConnector(depth=2, exchange=exchange)

    book = await connector.fetch_order_book("BTC/USDT")

    exchange.fetch_order_book.assert_awaited_once_with("BTC/USDT", limit=2)
    assert book.exchange == "binance"
    assert len(book.asks) == 2

    await connector.close()
    exchange.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_fetch_order_book_wraps_ccxt_errors():
    exchange = MagicMock()
    exchange.fetch_order_book = AsyncMock(side_effect=ccxt.NetworkError("timeout"))
    connector = BinanceConnector(exchange_name="binance-test", exchange=exchange)

    with pytest.raises(ConnectorError) as exc_info:
        await connector.fetch_order_book("BTC/USDT")
    assert exc_info.value.exchange == "binance-test"
