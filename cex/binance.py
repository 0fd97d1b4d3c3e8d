"""
Binance order-book connector.

Fetches depth snapshots through ccxt and normalizes them into the shared
book format. Retry policy is left to the polling loop.
"""

import logging
import time
from typing import Any, Optional

import ccxt.async_support as ccxt

from swap_sleuth.exceptions import ConnectorError, ParseError
from swap_sleuth.types import NormalizedBook, make_book

logger = logging.getLogger(__name__)

DEFAULT_DEPTH = 5


def normalize_ccxt_book(
    raw: dict, exchange: str, symbol: str, depth: int = DEFAULT_DEPTH
) -> NormalizedBook:
    """
    Convert a ccxt order book into a NormalizedBook.

    Keeps the top `depth` levels per side; levels with zero size are dropped.
    """
    if not isinstance(raw, dict):
        raise ConnectorError(f"unexpected order book payload for {symbol}", exchange=exchange)

    def top(side):
        return [list(entry[:2]) for entry in (raw.get(side) or [])[:depth]]

    timestamp_ms = raw.get("timestamp")
    timestamp = int(timestamp_ms / 1000) if timestamp_ms else int(time.time())

    try:
        return make_book(
            exchange=exchange,
            pair=symbol,
            bids=top("bids"),
            asks=top("asks"),
            timestamp=timestamp,
        )
    except ParseError as e:
        raise ConnectorError(f"malformed {symbol} order book: {e}", exchange=exchange) from e


class BinanceConnector:
    """Polls Binance spot depth for a fixed set of symbols."""

    def __init__(
        self,
        exchange_name: str = "binance",
        depth: int = DEFAULT_DEPTH,
        sandbox: bool = False,
        exchange: Optional[Any] = None,
    ):
        self.exchange_name = exchange_name
        self.depth = depth
        if exchange is None:
            exchange = ccxt.binance(
                {
                    "enableRateLimit": True,
                    "options": {
                        "defaultType": "spot",
                    },
                }
            )
            if sandbox:
                exchange.set_sandbox_mode(True)
        self.exchange = exchange

    async def fetch_order_book(self, symbol: str) -> NormalizedBook:
        """
        Fetch and normalize one symbol's depth snapshot.

        Raises:
            ConnectorError: If ccxt reports a network or exchange failure
        """
        try:
            raw = await self.exchange.fetch_order_book(symbol, limit=self.depth)
        except ccxt.BaseError as e:
            raise ConnectorError(
                f"failed to fetch {symbol} order book: {e}", exchange=self.exchange_name
            ) from e

        book = normalize_ccxt_book(raw, self.exchange_name, symbol, self.depth)
        logger.debug(
            f"Fetched {self.exchange_name} {symbol}: "
            f"{len(book.bids)} bids, {len(book.asks)} asks"
        )
        return book

    async def close(self):
        await self.exchange.close()
