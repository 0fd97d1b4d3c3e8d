"""
CEX (Centralized Exchange) connectors

Order-book connectors for centralized venues. Each connector fetches depth
snapshots through ccxt and returns them in the shared NormalizedBook format.

Usage:
------
    from cex import BinanceConnector

    connector = BinanceConnector(depth=5)
    book = await connector.fetch_order_book("BTC/USDT")
    await connector.close()
"""

from cex.binance import BinanceConnector, normalize_ccxt_book

__all__ = ["BinanceConnector", "normalize_ccxt_book"]
