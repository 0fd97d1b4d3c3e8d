#!/usr/bin/env python3
"""
Venue connectors.

Polls Binance depth and Uniswap v3 pool state, synthesizes an order book
for each AMM pool, and publishes every book to Redis for the analyzer.

Usage:
    python3 run_connectors.py
    python3 run_connectors.py --config configs/analyzer.yaml --once
"""

import argparse
import asyncio
import logging
import sys
from typing import List

from dotenv import load_dotenv

import logging_config
from cex.binance import BinanceConnector
from dex.book_synth import synthesize_book
from dex.subgraph import SubgraphClient
from swap_sleuth.config_loader import AnalyzerConfig, load_config
from swap_sleuth.exceptions import ConfigurationError, ConnectorError, PoolMathError
from swap_sleuth.transport import RedisTransport
from swap_sleuth.types import NormalizedBook

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Order book connectors")
    parser.add_argument("--config", help="Path to analyzer config YAML file")
    parser.add_argument("--once", action="store_true", help="Publish one round and exit")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser.parse_args()


async def collect_binance(connector: BinanceConnector, symbols) -> List[NormalizedBook]:
    books = []
    for symbol in symbols:
        try:
            books.append(await connector.fetch_order_book(symbol))
        except ConnectorError as e:
            logger.warning(f"[{e.exchange}] {e}")
    return books


async def collect_uniswap(client: SubgraphClient, settings) -> List[NormalizedBook]:
    """Synthesize a book from the deepest pool for the configured pair."""
    try:
        pools = await client.fetch_pools(
            settings.base_symbol, settings.quote_symbol, first=settings.max_pools
        )
    except ConnectorError as e:
        logger.warning(f"[{e.exchange}] {e}")
        return []

    if not pools:
        logger.warning(
            f"No {settings.base_symbol}/{settings.quote_symbol} pools found on subgraph"
        )
        return []

    pool = pools[0]
    logger.info(f"Using pool {pool.pool_id} (fee {pool.fee_pct}%)")
    try:
        book = synthesize_book(
            pool,
            base_sizes=settings.base_sizes,
            quote_sizes=settings.quote_sizes,
            exchange=settings.exchange_name,
            base_symbol=settings.base_symbol,
            cumulative=settings.cumulative_ladder,
        )
    except (ValueError, PoolMathError) as e:
        logger.warning(f"[{settings.exchange_name}] Cannot synthesize book: {e}")
        return []
    return [book]


async def run(config: AnalyzerConfig, once: bool) -> None:
    connectors = config.connectors
    transport = RedisTransport.from_config(config.redis)
    await transport.ping()
    logger.info(f"Connected to Redis at {config.redis.addr}")

    binance = None
    if connectors.binance.enabled:
        binance = BinanceConnector(
            exchange_name=connectors.binance.exchange_name,
            depth=connectors.binance.depth,
            sandbox=connectors.binance.sandbox,
        )
    subgraph = None
    if connectors.uniswap.enabled:
        subgraph = SubgraphClient(
            url=connectors.uniswap.subgraph_url,
            api_key=connectors.uniswap.api_key,
            timeout_sec=connectors.uniswap.timeout_sec,
            exchange_name=connectors.uniswap.exchange_name,
        )

    try:
        while True:
            books: List[NormalizedBook] = []
            if binance:
                books.extend(await collect_binance(binance, connectors.binance.symbols))
            if subgraph:
                books.extend(await collect_uniswap(subgraph, connectors.uniswap))

            for book in books:
                key = await transport.push_order_book(book)
                logger.info(
                    f"Published {key} (bids: {len(book.bids)}, asks: {len(book.asks)})"
                )

            if once or connectors.once:
                break
            await asyncio.sleep(connectors.poll_sec)
    finally:
        if binance:
            await binance.close()
        if subgraph:
            await subgraph.close()
        await transport.close()


def main() -> int:
    load_dotenv()
    args = parse_args()

    if args.debug:
        logging_config.setup_debug()
    else:
        logging_config.setup()

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        logger.error(f"Config error: {e}")
        return 1

    try:
        asyncio.run(run(config, args.once))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Connectors failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
