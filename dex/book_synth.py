"""
Synthesize a top-of-book ladder from a concentrated-liquidity pool snapshot.

Each ladder size is priced independently against the same snapshot: a larger
tier does not account for liquidity already consumed by the smaller tiers.
This known approximation is the default. Pass cumulative=True to price each
tier on the marginal slice between consecutive ladder sizes instead.
"""

import logging
import time
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from swap_sleuth.decimal_math import Number, to_decimal
from swap_sleuth.exceptions import PoolMathError
from swap_sleuth.types import BookLevel, NormalizedBook

from .adapters.v3 import quote_exact_input
from .types import PoolSnapshot

logger = logging.getLogger(__name__)

DEFAULT_EXCHANGE_NAME = "uniswap-v3-exact"

# Base-asset sizes for bids (e.g. BTC) and quote-asset sizes for asks (e.g. USDT)
DEFAULT_BASE_SIZES: Tuple[Decimal, ...] = (
    Decimal("0.001"),
    Decimal("0.005"),
    Decimal("0.01"),
)
DEFAULT_QUOTE_SIZES: Tuple[Decimal, ...] = (
    Decimal("50"),
    Decimal("200"),
    Decimal("1000"),
)


def _base_is_token0(pool: PoolSnapshot, base_symbol: Optional[str]) -> bool:
    if base_symbol is None or base_symbol == pool.token0.symbol:
        return True
    if base_symbol == pool.token1.symbol:
        return False
    raise ValueError(
        f"base symbol {base_symbol} is not in pool {pool.pool_id} ({pool.pair_name})"
    )


def _ladder(sizes: Sequence[Number], cumulative: bool) -> List[Decimal]:
    ladder = [to_decimal(s) for s in sizes]
    for size in ladder:
        if size <= 0:
            raise ValueError(f"ladder sizes must be positive: {size}")
    return sorted(ladder) if cumulative else ladder


def synthesize_bids(
    pool: PoolSnapshot,
    base_sizes: Sequence[Number] = DEFAULT_BASE_SIZES,
    base_is_token0: bool = True,
    cumulative: bool = False,
) -> Tuple[BookLevel, ...]:
    """
    Bid levels from selling each base size into the pool.

    price = quote_out / base_in, size = base_in.
    """
    bids = []
    prev_in = prev_out = Decimal(0)

    for size in _ladder(base_sizes, cumulative):
        try:
            out = quote_exact_input(pool, size, zero_for_one=base_is_token0)
        except PoolMathError as e:
            logger.warning(f"Skipping bid tier {size} for pool {pool.pool_id}: {e}")
            continue

        slice_in, slice_out = size, out
        if cumulative:
            slice_in, slice_out = size - prev_in, out - prev_out
            prev_in, prev_out = size, out

        if slice_out <= 0 or slice_in <= 0:
            logger.debug(f"Dropping dust bid tier {size} for pool {pool.pool_id}")
            continue
        bids.append((slice_out / slice_in, slice_in))

    return tuple(bids)


def synthesize_asks(
    pool: PoolSnapshot,
    quote_sizes: Sequence[Number] = DEFAULT_QUOTE_SIZES,
    base_is_token0: bool = True,
    cumulative: bool = False,
) -> Tuple[BookLevel, ...]:
    """
    Ask levels from spending each quote size on base.

    price = quote_in / base_out, size = base_out.
    """
    asks = []
    prev_in = prev_out = Decimal(0)

    for quote_amount in _ladder(quote_sizes, cumulative):
        try:
            out = quote_exact_input(pool, quote_amount, zero_for_one=not base_is_token0)
        except PoolMathError as e:
            logger.warning(
                f"Skipping ask tier {quote_amount} for pool {pool.pool_id}: {e}"
            )
            continue

        slice_in, slice_out = quote_amount, out
        if cumulative:
            slice_in, slice_out = quote_amount - prev_in, out - prev_out
            prev_in, prev_out = quote_amount, out

        if slice_out <= 0 or slice_in <= 0:
            logger.debug(
                f"Dropping dust ask tier {quote_amount} for pool {pool.pool_id}"
            )
            continue
        asks.append((slice_in / slice_out, slice_out))

    return tuple(asks)


def synthesize_book(
    pool: PoolSnapshot,
    base_sizes: Sequence[Number] = DEFAULT_BASE_SIZES,
    quote_sizes: Sequence[Number] = DEFAULT_QUOTE_SIZES,
    exchange: str = DEFAULT_EXCHANGE_NAME,
    base_symbol: Optional[str] = None,
    cumulative: bool = False,
    timestamp: Optional[int] = None,
) -> NormalizedBook:
    """
    Build a NormalizedBook for an AMM venue from one pool snapshot.

    Args:
        pool: Pool snapshot to price against
        base_sizes: Base-asset ladder for bids
        quote_sizes: Quote-asset ladder for asks
        exchange: Venue name to publish the book under
        base_symbol: Which pool token is the base (defaults to token0)
        cumulative: Price tiers on marginal slices instead of independently
        timestamp: Unix seconds (defaults to now)

    Returns:
        NormalizedBook whose pair is BASE/QUOTE
    """
    base_is_token0 = _base_is_token0(pool, base_symbol)
    base, quote = (
        (pool.token0, pool.token1) if base_is_token0 else (pool.token1, pool.token0)
    )

    bids = synthesize_bids(pool, base_sizes, base_is_token0, cumulative)
    asks = synthesize_asks(pool, quote_sizes, base_is_token0, cumulative)

    logger.debug(
        f"Synthesized {exchange} {base.symbol}/{quote.symbol} from pool "
        f"{pool.pool_id}: {len(bids)} bids, {len(asks)} asks"
    )

    return NormalizedBook(
        exchange=exchange,
        pair=f"{base.symbol}/{quote.symbol}",
        bids=bids,
        asks=asks,
        timestamp=int(time.time()) if timestamp is None else int(timestamp),
    )
