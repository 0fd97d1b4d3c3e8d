"""
Uniswap V3 style adapter for concentrated-liquidity pools.

Simulates exact-input swaps against a pool snapshot under the single-range
approximation: the trade is assumed to stay inside the currently active
liquidity, so no tick is crossed. With L the active liquidity and
sqrtP = sqrtPriceX96 / 2^96 (raw token units):

    token0 in:  1/sqrtP' = 1/sqrtP - dx/L      dy = L * (sqrtP' - sqrtP)
    token1 in:  sqrtP'   = sqrtP + dy/L        dx = L * (1/sqrtP - 1/sqrtP')

Fees are taken from the input before it reaches the curve. All math uses the
78-digit context from swap_sleuth.decimal_math.
"""

from decimal import Decimal

from swap_sleuth.decimal_math import (
    ONE,
    Q96,
    ZERO,
    Number,
    add,
    div,
    mul,
    parse_uint,
    pow10,
    sub,
    to_decimal,
)
from swap_sleuth.exceptions import InsufficientLiquidityError, InvalidFeeError

from ..types import PoolSnapshot

FEE_DENOMINATOR = 1_000_000

# Common V3 fee tiers (in parts-per-million)
V3_FEE_TIERS = {
    "LOWEST": 100,  # 0.01%
    "LOW": 500,  # 0.05%
    "MEDIUM": 3000,  # 0.30%
    "HIGH": 10000,  # 1.00%
}


def sqrt_price_from_x96(sqrt_price_x96: str) -> Decimal:
    """Convert a Q64.96 sqrtPriceX96 integer string to sqrtP."""
    return div(parse_uint(sqrt_price_x96), Q96)


def fee_multiplier(fee_rate_micros: int) -> Decimal:
    """
    Fraction of the input that reaches the curve: 1 - fee/1e6.

    Raises:
        InvalidFeeError: If the fee is negative or >= 100%
    """
    if not 0 <= fee_rate_micros < FEE_DENOMINATOR:
        raise InvalidFeeError(
            f"fee rate must be in [0, {FEE_DENOMINATOR}) micros: {fee_rate_micros}",
            fee_rate_micros,
        )
    return sub(ONE, div(Decimal(fee_rate_micros), Decimal(FEE_DENOMINATOR)))


def spot_price(pool: PoolSnapshot) -> Decimal:
    """Mid price of token0 in token1 human units (sqrtP^2 scaled by decimals)."""
    sqrt_p = sqrt_price_from_x96(pool.sqrt_price_x96)
    raw_price = mul(sqrt_p, sqrt_p)
    return div(mul(raw_price, pow10(pool.token0.decimals)), pow10(pool.token1.decimals))


def _check_amount(amount_in: Decimal) -> Decimal:
    if amount_in <= 0:
        raise ValueError(f"amount_in must be positive: {amount_in}")
    return amount_in


def swap_token0_for_token1(pool: PoolSnapshot, amount_in: Number) -> Decimal:
    """
    Sell amount_in token0 (human units) and return token1 out (human units).

    Raises:
        InvalidIntegerError: If pool integers are malformed
        InvalidFeeError: If the pool fee is out of range
        DivisionByZeroError: If liquidity or price is zero
        InsufficientLiquidityError: If the trade would exhaust the active range
    """
    amount = _check_amount(to_decimal(amount_in))
    liquidity = parse_uint(pool.liquidity)
    sqrt_p = sqrt_price_from_x96(pool.sqrt_price_x96)

    amount_raw = mul(amount, pow10(pool.token0.decimals))
    amount_after_fee = mul(amount_raw, fee_multiplier(pool.fee_rate_micros))

    inv_sqrt_p_next = sub(div(ONE, sqrt_p), div(amount_after_fee, liquidity))
    if inv_sqrt_p_next <= 0:
        raise InsufficientLiquidityError(
            f"trade too large for pool {pool.pool_id}: "
            f"{amount} {pool.token0.symbol} would cross the active range",
            pool_id=pool.pool_id,
            amount_in=amount,
        )

    sqrt_p_next = div(ONE, inv_sqrt_p_next)
    amount_out_raw = mul(liquidity, sub(sqrt_p_next, sqrt_p))

    return max(div(amount_out_raw, pow10(pool.token1.decimals)), ZERO)


def swap_token1_for_token0(pool: PoolSnapshot, amount_in: Number) -> Decimal:
    """
    Sell amount_in token1 (human units) and return token0 out (human units).

    Raises:
        InvalidIntegerError: If pool integers are malformed
        InvalidFeeError: If the pool fee is out of range
        DivisionByZeroError: If liquidity or price is zero
    """
    amount = _check_amount(to_decimal(amount_in))
    liquidity = parse_uint(pool.liquidity)
    sqrt_p = sqrt_price_from_x96(pool.sqrt_price_x96)

    amount_raw = mul(amount, pow10(pool.token1.decimals))
    amount_after_fee = mul(amount_raw, fee_multiplier(pool.fee_rate_micros))

    sqrt_p_next = add(sqrt_p, div(amount_after_fee, liquidity))
    amount_out_raw = mul(liquidity, sub(div(ONE, sqrt_p), div(ONE, sqrt_p_next)))

    return max(div(amount_out_raw, pow10(pool.token0.decimals)), ZERO)


def quote_exact_input(
    pool: PoolSnapshot, amount_in: Number, zero_for_one: bool = True
) -> Decimal:
    """
    Get a quote for an exact input swap.

    Args:
        pool: Pool snapshot to price against
        amount_in: Input amount in human units (must be positive)
        zero_for_one: True to sell token0 for token1, False for the reverse

    Returns:
        Output amount in human units (never negative)
    """
    if zero_for_one:
        return swap_token0_for_token1(pool, amount_in)
    return swap_token1_for_token0(pool, amount_in)


def max_token0_input(pool: PoolSnapshot) -> Decimal:
    """
    Exclusive upper bound on token0 input (human units) for the active range.

    Any token0 input at or above this value makes 1/sqrtP' non-positive and
    raises InsufficientLiquidityError.
    """
    liquidity = parse_uint(pool.liquidity)
    sqrt_p = sqrt_price_from_x96(pool.sqrt_price_x96)
    raw_bound = div(div(liquidity, sqrt_p), fee_multiplier(pool.fee_rate_micros))
    return div(raw_bound, pow10(pool.token0.decimals))
