"""
DEX adapter modules for different AMM types.
"""

from .v3 import (
    max_token0_input,
    quote_exact_input,
    spot_price,
    swap_token0_for_token1,
    swap_token1_for_token0,
)

__all__ = [
    "quote_exact_input",
    "swap_token0_for_token1",
    "swap_token1_for_token0",
    "spot_price",
    "max_token0_input",
]
