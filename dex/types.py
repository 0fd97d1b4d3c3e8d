"""
Core data types for AMM pool pricing.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenInfo:
    """
    A pool token as reported by the subgraph.

    Attributes:
        symbol: Token ticker (e.g., "WBTC")
        decimals: On-chain decimals (0-255)
    """

    symbol: str
    decimals: int

    def __post_init__(self):
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise ValueError(f"decimals must be an int: {self.decimals!r}")
        if not 0 <= self.decimals <= 255:
            raise ValueError(f"decimals must be in [0, 255]: {self.decimals}")


@dataclass(frozen=True)
class PoolSnapshot:
    """
    One observation of a concentrated-liquidity pool's on-chain state.

    Raw integers stay strings here; they can exceed 2^160 and are only ever
    parsed into arbitrary-precision values by the pricing math.

    Attributes:
        pool_id: Pool contract address / subgraph id
        token0: First pool token (price is token1 per token0)
        token1: Second pool token
        sqrt_price_x96: sqrt(price) as Q64.96 fixed-point integer string
        liquidity: Active in-range liquidity integer string
        fee_rate_micros: Pool fee in parts-per-million (3000 = 0.30%)
    """

    pool_id: str
    token0: TokenInfo
    token1: TokenInfo
    sqrt_price_x96: str
    liquidity: str
    fee_rate_micros: int

    @property
    def pair_name(self) -> str:
        return f"{self.token0.symbol}/{self.token1.symbol}"

    @property
    def fee_pct(self) -> float:
        """Fee as percent, for display (3000 micros -> 0.3)."""
        return self.fee_rate_micros / 10_000
