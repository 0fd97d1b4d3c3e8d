"""
Fee, gas and withdrawal cost model for two-leg cross-venue trades.

In arbitrage context:
- Taker fees apply to market orders (immediate execution)
- Maker fees apply to limit orders (resting liquidity)
- AMM legs pay the pool fee plus one flat gas charge per leg
"""

import threading
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Mapping, Optional, Tuple

from .canonical import Canonicalizer
from .decimal_math import Number, to_decimal
from .exceptions import ConfigurationError, InvalidFeePercentageError
from .types import VenueKind

HUNDRED = Decimal("100")

# Venue-name fragments that identify AMM venues when no explicit kind is configured
AMM_NAME_MARKERS: Tuple[str, ...] = (
    "uniswap",
    "sushi",
    "curve",
    "balancer",
    "pancake",
    "aerodrome",
    "-v2",
    "-v3",
    "amm",
    "dex",
)


def _fee_pct(name: str, value: Number) -> Decimal:
    try:
        pct = to_decimal(value)
    except (TypeError, ValueError) as e:
        raise InvalidFeePercentageError(
            f"{name} must be a number, got {value!r}", field=name
        ) from e
    if not pct.is_finite() or pct < 0 or pct >= HUNDRED:
        raise InvalidFeePercentageError(
            f"{name} must be in [0, 100), got {value}", field=name
        )
    return pct


def _non_negative(name: str, value: Number) -> Decimal:
    try:
        amount = to_decimal(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}", field=name) from e
    if not amount.is_finite() or amount < 0:
        raise ConfigurationError(f"{name} must be non-negative, got {value}", field=name)
    return amount


@dataclass(frozen=True)
class FeesConfig:
    """
    Process-wide fee assumptions, validated at construction.

    Attributes:
        taker_fee_pct: CEX taker fee in percent (0.1 = 0.1%)
        maker_fee_pct: CEX maker fee in percent
        amm_pool_fee_pct: AMM pool fee in percent
        gas_cost_usd: Flat gas estimate charged once per AMM leg
        withdrawal_fees: Symbol -> flat USD withdrawal fee; FeeModel re-keys
            aliased symbols to their canonical form
        use_market_orders: True for taker fees, False for maker fees
    """

    taker_fee_pct: Decimal = Decimal("0.1")
    maker_fee_pct: Decimal = Decimal("0.1")
    amm_pool_fee_pct: Decimal = Decimal("0.3")
    gas_cost_usd: Decimal = Decimal("50")
    withdrawal_fees: Mapping[str, Decimal] = field(default_factory=dict)
    use_market_orders: bool = True

    def __post_init__(self):
        object.__setattr__(self, "taker_fee_pct", _fee_pct("taker_fee_pct", self.taker_fee_pct))
        object.__setattr__(self, "maker_fee_pct", _fee_pct("maker_fee_pct", self.maker_fee_pct))
        object.__setattr__(
            self, "amm_pool_fee_pct", _fee_pct("amm_pool_fee_pct", self.amm_pool_fee_pct)
        )
        object.__setattr__(self, "gas_cost_usd", _non_negative("gas_cost_usd", self.gas_cost_usd))
        object.__setattr__(
            self,
            "withdrawal_fees",
            {
                symbol.upper(): _non_negative(f"withdrawal_fees.{symbol}", fee)
                for symbol, fee in self.withdrawal_fees.items()
            },
        )

    @property
    def cex_fee_pct(self) -> Decimal:
        """Fee applied to CEX legs under the configured order type."""
        return self.taker_fee_pct if self.use_market_orders else self.maker_fee_pct


class VenueClassifier:
    """
    Resolves each venue name to a VenueKind once and caches it.

    Explicit overrides win; otherwise the naming convention decides.
    """

    def __init__(self, overrides: Optional[Mapping[str, VenueKind]] = None):
        self._kinds: Dict[str, VenueKind] = dict(overrides or {})
        self._lock = threading.Lock()

    @staticmethod
    def infer(exchange: str) -> VenueKind:
        name = exchange.lower()
        if any(marker in name for marker in AMM_NAME_MARKERS):
            return VenueKind.AUTOMATED_MARKET_MAKER
        return VenueKind.CENTRALIZED_EXCHANGE

    def kind_of(self, exchange: str) -> VenueKind:
        with self._lock:
            kind = self._kinds.get(exchange)
            if kind is None:
                kind = self.infer(exchange)
                self._kinds[exchange] = kind
            return kind

    def is_amm(self, exchange: str) -> bool:
        return self.kind_of(exchange) is VenueKind.AUTOMATED_MARKET_MAKER


@dataclass(frozen=True)
class FeeBreakdown:
    """Cost estimate for one opportunity, in quote-currency units."""

    buy_leg: Decimal
    sell_leg: Decimal
    withdrawal: Decimal

    @property
    def total(self) -> Decimal:
        return self.buy_leg + self.sell_leg + self.withdrawal


class FeeModel:
    """Estimates total trading cost for a buy-on-A / sell-on-B trade."""

    def __init__(
        self,
        config: FeesConfig,
        classifier: Optional[VenueClassifier] = None,
        canonicalizer: Optional[Canonicalizer] = None,
    ):
        self.config = config
        self.classifier = classifier or VenueClassifier()
        self.canonicalizer = canonicalizer or Canonicalizer()
        self.withdrawal_fees = self._canonical_withdrawal_fees()

    def _canonical_withdrawal_fees(self) -> Dict[str, Decimal]:
        """Re-key withdrawal fees by canonical symbol (WBTC -> BTC)."""
        fees: Dict[str, Decimal] = {}
        for symbol, fee in self.config.withdrawal_fees.items():
            canonical = self.canonicalizer.canonical_symbol(symbol)
            if canonical in fees and fees[canonical] != fee:
                raise ConfigurationError(
                    f"Conflicting withdrawal fees for {canonical}: "
                    f"{fees[canonical]} and {fee} ({symbol})",
                    field=f"withdrawal_fees.{symbol}",
                )
            fees[canonical] = fee
        return fees

    def leg_cost(self, exchange: str, price: Decimal, size: Decimal) -> Decimal:
        """Cost of one leg at the given venue."""
        notional = size * price
        if self.classifier.is_amm(exchange):
            return notional * self.config.amm_pool_fee_pct / HUNDRED + self.config.gas_cost_usd
        return notional * self.config.cex_fee_pct / HUNDRED

    def withdrawal_fee(self, pair: str) -> Decimal:
        """Flat withdrawal fee for moving the bought base asset, 0 if unknown."""
        base = self.canonicalizer.canonical_base(pair)
        return self.withdrawal_fees.get(base, Decimal(0))

    def estimate(
        self,
        size: Decimal,
        buy_exchange: str,
        buy_price: Decimal,
        sell_exchange: str,
        sell_price: Decimal,
        pair: str,
    ) -> FeeBreakdown:
        return FeeBreakdown(
            buy_leg=self.leg_cost(buy_exchange, buy_price, size),
            sell_leg=self.leg_cost(sell_exchange, sell_price, size),
            withdrawal=self.withdrawal_fee(pair),
        )
