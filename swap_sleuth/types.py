"""
Core data types for cross-venue spread analysis.

Order book levels hold Decimal prices and sizes; floats appear only when a
record is serialized for an external sink.
"""

import json
import math
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from .exceptions import ParseError

BookLevel = Tuple[Decimal, Decimal]  # (price, size)


class VenueKind(Enum):
    """How a venue prices trades, which decides its fee treatment."""

    CENTRALIZED_EXCHANGE = "cex"
    AUTOMATED_MARKET_MAKER = "amm"


def book_key(exchange: str, pair: str) -> str:
    """Cache key for a venue/pair, e.g. "binance:WBTC/USDT"."""
    return f"{exchange}:{pair}"


@dataclass(frozen=True)
class NormalizedBook:
    """
    Latest known order book for one venue/pair.

    Attributes:
        exchange: Venue name (e.g., "binance", "uniswap-v3-exact")
        pair: Venue pair as BASE/QUOTE (e.g., "WBTC/USDT")
        bids: (price, size) levels; not assumed sorted
        asks: (price, size) levels; not assumed sorted
        timestamp: Unix seconds of the observation
    """

    exchange: str
    pair: str
    bids: Tuple[BookLevel, ...] = ()
    asks: Tuple[BookLevel, ...] = ()
    timestamp: int = 0

    def __post_init__(self):
        # Freeze level sequences so a stored book can never be edited in place
        object.__setattr__(self, "bids", tuple((p, s) for p, s in self.bids))
        object.__setattr__(self, "asks", tuple((p, s) for p, s in self.asks))

    @property
    def key(self) -> str:
        return book_key(self.exchange, self.pair)

    def best_bid(self) -> Optional[BookLevel]:
        """Highest-priced bid, or None when the side is empty."""
        if not self.bids:
            return None
        return max(self.bids, key=lambda level: level[0])

    def best_ask(self) -> Optional[BookLevel]:
        """Lowest-priced ask, or None when the side is empty."""
        if not self.asks:
            return None
        return min(self.asks, key=lambda level: level[0])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exchange": self.exchange,
            "pair": self.pair,
            "bids": [[float(p), float(s)] for p, s in self.bids],
            "asks": [[float(p), float(s)] for p, s in self.asks],
            "timestamp": int(self.timestamp),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """
    A single profitable buy-here/sell-there evaluation.

    id and timestamp are metadata and do not take part in equality, so the
    same book state always produces equal opportunities.
    """

    buy_exchange: str
    sell_exchange: str
    pair: str
    buy_price: Decimal
    sell_price: Decimal
    size: Decimal
    gross_profit_per_unit: Decimal
    estimated_fees: Decimal
    net_profit: Decimal
    roi_percentage: Decimal
    timestamp: float = field(default=0.0, compare=False)
    id: str = field(default_factory=lambda: str(uuid.uuid4()), compare=False)

    @property
    def gross_profit(self) -> Decimal:
        return self.gross_profit_per_unit * self.size

    @property
    def spread_pct(self) -> Decimal:
        """Gross spread as percent of the buy price."""
        return self.gross_profit_per_unit / self.buy_price * Decimal("100")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "buy_exchange": self.buy_exchange,
            "sell_exchange": self.sell_exchange,
            "pair": self.pair,
            "buy_price": float(self.buy_price),
            "sell_price": float(self.sell_price),
            "size": float(self.size),
            "gross_profit_per_unit": float(self.gross_profit_per_unit),
            "estimated_fees": float(self.estimated_fees),
            "net_profit": float(self.net_profit),
            "roi_percentage": float(self.roi_percentage),
            "timestamp": self.timestamp,
        }

    def format_log(self) -> str:
        return (
            f"Buy {self.buy_exchange} @ {self.buy_price:.4f} -> "
            f"Sell {self.sell_exchange} @ {self.sell_price:.4f} "
            f"{self.pair} x {self.size:.6f}: "
            f"net ${self.net_profit:.2f} (ROI {self.roi_percentage:.2f}%, "
            f"fees ${self.estimated_fees:.2f})"
        )


# ============================================================================
# Order book JSON codec
# ============================================================================


def _parse_number(raw: Any, what: str) -> Decimal:
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str, Decimal)):
        raise ParseError(f"{what} must be a number, got {type(raw).__name__}")
    if isinstance(raw, float) and not math.isfinite(raw):
        raise ParseError(f"{what} must be finite, got {raw}")
    try:
        value = Decimal(repr(raw)) if isinstance(raw, float) else Decimal(raw)
    except (InvalidOperation, ValueError) as e:
        raise ParseError(f"{what} is not numeric: {raw!r}") from e
    if not value.is_finite():
        raise ParseError(f"{what} must be finite, got {raw!r}")
    if value < 0:
        raise ParseError(f"{what} must be non-negative, got {raw!r}")
    return value


def parse_levels(raw_levels: Any, side: str) -> Tuple[BookLevel, ...]:
    """
    Parse [[price, size], ...] into Decimal levels.

    Levels with a zero price or size carry no liquidity and are dropped.

    Raises:
        ParseError: If the side is not a list of numeric pairs
    """
    if raw_levels is None:
        return ()
    if not isinstance(raw_levels, list):
        raise ParseError(f"{side} must be a list, got {type(raw_levels).__name__}")

    levels = []
    for i, level in enumerate(raw_levels):
        if not isinstance(level, (list, tuple)) or len(level) < 2:
            raise ParseError(f"{side}[{i}] must be a [price, size] pair")
        price = _parse_number(level[0], f"{side}[{i}] price")
        size = _parse_number(level[1], f"{side}[{i}] size")
        if price > 0 and size > 0:
            levels.append((price, size))
    return tuple(levels)


def book_from_dict(data: Any) -> NormalizedBook:
    """Build a NormalizedBook from a decoded order book document."""
    if not isinstance(data, dict):
        raise ParseError("order book document must be a JSON object")

    exchange = data.get("exchange")
    pair = data.get("pair")
    if not isinstance(exchange, str) or not exchange:
        raise ParseError("order book missing 'exchange'")
    if not isinstance(pair, str) or not pair:
        raise ParseError("order book missing 'pair'")

    timestamp = data.get("timestamp", 0)
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float, Decimal)):
        raise ParseError(f"timestamp must be an integer, got {timestamp!r}")

    return NormalizedBook(
        exchange=exchange,
        pair=pair,
        bids=parse_levels(data.get("bids"), "bids"),
        asks=parse_levels(data.get("asks"), "asks"),
        timestamp=int(_parse_number(timestamp, "timestamp")),
    )


def parse_order_book(raw: str, key: Optional[str] = None) -> NormalizedBook:
    """
    Decode an order book JSON document.

    Raises:
        ParseError: If the document is not valid JSON or violates the schema
    """
    try:
        data = json.loads(raw, parse_float=Decimal)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"invalid order book JSON: {e}", key=key) from e

    try:
        return book_from_dict(data)
    except ParseError as e:
        e.key = key
        raise


def make_book(
    exchange: str,
    pair: str,
    bids: Sequence[Sequence[Any]] = (),
    asks: Sequence[Sequence[Any]] = (),
    timestamp: int = 0,
) -> NormalizedBook:
    """Convenience constructor accepting plain numbers for levels."""
    return NormalizedBook(
        exchange=exchange,
        pair=pair,
        bids=parse_levels([list(level) for level in bids], "bids"),
        asks=parse_levels([list(level) for level in asks], "asks"),
        timestamp=timestamp,
    )
