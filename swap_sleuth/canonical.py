"""
Canonical pair identity across venues.

Venues list the same market under different tickers (WBTC/USDT on an AMM,
BTC/USDT or BTCUSDT on a centralized exchange). A fixed alias table maps
venue symbols to a canonical symbol so equivalent markets compare equal.
"""

from typing import Dict, Mapping, NamedTuple, Optional, Tuple

from .exceptions import ParseError

DEFAULT_ALIASES: Dict[str, str] = {
    "WBTC": "BTC",
    "WETH": "ETH",
}

# Quote suffixes recognised in concatenated symbols such as "BTCUSDT".
# Longer suffixes first so "FDUSD" wins over "USD".
KNOWN_QUOTES: Tuple[str, ...] = (
    "FDUSD",
    "USDT",
    "USDC",
    "BUSD",
    "DAI",
    "USD",
    "EUR",
    "BTC",
    "ETH",
)


class CanonicalPair(NamedTuple):
    base: str
    quote: str

    def __str__(self) -> str:
        return f"{self.base}/{self.quote}"


def split_pair(pair: str) -> Tuple[str, str]:
    """
    Split a venue pair into (base, quote), preserving the venue's spelling.

    Accepts "BASE/QUOTE" and concatenated forms ending in a known quote
    ("BTCUSDT" -> ("BTC", "USDT")). Suffix matching ignores case.

    Raises:
        ParseError: If the pair cannot be split
    """
    if not isinstance(pair, str) or not pair.strip():
        raise ParseError(f"invalid pair: {pair!r}")

    text = pair.strip()
    if "/" in text:
        base, _, quote = text.partition("/")
        if not base or not quote or "/" in quote:
            raise ParseError(f"invalid pair: {pair!r}")
        return base, quote

    upper = text.upper()
    for quote in KNOWN_QUOTES:
        if upper.endswith(quote) and len(text) > len(quote):
            return text[: -len(quote)], text[-len(quote):]

    raise ParseError(f"cannot split pair without separator: {pair!r}")


class Canonicalizer:
    """
    Maps venue symbols and pairs to their canonical identity.

    Args:
        aliases: Venue symbol -> canonical symbol. Unknown symbols map to
            themselves.
        normalize_quote: Also apply aliases (and upper-casing) to the quote
            symbol. When False quotes are compared verbatim, case included.
    """

    def __init__(
        self,
        aliases: Optional[Mapping[str, str]] = None,
        normalize_quote: bool = False,
    ):
        source = DEFAULT_ALIASES if aliases is None else aliases
        self.aliases: Dict[str, str] = {
            k.upper(): v.upper() for k, v in source.items()
        }
        self.normalize_quote = normalize_quote

    def canonical_symbol(self, symbol: str) -> str:
        upper = symbol.upper()
        return self.aliases.get(upper, upper)

    def canonical_pair(self, pair: str) -> CanonicalPair:
        base, quote = split_pair(pair)
        if self.normalize_quote:
            quote = self.canonical_symbol(quote)
        return CanonicalPair(self.canonical_symbol(base), quote)

    def canonical_base(self, pair: str) -> str:
        return self.canonical_pair(pair).base

    def comparable(self, pair_a: str, pair_b: str) -> bool:
        """True when two venue pairs share a canonical identity."""
        return self.canonical_pair(pair_a) == self.canonical_pair(pair_b)
