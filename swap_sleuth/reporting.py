"""
Console reports for market coverage and detected opportunities.
"""

from collections import Counter
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping

from tabulate import tabulate

from .canonical import Canonicalizer
from .exceptions import ParseError
from .types import ArbitrageOpportunity, NormalizedBook
from .utils import format_profit, format_timestamp


def risk_level(roi_percentage: Decimal) -> str:
    if roi_percentage > 2:
        return "HIGH PROFIT"
    if roi_percentage > 1:
        return "MODERATE"
    return "LOW MARGIN"


def format_market_summary(
    books: Mapping[str, NormalizedBook], canonicalizer: Canonicalizer = None
) -> str:
    """Exchanges, books per exchange, and pairs quoted on more than one venue."""
    canonicalizer = canonicalizer or Canonicalizer()

    per_exchange = Counter(book.exchange for book in books.values())
    venues_per_pair: Dict[str, set] = {}
    for book in books.values():
        try:
            pair = str(canonicalizer.canonical_pair(book.pair))
        except ParseError:
            pair = book.pair
        venues_per_pair.setdefault(pair, set()).add(book.exchange)

    lines = [
        "MARKET DATA SUMMARY",
        f"  Active Exchanges: {len(per_exchange)}",
        f"  Trading Pairs: {len(venues_per_pair)}",
        f"  Total Orderbooks: {len(books)}",
    ]
    rows = [[exchange, count] for exchange, count in sorted(per_exchange.items())]
    if rows:
        lines.append(tabulate(rows, headers=["Exchange", "Pairs"], tablefmt="simple"))

    shared = [
        [pair, len(venues), ", ".join(sorted(venues))]
        for pair, venues in sorted(venues_per_pair.items())
        if len(venues) > 1
    ]
    if shared:
        lines.append(
            tabulate(shared, headers=["Pair", "Exchanges", "Venues"], tablefmt="simple")
        )
    return "\n".join(lines)


def opportunity_rows(opportunities: Iterable[ArbitrageOpportunity]) -> List[list]:
    rows = []
    for idx, opp in enumerate(opportunities, 1):
        rows.append(
            [
                idx,
                f"{opp.buy_exchange} -> {opp.sell_exchange}",
                opp.pair,
                f"${opp.buy_price:.4f}",
                f"${opp.sell_price:.4f}",
                f"{opp.spread_pct:.3f}%",
                f"{opp.size:.6f}",
                f"${opp.gross_profit:.2f}",
                f"${opp.estimated_fees:.2f}",
                f"${opp.net_profit:.2f}",
                format_profit(opp.roi_percentage),
                risk_level(opp.roi_percentage),
                format_timestamp(opp.timestamp),
            ]
        )
    return rows


def format_opportunities(opportunities: List[ArbitrageOpportunity]) -> str:
    """Table of opportunities, or a one-line notice when there are none."""
    if not opportunities:
        return "SPREAD ANALYSIS: No profitable opportunities found"

    table = tabulate(
        opportunity_rows(opportunities),
        headers=[
            "#",
            "Route",
            "Pair",
            "Buy",
            "Sell",
            "Spread",
            "Size",
            "Gross",
            "Fees",
            "Net",
            "ROI",
            "Risk",
            "Time",
        ],
        tablefmt="simple",
    )
    return f"ARBITRAGE OPPORTUNITIES DETECTED ({len(opportunities)})\n{table}"


def print_analysis_results(analyzer, opportunities: List[ArbitrageOpportunity]) -> None:
    """Reporter hook for UpdateConsumer comprehensive passes."""
    print()
    print(format_market_summary(analyzer.cache.snapshot(), analyzer.canonicalizer))
    print(format_opportunities(opportunities))
