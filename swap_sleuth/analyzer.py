"""
Cross-venue spread analyzer.

On every book update the analyzer stores the book, finds every other cached
book with the same canonical pair, evaluates both trade directions against
top-of-book, and returns the opportunities that clear BOTH the net-profit
and the ROI thresholds.
"""

import logging
import threading
import time
from dataclasses import dataclass
from decimal import Decimal
from itertools import combinations
from typing import Callable, Dict, List, Optional

from .book_cache import BookCache
from .canonical import CanonicalPair, Canonicalizer
from .exceptions import ParseError, ValidationError
from .fees import FeeModel, FeesConfig, VenueClassifier
from .types import ArbitrageOpportunity, NormalizedBook

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def empty_side(book: NormalizedBook) -> Optional[str]:
    """Name of the first empty side of a book, or None if both are quoted."""
    if not book.bids:
        return "bids"
    if not book.asks:
        return "asks"
    return None


@dataclass(frozen=True)
class ThresholdConfig:
    """Profitability gates; an opportunity must clear both."""

    min_net_profit: Decimal = Decimal("1.0")
    min_roi_percentage: Decimal = Decimal("0.1")


@dataclass(frozen=True)
class SizingConfig:
    """
    Trade sizing on top of the displayed top-of-book minimum.

    Attributes:
        size_fraction: Share of min(ask size, bid size) to trade (0, 1]
        max_size: Optional absolute cap in base units
    """

    size_fraction: Decimal = Decimal("1")
    max_size: Optional[Decimal] = None


class SpreadAnalyzer:
    """
    Evaluates arbitrage between the updated book and its comparable peers.

    Book ingestion and candidate evaluation run under one lock so every
    evaluation sees a stable snapshot of the cache.
    """

    def __init__(
        self,
        fees_config: Optional[FeesConfig] = None,
        thresholds: Optional[ThresholdConfig] = None,
        sizing: Optional[SizingConfig] = None,
        cache: Optional[BookCache] = None,
        canonicalizer: Optional[Canonicalizer] = None,
        classifier: Optional[VenueClassifier] = None,
        fee_model: Optional[FeeModel] = None,
        clock: Callable[[], float] = time.time,
        metrics=None,
    ):
        self.cache = cache if cache is not None else BookCache()
        self.canonicalizer = canonicalizer or Canonicalizer()
        self.fee_model = fee_model or FeeModel(
            fees_config or FeesConfig(),
            classifier=classifier,
            canonicalizer=self.canonicalizer,
        )
        self.thresholds = thresholds or ThresholdConfig()
        self.sizing = sizing or SizingConfig()
        self.clock = clock
        self.metrics = metrics
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Update entry points
    # ------------------------------------------------------------------

    def on_book_update(self, book: NormalizedBook) -> List[ArbitrageOpportunity]:
        """
        Ingest a book and evaluate it against every comparable cached book.

        Raises:
            ParseError: If the book's pair cannot be canonicalized
        """
        with self._lock:
            # Canonicalize first so an unparsable pair never enters the cache
            self.canonicalizer.canonical_pair(book.pair)
            self.cache.put(book.key, book)
            if self.metrics:
                self.metrics.set_books_cached(len(self.cache))
            return self._evaluate_locked(book.key, book)

    def evaluate_key(self, key: str) -> List[ArbitrageOpportunity]:
        """Re-run candidate evaluation for an already cached key."""
        with self._lock:
            book = self.cache.get(key)
            if book is None:
                return []
            return self._evaluate_locked(key, book)

    def analyze_all(self) -> List[ArbitrageOpportunity]:
        """
        Compare every pair of cached books sharing a canonical pair.

        Returns opportunities sorted by ROI, best first.
        """
        with self._lock:
            opportunities: List[ArbitrageOpportunity] = []
            for canonical, books in self.group_by_pair().items():
                if len(books) < 2:
                    continue
                logger.debug(f"Analyzing {canonical} across {len(books)} books")
                for book_a, book_b in combinations(books, 2):
                    if book_a.exchange == book_b.exchange:
                        continue
                    opportunities.extend(self._evaluate_pair(book_a, book_b, canonical))

        opportunities.sort(key=lambda o: o.roi_percentage, reverse=True)
        return opportunities

    def group_by_pair(self) -> Dict[CanonicalPair, List[NormalizedBook]]:
        """Cached books grouped by canonical pair."""
        groups: Dict[CanonicalPair, List[NormalizedBook]] = {}
        for key, book in self.cache.snapshot().items():
            try:
                canonical = self.canonicalizer.canonical_pair(book.pair)
            except ParseError as e:
                logger.warning(f"Ignoring cached book {key}: {e}")
                continue
            groups.setdefault(canonical, []).append(book)
        return groups

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _evaluate_locked(
        self, key: str, book: NormalizedBook
    ) -> List[ArbitrageOpportunity]:
        started = time.perf_counter()
        canonical = self.canonicalizer.canonical_pair(book.pair)

        opportunities: List[ArbitrageOpportunity] = []
        for other_key, other in self.cache.all_except(key).items():
            try:
                if self.canonicalizer.canonical_pair(other.pair) != canonical:
                    continue
            except ParseError as e:
                logger.warning(f"Ignoring cached book {other_key}: {e}")
                continue
            if other.exchange == book.exchange:
                logger.debug(f"Skipping same-exchange candidate {other_key}")
                continue
            opportunities.extend(self._evaluate_pair(other, book, canonical))

        if self.metrics:
            self.metrics.observe_evaluation(time.perf_counter() - started)
        return opportunities

    def _evaluate_pair(
        self, book_a: NormalizedBook, book_b: NormalizedBook, canonical: CanonicalPair
    ) -> List[ArbitrageOpportunity]:
        """
        Both directions: buy on A / sell on B, then buy on B / sell on A.

        A candidate is only compared when both books quote both sides.
        """
        for book in (book_a, book_b):
            side = empty_side(book)
            if side is not None:
                logger.debug(
                    f"Skipping {book_a.key} <-> {book_b.key}: {book.key} has no {side}"
                )
                if self.metrics:
                    self.metrics.record_candidate_skipped(f"empty_{side}")
                return []

        found = []
        for buy_book, sell_book in ((book_a, book_b), (book_b, book_a)):
            opportunity = self.evaluate_direction(buy_book, sell_book, canonical)
            if opportunity is not None:
                found.append(opportunity)
        return found

    def choose_size(self, ask_size: Decimal, bid_size: Decimal) -> Decimal:
        """Never exceed displayed depth on either leg."""
        size = min(ask_size, bid_size) * self.sizing.size_fraction
        if self.sizing.max_size is not None:
            size = min(size, self.sizing.max_size)
        return size

    def evaluate_direction(
        self,
        buy_book: NormalizedBook,
        sell_book: NormalizedBook,
        canonical: Optional[CanonicalPair] = None,
    ) -> Optional[ArbitrageOpportunity]:
        """
        Score buying at buy_book's best ask and selling at sell_book's best bid.

        Returns:
            The opportunity if it clears both thresholds, else None

        Raises:
            ValidationError: If the ask or bid side needed is empty
        """
        best_ask = buy_book.best_ask()
        if best_ask is None:
            raise ValidationError(
                f"{buy_book.key} has no asks", exchange=buy_book.exchange, side="asks"
            )
        best_bid = sell_book.best_bid()
        if best_bid is None:
            raise ValidationError(
                f"{sell_book.key} has no bids", exchange=sell_book.exchange, side="bids"
            )

        buy_price, ask_size = best_ask
        sell_price, bid_size = best_bid

        gross_per_unit = sell_price - buy_price
        if gross_per_unit <= 0:
            return None

        size = self.choose_size(ask_size, bid_size)
        if size <= 0:
            return None

        if canonical is None:
            canonical = self.canonicalizer.canonical_pair(buy_book.pair)

        fees = self.fee_model.estimate(
            size,
            buy_book.exchange,
            buy_price,
            sell_book.exchange,
            sell_price,
            buy_book.pair,
        )
        estimated_fees = fees.total
        net_profit = gross_per_unit * size - estimated_fees
        roi_percentage = net_profit / (buy_price * size) * HUNDRED

        # Both gates must pass; either one failing suppresses the opportunity
        if (
            net_profit < self.thresholds.min_net_profit
            or roi_percentage < self.thresholds.min_roi_percentage
        ):
            logger.debug(
                f"Below threshold {buy_book.exchange} -> {sell_book.exchange} "
                f"{canonical}: net {net_profit:.4f}, ROI {roi_percentage:.4f}%"
            )
            return None

        return ArbitrageOpportunity(
            buy_exchange=buy_book.exchange,
            sell_exchange=sell_book.exchange,
            pair=str(canonical),
            buy_price=buy_price,
            sell_price=sell_price,
            size=size,
            gross_profit_per_unit=gross_per_unit,
            estimated_fees=estimated_fees,
            net_profit=net_profit,
            roi_percentage=roi_percentage,
            timestamp=self.clock(),
        )
