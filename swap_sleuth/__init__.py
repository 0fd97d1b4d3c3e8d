"""
Swap Sleuth cross-venue arbitrage analyzer.

Consumes normalized order books from centralized exchanges and AMM pools,
compares best prices for the same canonical pair across venues, and emits
fee-adjusted arbitrage opportunities.
"""

from swap_sleuth.version import __version__

PROJECT_NAME = "SwapSleuth"
VERSION = __version__

# Export main components for easier imports
from swap_sleuth.analyzer import SizingConfig, SpreadAnalyzer, ThresholdConfig
from swap_sleuth.book_cache import BookCache
from swap_sleuth.canonical import CanonicalPair, Canonicalizer
from swap_sleuth.consumer import UpdateConsumer
from swap_sleuth.fees import FeeModel, FeesConfig, VenueClassifier
from swap_sleuth.types import (
    ArbitrageOpportunity,
    NormalizedBook,
    VenueKind,
    parse_order_book,
)

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "SpreadAnalyzer",
    "ThresholdConfig",
    "SizingConfig",
    "BookCache",
    "Canonicalizer",
    "CanonicalPair",
    "UpdateConsumer",
    "FeeModel",
    "FeesConfig",
    "VenueClassifier",
    "ArbitrageOpportunity",
    "NormalizedBook",
    "VenueKind",
    "parse_order_book",
]
