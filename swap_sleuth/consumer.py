"""
Update consumer loop.

Drains the update stream one notification at a time: resolve the key,
fetch and parse the book, hand it to the analyzer, and fan the resulting
opportunities out to every sink. A bad update is logged and skipped; it
never stops the loop.
"""

import json
import logging
import time
from typing import Iterable, List, Optional

from .analyzer import SpreadAnalyzer
from .exceptions import FetchError, ParseError, SwapSleuthError
from .transport import OpportunitySink, UpdateTransport
from .types import ArbitrageOpportunity, parse_order_book
from .utils import format_duration

logger = logging.getLogger(__name__)

DEFAULT_COMPREHENSIVE_INTERVAL = 10


def parse_update_key(payload) -> str:
    """
    Resolve a notification payload to a book key.

    Accepts a raw key string or a JSON object {"key": "<key>"}.

    Raises:
        ParseError: If no usable key can be found
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    if not isinstance(payload, str):
        raise ParseError(f"update payload must be a string, got {type(payload).__name__}")

    text = payload.strip()
    if not text:
        raise ParseError("empty update payload")

    if text.startswith("{"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"invalid update payload JSON: {e}") from e
        key = data.get("key") if isinstance(data, dict) else None
        if not isinstance(key, str) or not key.strip():
            raise ParseError("update payload JSON has no 'key' string")
        return key.strip()

    return text


class UpdateConsumer:
    """
    Single logical consumer of book update notifications.

    Args:
        transport: Source of notifications and book snapshots
        analyzer: Spread analyzer owning the book cache
        sinks: Destinations for emitted opportunities
        metrics: Optional AnalyzerMetrics
        comprehensive_interval: Every Nth processed update runs a full
            cross-pair analysis instead of the targeted one (0 disables)
        reporter: Optional callable(analyzer, opportunities) invoked after
            every comprehensive pass
    """

    def __init__(
        self,
        transport: UpdateTransport,
        analyzer: SpreadAnalyzer,
        sinks: Optional[Iterable[OpportunitySink]] = None,
        metrics=None,
        comprehensive_interval: int = DEFAULT_COMPREHENSIVE_INTERVAL,
        reporter=None,
    ):
        self.transport = transport
        self.analyzer = analyzer
        self.sinks: List[OpportunitySink] = list(sinks or [])
        self.metrics = metrics
        self.comprehensive_interval = comprehensive_interval
        self.reporter = reporter

        self.updates_processed = 0
        self.updates_skipped = 0
        self.opportunities_emitted = 0

    async def process_payload(self, payload) -> List[ArbitrageOpportunity]:
        """
        Handle one notification end to end.

        Raises:
            ParseError: If the payload or book document is malformed
            FetchError: If the referenced key is absent or unreachable
        """
        key = parse_update_key(payload)

        raw = await self.transport.fetch(key)
        if raw is None:
            raise FetchError(f"no order book stored at {key}", key=key)
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")

        book = parse_order_book(raw, key=key)
        opportunities = self.analyzer.on_book_update(book)

        self.updates_processed += 1
        if self.metrics:
            self.metrics.record_update_processed()
        logger.info(
            f"Updated order book: {book.key} (bids: {len(book.bids)}, asks: {len(book.asks)})"
        )

        if self.comprehensive_interval and self.updates_processed % self.comprehensive_interval == 0:
            logger.info(f"Running comprehensive analysis (update #{self.updates_processed})")
            opportunities = self.analyzer.analyze_all()
            if self.reporter:
                self.reporter(self.analyzer, opportunities)

        await self.emit(opportunities)
        return opportunities

    async def emit(self, opportunities: List[ArbitrageOpportunity]) -> None:
        """Fire-and-forget fan-out; sink failures are logged and not retried."""
        if not opportunities:
            return

        if self.metrics:
            self.metrics.set_best_roi(max(o.roi_percentage for o in opportunities))

        for opportunity in opportunities:
            self.opportunities_emitted += 1
            if self.metrics:
                self.metrics.record_opportunity(opportunity)
            for sink in self.sinks:
                try:
                    await sink.publish(opportunity)
                except Exception as e:
                    logger.error(f"Sink {sink.name} failed for {opportunity.id}: {e}")
                    if self.metrics:
                        self.metrics.record_sink_error(sink.name)

    async def run(self) -> None:
        """Consume until the update stream ends or the task is cancelled."""
        started = time.time()
        logger.info("Analyzer ready, waiting for order book updates...")

        try:
            async for payload in self.transport.updates():
                await self._handle(payload)
        finally:
            logger.info(
                f"Consumer stopped after {format_duration(time.time() - started)}: "
                f"{self.updates_processed} processed, {self.updates_skipped} skipped, "
                f"{self.opportunities_emitted} opportunities"
            )

    async def _handle(self, payload) -> None:
        try:
            await self.process_payload(payload)
        except ParseError as e:
            self._skip("parse_error", f"Failed to parse update {e.key or payload!r}: {e}")
        except FetchError as e:
            self._skip("fetch_error", f"Failed to fetch order book {e.key}: {e}")
        except SwapSleuthError as e:
            self._skip(type(e).__name__, f"Skipping update {payload!r}: {e}")
        except Exception as e:
            # Unexpected failures are local to this update as well
            logger.exception(f"Unexpected error processing update {payload!r}: {e}")
            self.updates_skipped += 1
            if self.metrics:
                self.metrics.record_update_skipped("unexpected_error")

    def _skip(self, reason: str, message: str) -> None:
        logger.warning(message)
        self.updates_skipped += 1
        if self.metrics:
            self.metrics.record_update_skipped(reason)
