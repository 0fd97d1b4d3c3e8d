"""
Prometheus metrics for the spread analyzer.

Exposes update throughput, skip reasons, emitted opportunities and
evaluation latency.
"""

import logging
import threading
import time
from typing import Any, Dict, Optional

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from .version import get_version

logger = logging.getLogger(__name__)


class AnalyzerMetrics:
    """
    Analyzer metrics collection and exposure

    Provides Prometheus-compatible metrics for:
    - Update processing and skip reasons
    - Candidate pairs skipped during evaluation
    - Emitted opportunities per venue route
    - Evaluation latency and cache size
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics with custom registry or default"""
        self.registry = registry or REGISTRY
        self._initialize_metrics()

        # Server components
        self._app = None
        self._runner = None
        self._site = None

        self._lock = threading.RLock()

    def _initialize_metrics(self):
        """Initialize all Prometheus metrics"""

        # === UPDATE METRICS ===
        self.updates_processed_total = Counter(
            "swap_sleuth_updates_processed_total",
            "Total book updates ingested and evaluated",
            registry=self.registry,
        )

        self.updates_skipped_total = Counter(
            "swap_sleuth_updates_skipped_total",
            "Total book updates abandoned before evaluation",
            ["reason"],
            registry=self.registry,
        )

        self.candidates_skipped_total = Counter(
            "swap_sleuth_candidates_skipped_total",
            "Total candidate directions skipped during evaluation",
            ["reason"],
            registry=self.registry,
        )

        # === OPPORTUNITY METRICS ===
        self.opportunities_emitted_total = Counter(
            "swap_sleuth_opportunities_emitted_total",
            "Total opportunities that cleared both thresholds",
            ["buy_exchange", "sell_exchange", "pair"],
            registry=self.registry,
        )

        self.opportunity_net_profit = Histogram(
            "swap_sleuth_opportunity_net_profit",
            "Net profit of emitted opportunities in quote units",
            buckets=[1, 5, 10, 25, 50, 100, 250, 1000],
            registry=self.registry,
        )

        self.best_roi_percentage = Gauge(
            "swap_sleuth_best_roi_percentage",
            "Best ROI percentage in the most recent evaluation with results",
            registry=self.registry,
        )

        self.sink_errors_total = Counter(
            "swap_sleuth_sink_errors_total",
            "Total failures publishing opportunities to a sink",
            ["sink"],
            registry=self.registry,
        )

        # === SYSTEM METRICS ===
        self.books_cached = Gauge(
            "swap_sleuth_books_cached",
            "Number of order books currently held in the cache",
            registry=self.registry,
        )

        self.evaluation_seconds = Histogram(
            "swap_sleuth_evaluation_seconds",
            "Time spent evaluating one update against its candidates",
            buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1],
            registry=self.registry,
        )

        self.last_update_timestamp = Gauge(
            "swap_sleuth_last_update_timestamp",
            "Unix time of the last processed update",
            registry=self.registry,
        )

    # === RECORDING ===

    def record_update_processed(self):
        with self._lock:
            self.updates_processed_total.inc()
            self.last_update_timestamp.set(time.time())

    def record_update_skipped(self, reason: str):
        with self._lock:
            self.updates_skipped_total.labels(reason=reason).inc()

    def record_candidate_skipped(self, reason: str):
        with self._lock:
            self.candidates_skipped_total.labels(reason=reason).inc()

    def record_opportunity(self, opportunity):
        """Record an emitted ArbitrageOpportunity"""
        with self._lock:
            self.opportunities_emitted_total.labels(
                buy_exchange=opportunity.buy_exchange,
                sell_exchange=opportunity.sell_exchange,
                pair=opportunity.pair,
            ).inc()
            self.opportunity_net_profit.observe(float(opportunity.net_profit))

    def set_best_roi(self, roi_percentage: float):
        with self._lock:
            self.best_roi_percentage.set(float(roi_percentage))

    def record_sink_error(self, sink: str):
        with self._lock:
            self.sink_errors_total.labels(sink=sink).inc()

    def set_books_cached(self, count: int):
        with self._lock:
            self.books_cached.set(count)

    def observe_evaluation(self, seconds: float):
        with self._lock:
            self.evaluation_seconds.observe(seconds)

    # === SERVER MANAGEMENT ===

    async def start_server(
        self, port: int = 8000, host: str = "0.0.0.0", path: str = "/metrics"
    ):
        """Start Prometheus metrics HTTP server"""
        try:
            self._app = web.Application()
            self._app.router.add_get(path, self._metrics_handler)
            self._app.router.add_get("/health", self._health_handler)

            self._runner = web.AppRunner(self._app)
            await self._runner.setup()

            self._site = web.TCPSite(self._runner, host, port)
            await self._site.start()

            logger.info(f"Prometheus metrics server started on http://{host}:{port}{path}")
            return True

        except OSError as e:
            logger.error(f"Failed to start metrics server: {e}")
            return False

    async def stop_server(self):
        """Stop the metrics server"""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        logger.info("Metrics server stopped")

    async def _metrics_handler(self, request):
        """Handle metrics endpoint requests"""
        metrics_output = generate_latest(self.registry)
        # Strip charset from content type to avoid conflicts with aiohttp
        content_type = CONTENT_TYPE_LATEST.split(";")[0]
        return web.Response(text=metrics_output.decode("utf-8"), content_type=content_type)

    async def _health_handler(self, request):
        """Handle health check endpoint"""
        return web.json_response(
            {
                "status": "healthy",
                "service": "swap_sleuth_analyzer",
                "version": get_version(),
            }
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Current counter values, for logs and tests"""
        return {
            "updates_processed": self.registry.get_sample_value(
                "swap_sleuth_updates_processed_total"
            )
            or 0.0,
            "books_cached": self.registry.get_sample_value("swap_sleuth_books_cached")
            or 0.0,
            "timestamp": time.time(),
        }
