#!/usr/bin/env python3
"""
Arbitrage analyzer service.

Subscribes to order book update notifications on Redis, keeps the latest
book per venue and pair, and reports fee-adjusted cross-venue spreads.

Usage:
    python3 run_analyzer.py
    python3 run_analyzer.py --config configs/analyzer.yaml
    python3 run_analyzer.py --metrics-port 8000 --debug
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

import logging_config
from swap_sleuth.config_loader import build_analyzer, load_config
from swap_sleuth.consumer import UpdateConsumer
from swap_sleuth.exceptions import ConfigurationError
from swap_sleuth.metrics import AnalyzerMetrics
from swap_sleuth.reporting import print_analysis_results
from swap_sleuth.transport import LoggingSink, RedisOpportunitySink, RedisTransport
from swap_sleuth.version import get_version

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Cross-venue arbitrage analyzer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (configs/analyzer.yaml or $SWAP_SLEUTH_CONFIG)
  python3 run_analyzer.py

  # Expose Prometheus metrics on :8000
  python3 run_analyzer.py --metrics-port 8000
        """,
    )
    parser.add_argument("--config", help="Path to analyzer config YAML file")
    parser.add_argument(
        "--metrics-port", type=int, help="Serve Prometheus metrics on this port"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Warnings and errors only")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    return parser.parse_args()


async def run(config, metrics_port=None) -> None:
    metrics = AnalyzerMetrics()
    metrics_enabled = config.metrics.enabled or metrics_port is not None
    if metrics_enabled:
        await metrics.start_server(
            port=metrics_port or config.metrics.port, host=config.metrics.host
        )

    analyzer = build_analyzer(config, metrics=metrics)
    transport = RedisTransport.from_config(config.redis)

    await transport.ping()
    logger.info(f"Connected to Redis at {config.redis.addr}")

    sinks = [LoggingSink()]
    if config.redis.publish_opportunities:
        sinks.append(RedisOpportunitySink(transport.client, config.redis.opportunities_channel))

    consumer = UpdateConsumer(
        transport,
        analyzer,
        sinks=sinks,
        metrics=metrics,
        comprehensive_interval=config.comprehensive_interval,
        reporter=print_analysis_results if config.print_reports else None,
    )

    try:
        await consumer.run()
    finally:
        await transport.close()
        if metrics_enabled:
            await metrics.stop_server()


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    load_dotenv()
    args = parse_args()

    if args.debug:
        logging_config.setup_debug()
    elif args.quiet:
        logging_config.setup_minimal()
    else:
        logging_config.setup()

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        logger.error(f"Config error: {e}")
        return 1

    logger.info(f"SwapSleuth analyzer v{get_version()}")

    try:
        asyncio.run(run(config, args.metrics_port))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Analyzer failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
