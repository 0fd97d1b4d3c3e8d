"""
Unit tests for the update consumer loop
"""

import json
from decimal import Decimal

import pytest
from prometheus_client import CollectorRegistry

from swap_sleuth.analyzer import SpreadAnalyzer
from swap_sleuth.consumer import UpdateConsumer, parse_update_key
from swap_sleuth.exceptions import FetchError, ParseError
from swap_sleuth.fees import FeesConfig
from swap_sleuth.metrics import AnalyzerMetrics
from swap_sleuth.transport import CollectingSink, InMemoryTransport
from swap_sleuth.types import make_book


class FailingSink:
    name = "broken"

    def __init__(self):
        self.calls = 0

    async def publish(self, opportunity):
        self.calls += 1
        raise RuntimeError("sink unavailable")


def make_analyzer(metrics=None):
    fees = FeesConfig(
        taker_fee_pct=0,
        maker_fee_pct=0,
        amm_pool_fee_pct=0,
        gas_cost_usd=0,
        withdrawal_fees={"BTC": 2},
    )
    return SpreadAnalyzer(fees_config=fees, clock=lambda: 1700000000.0, metrics=metrics)


AMM_BOOK = make_book("uniswap-v3-exact", "WBTC/USDT", bids=[[95, 1]], asks=[[100, 1]])
CEX_BOOK = make_book("binance", "BTC/USDT", bids=[[105, 1]], asks=[[110, 1]])


@pytest.fixture
def metrics():
    return AnalyzerMetrics(CollectorRegistry())


class TestParseUpdateKey:
    def test_raw_key(self):
        assert parse_update_key("orderbook:binance:BTC/USDT") == "orderbook:binance:BTC/USDT"

    def test_bytes(self):
        assert parse_update_key(b"orderbook:binance:BTC/USDT\n") == "orderbook:binance:BTC/USDT"

    def test_json_object(self):
        payload = json.dumps({"key": "orderbook:binance:BTC/USDT"})
        assert parse_update_key(payload) == "orderbook:binance:BTC/USDT"

    @pytest.mark.parametrize("payload", ["", "   ", "{not json", '{"other": 1}', '{"key": ""}', 42])
    def test_rejects(self, payload):
        with pytest.raises(ParseError):
            parse_update_key(payload)


class TestUpdateConsumer:
    @pytest.mark.asyncio
    async def test_end_to_end(self, metrics):
        transport = InMemoryTransport()
        sink = CollectingSink()
        consumer = UpdateConsumer(transport, make_analyzer(metrics), [sink], metrics=metrics)

        await transport.push_order_book(AMM_BOOK)
        await transport.push_order_book(CEX_BOOK)
        await transport.close()
        await consumer.run()

        assert consumer.updates_processed == 2
        assert consumer.updates_skipped == 0
        assert len(sink.opportunities) == 1
        opp = sink.opportunities[0]
        assert (opp.buy_exchange, opp.sell_exchange, opp.pair) == (
            "uniswap-v3-exact",
            "binance",
            "BTC/USDT",
        )
        assert opp.net_profit == Decimal(3)
        assert metrics.get_metrics_summary()["updates_processed"] == 2.0

    @pytest.mark.asyncio
    async def test_bad_updates_are_skipped(self, metrics):
        transport = InMemoryTransport()
        sink = CollectingSink()
        consumer = UpdateConsumer(transport, make_analyzer(metrics), [sink], metrics=metrics)

        transport.store["orderbook:broken"] = "{not json"
        await transport.notify("orderbook:missing")
        await transport.notify("orderbook:broken")
        await transport.notify("")
        await transport.push_order_book(AMM_BOOK)
        await transport.notify(json.dumps({"key": transport.storage_key(CEX_BOOK)}))
        transport.store[transport.storage_key(CEX_BOOK)] = CEX_BOOK.to_json()
        await transport.close()
        await consumer.run()

        assert consumer.updates_skipped == 3
        assert consumer.updates_processed == 2
        assert len(sink.opportunities) == 1
        assert (
            metrics.registry.get_sample_value(
                "swap_sleuth_updates_skipped_total", {"reason": "fetch_error"}
            )
            == 1.0
        )
        assert (
            metrics.registry.get_sample_value(
                "swap_sleuth_updates_skipped_total", {"reason": "parse_error"}
            )
            == 2.0
        )

    @pytest.mark.asyncio
    async def test_process_payload_raises_for_missing_key(self):
        consumer = UpdateConsumer(InMemoryTransport(), make_analyzer())
        with pytest.raises(FetchError) as exc_info:
            await consumer.process_payload("orderbook:nowhere")
        assert exc_info.value.key == "orderbook:nowhere"

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_stop_fan_out(self, metrics):
        transport = InMemoryTransport()
        broken = FailingSink()
        sink = CollectingSink()
        consumer = UpdateConsumer(
            transport, make_analyzer(), [broken, sink], metrics=metrics
        )

        await transport.push_order_book(AMM_BOOK)
        await transport.push_order_book(CEX_BOOK)
        await transport.close()
        await consumer.run()

        assert broken.calls == 1
        assert len(sink.opportunities) == 1
        assert consumer.updates_skipped == 0
        assert (
            metrics.registry.get_sample_value(
                "swap_sleuth_sink_errors_total", {"sink": "broken"}
            )
            == 1.0
        )

    @pytest.mark.asyncio
    async def test_comprehensive_pass_every_nth_update(self):
        transport = InMemoryTransport()
        reports = []
        consumer = UpdateConsumer(
            transport,
            make_analyzer(),
            comprehensive_interval=3,
            reporter=lambda analyzer, opps: reports.append(list(opps)),
        )

        await transport.push_order_book(AMM_BOOK)
        await transport.push_order_book(CEX_BOOK)
        await transport.push_order_book(
            make_book("kraken", "BTC/USDT", bids=[[103, 1]], asks=[[120, 1]])
        )
        await transport.close()
        await consumer.run()

        assert len(reports) == 1
        assert [o.sell_exchange for o in reports[0]] == ["binance", "kraken"]
        # Targeted pass emitted one, the full pass two
        assert consumer.opportunities_emitted == 3

    @pytest.mark.asyncio
    async def test_later_update_does_not_see_stale_book(self):
        transport = InMemoryTransport()
        sink = CollectingSink()
        consumer = UpdateConsumer(transport, make_analyzer(), [sink])

        await transport.push_order_book(AMM_BOOK)
        await transport.push_order_book(CEX_BOOK)
        await transport.push_order_book(
            make_book("binance", "BTC/USDT", bids=[[99, 1]], asks=[[110, 1]])
        )
        await transport.push_order_book(AMM_BOOK)
        await transport.close()
        await consumer.run()

        assert len(sink.opportunities) == 1
        assert consumer.analyzer.cache.get("binance:BTC/USDT").best_bid()[0] == Decimal(99)
