"""Tests for the config_loader module."""

from decimal import Decimal
from pathlib import Path
from tempfile import NamedTemporaryFile

import pytest
import yaml

from swap_sleuth.config_loader import (
    AnalyzerConfig,
    apply_env_overrides,
    build_analyzer,
    build_config,
    load_config,
    load_yaml_config,
    split_redis_addr,
)
from swap_sleuth.exceptions import ConfigurationError, InvalidFeePercentageError
from swap_sleuth.types import VenueKind


def write_yaml(tmp_path, data, name="analyzer.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


def test_load_yaml_config_valid():
    """Test loading a valid YAML configuration."""
    config_data = {"fees": {"taker_fee_pct": 0.075}, "thresholds": {"min_net_profit": 2}}

    with NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(config_data, f)
        f.flush()

        result = load_yaml_config(f.name)
        assert result == config_data

    Path(f.name).unlink()


def test_load_yaml_config_file_not_found():
    with pytest.raises(ConfigurationError, match="Configuration file not found"):
        load_yaml_config("/non/existent/file.yaml")


def test_load_yaml_config_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_yaml_config(path) == {}


def test_load_yaml_config_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("invalid: yaml: content: [")
    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_yaml_config(path)


def test_load_yaml_config_not_a_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ConfigurationError, match="mapping"):
        load_yaml_config(path)


def test_defaults():
    config = build_config({})
    assert isinstance(config, AnalyzerConfig)
    assert config.fees.taker_fee_pct == Decimal("0.1")
    assert config.fees.amm_pool_fee_pct == Decimal("0.3")
    assert config.fees.gas_cost_usd == Decimal("50")
    assert config.thresholds.min_net_profit == Decimal("1.0")
    assert config.thresholds.min_roi_percentage == Decimal("0.1")
    assert config.comprehensive_interval == 10
    assert config.redis.host == "127.0.0.1"
    assert config.redis.port == 6379
    assert config.redis.book_ttl_sec == 30
    assert config.aliases == {"WBTC": "BTC", "WETH": "ETH"}
    assert config.venues["uniswap-v3-exact"] is VenueKind.AUTOMATED_MARKET_MAKER


def test_full_file(tmp_path):
    path = write_yaml(
        tmp_path,
        {
            "redis": {"addr": "redis.internal:6380", "db": 2},
            "fees": {
                "taker_fee_pct": 0.075,
                "use_market_orders": False,
                "withdrawal_fees": {"BTC": 5},
            },
            "sizing": {"size_fraction": 0.8, "max_size": 0.5},
            "venues": {"hyperliquid": "cex"},
            "analysis": {"comprehensive_interval": 0, "normalize_quote": True},
            "connectors": {"binance": {"symbols": ["BTC/USDT", "ETH/USDT"], "depth": 10}},
        },
    )

    config = load_config(path, environ={})

    assert (config.redis.host, config.redis.port, config.redis.db) == ("redis.internal", 6380, 2)
    assert config.fees.taker_fee_pct == Decimal("0.075")
    assert not config.fees.use_market_orders
    assert config.fees.withdrawal_fees == {"BTC": Decimal(5)}
    assert config.sizing.size_fraction == Decimal("0.8")
    assert config.sizing.max_size == Decimal("0.5")
    assert config.venues == {"hyperliquid": VenueKind.CENTRALIZED_EXCHANGE}
    assert config.comprehensive_interval == 0
    assert config.normalize_quote
    assert config.connectors.binance.symbols == ("BTC/USDT", "ETH/USDT")
    assert config.connectors.binance.depth == 10
    assert config.connectors.uniswap.base_sizes == (
        Decimal("0.001"),
        Decimal("0.005"),
        Decimal("0.01"),
    )


def test_env_overrides(tmp_path):
    path = write_yaml(tmp_path, {"redis": {"addr": "localhost:6379"}})
    env = {
        "REDIS_ADDR": "10.0.0.5:7000",
        "REDIS_PASS": "s3cret",
        "SUBGRAPH_API_KEY": "graph-key",
        "METRICS_PORT": "9100",
    }

    config = load_config(path, environ=env)

    assert config.redis.addr == "10.0.0.5:7000"
    assert config.redis.password == "s3cret"
    assert config.connectors.uniswap.api_key == "graph-key"
    assert config.metrics.port == 9100


def test_env_overrides_do_not_mutate_input():
    raw = {"redis": {"addr": "localhost:6379"}}
    apply_env_overrides(raw, {"REDIS_ADDR": "other:1"})
    assert raw == {"redis": {"addr": "localhost:6379"}}


def test_invalid_metrics_port_env():
    with pytest.raises(ConfigurationError):
        apply_env_overrides({}, {"METRICS_PORT": "http"})


def test_config_path_from_env(tmp_path):
    path = write_yaml(tmp_path, {"thresholds": {"min_net_profit": 7}})
    config = load_config(environ={"SWAP_SLEUTH_CONFIG": str(path)})
    assert config.thresholds.min_net_profit == Decimal(7)


@pytest.mark.parametrize(
    "raw",
    [
        {"thresholds": {"min_net_profit": -1}},
        {"sizing": {"size_fraction": 1.5}},
        {"redis": {"addr": "no-port"}},
        {"venues": {"binance": "spot"}},
        {"aliases": {"WBTC": "BTC", "BTC": "XBT"}},
        {"connectors": {"uniswap": {"base_sizes": []}}},
        {"metrics": {"port": 70000}},
    ],
)
def test_schema_errors(raw):
    with pytest.raises(ConfigurationError, match="validation failed"):
        build_config(raw)


def test_fee_out_of_range():
    with pytest.raises(InvalidFeePercentageError):
        build_config({"fees": {"amm_pool_fee_pct": 100}})


def test_split_redis_addr():
    assert split_redis_addr("localhost:6379") == ("localhost", 6379)
    assert split_redis_addr("localhost") == ("localhost", 6379)
    with pytest.raises(ConfigurationError):
        split_redis_addr("localhost:abc")


def test_build_analyzer_wires_config():
    config = build_config(
        {
            "fees": {"gas_cost_usd": 10},
            "aliases": {"CBBTC": "BTC"},
            "venues": {"hyperdex": "cex"},
        }
    )
    analyzer = build_analyzer(config)

    assert analyzer.fee_model.config.gas_cost_usd == Decimal(10)
    assert analyzer.canonicalizer.comparable("cbBTC/USDT", "BTC/USDT")
    assert not analyzer.fee_model.classifier.is_amm("hyperdex")
    assert analyzer.thresholds == config.thresholds


def test_build_analyzer_keys_withdrawal_fees_by_alias():
    config = build_config(
        {"fees": {"withdrawal_fees": {"CBBTC": 4}}, "aliases": {"CBBTC": "BTC"}}
    )
    analyzer = build_analyzer(config)

    assert analyzer.fee_model.withdrawal_fee("BTC/USDT") == Decimal(4)
    assert analyzer.fee_model.withdrawal_fee("cbBTC/USDT") == Decimal(4)


def test_shipped_config_is_valid():
    path = Path(__file__).resolve().parents[2] / "configs" / "analyzer.yaml"
    config = load_config(path, environ={})
    assert config.connectors.uniswap.exchange_name == "uniswap-v3-exact"
