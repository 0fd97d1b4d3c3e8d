"""
Configuration loading and normalization.

Reads the YAML file, applies environment overrides, validates the result
against the Pydantic schema and freezes it into the plain value objects the
core consumes. Any failure here is fatal at startup.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml
from pydantic import ValidationError as SchemaValidationError

from .analyzer import SizingConfig, SpreadAnalyzer, ThresholdConfig
from .canonical import Canonicalizer
from .config_schema import AnalyzerSettings, validate_analyzer_config
from .exceptions import ConfigurationError
from .fees import FeesConfig, VenueClassifier
from .types import VenueKind

DEFAULT_CONFIG_PATH = "configs/analyzer.yaml"
CONFIG_PATH_ENV = "SWAP_SLEUTH_CONFIG"

_VENUE_KINDS = {
    "cex": VenueKind.CENTRALIZED_EXCHANGE,
    "amm": VenueKind.AUTOMATED_MARKET_MAKER,
}


@dataclass(frozen=True)
class RedisConfig:
    """Normalized Redis transport configuration."""

    host: str = "127.0.0.1"
    port: int = 6379
    password: Optional[str] = None
    db: int = 0
    updates_channel: str = "orderbook_updates"
    opportunities_channel: str = "arbitrage_opportunities"
    key_prefix: str = "orderbook:"
    book_ttl_sec: int = 30
    publish_opportunities: bool = True

    @property
    def addr(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class MetricsConfig:
    """Normalized metrics server configuration."""

    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass(frozen=True)
class BinanceConnectorConfig:
    enabled: bool = True
    exchange_name: str = "binance"
    symbols: Tuple[str, ...] = ("BTC/USDT",)
    depth: int = 5
    sandbox: bool = False


@dataclass(frozen=True)
class UniswapConnectorConfig:
    enabled: bool = True
    exchange_name: str = "uniswap-v3-exact"
    subgraph_url: str = ""
    api_key: Optional[str] = None
    base_symbol: str = "WBTC"
    quote_symbol: str = "USDT"
    max_pools: int = 5
    base_sizes: Tuple[Decimal, ...] = ()
    quote_sizes: Tuple[Decimal, ...] = ()
    cumulative_ladder: bool = False
    timeout_sec: float = 10.0


@dataclass(frozen=True)
class ConnectorConfig:
    poll_sec: float = 5.0
    once: bool = False
    binance: BinanceConnectorConfig = field(default_factory=BinanceConnectorConfig)
    uniswap: UniswapConnectorConfig = field(default_factory=UniswapConnectorConfig)


@dataclass(frozen=True)
class AnalyzerConfig:
    """Immutable runtime configuration object."""

    fees: FeesConfig = field(default_factory=FeesConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    sizing: SizingConfig = field(default_factory=SizingConfig)
    aliases: Mapping[str, str] = field(
        default_factory=lambda: {"WBTC": "BTC", "WETH": "ETH"}
    )
    normalize_quote: bool = False
    venues: Mapping[str, VenueKind] = field(default_factory=dict)
    comprehensive_interval: int = 10
    print_reports: bool = True
    redis: RedisConfig = field(default_factory=RedisConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    connectors: ConnectorConfig = field(default_factory=ConnectorConfig)


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


def split_redis_addr(addr: str) -> Tuple[str, int]:
    """Split "host:port" (port defaults to 6379)."""
    host, sep, port = addr.rpartition(":")
    if not sep:
        return addr, 6379
    try:
        return host, int(port)
    except ValueError as e:
        raise ConfigurationError(f"Invalid Redis address: {addr}", field="redis.addr") from e


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and parse YAML configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config_dict is None:
        return {}
    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Configuration must be a YAML mapping: {config_path}")
    return config_dict


def apply_env_overrides(
    config_dict: Dict[str, Any], environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """
    Overlay environment variables on a raw config mapping.

    REDIS_ADDR, REDIS_PASS, SUBGRAPH_API_KEY and METRICS_PORT win over the
    file. Returns a new mapping; the input is left untouched.
    """
    env = os.environ if environ is None else environ
    result = {k: (dict(v) if isinstance(v, dict) else v) for k, v in config_dict.items()}

    redis_section = result.setdefault("redis", {})
    if env.get("REDIS_ADDR"):
        redis_section["addr"] = env["REDIS_ADDR"]
    if env.get("REDIS_PASS"):
        redis_section["password"] = env["REDIS_PASS"]

    if env.get("METRICS_PORT"):
        metrics_section = result.setdefault("metrics", {})
        try:
            metrics_section["port"] = int(env["METRICS_PORT"])
        except ValueError as e:
            raise ConfigurationError(
                f"METRICS_PORT must be an integer: {env['METRICS_PORT']}",
                field="metrics.port",
            ) from e

    if env.get("SUBGRAPH_API_KEY"):
        connectors = result.setdefault("connectors", {})
        uniswap = dict(connectors.get("uniswap") or {})
        uniswap["api_key"] = env["SUBGRAPH_API_KEY"]
        connectors["uniswap"] = uniswap

    return result


def _normalize_fees(settings: AnalyzerSettings) -> FeesConfig:
    fees = settings.fees
    return FeesConfig(
        taker_fee_pct=_dec(fees.taker_fee_pct),
        maker_fee_pct=_dec(fees.maker_fee_pct),
        amm_pool_fee_pct=_dec(fees.amm_pool_fee_pct),
        gas_cost_usd=_dec(fees.gas_cost_usd),
        withdrawal_fees={k: _dec(v) for k, v in fees.withdrawal_fees.items()},
        use_market_orders=fees.use_market_orders,
    )


def _normalize_redis(settings: AnalyzerSettings) -> RedisConfig:
    redis_settings = settings.redis
    host, port = split_redis_addr(redis_settings.addr)
    return RedisConfig(
        host=host,
        port=port,
        password=redis_settings.password or None,
        db=redis_settings.db,
        updates_channel=redis_settings.updates_channel,
        opportunities_channel=redis_settings.opportunities_channel,
        key_prefix=redis_settings.key_prefix,
        book_ttl_sec=redis_settings.book_ttl_sec,
        publish_opportunities=redis_settings.publish_opportunities,
    )


def _normalize_connectors(settings: AnalyzerSettings) -> ConnectorConfig:
    connectors = settings.connectors
    binance = connectors.binance
    uniswap = connectors.uniswap
    return ConnectorConfig(
        poll_sec=connectors.poll_sec,
        once=connectors.once,
        binance=BinanceConnectorConfig(
            enabled=binance.enabled,
            exchange_name=binance.exchange_name,
            symbols=tuple(binance.symbols),
            depth=binance.depth,
            sandbox=binance.sandbox,
        ),
        uniswap=UniswapConnectorConfig(
            enabled=uniswap.enabled,
            exchange_name=uniswap.exchange_name,
            subgraph_url=uniswap.subgraph_url,
            api_key=uniswap.api_key,
            base_symbol=uniswap.base_symbol,
            quote_symbol=uniswap.quote_symbol,
            max_pools=uniswap.max_pools,
            base_sizes=tuple(_dec(s) for s in uniswap.base_sizes),
            quote_sizes=tuple(_dec(s) for s in uniswap.quote_sizes),
            cumulative_ladder=uniswap.cumulative_ladder,
            timeout_sec=uniswap.timeout_sec,
        ),
    )


def build_config(config_dict: Dict[str, Any]) -> AnalyzerConfig:
    """
    Validate a raw mapping and freeze it into an AnalyzerConfig.

    Raises:
        ConfigurationError: If the mapping fails schema validation
        InvalidFeePercentageError: If a fee percentage is out of range
    """
    try:
        settings = validate_analyzer_config(config_dict)
    except SchemaValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e

    sizing = settings.sizing
    return AnalyzerConfig(
        fees=_normalize_fees(settings),
        thresholds=ThresholdConfig(
            min_net_profit=_dec(settings.thresholds.min_net_profit),
            min_roi_percentage=_dec(settings.thresholds.min_roi_percentage),
        ),
        sizing=SizingConfig(
            size_fraction=_dec(sizing.size_fraction),
            max_size=None if sizing.max_size is None else _dec(sizing.max_size),
        ),
        aliases=dict(settings.aliases),
        normalize_quote=settings.analysis.normalize_quote,
        venues={name: _VENUE_KINDS[kind] for name, kind in settings.venues.items()},
        comprehensive_interval=settings.analysis.comprehensive_interval,
        print_reports=settings.analysis.print_reports,
        redis=_normalize_redis(settings),
        metrics=MetricsConfig(
            enabled=settings.metrics.enabled,
            host=settings.metrics.host,
            port=settings.metrics.port,
        ),
        connectors=_normalize_connectors(settings),
    )


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AnalyzerConfig:
    """
    Load, override, validate and normalize the analyzer configuration.

    The path defaults to $SWAP_SLEUTH_CONFIG, then configs/analyzer.yaml.
    A missing default file yields the built-in defaults; an explicitly
    requested file must exist.
    """
    env = os.environ if environ is None else environ
    explicit = config_path or env.get(CONFIG_PATH_ENV)

    if explicit:
        config_dict = load_yaml_config(explicit)
    elif Path(DEFAULT_CONFIG_PATH).exists():
        config_dict = load_yaml_config(DEFAULT_CONFIG_PATH)
    else:
        config_dict = {}

    return build_config(apply_env_overrides(config_dict, env))


def build_analyzer(config: AnalyzerConfig, metrics=None) -> SpreadAnalyzer:
    """Wire a SpreadAnalyzer from a normalized configuration."""
    return SpreadAnalyzer(
        fees_config=config.fees,
        thresholds=config.thresholds,
        sizing=config.sizing,
        canonicalizer=Canonicalizer(
            aliases=config.aliases, normalize_quote=config.normalize_quote
        ),
        classifier=VenueClassifier(config.venues),
        metrics=metrics,
    )
