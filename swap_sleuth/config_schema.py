"""
Configuration schema validation using Pydantic
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class RedisSettings(BaseModel):
    """Redis transport settings"""

    addr: str = Field(default="127.0.0.1:6379", description="host:port")
    password: Optional[str] = None
    db: int = Field(default=0, ge=0)
    updates_channel: str = "orderbook_updates"
    opportunities_channel: str = "arbitrage_opportunities"
    key_prefix: str = "orderbook:"
    book_ttl_sec: int = Field(default=30, ge=1)
    publish_opportunities: bool = True

    @field_validator("addr")
    @classmethod
    def validate_addr(cls, v):
        host, sep, port = v.rpartition(":")
        if not sep or not host:
            raise ValueError(f"addr must be host:port, got {v!r}")
        if not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f"invalid port in addr {v!r}")
        return v


class FeesSettings(BaseModel):
    """
    Fee assumptions.

    Percentage ranges are checked by FeesConfig so every entry point reports
    them as InvalidFeePercentageError.
    """

    taker_fee_pct: float = 0.1
    maker_fee_pct: float = 0.1
    amm_pool_fee_pct: float = 0.3
    gas_cost_usd: float = 50.0
    use_market_orders: bool = True
    withdrawal_fees: Dict[str, float] = Field(default_factory=dict)


class ThresholdSettings(BaseModel):
    """Profitability gates (both must pass)"""

    min_net_profit: float = Field(default=1.0, ge=0)
    min_roi_percentage: float = Field(default=0.1, ge=0)


class SizingSettings(BaseModel):
    """Trade sizing relative to displayed top-of-book depth"""

    size_fraction: float = Field(default=1.0, gt=0, le=1)
    max_size: Optional[float] = Field(default=None, gt=0)


class AnalysisSettings(BaseModel):
    comprehensive_interval: int = Field(default=10, ge=0)
    normalize_quote: bool = False
    print_reports: bool = True


class MetricsSettings(BaseModel):
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)


class BinanceSettings(BaseModel):
    enabled: bool = True
    exchange_name: str = "binance"
    symbols: List[str] = Field(default_factory=lambda: ["BTC/USDT"])
    depth: int = Field(default=5, ge=1, le=5000)
    sandbox: bool = False


class UniswapSettings(BaseModel):
    enabled: bool = True
    exchange_name: str = "uniswap-v3-exact"
    subgraph_url: str = (
        "https://gateway.thegraph.com/api/subgraphs/id/"
        "5zvR82QoaXYFyDEKLZ9t6v9adgnptxYpKpSbxtgVENFV"
    )
    api_key: Optional[str] = None
    base_symbol: str = "WBTC"
    quote_symbol: str = "USDT"
    max_pools: int = Field(default=5, ge=1, le=100)
    base_sizes: List[float] = Field(default_factory=lambda: [0.001, 0.005, 0.01])
    quote_sizes: List[float] = Field(default_factory=lambda: [50, 200, 1000])
    cumulative_ladder: bool = False
    timeout_sec: float = Field(default=10.0, gt=0)

    @field_validator("base_sizes", "quote_sizes")
    @classmethod
    def validate_sizes(cls, v):
        if not v:
            raise ValueError("ladder must contain at least one size")
        if any(size <= 0 for size in v):
            raise ValueError("ladder sizes must be positive")
        return v


class ConnectorSettings(BaseModel):
    poll_sec: float = Field(default=5.0, gt=0)
    once: bool = False
    binance: BinanceSettings = Field(default_factory=BinanceSettings)
    uniswap: UniswapSettings = Field(default_factory=UniswapSettings)


class AnalyzerSettings(BaseModel):
    """Top-level analyzer configuration schema"""

    redis: RedisSettings = Field(default_factory=RedisSettings)
    fees: FeesSettings = Field(default_factory=FeesSettings)
    thresholds: ThresholdSettings = Field(default_factory=ThresholdSettings)
    sizing: SizingSettings = Field(default_factory=SizingSettings)
    aliases: Dict[str, str] = Field(
        default_factory=lambda: {"WBTC": "BTC", "WETH": "ETH"}
    )
    venues: Dict[str, Literal["cex", "amm"]] = Field(
        default_factory=lambda: {"binance": "cex", "uniswap-v3-exact": "amm"}
    )
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)
    connectors: ConnectorSettings = Field(default_factory=ConnectorSettings)

    @model_validator(mode="after")
    def validate_aliases(self):
        for alias, target in self.aliases.items():
            if not alias.strip() or not target.strip():
                raise ValueError("aliases must map non-empty symbols")
            if target.upper() in {a.upper() for a in self.aliases}:
                raise ValueError(f"alias target {target} is itself aliased")
        return self


def validate_analyzer_config(config_dict: dict) -> AnalyzerSettings:
    """Validate a raw configuration mapping"""
    return AnalyzerSettings(**config_dict)
