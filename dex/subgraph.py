"""
Uniswap v3 subgraph client.

Fetches pool state (sqrtPriceX96, liquidity, fee tier, token decimals) over
GraphQL and turns each pool into a PoolSnapshot for the exact-math adapter.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from swap_sleuth.exceptions import ConnectorError, ParseError

from .types import PoolSnapshot, TokenInfo

logger = logging.getLogger(__name__)

DEFAULT_SUBGRAPH_URL = (
    "https://gateway.thegraph.com/api/subgraphs/id/"
    "5zvR82QoaXYFyDEKLZ9t6v9adgnptxYpKpSbxtgVENFV"
)

POOLS_QUERY = """
query Pools($base: String!, $quote: String!, $first: Int!) {
  pools(
    where: {
      or: [
        { token0_: { symbol: $base }, token1_: { symbol: $quote } },
        { token0_: { symbol: $quote }, token1_: { symbol: $base } }
      ]
    }
    orderBy: totalValueLockedUSD
    orderDirection: desc
    first: $first
  ) {
    id
    token0 { symbol decimals }
    token1 { symbol decimals }
    sqrtPrice
    liquidity
    feeTier
  }
}
"""


def _parse_int(raw: Any, what: str, pool_id: Optional[str]) -> int:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError) as e:
        raise ParseError(f"pool {pool_id}: invalid {what} {raw!r}", key=pool_id) from e


def _parse_token(raw: Any, which: str, pool_id: Optional[str]) -> TokenInfo:
    if not isinstance(raw, dict) or not raw.get("symbol"):
        raise ParseError(f"pool {pool_id}: missing {which}", key=pool_id)
    decimals = _parse_int(raw.get("decimals"), f"{which}.decimals", pool_id)
    try:
        return TokenInfo(symbol=str(raw["symbol"]), decimals=decimals)
    except ValueError as e:
        raise ParseError(f"pool {pool_id}: {e}", key=pool_id) from e


def parse_pool(raw: Dict[str, Any]) -> PoolSnapshot:
    """
    Convert one subgraph pool object into a PoolSnapshot.

    feeTier is already in millionths (3000 == 0.3%). sqrtPrice and liquidity
    stay decimal strings; the adapter validates them at pricing time.

    Raises:
        ParseError: If a required field is missing or malformed
    """
    if not isinstance(raw, dict):
        raise ParseError(f"pool entry must be an object, got {type(raw).__name__}")

    pool_id = raw.get("id")
    for name in ("sqrtPrice", "liquidity", "feeTier"):
        if raw.get(name) in (None, ""):
            raise ParseError(f"pool {pool_id}: missing {name}", key=pool_id)

    return PoolSnapshot(
        pool_id=str(pool_id),
        token0=_parse_token(raw.get("token0"), "token0", pool_id),
        token1=_parse_token(raw.get("token1"), "token1", pool_id),
        sqrt_price_x96=str(raw["sqrtPrice"]).strip(),
        liquidity=str(raw["liquidity"]).strip(),
        fee_rate_micros=_parse_int(raw["feeTier"], "feeTier", pool_id),
    )


class SubgraphClient:
    """
    Async GraphQL client for the Uniswap v3 subgraph.

    Use as an async context manager or call close() when done.
    """

    def __init__(
        self,
        url: str = DEFAULT_SUBGRAPH_URL,
        api_key: Optional[str] = None,
        timeout_sec: float = 10.0,
        exchange_name: str = "uniswap-v3-exact",
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout_sec)
        self.exchange_name = exchange_name
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        POST a GraphQL query and return its data object.

        Raises:
            ConnectorError: On transport failure, non-2xx status, or GraphQL errors
        """
        payload = {"query": query, "variables": variables or {}}
        session = self._get_session()
        try:
            async with session.post(self.url, json=payload, headers=self._headers()) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise ConnectorError(
                        f"subgraph returned HTTP {resp.status}: {text[:200]}",
                        exchange=self.exchange_name,
                    )
                body = await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise ConnectorError(
                f"subgraph request timed out after {self.timeout.total}s",
                exchange=self.exchange_name,
            ) from e
        except (aiohttp.ClientError, ValueError) as e:
            raise ConnectorError(
                f"subgraph request failed: {e}", exchange=self.exchange_name
            ) from e

        if not isinstance(body, dict):
            raise ConnectorError("subgraph response is not an object", exchange=self.exchange_name)
        if body.get("errors"):
            raise ConnectorError(
                f"subgraph errors: {body['errors']}", exchange=self.exchange_name
            )
        return body.get("data") or {}

    async def fetch_pools(self, base: str, quote: str, first: int = 5) -> List[PoolSnapshot]:
        """
        Largest pools (by TVL) trading base against quote, in either order.

        Malformed pool entries are logged and dropped.
        """
        data = await self.query(
            POOLS_QUERY, {"base": base, "quote": quote, "first": first}
        )
        pools = []
        for raw in data.get("pools") or []:
            try:
                pools.append(parse_pool(raw))
            except ParseError as e:
                logger.warning(f"Skipping malformed pool: {e}")
        logger.debug(f"Fetched {len(pools)} {base}/{quote} pools from subgraph")
        return pools

    async def close(self):
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
