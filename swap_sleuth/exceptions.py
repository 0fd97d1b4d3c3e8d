"""
Exception hierarchy for the SwapSleuth arbitrage detector.

Steady-state errors (parse, fetch, validation, pool math) only ever skip
their own unit of work. Configuration errors are fatal at startup.
"""

from typing import Any, Dict, Optional


class SwapSleuthError(Exception):
    """Base exception for all SwapSleuth errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ParseError(SwapSleuthError):
    """Raised when an update payload or order book document is malformed."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.key = key


class FetchError(SwapSleuthError):
    """Raised when a referenced book key is absent or unreachable."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.key = key


class ValidationError(SwapSleuthError):
    """Raised when a candidate book cannot be evaluated (e.g. empty side)."""

    def __init__(
        self,
        message: str,
        exchange: Optional[str] = None,
        side: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.exchange = exchange
        self.side = side


class ConfigurationError(SwapSleuthError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.field = field


class InvalidFeePercentageError(ConfigurationError):
    """Raised when a fee percentage is negative or >= 100."""


class ConnectorError(SwapSleuthError):
    """Raised when an upstream venue connector fails to produce a book."""

    def __init__(
        self,
        message: str,
        exchange: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.exchange = exchange


# Pool math failures are also builtin ArithmeticErrors so callers may catch
# either family.
class PoolMathError(SwapSleuthError, ArithmeticError):
    """Base class for failures of a single pricing computation."""


class InvalidIntegerError(PoolMathError):
    """Raised when a string is not a well-formed non-negative base-10 integer."""

    def __init__(self, message: str, value: Any = None):
        super().__init__(message, {"value": value})
        self.value = value


class DivisionByZeroError(PoolMathError):
    """Raised when a pricing computation divides by zero."""


class InvalidFeeError(PoolMathError):
    """Raised when a pool fee rate is outside [0, 1_000_000) micros."""

    def __init__(self, message: str, fee_rate_micros: Optional[int] = None):
        super().__init__(message, {"fee_rate_micros": fee_rate_micros})
        self.fee_rate_micros = fee_rate_micros


class InsufficientLiquidityError(PoolMathError):
    """Raised when a swap would leave the pool's active liquidity range."""

    def __init__(
        self,
        message: str,
        pool_id: Optional[str] = None,
        amount_in: Any = None,
    ):
        super().__init__(message, {"pool_id": pool_id, "amount_in": amount_in})
        self.pool_id = pool_id
        self.amount_in = amount_in
