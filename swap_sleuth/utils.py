"""
Common utilities and helper functions.

Timestamp formatting and JSON serialization helpers shared by the
consumer, sinks and reports.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any


# Timestamp utilities
def format_timestamp(timestamp: float) -> str:
    """Format Unix timestamp for console reports (UTC)."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S UTC"
    )


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"


# JSON utilities
def safe_json_dump(data: Any, **kwargs) -> str:
    """
    Serialize data to JSON with sensible defaults.

    Decimals become floats, datetimes ISO strings, other objects their
    __dict__ or str().
    """
    defaults = {"ensure_ascii": False, "default": _json_default_handler}
    defaults.update(kwargs)
    return json.dumps(data, **defaults)


def _json_default_handler(obj: Any) -> Any:
    """Default JSON serialization handler for custom types."""
    if isinstance(obj, Decimal):
        return float(obj)
    elif isinstance(obj, datetime):
        return obj.isoformat()
    elif hasattr(obj, "to_dict"):
        return obj.to_dict()
    elif hasattr(obj, "__dict__"):
        return obj.__dict__
    else:
        return str(obj)


def format_profit(percentage: float) -> str:
    """
    Format a percentage with a sign prefix.

    Examples:
        >>> format_profit(1.23)
        '+1.23%'
        >>> format_profit(-4.56)
        '-4.56%'
    """
    if percentage >= 0:
        return f"+{percentage:.2f}%"
    else:
        return f"{percentage:.2f}%"
