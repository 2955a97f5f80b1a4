"""
Lenient field readers for raw exchange payloads 🔍
Missing or malformed values come back as None instead of raising.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, TypeVar

T = TypeVar("T")


def safe_value(obj: Any, key: Any, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        value = obj.get(key)
    elif isinstance(obj, (list, tuple)) and isinstance(key, int):
        value = obj[key] if -len(obj) <= key < len(obj) else None
    else:
        value = None
    return default if value is None else value


def safe_string(obj: Any, key: Any, default: Optional[str] = None) -> Optional[str]:
    value = safe_value(obj, key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def safe_string_lower(obj: Any, key: Any, default: Optional[str] = None) -> Optional[str]:
    value = safe_string(obj, key)
    return default if value is None else value.lower()


def safe_bool(obj: Any, key: Any, default: Optional[bool] = None) -> Optional[bool]:
    value = safe_value(obj, key)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "1", "yes"):
            return True
        if text in ("false", "0", "no"):
            return False
    return default


def safe_float(obj: Any, key: Any, default: Optional[float] = None) -> Optional[float]:
    value = safe_value(obj, key)
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def safe_integer(obj: Any, key: Any, default: Optional[int] = None) -> Optional[int]:
    value = safe_value(obj, key)
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def iso8601(timestamp: Optional[int]) -> Optional[str]:
    """Milliseconds since epoch -> '2020-05-14T22:04:00.302Z'."""
    if timestamp is None:
        return None
    dt = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{int(timestamp) % 1000:03d}Z"


def parse_timestamp(value: Any) -> Optional[int]:
    """
    Accepts what the exchange sends for times: integer milliseconds,
    numeric strings, or ISO-8601 strings. Returns milliseconds or None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        pass
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * 1000))


def filter_by_since_limit(
    items: Iterable[T],
    since: Optional[int] = None,
    limit: Optional[int] = None,
    key: str = "timestamp",
) -> List[T]:
    result = list(items)
    if since is not None:
        result = [
            item for item in result
            if getattr(item, key, None) is not None and getattr(item, key) >= since
        ]
    if limit is not None:
        result = result[:limit]
    return result
