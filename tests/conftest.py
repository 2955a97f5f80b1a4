"""Pytest configuration and shared fixtures.

Puts the project root on ``sys.path`` so the ``metalx`` package imports
without installation, and provides a fake transport that replays canned
MetalX payloads and records every request the adapter sends.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import pytest  # type: ignore

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from metalx.exchanges.metalx import MetalXExchange  # noqa: E402


EXCHANGE_INFO = {
    "timezone": "UTC",
    "serverTime": 1589483200696,
    "symbols": [
        {
            "symbol": "MTLBTC",
            "status": "running",
            "baseAsset": "MTL",
            "baseAssetPrecision": 4,
            "quoteAsset": "BTC",
            "quotePrecision": 8,
            "baseCommissionPrecision": 4,
            "quoteCommissionPrecision": 6,
            "orderTypes": ["LIMIT", "MARKET"],
            "isSpotTradingAllowed": True,
            "isMarginTradingAllowed": False,
        },
        {
            "symbol": "LTCBTC",
            "status": "halted",
            "baseAsset": "LTC",
            "baseAssetPrecision": 8,
            "quoteAsset": "BTC",
            "quotePrecision": 8,
            "baseCommissionPrecision": 8,
            "quoteCommissionPrecision": 8,
            "orderTypes": ["LIMIT"],
            "isSpotTradingAllowed": True,
            "isMarginTradingAllowed": False,
        },
    ],
}

ASSETS = [
    {"id": "BTC", "code": "BTC", "name": "Bitcoin", "active": True, "fee": 0.0003, "precision": 8},
    {"id": "MTL", "code": "MTL", "name": "Metal", "active": True, "fee": 1, "precision": 4},
    {"id": "LTC", "code": "LTC", "name": "Litecoin", "active": False, "fee": 0.001, "precision": 8},
    {"id": "XRP", "code": "XRP", "name": "Ripple", "active": True, "fee": 0.25, "precision": 6},
]


class FakeTransport:
    """Stands in for HttpTransport: canned responses keyed by (method, path)."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[Tuple[int, Any]]] = {}
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def add(self, method: str, path: str, payload: Any, status: int = 200) -> "FakeTransport":
        self.routes.setdefault((method, path), []).append((status, payload))
        return self

    def requests_to(self, path: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["path"] == path]

    async def fetch(self, method: str, url: str, headers: Optional[Dict[str, str]] = None,
                    body: Optional[str] = None, retry_on=None, headers_factory=None) -> Tuple[int, Any]:
        parts = urlsplit(url)
        headers = dict(headers or {})
        if headers_factory is not None:
            headers.update(headers_factory())
        self.calls.append({
            "method": method,
            "url": url,
            "path": parts.path,
            "query": parts.query,
            "headers": headers,
            "body": body,
            "retry_on": retry_on,
        })
        queue = self.routes.get((method, parts.path))
        if not queue:
            raise AssertionError(f"unexpected request {method} {url}")
        # the last canned response sticks
        return queue.pop(0) if len(queue) > 1 else queue[0]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def transport() -> FakeTransport:
    fake = FakeTransport()
    fake.add("GET", "/v1/assets", ASSETS)
    fake.add("GET", "/v1/exchange-info", EXCHANGE_INFO)
    return fake


@pytest.fixture
def exchange(transport: FakeTransport) -> MetalXExchange:
    return MetalXExchange(
        api_key="key-123",
        secret_key="s3cr3t",
        uid="user-42",
        base_url="https://api-staging.metalx.com",
        transport=transport,
    )


@pytest.fixture
def public_exchange(transport: FakeTransport) -> MetalXExchange:
    return MetalXExchange(base_url="https://api-staging.metalx.com", transport=transport)
