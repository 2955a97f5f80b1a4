"""
Endpoint table and request builder for the MetalX v1 REST API.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from .errors import ArgumentError

PUBLIC = "public"
PRIVATE = "private"

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


@dataclass(frozen=True)
class Endpoint:
    api: str       # PUBLIC | PRIVATE
    method: str    # GET | POST | PUT
    path: str

    @property
    def private(self) -> bool:
        return self.api == PRIVATE


ENDPOINTS: Dict[str, Endpoint] = {
    # public
    "fetch_markets": Endpoint(PUBLIC, "GET", "exchange-info"),
    "fetch_currencies": Endpoint(PUBLIC, "GET", "assets"),
    "fetch_tickers": Endpoint(PUBLIC, "GET", "tickers"),
    "fetch_order_book": Endpoint(PUBLIC, "GET", "depth"),
    "fetch_trades": Endpoint(PUBLIC, "GET", "trades"),
    "fetch_ohlcv": Endpoint(PUBLIC, "GET", "ohlcv"),
    # private
    "fetch_balance": Endpoint(PRIVATE, "GET", "account"),
    "fetch_deposits": Endpoint(PRIVATE, "GET", "deposits"),
    "fetch_withdrawals": Endpoint(PRIVATE, "GET", "withdrawals"),
    "fetch_orders": Endpoint(PRIVATE, "GET", "orders"),
    "fetch_order": Endpoint(PRIVATE, "GET", "orders/{orderId}"),
    "fetch_my_trades": Endpoint(PRIVATE, "GET", "trades/me"),
    "fetch_deposit_address": Endpoint(PRIVATE, "GET", "address/deposit"),
    "create_order": Endpoint(PRIVATE, "POST", "orders"),
    "withdraw": Endpoint(PRIVATE, "POST", "withdraw"),
    "cancel_order": Endpoint(PRIVATE, "PUT", "orders/cancel"),
}


@dataclass(frozen=True)
class PreparedRequest:
    method: str
    url: str
    path: str                 # "/v1/orders/123?status=open", what goes after the host
    query: str
    body: Optional[str]
    private: bool


def extract_params(path: str) -> list[str]:
    return _PLACEHOLDER.findall(path)


def implode_params(path: str, params: Mapping[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """
    Substitute {placeholders} and return (resolved path, leftover params).
    """
    remaining = dict(params)
    resolved = path
    for name in extract_params(path):
        if remaining.get(name) is None:
            raise ArgumentError(f"path '{path}' requires a '{name}' parameter")
        resolved = resolved.replace("{" + name + "}", str(remaining.pop(name)))
    return resolved, remaining


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def encode_query(params: Mapping[str, Any]) -> str:
    pairs = [(k, _query_value(v)) for k, v in params.items() if v is not None]
    return urlencode(pairs, doseq=True)


def encode_body(params: Mapping[str, Any]) -> Optional[str]:
    clean = {k: v for k, v in params.items() if v is not None}
    if not clean:
        return None
    return json.dumps(clean, separators=(",", ":"))


def build_request(
    endpoint: Endpoint,
    params: Optional[Mapping[str, Any]] = None,
    base_url: str = "",
    version: str = "v1",
) -> PreparedRequest:
    resolved, remaining = implode_params(endpoint.path, params or {})
    path = f"/{version}/{resolved}"
    query = ""
    body = None
    if endpoint.method == "GET":
        query = encode_query(remaining)
        if query:
            path += "?" + query
    else:
        body = encode_body(remaining)
    return PreparedRequest(
        method=endpoint.method,
        url=f"{base_url.rstrip('/')}{path}",
        path=path,
        query=query,
        body=body,
        private=endpoint.private,
    )
