from __future__ import annotations
from typing import Any
from .base import Exchange
from .metalx import DEFAULT_BASE_URL, MetalXExchange

def create_exchange(exchange_cfg: dict[str, Any]) -> Exchange:
    """
    Factory: exchange_cfg example:
    {"name":"metalx","api_key":"...","secret_key":"...","uid":"...","base_url":"https://api.metalx.com"}
    Public-only use needs just {"name":"metalx"}.
    """
    name = exchange_cfg.get("name", "").lower()
    if name == "metalx":
        return MetalXExchange(
            api_key=exchange_cfg.get("api_key", ""),
            secret_key=exchange_cfg.get("secret_key", ""),
            uid=exchange_cfg.get("uid", ""),
            base_url=exchange_cfg.get("base_url", DEFAULT_BASE_URL),
            version=exchange_cfg.get("version", "v1"),
        )
    raise ValueError(f"Unknown exchange name: {name}")

__all__ = ["Exchange", "MetalXExchange", "create_exchange"]
