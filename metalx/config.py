"""
Configuration loading ⚙️
Settings come from a JSON file (CONFIG_PATH, default /config/config.json),
with credentials overridable from the environment.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

DEFAULT_CONFIG_PATH = "/config/config.json"

# environment variable -> key in the "exchange" section
ENV_OVERRIDES = {
    "METALX_API_KEY": "api_key",
    "METALX_SECRET_KEY": "secret_key",
    "METALX_UID": "uid",
    "METALX_BASE_URL": "base_url",
}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def debug_mode() -> bool:
    return os.getenv("DEBUG_MODE", "False") == "True"


def setup_logging(debug: Optional[bool] = None) -> None:
    if debug is None:
        debug = debug_mode()
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Returns the parsed config with an "exchange" section always present.
    A missing file is fine as long as the environment supplies what is needed.
    """
    path = path or os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)
    config: Dict[str, Any] = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            config = json.load(f)

    exchange = dict(config.get("exchange") or {})
    exchange.setdefault("name", "metalx")
    for env_name, key in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            exchange[key] = value
    config["exchange"] = exchange
    return config
