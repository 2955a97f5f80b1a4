"""
MetalX exchange adapter 🚀
Normalizes the MetalX REST API into a uniform trading model.
"""

from .config import load_config, setup_logging
from .errors import (
    ArgumentError,
    AuthenticationFailure,
    ConfigurationError,
    ExchangeError,
    InvalidAddress,
    InvalidRequest,
    NetworkError,
    NotFound,
    RateLimited,
    ServerError,
    Unclassified,
)
from .exchanges import Exchange, MetalXExchange, create_exchange
from .models import OrderStatus, TransactionStatus

__version__ = "1.0.0"

__all__ = [
    "ArgumentError",
    "AuthenticationFailure",
    "ConfigurationError",
    "Exchange",
    "ExchangeError",
    "InvalidAddress",
    "InvalidRequest",
    "MetalXExchange",
    "NetworkError",
    "NotFound",
    "OrderStatus",
    "RateLimited",
    "ServerError",
    "TransactionStatus",
    "Unclassified",
    "create_exchange",
    "load_config",
    "setup_logging",
]
