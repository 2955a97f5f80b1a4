
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from ..models import (
    Balances, Candle, Currency, DepositAddress, Market, Order, OrderAck,
    OrderBook, Ticker, Trade, Transaction,
)

class Exchange(ABC):
    """
    Uniform trading interface every exchange adapter implements.
    Every method returns canonical model objects; raw payloads stay in `.info`.
    """
    name: str
    timeframes: Dict[str, str] = {}

    # --- metadata ---
    @abstractmethod
    async def load_markets(self, reload: bool = False) -> Dict[str, Market]:
        """Fetch markets and currencies once; later calls reuse them unless reload=True."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_markets(self) -> List[Market]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_currencies(self) -> Dict[str, Currency]:
        raise NotImplementedError

    # --- public market data ---
    @abstractmethod
    async def fetch_ticker(self, symbol: str) -> Ticker:
        raise NotImplementedError

    @abstractmethod
    async def fetch_tickers(self, symbols: Optional[Iterable[str]] = None) -> List[Ticker]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_order_book(self, symbol: str, limit: Optional[int] = None) -> OrderBook:
        raise NotImplementedError

    @abstractmethod
    async def fetch_trades(self, symbol: str, since: Optional[int] = None, limit: Optional[int] = None) -> List[Trade]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_ohlcv(self, symbol: str, timeframe: str = "1m",
                          since: Optional[int] = None, limit: Optional[int] = None) -> List[Candle]:
        raise NotImplementedError

    # --- account ---
    @abstractmethod
    async def fetch_balance(self) -> Balances:
        raise NotImplementedError

    @abstractmethod
    async def create_order(self, symbol: str, type: str, side: str, amount: float,
                           price: Optional[float] = None) -> OrderAck:
        """
        Place an order. Limit orders need a price; market orders ignore it.
        Returns only what the exchange acknowledges (the order id).
        """
        raise NotImplementedError

    @abstractmethod
    async def cancel_order(self, id: str, symbol: Optional[str] = None) -> Order:
        raise NotImplementedError

    @abstractmethod
    async def fetch_order(self, id: str, symbol: Optional[str] = None) -> Order:
        raise NotImplementedError

    @abstractmethod
    async def fetch_open_orders(self, symbol: Optional[str] = None, since: Optional[int] = None,
                                limit: Optional[int] = None) -> List[Order]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_orders(self, symbol: Optional[str] = None, since: Optional[int] = None,
                           limit: Optional[int] = None) -> List[Order]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_my_trades(self, symbol: Optional[str] = None, since: Optional[int] = None,
                              limit: Optional[int] = None) -> List[Trade]:
        raise NotImplementedError

    # --- funding ---
    @abstractmethod
    async def fetch_deposit_address(self, code: str) -> DepositAddress:
        raise NotImplementedError

    @abstractmethod
    async def fetch_deposits(self, code: Optional[str] = None, since: Optional[int] = None,
                             limit: Optional[int] = None) -> List[Transaction]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_withdrawals(self, code: Optional[str] = None, since: Optional[int] = None,
                                limit: Optional[int] = None) -> List[Transaction]:
        raise NotImplementedError

    @abstractmethod
    async def withdraw(self, code: str, amount: float, address: str, tag: Optional[str] = None) -> OrderAck:
        raise NotImplementedError

    async def close(self) -> None:
        """Override to close network resources if needed."""
        return
