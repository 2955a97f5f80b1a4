"""
Canonical data model shared by all parsers.

Every entity is immutable and keeps the untouched exchange payload in `info`.
Fields the exchange does not provide are None, never zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .utils.fields import iso8601


class OrderStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    CANCELED = "canceled"
    PENDING = "pending"
    UNKNOWN = "unknown"


class TransactionStatus(str, Enum):
    OK = "ok"
    PENDING = "pending"
    FAILED = "failed"
    CANCELED = "canceled"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class MinMax:
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True)
class Limits:
    amount: MinMax = field(default_factory=MinMax)
    price: MinMax = field(default_factory=MinMax)
    cost: MinMax = field(default_factory=MinMax)
    withdraw: MinMax = field(default_factory=MinMax)


@dataclass(frozen=True)
class Precision:
    amount: Optional[int] = None
    price: Optional[int] = None


@dataclass(frozen=True)
class Market:
    id: str
    symbol: str
    base: str
    quote: str
    base_id: str
    quote_id: str
    active: bool
    precision: Precision = field(default_factory=Precision)
    limits: Limits = field(default_factory=Limits)
    info: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Currency:
    id: Optional[str]
    code: str
    name: Optional[str] = None
    active: Optional[bool] = None
    fee: Optional[float] = None
    precision: Optional[int] = None
    limits: Limits = field(default_factory=Limits)
    info: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Fee:
    cost: Optional[float] = None
    currency: Optional[str] = None


class _Timestamped:
    timestamp: Optional[int]

    @property
    def datetime(self) -> Optional[str]:
        return iso8601(self.timestamp)


@dataclass(frozen=True)
class Order(_Timestamped):
    id: Optional[str]
    client_order_id: Optional[str] = None
    timestamp: Optional[int] = None
    symbol: Optional[str] = None
    type: Optional[str] = None
    side: Optional[str] = None
    price: Optional[float] = None
    amount: Optional[float] = None
    filled: Optional[float] = None
    remaining: Optional[float] = None
    cost: Optional[float] = None
    average: Optional[float] = None
    status: OrderStatus = OrderStatus.UNKNOWN
    raw_status: Optional[str] = None
    fee: Optional[Fee] = None
    info: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Trade(_Timestamped):
    id: Optional[str] = None
    order: Optional[str] = None
    timestamp: Optional[int] = None
    symbol: Optional[str] = None
    type: Optional[str] = None
    side: Optional[str] = None
    taker_or_maker: Optional[str] = None
    price: Optional[float] = None
    amount: Optional[float] = None
    cost: Optional[float] = None
    fee: Optional[Fee] = None
    info: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Ticker(_Timestamped):
    symbol: Optional[str] = None
    timestamp: Optional[int] = None
    high: Optional[float] = None
    low: Optional[float] = None
    bid: Optional[float] = None
    ask: Optional[float] = None
    open: Optional[float] = None
    close: Optional[float] = None
    last: Optional[float] = None
    base_volume: Optional[float] = None
    info: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class OrderBook(_Timestamped):
    symbol: Optional[str]
    bids: List[List[float]]
    asks: List[List[float]]
    timestamp: Optional[int] = None
    nonce: Optional[int] = None
    info: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Candle:
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    def as_list(self) -> list:
        return [self.timestamp, self.open, self.high, self.low, self.close, self.volume]


@dataclass(frozen=True)
class BalanceEntry:
    free: Optional[float] = None
    locked: Optional[float] = None

    @property
    def total(self) -> Optional[float]:
        if self.free is None and self.locked is None:
            return None
        return (self.free or 0.0) + (self.locked or 0.0)


@dataclass(frozen=True)
class Balances:
    entries: Mapping[str, BalanceEntry]
    info: Any = field(default=None, compare=False, repr=False)

    def __getitem__(self, code: str) -> BalanceEntry:
        return self.entries[code]

    def __contains__(self, code: object) -> bool:
        return code in self.entries

    @property
    def free(self) -> Dict[str, Optional[float]]:
        return {code: e.free for code, e in self.entries.items()}

    @property
    def locked(self) -> Dict[str, Optional[float]]:
        return {code: e.locked for code, e in self.entries.items()}

    @property
    def total(self) -> Dict[str, Optional[float]]:
        return {code: e.total for code, e in self.entries.items()}


@dataclass(frozen=True)
class Transaction(_Timestamped):
    id: Optional[str] = None
    txid: Optional[str] = None
    timestamp: Optional[int] = None
    address: Optional[str] = None
    tag: Optional[str] = None
    type: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    status: TransactionStatus = TransactionStatus.UNKNOWN
    raw_status: Optional[str] = None
    updated: Optional[int] = None
    fee: Optional[Fee] = None
    info: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class DepositAddress:
    currency: str
    address: str
    tag: Optional[str] = None
    info: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class OrderAck:
    """What the exchange returns for place-order and withdraw: just an id."""

    id: Optional[str]
    info: Any = field(default=None, compare=False, repr=False)


class MarketIndex:
    """
    Read-only lookup tables built once per metadata load.
    A reload builds a new index; an existing one is never modified.
    """

    __slots__ = ("markets", "markets_by_id", "currencies", "currencies_by_id")

    def __init__(self, markets: Iterable[Market] = (), currencies: Iterable[Currency] = ()):
        markets = list(markets)
        currencies = list(currencies)
        object.__setattr__(self, "markets", MappingProxyType({m.symbol: m for m in markets}))
        object.__setattr__(self, "markets_by_id", MappingProxyType({m.id: m for m in markets}))
        object.__setattr__(self, "currencies", MappingProxyType({c.code: c for c in currencies}))
        object.__setattr__(
            self, "currencies_by_id",
            MappingProxyType({c.id: c for c in currencies if c.id is not None}),
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("MarketIndex is immutable")

    def resolve_market(self, market_id: Optional[str]) -> Optional[Market]:
        """Native id first; some private payloads already carry BASE/QUOTE."""
        if market_id is None:
            return None
        return self.markets_by_id.get(market_id) or self.markets.get(market_id)

    def currency_code(self, currency_id: Optional[str]) -> Optional[str]:
        if currency_id is None:
            return None
        currency = self.currencies_by_id.get(currency_id)
        if currency is not None:
            return currency.code
        return currency_id.upper()


EMPTY_INDEX = MarketIndex()
