"""
Response parsers: raw MetalX JSON -> canonical model 🧩

Parsers are lenient about missing fields (they come back as None) and never
re-sort or re-compute what the exchange reports, except where noted:
balance totals and the price of market orders that report a zero price.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from .errors import InvalidAddress
from .models import (
    EMPTY_INDEX,
    BalanceEntry,
    Balances,
    Candle,
    Currency,
    DepositAddress,
    Fee,
    Limits,
    Market,
    MarketIndex,
    MinMax,
    Order,
    OrderBook,
    OrderStatus,
    Precision,
    Ticker,
    Trade,
    Transaction,
    TransactionStatus,
)
from .utils.fields import (
    filter_by_since_limit,
    parse_timestamp,
    safe_bool,
    safe_float,
    safe_integer,
    safe_string,
    safe_string_lower,
    safe_value,
)

logger = logging.getLogger(__name__)

MARKET_RUNNING = "running"

ORDER_STATUSES: Dict[str, OrderStatus] = {
    "Open": OrderStatus.OPEN,
    "PartiallyExecuted": OrderStatus.OPEN,
    "FullyExecuted": OrderStatus.CLOSED,
    "Canceled": OrderStatus.CANCELED,
    "Pending": OrderStatus.PENDING,
    "Pending2Fa": OrderStatus.PENDING,
}

TRANSACTION_STATUSES: Dict[str, TransactionStatus] = {
    "FullyProcessed": TransactionStatus.OK,
    "Pending": TransactionStatus.PENDING,
    "Pending2Fa": TransactionStatus.PENDING,
    "Failed": TransactionStatus.FAILED,
    "Canceled": TransactionStatus.CANCELED,
}

TRANSACTION_TYPES = {
    "deposit": "deposit",
    "withdraw": "withdrawal",
    "withdrawal": "withdrawal",
}


def _as_list(response: Any) -> List[Any]:
    if response is None:
        return []
    if isinstance(response, list):
        return response
    return [response]


def _symbol_of(market: Optional[Market]) -> Optional[str]:
    return market.symbol if market is not None else None


# --- markets / currencies ---

def parse_market(market: Dict[str, Any], index: MarketIndex = EMPTY_INDEX) -> Market:
    market_id = safe_string(market, "symbol")
    base_id = safe_string(market, "baseAsset")
    quote_id = safe_string(market, "quoteAsset")
    base = index.currency_code(base_id)
    quote = index.currency_code(quote_id)
    # amount precision comes from the quote asset, price from the quote commission
    precision = Precision(
        amount=safe_integer(market, "quotePrecision"),
        price=safe_integer(market, "quoteCommissionPrecision"),
    )
    return Market(
        id=market_id,
        symbol=f"{base}/{quote}",
        base=base,
        quote=quote,
        base_id=base_id,
        quote_id=quote_id,
        active=safe_string(market, "status") == MARKET_RUNNING,
        precision=precision,
        limits=Limits(),
        info=market,
    )


def parse_markets(response: Dict[str, Any], index: MarketIndex = EMPTY_INDEX) -> List[Market]:
    symbols = safe_value(response, "symbols", [])
    return [parse_market(m, index) for m in symbols]


def parse_currency(currency: Dict[str, Any]) -> Currency:
    precision = safe_integer(currency, "precision")
    minimum = 10 ** -precision if precision is not None else None
    return Currency(
        id=safe_string(currency, "id"),
        code=safe_string(currency, "code"),
        name=safe_string(currency, "name"),
        active=safe_bool(currency, "active"),
        fee=safe_float(currency, "fee"),
        precision=precision,
        limits=Limits(amount=MinMax(min=minimum), price=MinMax(min=minimum)),
        info=currency,
    )


def parse_currencies(response: Iterable[Dict[str, Any]]) -> Dict[str, Currency]:
    result: Dict[str, Currency] = {}
    for raw in _as_list(response):
        currency = parse_currency(raw)
        result[currency.code] = currency
    return result


# --- order book / candles / tickers ---

def _book_side(entries: Any) -> List[List[float]]:
    return [[safe_float(e, "price"), safe_float(e, "quantity")] for e in (entries or [])]


def parse_order_book(response: Dict[str, Any], symbol: Optional[str] = None) -> OrderBook:
    # serverTime is taken as reported; it is not checked to increase between polls
    timestamp = safe_integer(response, "serverTime")
    return OrderBook(
        symbol=symbol,
        bids=_book_side(safe_value(response, "bids")),
        asks=_book_side(safe_value(response, "asks")),
        timestamp=timestamp,
        nonce=timestamp,
        info=response,
    )


def parse_ohlcv(row: List[Any]) -> Candle:
    return Candle(
        timestamp=int(row[0]),
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
    )


def parse_ohlcvs(response: Any, since: Optional[int] = None, limit: Optional[int] = None) -> List[Candle]:
    candles = [parse_ohlcv(row) for row in _as_list(response)]
    return filter_by_since_limit(candles, since, limit)


def parse_ticker(ticker: Dict[str, Any], market: Optional[Market] = None,
                 index: MarketIndex = EMPTY_INDEX) -> Ticker:
    resolved = index.resolve_market(safe_string(ticker, "symbol"))
    if resolved is not None:
        market = resolved
    last = safe_float(ticker, "lastPrice")
    return Ticker(
        symbol=_symbol_of(market),
        timestamp=None,
        high=safe_float(ticker, "highPrice"),
        low=safe_float(ticker, "lowPrice"),
        bid=safe_float(ticker, "bidPrice"),
        ask=safe_float(ticker, "askPrice"),
        open=safe_float(ticker, "openPrice"),
        close=last,
        last=last,
        base_volume=safe_float(ticker, "volume"),
        info=ticker,
    )


def parse_tickers(response: Any, symbols: Optional[Iterable[str]] = None,
                  index: MarketIndex = EMPTY_INDEX) -> List[Ticker]:
    tickers = [parse_ticker(t, index=index) for t in _as_list(response)]
    if symbols is None:
        return tickers
    wanted = set(symbols)
    return [t for t in tickers if t.symbol in wanted]


# --- trades ---

def _parse_fee(raw: Any, index: MarketIndex) -> Optional[Fee]:
    if not isinstance(raw, dict):
        return None
    return Fee(
        cost=safe_float(raw, "cost"),
        currency=index.currency_code(safe_string(raw, "currency")),
    )


def parse_trade(trade: Dict[str, Any], market: Optional[Market] = None,
                index: MarketIndex = EMPTY_INDEX) -> Trade:
    """
    Handles both the public shape (timestamp, symbol, price, amount, cost)
    and the private one (adds id, order, type, side, takerOrMaker, fee).
    """
    if market is None:
        market = index.resolve_market(safe_string(trade, "symbol"))
    return Trade(
        id=safe_string(trade, "id"),
        order=safe_string(trade, "order"),
        timestamp=parse_timestamp(safe_value(trade, "timestamp")),
        symbol=_symbol_of(market),
        type=safe_string_lower(trade, "type"),
        side=safe_string_lower(trade, "side"),
        taker_or_maker=safe_string_lower(trade, "takerOrMaker"),
        price=safe_float(trade, "price"),
        amount=safe_float(trade, "amount"),
        cost=safe_float(trade, "cost"),
        fee=_parse_fee(safe_value(trade, "fee"), index),
        info=trade,
    )


def parse_trades(response: Any, market: Optional[Market] = None, since: Optional[int] = None,
                 limit: Optional[int] = None, index: MarketIndex = EMPTY_INDEX) -> List[Trade]:
    trades = [parse_trade(t, market, index) for t in _as_list(response)]
    return filter_by_since_limit(trades, since, limit)


# --- balances ---

def parse_balance(response: Dict[str, Any], index: MarketIndex = EMPTY_INDEX) -> Balances:
    entries: Dict[str, BalanceEntry] = {}
    for balance in safe_value(response, "balances", []):
        code = index.currency_code(safe_string(balance, "asset"))
        if code is None:
            continue
        entries[code] = BalanceEntry(
            free=safe_float(balance, "free"),
            locked=safe_float(balance, "locked"),
        )
    return Balances(entries=entries, info=response)


# --- orders ---

def parse_order_status(status: Optional[str]) -> OrderStatus:
    if status is None:
        return OrderStatus.UNKNOWN
    mapped = ORDER_STATUSES.get(status)
    if mapped is None:
        logger.debug("Unmapped order status %r, keeping it as unknown", status)
        return OrderStatus.UNKNOWN
    return mapped


def parse_order(order: Dict[str, Any], market: Optional[Market] = None,
                index: MarketIndex = EMPTY_INDEX) -> Order:
    raw_status = safe_string(order, "status")
    resolved = index.resolve_market(safe_string(order, "symbol"))
    if resolved is not None:
        market = resolved
    price = safe_float(order, "price")
    amount = safe_float(order, "amount", safe_float(order, "origQty"))
    filled = safe_float(order, "filled", safe_float(order, "executedQty"))
    cost = safe_float(order, "cost")
    order_type = safe_string_lower(order, "type")
    if order_type == "market" and price == 0.0:
        if cost is not None and filled is not None and cost > 0 and filled > 0:
            price = cost / filled
    order_id = safe_string(order, "id")
    return Order(
        id=order_id,
        client_order_id=order_id,
        timestamp=parse_timestamp(safe_value(order, "timestamp")),
        symbol=_symbol_of(market),
        type=order_type,
        side=safe_string_lower(order, "side"),
        price=price,
        amount=amount,
        filled=filled,
        remaining=safe_float(order, "remaining"),
        cost=cost,
        average=safe_float(order, "avgPrice"),
        status=parse_order_status(raw_status),
        raw_status=raw_status,
        fee=None,
        info=order,
    )


def parse_orders(response: Any, market: Optional[Market] = None, since: Optional[int] = None,
                 limit: Optional[int] = None, index: MarketIndex = EMPTY_INDEX) -> List[Order]:
    orders = [parse_order(o, None, index) for o in _as_list(response)]
    if market is not None:
        orders = [o for o in orders if o.symbol == market.symbol]
    return filter_by_since_limit(orders, since, limit)


# --- funding ---

def check_address(address: Optional[str]) -> str:
    if not address or any(ch.isspace() for ch in address):
        raise InvalidAddress(f"address is invalid or has not been generated yet: {address!r}", payload=address)
    return address


def parse_deposit_address(response: Dict[str, Any], code: str) -> DepositAddress:
    return DepositAddress(
        currency=code,
        address=check_address(safe_string(response, "address")),
        tag=safe_string(response, "tag"),
        info=response,
    )


def parse_transaction_status(status: Optional[str]) -> TransactionStatus:
    if status is None:
        return TransactionStatus.UNKNOWN
    return TRANSACTION_STATUSES.get(status, TransactionStatus.UNKNOWN)


def parse_transaction(transaction: Dict[str, Any], currency: Optional[Currency] = None,
                      index: MarketIndex = EMPTY_INDEX) -> Transaction:
    raw_status = safe_string(transaction, "status")
    raw_type = safe_string_lower(transaction, "type")
    code = index.currency_code(safe_string(transaction, "currency"))
    if code is None and currency is not None:
        code = currency.code
    return Transaction(
        id=safe_string(transaction, "id"),
        txid=safe_string(transaction, "txid"),
        timestamp=parse_timestamp(safe_value(transaction, "timestamp")),
        address=safe_string(transaction, "address"),
        tag=safe_string(transaction, "tag"),
        type=TRANSACTION_TYPES.get(raw_type, raw_type),
        amount=safe_float(transaction, "amount"),
        currency=code,
        status=parse_transaction_status(raw_status),
        raw_status=raw_status,
        updated=parse_timestamp(safe_value(transaction, "updated")),
        fee=_parse_fee(safe_value(transaction, "fee"), index),
        info=transaction,
    )


def parse_transactions(response: Any, currency: Optional[Currency] = None, since: Optional[int] = None,
                       limit: Optional[int] = None, index: MarketIndex = EMPTY_INDEX) -> List[Transaction]:
    transactions = [parse_transaction(t, currency, index) for t in _as_list(response)]
    if currency is not None:
        transactions = [t for t in transactions if t.currency == currency.code]
    return filter_by_since_limit(transactions, since, limit)
