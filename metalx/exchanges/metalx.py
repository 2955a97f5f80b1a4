from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from .base import Exchange
from ..errors import ArgumentError, build_error, classify
from ..models import (
    EMPTY_INDEX, Balances, Candle, Currency, DepositAddress, Market, MarketIndex,
    Order, OrderAck, OrderBook, Ticker, Trade, Transaction,
)
from ..parsers import (
    check_address, parse_balance, parse_currencies, parse_deposit_address, parse_markets,
    parse_ohlcvs, parse_order, parse_order_book, parse_orders, parse_ticker, parse_tickers,
    parse_trades, parse_transactions,
)
from ..request import ENDPOINTS, build_request
from ..signer import Signer
from ..utils.fields import safe_string
from ..utils.http import HttpTransport
from ..utils.precision import decimal_to_precision

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.metalx.com"


class MetalXExchange(Exchange):
    """
    MetalX v1 adapter.
    Auth: HMAC SHA256 over nonce + apiKey + user with the secret key.
    Headers: MX-API-KEY, MX-API-USER, MX-SIGNATURE, MX-NONCE (nonce = ms time)
    Base URL: https://api.metalx.com (staging: https://api-staging.metalx.com)
    """
    timeframes = {
        "1m": "1m",
        "5m": "5m",
        "30m": "30m",
        "1h": "1h",
        "1d": "1d",
    }

    def __init__(self, api_key: str = "", secret_key: str = "", uid: str = "",
                 base_url: str = DEFAULT_BASE_URL, version: str = "v1",
                 transport: Optional[HttpTransport] = None):
        self.name = "metalx"
        self.base_url = base_url
        self.version = version
        self.signer = Signer(api_key, secret_key, uid)
        self.transport = transport or HttpTransport()
        self._index: MarketIndex = EMPTY_INDEX
        self._loaded = False

    # --- plumbing ---
    @staticmethod
    def _retryable(status: int, payload: Any) -> bool:
        return classify(status, payload).retryable

    async def _request(self, operation: str, params: Optional[Dict[str, Any]] = None) -> Any:
        endpoint = ENDPOINTS[operation]
        request = build_request(endpoint, params, self.base_url, self.version)
        headers_factory = None
        if request.private:
            self.signer.check_credentials()
            # fresh nonce and signature for every attempt the transport makes
            headers_factory = self.signer.headers
        logger.debug("➡️ %s %s", request.method, request.path)
        status, payload = await self.transport.fetch(
            request.method, request.url, None, request.body,
            retry_on=self._retryable, headers_factory=headers_factory,
        )
        if not 200 <= status < 300:
            error = build_error(status, payload, context=f"metalx {operation}")
            logger.warning("❌ %s failed: %s (%s)", operation, error, type(error).__name__)
            raise error
        return payload

    @staticmethod
    def _require(value: Any, what: str, operation: str) -> None:
        if value is None or value == "":
            raise ArgumentError(f"metalx {operation}() requires a {what} argument")

    @property
    def markets(self) -> Dict[str, Market]:
        return dict(self._index.markets)

    @property
    def currencies(self) -> Dict[str, Currency]:
        return dict(self._index.currencies)

    def market(self, symbol: str) -> Market:
        self._require(symbol, "symbol", "market")
        market = self._index.markets.get(symbol) or self._index.markets_by_id.get(symbol)
        if market is None:
            raise ArgumentError(f"metalx does not have market symbol {symbol}")
        return market

    def currency(self, code: str) -> Currency:
        self._require(code, "currency code", "currency")
        currency = self._index.currencies.get(code)
        if currency is None:
            raise ArgumentError(f"metalx does not have currency code {code}")
        return currency

    def price_to_precision(self, symbol: str, price: float) -> str:
        return decimal_to_precision(price, self.market(symbol).precision.price)

    # --- metadata ---
    async def load_markets(self, reload: bool = False) -> Dict[str, Market]:
        if self._loaded and not reload:
            return self.markets
        currencies = await self.fetch_currencies()
        response = await self._request("fetch_markets")
        markets = parse_markets(response, MarketIndex(currencies=currencies.values()))
        # swap the whole index at once; in-flight parsers keep the old one
        self._index = MarketIndex(markets, currencies.values())
        self._loaded = True
        logger.info("📈 Loaded %d markets and %d currencies", len(markets), len(currencies))
        return self.markets

    async def fetch_markets(self) -> List[Market]:
        response = await self._request("fetch_markets")
        return parse_markets(response, self._index)

    async def fetch_currencies(self) -> Dict[str, Currency]:
        response = await self._request("fetch_currencies")
        return parse_currencies(response)

    # --- public market data ---
    async def fetch_ticker(self, symbol: str) -> Ticker:
        self._require(symbol, "symbol", "fetch_ticker")
        await self.load_markets()
        market = self.market(symbol)
        response = await self._request("fetch_tickers", {"symbol": market.id})
        if isinstance(response, list):
            # some deployments answer with a one-element list
            response = next((t for t in response if safe_string(t, "symbol") == market.id), {})
        return parse_ticker(response, market, self._index)

    async def fetch_tickers(self, symbols: Optional[Iterable[str]] = None) -> List[Ticker]:
        await self.load_markets()
        response = await self._request("fetch_tickers")
        return parse_tickers(response, symbols, self._index)

    async def fetch_order_book(self, symbol: str, limit: Optional[int] = None) -> OrderBook:
        self._require(symbol, "symbol", "fetch_order_book")
        await self.load_markets()
        market = self.market(symbol)
        request: Dict[str, Any] = {"symbol": market.id}
        if limit is not None:
            request["depth"] = limit
        response = await self._request("fetch_order_book", request)
        return parse_order_book(response, market.symbol)

    async def fetch_trades(self, symbol: str, since: Optional[int] = None,
                           limit: Optional[int] = None) -> List[Trade]:
        self._require(symbol, "symbol", "fetch_trades")
        await self.load_markets()
        market = self.market(symbol)
        request: Dict[str, Any] = {"symbol": market.id}
        if limit is not None:
            request["limit"] = limit
        response = await self._request("fetch_trades", request)
        return parse_trades(response, market, since, limit, self._index)

    async def fetch_ohlcv(self, symbol: str, timeframe: str = "1m",
                          since: Optional[int] = None, limit: Optional[int] = None) -> List[Candle]:
        self._require(symbol, "symbol", "fetch_ohlcv")
        self._require(since, "since", "fetch_ohlcv")
        if timeframe not in self.timeframes:
            raise ArgumentError(
                f"metalx fetch_ohlcv() does not support timeframe {timeframe!r}; "
                f"use one of {', '.join(self.timeframes)}"
            )
        await self.load_markets()
        market = self.market(symbol)
        request: Dict[str, Any] = {
            "symbol": market.id,
            "interval": self.timeframes[timeframe],
            "since": since,
        }
        if limit is not None:
            request["limit"] = limit
        response = await self._request("fetch_ohlcv", request)
        return parse_ohlcvs(response, since, limit)

    # --- account ---
    async def fetch_balance(self) -> Balances:
        await self.load_markets()
        response = await self._request("fetch_balance")
        return parse_balance(response, self._index)

    async def create_order(self, symbol: str, type: str, side: str, amount: float,
                           price: Optional[float] = None) -> OrderAck:
        self._require(symbol, "symbol", "create_order")
        self._require(type, "type", "create_order")
        self._require(side, "side", "create_order")
        self._require(amount, "amount", "create_order")
        if type == "limit" and price is None:
            raise ArgumentError("metalx create_order() requires a price for limit orders")
        await self.load_markets()
        market = self.market(symbol)
        request: Dict[str, Any] = {
            "symbol": market.id,
            "side": side,
            "type": type,
            "quantity": amount,
        }
        if type == "limit":
            request["limitPrice"] = self.price_to_precision(symbol, price)
        response = await self._request("create_order", request)
        order_id = safe_string(response, "orderId")
        logger.info("✅ - %s %s order placed on MetalX: %s %s, id = %s",
                    side.upper(), type, amount, market.symbol, order_id)
        return OrderAck(id=order_id, info=response)

    async def cancel_order(self, id: str, symbol: Optional[str] = None) -> Order:
        self._require(id, "order id", "cancel_order")
        await self.load_markets()
        market = self.market(symbol) if symbol is not None else None
        response = await self._request("cancel_order", {"orderId": id})
        return parse_order(response, market, self._index)

    async def fetch_order(self, id: str, symbol: Optional[str] = None) -> Order:
        self._require(id, "order id", "fetch_order")
        await self.load_markets()
        market = self.market(symbol) if symbol is not None else None
        response = await self._request("fetch_order", {"orderId": id})
        return parse_order(response, market, self._index)

    async def _fetch_orders_by_status(self, status: str, symbol: Optional[str],
                                      since: Optional[int], limit: Optional[int]) -> List[Order]:
        await self.load_markets()
        market = self.market(symbol) if symbol is not None else None
        response = await self._request("fetch_orders", {"status": status})
        return parse_orders(response, market, since, limit, self._index)

    async def fetch_open_orders(self, symbol: Optional[str] = None, since: Optional[int] = None,
                                limit: Optional[int] = None) -> List[Order]:
        return await self._fetch_orders_by_status("open", symbol, since, limit)

    async def fetch_orders(self, symbol: Optional[str] = None, since: Optional[int] = None,
                           limit: Optional[int] = None) -> List[Order]:
        return await self._fetch_orders_by_status("all", symbol, since, limit)

    async def fetch_my_trades(self, symbol: Optional[str] = None, since: Optional[int] = None,
                              limit: Optional[int] = None) -> List[Trade]:
        await self.load_markets()
        request: Dict[str, Any] = {}
        market = None
        if symbol is not None:
            market = self.market(symbol)
            request["symbol"] = market.id
        if since is not None:
            request["startTime"] = since
        if limit is not None:
            request["limit"] = limit  # max 200
        response = await self._request("fetch_my_trades", request)
        return parse_trades(response, market, since, limit, self._index)

    # --- funding ---
    async def fetch_deposit_address(self, code: str) -> DepositAddress:
        self._require(code, "currency code", "fetch_deposit_address")
        await self.load_markets()
        currency = self.currency(code)
        response = await self._request("fetch_deposit_address", {"currency": currency.id})
        return parse_deposit_address(response, code)

    async def _fetch_transactions(self, operation: str, code: Optional[str],
                                  since: Optional[int], limit: Optional[int]) -> List[Transaction]:
        await self.load_markets()
        request: Dict[str, Any] = {}
        currency = None
        if code is not None:
            currency = self.currency(code)
            request["currency"] = currency.id
        # the endpoints take no since/limit, both are applied here
        response = await self._request(operation, request)
        return parse_transactions(response, currency, since, limit, self._index)

    async def fetch_deposits(self, code: Optional[str] = None, since: Optional[int] = None,
                             limit: Optional[int] = None) -> List[Transaction]:
        return await self._fetch_transactions("fetch_deposits", code, since, limit)

    async def fetch_withdrawals(self, code: Optional[str] = None, since: Optional[int] = None,
                                limit: Optional[int] = None) -> List[Transaction]:
        return await self._fetch_transactions("fetch_withdrawals", code, since, limit)

    async def withdraw(self, code: str, amount: float, address: str, tag: Optional[str] = None) -> OrderAck:
        self._require(code, "currency code", "withdraw")
        self._require(amount, "amount", "withdraw")
        self._require(address, "address", "withdraw")
        check_address(address)
        await self.load_markets()
        currency = self.currency(code)
        if tag is not None:
            address += f"?dt={tag}"
        request = {
            "currency": currency.id,
            "amount": float(amount),
            "address": address,
        }
        response = await self._request("withdraw", request)
        withdrawal_id = safe_string(response, "id")
        logger.info("💸 Withdrawal of %s %s requested, id = %s", amount, code, withdrawal_id)
        return OrderAck(id=withdrawal_id, info=response)

    async def close(self) -> None:
        await self.transport.close()

