"""End-to-end tests of MetalXExchange against a fake transport.

Each test checks both halves of an operation: the request the adapter
hands to the transport and the canonical object it builds from the reply.
"""

import json

import pytest  # type: ignore

from metalx.errors import (
    ArgumentError,
    AuthenticationFailure,
    ConfigurationError,
    InvalidAddress,
    NotFound,
    RateLimited,
)
from metalx.models import OrderStatus, TransactionStatus


@pytest.mark.asyncio  # type: ignore
async def test_load_markets_builds_index_once(exchange, transport):
    markets = await exchange.load_markets()
    assert set(markets) == {"MTL/BTC", "LTC/BTC"}
    assert markets["MTL/BTC"].id == "MTLBTC"
    assert exchange.currencies["BTC"].precision == 8

    await exchange.load_markets()
    assert len(transport.requests_to("/v1/exchange-info")) == 1

    await exchange.load_markets(reload=True)
    assert len(transport.requests_to("/v1/exchange-info")) == 2


@pytest.mark.asyncio  # type: ignore
async def test_reload_swaps_index_instead_of_mutating(exchange, transport):
    # first load consumes the canned EXCHANGE_INFO, the reload gets an empty list
    transport.add("GET", "/v1/exchange-info", {"symbols": []})
    await exchange.load_markets()
    before = exchange._index
    await exchange.load_markets(reload=True)
    assert exchange._index is not before
    assert "MTL/BTC" in before.markets
    assert exchange.markets == {}


@pytest.mark.asyncio  # type: ignore
async def test_empty_market_list_is_loaded_once(exchange, transport):
    transport.routes[("GET", "/v1/exchange-info")] = [(200, {"symbols": []})]
    await exchange.load_markets()
    await exchange.load_markets()
    assert exchange.markets == {}
    assert len(transport.requests_to("/v1/exchange-info")) == 1
    await exchange.load_markets(reload=True)
    assert len(transport.requests_to("/v1/exchange-info")) == 2


@pytest.mark.asyncio  # type: ignore
async def test_public_requests_are_not_signed(public_exchange, transport):
    transport.add("GET", "/v1/depth", {"serverTime": 1, "bids": [], "asks": []})
    book = await public_exchange.fetch_order_book("MTL/BTC", limit=10)
    call = transport.requests_to("/v1/depth")[0]
    assert call["query"] == "symbol=MTLBTC&depth=10"
    assert not any(h.startswith("MX-") for h in call["headers"])
    assert book.symbol == "MTL/BTC"
    assert book.nonce == 1


@pytest.mark.asyncio  # type: ignore
async def test_private_request_without_credentials_never_hits_network(public_exchange, transport):
    await public_exchange.load_markets()
    sent = len(transport.calls)
    with pytest.raises(ConfigurationError):
        await public_exchange.fetch_balance()
    assert len(transport.calls) == sent


@pytest.mark.asyncio  # type: ignore
async def test_private_requests_carry_signature_headers(exchange, transport):
    transport.add("GET", "/v1/account", {"accountType": "spot", "balances": [
        {"asset": "BTC", "free": "1.5", "locked": "0.5"},
        {"asset": "LTC", "free": "0", "locked": "0"},
    ]})
    balances = await exchange.fetch_balance()
    headers = transport.requests_to("/v1/account")[0]["headers"]
    assert headers["MX-API-KEY"] == "key-123"
    assert headers["MX-API-USER"] == "user-42"
    assert headers["MX-SIGNATURE"] == exchange.signer.signature(headers["MX-NONCE"])
    assert balances["BTC"].total == 2.0
    assert balances["LTC"].total == 0.0


@pytest.mark.asyncio  # type: ignore
@pytest.mark.parametrize("call", [
    lambda ex: ex.fetch_order_book(None),
    lambda ex: ex.fetch_trades(""),
    lambda ex: ex.fetch_ticker(None),
    lambda ex: ex.fetch_ohlcv(None, since=1),
    lambda ex: ex.fetch_ohlcv("MTL/BTC"),
    lambda ex: ex.fetch_ohlcv("MTL/BTC", "15m", since=1),
    lambda ex: ex.fetch_order(None),
    lambda ex: ex.cancel_order(None),
    lambda ex: ex.fetch_deposit_address(None),
    lambda ex: ex.create_order("MTL/BTC", "limit", "buy", 1),
    lambda ex: ex.withdraw("BTC", 1, None),
])
async def test_argument_errors_raised_before_any_request(exchange, transport, call):
    with pytest.raises(ArgumentError):
        await call(exchange)
    assert transport.calls == []


@pytest.mark.asyncio  # type: ignore
async def test_unknown_symbol(exchange):
    with pytest.raises(ArgumentError):
        await exchange.fetch_order_book("DOGE/USD")


@pytest.mark.asyncio  # type: ignore
async def test_fetch_ticker(public_exchange, transport):
    transport.add("GET", "/v1/tickers", {
        "symbol": "MTLBTC", "bidPrice": "0.00002931", "askPrice": "0.00002946",
        "lastPrice": "0.00002946", "openPrice": "0.00003047", "highPrice": "0.00003149",
        "lowPrice": "0.00002842", "volume": "2085.6791445",
    })
    ticker = await public_exchange.fetch_ticker("MTL/BTC")
    assert transport.requests_to("/v1/tickers")[0]["query"] == "symbol=MTLBTC"
    assert ticker.symbol == "MTL/BTC"
    assert ticker.last == 0.00002946


@pytest.mark.asyncio  # type: ignore
async def test_fetch_tickers_filters(public_exchange, transport):
    transport.add("GET", "/v1/tickers", [
        {"symbol": "MTLBTC", "lastPrice": "1"},
        {"symbol": "LTCBTC", "lastPrice": "2"},
    ])
    tickers = await public_exchange.fetch_tickers(["LTC/BTC"])
    assert [t.last for t in tickers] == [2.0]


@pytest.mark.asyncio  # type: ignore
async def test_fetch_trades(public_exchange, transport):
    transport.add("GET", "/v1/trades", [
        {"timestamp": 1589493840302, "symbol": "MTLBTC", "price": "0.00002947",
         "amount": "1.28985624", "cost": "0.0000380120633928"},
    ])
    trades = await public_exchange.fetch_trades("MTL/BTC", limit=50)
    assert transport.requests_to("/v1/trades")[0]["query"] == "symbol=MTLBTC&limit=50"
    assert trades[0].symbol == "MTL/BTC"
    assert trades[0].side is None


@pytest.mark.asyncio  # type: ignore
async def test_fetch_ohlcv(public_exchange, transport):
    transport.add("GET", "/v1/ohlcv", [
        [1589328000000, 0.0015, 0.0016, 0.00003103, 0.00003143, 418.09725549],
    ])
    candles = await public_exchange.fetch_ohlcv("MTL/BTC", "1h", since=1589328000000, limit=10)
    query = transport.requests_to("/v1/ohlcv")[0]["query"]
    assert query == "symbol=MTLBTC&interval=1h&since=1589328000000&limit=10"
    assert candles[0].close == 0.00003143


@pytest.mark.asyncio  # type: ignore
async def test_create_limit_order(exchange, transport):
    transport.add("POST", "/v1/orders", {"orderId": 2075345})
    ack = await exchange.create_order("MTL/BTC", "limit", "sell", 1, 0.123456789)
    body = json.loads(transport.requests_to("/v1/orders")[0]["body"])
    # price precision for MTL/BTC is quoteCommissionPrecision = 6
    assert body == {"symbol": "MTLBTC", "side": "sell", "type": "limit",
                    "quantity": 1, "limitPrice": "0.123456"}
    assert ack.id == "2075345"
    assert ack.info == {"orderId": 2075345}


@pytest.mark.asyncio  # type: ignore
async def test_create_market_order_has_no_price(exchange, transport):
    transport.add("POST", "/v1/orders", {"orderId": 1})
    await exchange.create_order("MTL/BTC", "market", "buy", 100)
    body = json.loads(transport.requests_to("/v1/orders")[0]["body"])
    assert "limitPrice" not in body


@pytest.mark.asyncio  # type: ignore
async def test_cancel_order(exchange, transport):
    transport.add("PUT", "/v1/orders/cancel", {
        "id": 2075345, "timestamp": 1589558288890, "status": "Canceled", "symbol": "MTLBTC",
        "type": "limit", "side": "sell", "price": "10", "amount": "1", "filled": "0",
        "remaining": "1", "cost": "0",
    })
    order = await exchange.cancel_order("2075345")
    call = transport.requests_to("/v1/orders/cancel")[0]
    assert call["method"] == "PUT"
    assert json.loads(call["body"]) == {"orderId": "2075345"}
    assert order.status is OrderStatus.CANCELED
    assert order.symbol == "MTL/BTC"


@pytest.mark.asyncio  # type: ignore
async def test_fetch_order(exchange, transport):
    transport.add("GET", "/v1/orders/1495144", {
        "id": 1495144, "timestamp": 1587485489504, "status": "FullyExecuted", "symbol": "MTL/BTC",
        "type": "market", "side": "buy", "price": "0", "amount": "1", "filled": "1",
        "remaining": "0", "cost": "0.0016",
    })
    order = await exchange.fetch_order(1495144)
    assert order.status is OrderStatus.CLOSED
    assert order.price == 0.0016


@pytest.mark.asyncio  # type: ignore
async def test_fetch_open_and_all_orders(exchange, transport):
    transport.add("GET", "/v1/orders", [{"id": 1, "symbol": "MTLBTC", "status": "Open"}])
    open_orders = await exchange.fetch_open_orders()
    await exchange.fetch_orders()
    queries = [c["query"] for c in transport.requests_to("/v1/orders")]
    assert queries == ["status=open", "status=all"]
    assert open_orders[0].status is OrderStatus.OPEN


@pytest.mark.asyncio  # type: ignore
async def test_fetch_my_trades(exchange, transport):
    transport.add("GET", "/v1/trades/me", [{
        "id": "2419962", "timestamp": 1589292571101, "symbol": "MTL/BTC", "order": 1975994,
        "type": "Market", "side": "sell", "takerOrMaker": "taker", "price": "0.0016",
        "amount": "1", "cost": "0.0016", "fee": {"cost": "8e-7", "currency": "BTC"},
    }])
    trades = await exchange.fetch_my_trades("MTL/BTC", since=1589292571000, limit=20)
    query = transport.requests_to("/v1/trades/me")[0]["query"]
    assert query == "symbol=MTLBTC&startTime=1589292571000&limit=20"
    assert trades[0].taker_or_maker == "taker"
    assert trades[0].fee.currency == "BTC"


@pytest.mark.asyncio  # type: ignore
async def test_fetch_deposit_address(exchange, transport):
    transport.add("GET", "/v1/address/deposit", {
        "currency": "XRP", "address": "r3e95RwVsLH7yCbnMfyh7SA8FdwUJCB4S2?memo=210833370", "tag": "210833370",
    })
    address = await exchange.fetch_deposit_address("XRP")
    assert transport.requests_to("/v1/address/deposit")[0]["query"] == "currency=XRP"
    assert address.tag == "210833370"


@pytest.mark.asyncio  # type: ignore
async def test_fetch_deposits_sends_currency_id(exchange, transport):
    transport.add("GET", "/v1/deposits", [
        {"id": 9, "timestamp": 1585236999069, "address": "bnb1", "type": "deposit",
         "amount": 0.1, "currency": "BTC", "status": "FullyProcessed"},
    ])
    deposits = await exchange.fetch_deposits("BTC")
    assert transport.requests_to("/v1/deposits")[0]["query"] == "currency=BTC"
    assert deposits[0].status is TransactionStatus.OK


@pytest.mark.asyncio  # type: ignore
async def test_fetch_withdrawals(exchange, transport):
    transport.add("GET", "/v1/withdrawals", [
        {"id": 35, "txid": None, "timestamp": 1588588996163, "address": "1Lku3CjJ", "type": "withdraw",
         "amount": 1, "currency": "BTC", "status": "Pending2Fa", "fee": {"currency": "BTC", "cost": 0.0001}},
    ])
    withdrawals = await exchange.fetch_withdrawals()
    assert transport.requests_to("/v1/withdrawals")[0]["query"] == ""
    assert withdrawals[0].type == "withdrawal"
    assert withdrawals[0].status is TransactionStatus.PENDING


@pytest.mark.asyncio  # type: ignore
async def test_withdraw_appends_tag(exchange, transport):
    transport.add("POST", "/v1/withdraw", {"id": 36})
    ack = await exchange.withdraw("XRP", "25", "r3e95RwVsLH7yCbnMfyh7SA8FdwUJCB4S2", tag="210833370")
    body = json.loads(transport.requests_to("/v1/withdraw")[0]["body"])
    assert body == {"currency": "XRP", "amount": 25.0,
                    "address": "r3e95RwVsLH7yCbnMfyh7SA8FdwUJCB4S2?dt=210833370"}
    assert ack.id == "36"


@pytest.mark.asyncio  # type: ignore
async def test_withdraw_rejects_malformed_address(exchange, transport):
    with pytest.raises(InvalidAddress):
        await exchange.withdraw("BTC", 1, "not an address")
    assert transport.calls == []


@pytest.mark.asyncio  # type: ignore
async def test_remote_errors_are_classified(exchange, transport):
    transport.add("GET", "/v1/orders/404", {"error": {"id": "not_found", "message": "no such order"}}, status=404)
    with pytest.raises(NotFound) as info:
        await exchange.fetch_order("404")
    assert info.value.payload == {"error": {"id": "not_found", "message": "no such order"}}
    assert info.value.status == 404


@pytest.mark.asyncio  # type: ignore
async def test_two_factor_required(exchange, transport):
    transport.add("POST", "/v1/withdraw", {"error": "two_factor_required"}, status=402)
    with pytest.raises(AuthenticationFailure):
        await exchange.withdraw("BTC", 1, "1Lku3CjJueSvuaexy3WQJAR9GL2q4rHV46")


@pytest.mark.asyncio  # type: ignore
async def test_transport_is_told_only_rate_limits_are_retryable(public_exchange, transport):
    transport.add("GET", "/v1/depth", {"error": "rate_limit_exceeded"}, status=429)
    with pytest.raises(RateLimited):
        await public_exchange.fetch_order_book("MTL/BTC")
    retry_on = transport.requests_to("/v1/depth")[0]["retry_on"]
    assert retry_on(429, {"error": "rate_limit_exceeded"}) is True
    assert retry_on(500, {"error": "internal_server_error"}) is False
    assert retry_on(401, "") is False


@pytest.mark.asyncio  # type: ignore
async def test_close_closes_transport(exchange, transport):
    await exchange.close()
    assert transport.closed is True
