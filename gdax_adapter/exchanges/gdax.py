from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from .base import Exchange
from ..config import GdaxConfig
from ..errors import BadSymbol, ExchangeError, HttpError, NotSupported, check_response, handle_errors
from ..models import Balance, Candle, Fee, Market, Order, OrderBook, Ticker, Trade, TransferReceipt
from ..normalize import GdaxNormalizer
from ..signing import RequestSigner, SignedRequest
from ..utils.http import HttpTransport
from ..utils.timeutils import parse8601, ymdhms

logger = logging.getLogger(__name__)

# Declared REST surface: api class -> http method -> path templates
API: Dict[str, Dict[str, List[str]]] = {
    "public": {
        "get": [
            "currencies",
            "products",
            "products/{id}/book",
            "products/{id}/candles",
            "products/{id}/stats",
            "products/{id}/ticker",
            "products/{id}/trades",
            "time",
        ],
    },
    "private": {
        "get": [
            "accounts",
            "accounts/{id}",
            "accounts/{id}/holds",
            "accounts/{id}/ledger",
            "accounts/{id}/transfers",
            "coinbase-accounts",
            "fills",
            "funding",
            "orders",
            "orders/{id}",
            "payment-methods",
            "position",
            "reports/{id}",
            "users/self/trailing-volume",
        ],
        "post": [
            "deposits/coinbase-account",
            "deposits/payment-method",
            "funding/repay",
            "orders",
            "position/close",
            "profiles/margin-transfer",
            "reports",
            "withdrawals/coinbase",
            "withdrawals/crypto",
            "withdrawals/payment-method",
        ],
        "delete": [
            "orders",
            "orders/{id}",
        ],
    },
}

# timeframe -> candle granularity in seconds
TIMEFRAMES: Dict[str, int] = {
    "1m": 60,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
    "2h": 7200,
    "4h": 14400,
    "12h": 43200,
    "1d": 86400,
    "1w": 604800,
    "1M": 2592000,
    "1y": 31536000,
}

MAX_CANDLES = 350


class Transport(Protocol):
    async def send(self, url: str, method: str, headers: Optional[Dict[str, str]] = None,
                   body: Optional[str] = None, rebuild: Optional[Callable[[], SignedRequest]] = None,
                   idempotent: bool = True) -> Any: ...


class TransferRoute(Enum):
    PAYMENT_METHOD = "payment_method_id"
    COINBASE_ACCOUNT = "coinbase_account_id"
    CRYPTO_ADDRESS = "crypto_address"


def select_transfer_route(params: Dict[str, Any], allow_crypto: bool) -> TransferRoute:
    """
    Pick the funding endpoint from whichever source/destination key the
    caller supplied. Without either key only withdrawals have a fallback
    (to a crypto address); deposits have none.
    """
    if "payment_method_id" in params:
        return TransferRoute.PAYMENT_METHOD
    if "coinbase_account_id" in params:
        return TransferRoute.COINBASE_ACCOUNT
    if allow_crypto:
        return TransferRoute.CRYPTO_ADDRESS
    raise NotSupported("gdax deposit() requires one of `coinbase_account_id` or `payment_method_id` extra params")


class GdaxExchange(Exchange):
    """
    GDAX REST adapter.
    Auth: HMAC SHA256 over nonce + method + path + body with the base64-decoded
    secret; headers CB-ACCESS-KEY / -SIGN / -TIMESTAMP / -PASSPHRASE.
    """
    id = "gdax"

    def __init__(self, config: Optional[GdaxConfig] = None, transport: Optional[Transport] = None,
                 nonce_source=None):
        self.config = config or GdaxConfig()
        self.transport = transport or HttpTransport(self.config.network)
        self.signer = RequestSigner(self.config.base_url, self.config.credentials, nonce_source)
        self.markets: Dict[str, Market] = {}
        self.markets_by_id: Dict[str, Market] = {}
        self.normalizer = GdaxNormalizer(self.config.fees, self.markets_by_id)

    # --- plumbing ---
    async def request(self, path: str, api: str = "public", method: str = "GET",
                      params: Optional[Dict[str, Any]] = None) -> Any:
        if path not in API.get(api, {}).get(method.lower(), []):
            raise NotSupported(f"gdax has no {api} {method.upper()} endpoint '{path}'")

        params = params or {}
        req = self.signer.sign(path, api, method, params)
        if self.config.debug:
            logger.debug("➡️ %s %s body=%s", req.method, req.url, req.body)
        rebuild = None
        if api == "private":
            # every retry carries a fresh nonce and signature
            def rebuild() -> SignedRequest:
                return self.signer.sign(path, api, method, params)
        try:
            response = await self.transport.send(req.url, req.method, req.headers, req.body,
                                                 rebuild=rebuild, idempotent=req.method == "GET")
        except HttpError as e:
            handle_errors(e.status, e.body)
            raise
        return check_response(response)

    def _merge_params(self, required: Dict[str, Any], params: Optional[Dict[str, Any]] = None,
                      defaults: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        merged = dict(defaults or {})
        for key, value in (params or {}).items():
            if key in required and required[key] != value:
                logger.warning("⚠️ Ignoring extra param %s=%r, %r is required", key, value, required[key])
                continue
            merged[key] = value
        merged.update(required)
        return merged

    # --- markets ---
    async def fetch_markets(self) -> List[Market]:
        products = await self.request("products")
        return self.normalizer.parse_markets(products)

    async def load_markets(self, reload: bool = False) -> Dict[str, Market]:
        if self.markets and not reload:
            return self.markets
        markets = await self.fetch_markets()
        self.markets.clear()
        self.markets_by_id.clear()
        for market in markets:
            self.markets[market.symbol] = market
            self.markets_by_id[market.id] = market
        logger.info("📊 Loaded %d gdax markets", len(markets))
        return self.markets

    def market(self, symbol: str) -> Market:
        if not self.markets:
            raise BadSymbol("gdax markets not loaded")
        market = self.markets.get(symbol)
        if market is None:
            raise BadSymbol(f"gdax does not have market symbol {symbol}")
        return market

    def market_id(self, symbol: str) -> str:
        return self.market(symbol).id

    async def fetch_time(self) -> Optional[int]:
        response = await self.request("time")
        return parse8601(response.get("iso"))

    # --- public market data ---
    async def fetch_ticker(self, symbol: str, params: Optional[Dict[str, Any]] = None) -> Ticker:
        await self.load_markets()
        market = self.market(symbol)
        request = self._merge_params({"id": market.id}, params)
        ticker = await self.request("products/{id}/ticker", params=request)
        return self.normalizer.parse_ticker(ticker, market)

    async def fetch_order_book(self, symbol: str, params: Optional[Dict[str, Any]] = None) -> OrderBook:
        await self.load_markets()
        # level: 1 best bid/ask, 2 aggregated, 3 full
        request = self._merge_params({"id": self.market_id(symbol)}, params, defaults={"level": 2})
        orderbook = await self.request("products/{id}/book", params=request)
        return self.normalizer.parse_order_book(orderbook)

    async def fetch_trades(self, symbol: str, since: Optional[int] = None, limit: Optional[int] = None,
                           params: Optional[Dict[str, Any]] = None) -> List[Trade]:
        await self.load_markets()
        market = self.market(symbol)
        request = self._merge_params({"id": market.id}, params)
        response = await self.request("products/{id}/trades", params=request)
        return self.normalizer.parse_trades(response, market, since, limit)

    async def fetch_ohlcv(self, symbol: str, timeframe: str = "1m", since: Optional[int] = None,
                          limit: Optional[int] = None, params: Optional[Dict[str, Any]] = None) -> List[Candle]:
        await self.load_markets()
        market = self.market(symbol)
        granularity = TIMEFRAMES.get(timeframe)
        if granularity is None:
            raise NotSupported(f"gdax does not support timeframe {timeframe}")
        required: Dict[str, Any] = {"id": market.id, "granularity": granularity}
        if since is not None:
            if limit is None:
                limit = MAX_CANDLES
            required["start"] = ymdhms(since)
            required["end"] = ymdhms(since + limit * granularity * 1000)
        response = await self.request("products/{id}/candles", params=self._merge_params(required, params))
        return self.normalizer.parse_ohlcvs(response, market, timeframe, since, limit)

    # --- account ---
    async def fetch_balance(self, params: Optional[Dict[str, Any]] = None) -> Balance:
        await self.load_markets()
        accounts = await self.request("accounts", "private", params=params)
        return self.normalizer.parse_balance(accounts)

    async def fetch_my_trades(self, symbol: Optional[str] = None, since: Optional[int] = None,
                              limit: Optional[int] = None, params: Optional[Dict[str, Any]] = None) -> List[Trade]:
        await self.load_markets()
        market = None
        required: Dict[str, Any] = {}
        if symbol is not None:
            market = self.market(symbol)
            required["product_id"] = market.id
        if limit is not None:
            required["limit"] = limit
        response = await self.request("fills", "private", params=self._merge_params(required, params))
        return self.normalizer.parse_trades(response, market, since, limit)

    async def fetch_payment_methods(self) -> Any:
        return await self.request("payment-methods", "private")

    # --- orders ---
    async def fetch_order(self, id: str, symbol: Optional[str] = None,
                          params: Optional[Dict[str, Any]] = None) -> Order:
        await self.load_markets()
        response = await self.request("orders/{id}", "private", params=self._merge_params({"id": id}, params))
        return self.normalizer.parse_order(response)

    async def _fetch_orders_with_status(self, status: Optional[str], symbol: Optional[str],
                                        since: Optional[int], limit: Optional[int],
                                        params: Optional[Dict[str, Any]]) -> List[Order]:
        await self.load_markets()
        required: Dict[str, Any] = {}
        if status is not None:
            required["status"] = status
        market = None
        if symbol:
            market = self.market(symbol)
            required["product_id"] = market.id
        response = await self.request("orders", "private", params=self._merge_params(required, params))
        return self.normalizer.parse_orders(response, market, since, limit)

    async def fetch_orders(self, symbol: Optional[str] = None, since: Optional[int] = None,
                           limit: Optional[int] = None, params: Optional[Dict[str, Any]] = None) -> List[Order]:
        return await self._fetch_orders_with_status("all", symbol, since, limit, params)

    async def fetch_open_orders(self, symbol: Optional[str] = None, since: Optional[int] = None,
                                limit: Optional[int] = None, params: Optional[Dict[str, Any]] = None) -> List[Order]:
        return await self._fetch_orders_with_status(None, symbol, since, limit, params)

    async def fetch_closed_orders(self, symbol: Optional[str] = None, since: Optional[int] = None,
                                  limit: Optional[int] = None, params: Optional[Dict[str, Any]] = None) -> List[Order]:
        return await self._fetch_orders_with_status("done", symbol, since, limit, params)

    async def create_order(
        self,
        symbol: str,
        type: str,
        side: str,
        amount: float,
        price: Optional[float] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Order:
        await self.load_markets()
        market = self.market(symbol)
        order: Dict[str, Any] = {
            "product_id": market.id,
            "side": side,
            "size": amount,
            "type": type,
        }
        if type == "limit":
            order["price"] = price
        response = await self.request("orders", "private", "POST", self._merge_params(order, params))
        return self.normalizer.parse_order(response, market)

    async def cancel_order(self, id: str, symbol: Optional[str] = None,
                           params: Optional[Dict[str, Any]] = None) -> Any:
        await self.load_markets()
        return await self.request("orders/{id}", "private", "DELETE", {"id": id})

    # --- funding ---
    async def _transfer(self, path: str, request: Dict[str, Any], params: Dict[str, Any],
                        action: str) -> TransferReceipt:
        response = await self.request(path, "private", "POST", self._merge_params(request, params))
        if not response:
            raise ExchangeError(f"gdax {action}() error: {response!r}")
        currency = request["currency"]
        schedule = self.config.fees.deposit if action == "deposit" else self.config.fees.withdraw
        fee = Fee(cost=schedule.get(currency), currency=currency)
        return TransferReceipt(id=response.get("id"), info=response, fee=fee)

    async def _deposit_from_payment_method(self, request, params) -> TransferReceipt:
        # e.g. a linked bank account
        return await self._transfer("deposits/payment-method", request, params, "deposit")

    async def _deposit_from_coinbase_account(self, request, params) -> TransferReceipt:
        return await self._transfer("deposits/coinbase-account", request, params, "deposit")

    async def _withdraw_to_payment_method(self, request, params) -> TransferReceipt:
        return await self._transfer("withdrawals/payment-method", request, params, "withdraw")

    async def _withdraw_to_coinbase_account(self, request, params) -> TransferReceipt:
        return await self._transfer("withdrawals/coinbase", request, params, "withdraw")

    async def _withdraw_to_crypto_address(self, request, params) -> TransferReceipt:
        return await self._transfer("withdrawals/crypto", request, params, "withdraw")

    async def deposit(self, currency: str, amount: float, address: Optional[str] = None,
                      params: Optional[Dict[str, Any]] = None) -> TransferReceipt:
        await self.load_markets()
        params = params or {}
        request = {"currency": currency, "amount": amount}
        route = select_transfer_route(params, allow_crypto=False)
        if route is TransferRoute.PAYMENT_METHOD:
            return await self._deposit_from_payment_method(request, params)
        return await self._deposit_from_coinbase_account(request, params)

    async def withdraw(self, currency: str, amount: float, address: Optional[str], tag: Optional[str] = None,
                       params: Optional[Dict[str, Any]] = None) -> TransferReceipt:
        params = params or {}
        route = select_transfer_route(params, allow_crypto=True)
        if route is TransferRoute.CRYPTO_ADDRESS and not address:
            raise ExchangeError("gdax withdraw() requires an address unless `payment_method_id` or "
                                "`coinbase_account_id` is given")
        await self.load_markets()
        request: Dict[str, Any] = {"currency": currency, "amount": amount}
        if route is TransferRoute.PAYMENT_METHOD:
            return await self._withdraw_to_payment_method(request, params)
        if route is TransferRoute.COINBASE_ACCOUNT:
            return await self._withdraw_to_coinbase_account(request, params)
        request["crypto_address"] = address
        return await self._withdraw_to_crypto_address(request, params)

    async def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()
