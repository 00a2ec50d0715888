"""
GDAX JSON -> canonical records.

Every parse_* is total over well-formed payloads: missing optional fields
become None. A value of the wrong type (e.g. a non-numeric price) raises.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import FeeSchedule
from .models import (
    Balance,
    BalanceEntry,
    Candle,
    Fee,
    Limits,
    Market,
    MinMax,
    Order,
    OrderBook,
    Precision,
    Ticker,
    Trade,
)
from .utils.timeutils import iso8601, parse8601

ORDER_STATUSES: Dict[str, str] = {
    "pending": "open",
    "active": "open",
    "open": "open",
    "done": "closed",
    "canceled": "canceled",
}

AMOUNT_PRECISION = 8


def safe_float(obj: Dict[str, Any], key: str, default: Optional[float] = None) -> Optional[float]:
    value = obj.get(key)
    if value is None or value == "":
        return default
    return float(value)


def safe_string(obj: Dict[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    value = obj.get(key)
    if value is None:
        return default
    return str(value)


def precision_from_string(value: Optional[str]) -> Optional[int]:
    """Decimal places of an increment string: "0.01" -> 2, "0.01000000" -> 2, "1" -> 0."""
    if value is None:
        return None
    parts = value.rstrip("0").split(".")
    return len(parts[1]) if len(parts) > 1 else 0


def parse_order_status(status: Optional[str]) -> Optional[str]:
    # unknown upstream statuses pass through
    return ORDER_STATUSES.get(status, status)


def parse_ohlcv(ohlcv: Sequence[Any], market: Optional[Market] = None, timeframe: str = "1m",
                since: Optional[int] = None, limit: Optional[int] = None) -> Candle:
    # upstream row: [time (s), low, high, open, close, volume]
    return Candle(
        int(ohlcv[0]) * 1000,
        ohlcv[3],
        ohlcv[2],
        ohlcv[1],
        ohlcv[4],
        ohlcv[5],
    )


def filter_by_since_limit(items: Iterable[Any], since: Optional[int] = None,
                          limit: Optional[int] = None) -> List[Any]:
    result = sorted(items, key=lambda x: (x.timestamp is None, x.timestamp or 0))
    if since is not None:
        result = [x for x in result if x.timestamp is not None and x.timestamp >= since]
    if limit is not None:
        result = result[:limit]
    return result


class GdaxNormalizer:
    """
    Stateless apart from `markets_by_id`, which the exchange fills on
    market load and the normalizer only reads.
    """

    def __init__(self, fees: Optional[FeeSchedule] = None,
                 markets_by_id: Optional[Dict[str, Market]] = None):
        self.fees = fees or FeeSchedule()
        self.markets_by_id: Dict[str, Market] = markets_by_id if markets_by_id is not None else {}

    def _market_for(self, payload: Dict[str, Any], market: Optional[Market]) -> Optional[Market]:
        if market is not None:
            return market
        product_id = payload.get("product_id")
        if product_id is None:
            return None
        return self.markets_by_id.get(product_id)

    # --- markets ---
    def parse_market(self, market: Dict[str, Any]) -> Market:
        base = market["base_currency"]
        quote = market["quote_currency"]
        return Market(
            id=market["id"],
            symbol=f"{base}/{quote}",
            base=base,
            quote=quote,
            precision=Precision(
                amount=AMOUNT_PRECISION,
                price=precision_from_string(safe_string(market, "quote_increment")),
            ),
            limits=Limits(
                amount=MinMax(safe_float(market, "base_min_size"), safe_float(market, "base_max_size")),
                price=MinMax(safe_float(market, "quote_increment"), None),
                cost=MinMax(safe_float(market, "min_market_funds"), safe_float(market, "max_market_funds")),
            ),
            maker=self.fees.maker,
            taker=self.fees.taker_for(base),
            active=market.get("status") == "online",
            tier_based=self.fees.tier_based,
            percentage=self.fees.percentage,
            info=market,
        )

    def parse_markets(self, markets: Iterable[Dict[str, Any]]) -> List[Market]:
        return [self.parse_market(m) for m in markets]

    # --- balance ---
    def parse_balance(self, accounts: List[Dict[str, Any]]) -> Balance:
        result = Balance(info=accounts)
        for account in accounts:
            result.currencies[account["currency"]] = BalanceEntry(
                free=safe_float(account, "available"),
                used=safe_float(account, "hold"),
                total=safe_float(account, "balance"),
            )
        return result

    # --- order book ---
    def parse_order_book(self, orderbook: Dict[str, Any], timestamp: Optional[int] = None) -> OrderBook:
        def side(key: str, descending: bool) -> List[List[float]]:
            levels = [[float(level[0]), float(level[1])] for level in orderbook.get(key) or []]
            return sorted(levels, key=lambda lv: lv[0], reverse=descending)

        return OrderBook(
            bids=side("bids", True),
            asks=side("asks", False),
            timestamp=timestamp,
            datetime=iso8601(timestamp),
            info=orderbook,
        )

    # --- ticker ---
    def parse_ticker(self, ticker: Dict[str, Any], market: Optional[Market] = None) -> Ticker:
        timestamp = parse8601(ticker.get("time"))
        bid = safe_float(ticker, "bid") if "bid" in ticker else None
        ask = safe_float(ticker, "ask") if "ask" in ticker else None
        return Ticker(
            symbol=market.symbol if market else None,
            timestamp=timestamp,
            datetime=iso8601(timestamp),
            bid=bid,
            ask=ask,
            last=safe_float(ticker, "price"),
            base_volume=safe_float(ticker, "volume"),
            info=ticker,
        )

    # --- trades ---
    def parse_trade(self, trade: Dict[str, Any], market: Optional[Market] = None) -> Trade:
        timestamp = None
        if "time" in trade:
            timestamp = parse8601(trade["time"])
        elif "created_at" in trade:
            timestamp = parse8601(trade["created_at"])

        # public history labels the maker side; report the taker's perspective
        side = "sell" if trade.get("side") == "buy" else "buy"

        market = self._market_for(trade, market)
        symbol = market.symbol if market else None

        fee = None
        if "fill_fees" in trade:
            fee = Fee(
                cost=safe_float(trade, "fill_fees"),
                currency=market.quote if market else None,
                rate=None,
            )

        liquidity = None
        if "liquidity" in trade:
            liquidity = "Taker" if trade["liquidity"] == "T" else "Maker"

        return Trade(
            id=safe_string(trade, "trade_id"),
            order=safe_string(trade, "order_id"),
            timestamp=timestamp,
            datetime=iso8601(timestamp),
            symbol=symbol,
            side=side,
            price=safe_float(trade, "price"),
            amount=safe_float(trade, "size"),
            fee=fee,
            liquidity=liquidity,
            info=trade,
        )

    def parse_trades(self, trades: Iterable[Dict[str, Any]], market: Optional[Market] = None,
                     since: Optional[int] = None, limit: Optional[int] = None) -> List[Trade]:
        return filter_by_since_limit((self.parse_trade(t, market) for t in trades), since, limit)

    # --- orders ---
    def parse_order(self, order: Dict[str, Any], market: Optional[Market] = None) -> Order:
        timestamp = parse8601(order.get("created_at"))
        market = self._market_for(order, market)

        amount = safe_float(order, "size")
        if amount is None:
            amount = safe_float(order, "funds")
        if amount is None:
            amount = safe_float(order, "specified_funds")
        filled = safe_float(order, "filled_size")
        remaining = None
        if amount is not None and filled is not None:
            remaining = amount - filled

        return Order(
            id=safe_string(order, "id"),
            symbol=market.symbol if market else None,
            type=order.get("type"),
            side=order.get("side"),
            status=parse_order_status(order.get("status")),
            price=safe_float(order, "price"),
            amount=amount,
            filled=filled,
            remaining=remaining,
            cost=safe_float(order, "executed_value"),
            fee=Fee(cost=safe_float(order, "fill_fees")),
            timestamp=timestamp,
            datetime=iso8601(timestamp),
            info=order,
        )

    def parse_orders(self, orders: Iterable[Dict[str, Any]], market: Optional[Market] = None,
                     since: Optional[int] = None, limit: Optional[int] = None) -> List[Order]:
        return filter_by_since_limit((self.parse_order(o, market) for o in orders), since, limit)

    # --- candles ---
    def parse_ohlcvs(self, ohlcvs: Iterable[Sequence[Any]], market: Optional[Market] = None,
                     timeframe: str = "1m", since: Optional[int] = None,
                     limit: Optional[int] = None) -> List[Candle]:
        # rows keep upstream order; stop at `limit`, skip anything older than `since`
        result: List[Candle] = []
        for row in ohlcvs:
            if limit is not None and len(result) >= limit:
                break
            candle = parse_ohlcv(row, market, timeframe)
            if since is not None and candle.timestamp < since:
                continue
            result.append(candle)
        return result
