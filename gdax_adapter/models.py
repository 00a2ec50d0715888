from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional


@dataclass(frozen=True)
class MinMax:
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True)
class Limits:
    amount: MinMax = field(default_factory=MinMax)
    price: MinMax = field(default_factory=MinMax)
    cost: MinMax = field(default_factory=MinMax)


@dataclass(frozen=True)
class Precision:
    amount: Optional[int] = None   # decimal places
    price: Optional[int] = None


@dataclass(frozen=True)
class Market:
    """
    One tradable pair. Built once per market load and never mutated;
    looked up both by `symbol` ("BTC/USD") and by exchange-native `id` ("BTC-USD").
    """
    id: str
    symbol: str
    base: str
    quote: str
    precision: Precision
    limits: Limits
    maker: float
    taker: float
    active: bool
    tier_based: bool = True
    percentage: bool = True
    info: Any = field(default=None, compare=False)


@dataclass
class BalanceEntry:
    free: Optional[float] = None
    used: Optional[float] = None
    total: Optional[float] = None   # exchange-reported, not checked against free + used


@dataclass
class Balance:
    info: Any
    currencies: Dict[str, BalanceEntry] = field(default_factory=dict)

    def __getitem__(self, code: str) -> BalanceEntry:
        return self.currencies[code]

    def __contains__(self, code: object) -> bool:
        return code in self.currencies

    @property
    def free(self) -> Dict[str, Optional[float]]:
        return {code: entry.free for code, entry in self.currencies.items()}

    @property
    def used(self) -> Dict[str, Optional[float]]:
        return {code: entry.used for code, entry in self.currencies.items()}

    @property
    def total(self) -> Dict[str, Optional[float]]:
        return {code: entry.total for code, entry in self.currencies.items()}


@dataclass
class Ticker:
    symbol: Optional[str]
    timestamp: Optional[int]
    datetime: Optional[str]
    bid: Optional[float] = None
    ask: Optional[float] = None
    last: Optional[float] = None
    base_volume: Optional[float] = None
    # not provided by the upstream ticker endpoint
    high: Optional[float] = None
    low: Optional[float] = None
    vwap: Optional[float] = None
    open: Optional[float] = None
    close: Optional[float] = None
    first: Optional[float] = None
    change: Optional[float] = None
    percentage: Optional[float] = None
    average: Optional[float] = None
    quote_volume: Optional[float] = None
    info: Any = None


@dataclass
class Fee:
    cost: Optional[float] = None
    currency: Optional[str] = None
    rate: Optional[float] = None


@dataclass
class Trade:
    id: Optional[str]
    order: Optional[str]
    timestamp: Optional[int]
    datetime: Optional[str]
    symbol: Optional[str]
    side: str                          # "buy" | "sell", inverted from the raw payload
    price: Optional[float]
    amount: Optional[float]
    fee: Optional[Fee] = None
    liquidity: Optional[str] = None    # "Taker" | "Maker"
    info: Any = None


@dataclass
class Order:
    id: Optional[str]
    symbol: Optional[str]
    type: Optional[str]
    side: Optional[str]
    status: Optional[str]              # "open" | "closed" | "canceled" | upstream passthrough
    price: Optional[float]
    amount: Optional[float]
    filled: Optional[float]
    remaining: Optional[float]
    cost: Optional[float]
    fee: Optional[Fee]
    timestamp: Optional[int]
    datetime: Optional[str]
    info: Any = None


@dataclass
class OrderBook:
    bids: List[List[float]]   # [[price, amount], ...] best first
    asks: List[List[float]]
    timestamp: Optional[int] = None
    datetime: Optional[str] = None
    info: Any = None


class Candle(NamedTuple):
    timestamp: int   # ms
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass
class TransferReceipt:
    id: Optional[str]
    info: Any
    fee: Optional[Fee] = None
