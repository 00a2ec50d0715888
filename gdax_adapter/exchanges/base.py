from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List

from ..models import Balance, Candle, Market, Order, OrderBook, Ticker, Trade, TransferReceipt


class Exchange(ABC):
    """
    Exchange-agnostic interface: every method returns canonical records.
    Implementations never retry or swallow errors; failures surface as
    gdax_adapter.errors types.
    """
    id: str

    @abstractmethod
    async def fetch_markets(self) -> List[Market]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_ticker(self, symbol: str, params: Optional[Dict[str, Any]] = None) -> Ticker:
        raise NotImplementedError

    @abstractmethod
    async def fetch_order_book(self, symbol: str, params: Optional[Dict[str, Any]] = None) -> OrderBook:
        raise NotImplementedError

    @abstractmethod
    async def fetch_trades(self, symbol: str, since: Optional[int] = None, limit: Optional[int] = None,
                           params: Optional[Dict[str, Any]] = None) -> List[Trade]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_my_trades(self, symbol: Optional[str] = None, since: Optional[int] = None,
                              limit: Optional[int] = None, params: Optional[Dict[str, Any]] = None) -> List[Trade]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_ohlcv(self, symbol: str, timeframe: str = "1m", since: Optional[int] = None,
                          limit: Optional[int] = None, params: Optional[Dict[str, Any]] = None) -> List[Candle]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_balance(self, params: Optional[Dict[str, Any]] = None) -> Balance:
        raise NotImplementedError

    @abstractmethod
    async def fetch_order(self, id: str, symbol: Optional[str] = None,
                          params: Optional[Dict[str, Any]] = None) -> Order:
        raise NotImplementedError

    @abstractmethod
    async def fetch_orders(self, symbol: Optional[str] = None, since: Optional[int] = None,
                           limit: Optional[int] = None, params: Optional[Dict[str, Any]] = None) -> List[Order]:
        raise NotImplementedError

    @abstractmethod
    async def create_order(
        self,
        symbol: str,
        type: str,                         # "limit" | "market"
        side: str,                         # "buy" | "sell"
        amount: float,
        price: Optional[float] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Order:
        """Place an order. `price` is required (and only sent) for limit orders."""
        raise NotImplementedError

    @abstractmethod
    async def cancel_order(self, id: str, symbol: Optional[str] = None,
                           params: Optional[Dict[str, Any]] = None) -> Any:
        raise NotImplementedError

    @abstractmethod
    async def deposit(self, currency: str, amount: float, address: Optional[str],
                      params: Optional[Dict[str, Any]] = None) -> TransferReceipt:
        raise NotImplementedError

    @abstractmethod
    async def withdraw(self, currency: str, amount: float, address: Optional[str], tag: Optional[str] = None,
                       params: Optional[Dict[str, Any]] = None) -> TransferReceipt:
        raise NotImplementedError

    async def close(self) -> None:
        """Override to close network resources if needed."""
        return
