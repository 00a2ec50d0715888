"""
GDAX REST adapter 🪙
Normalizes GDAX payloads into exchange-agnostic records and signs private requests.
"""

from .config import Credentials, FeeSchedule, GdaxConfig, NetworkConfig, load_config
from .errors import (
    AuthenticationError,
    BadSymbol,
    BaseError,
    ExchangeError,
    HttpError,
    InsufficientFunds,
    InvalidOrder,
    NetworkError,
    NotSupported,
)
from .exchanges import Exchange, GdaxExchange, create_exchange
from .models import Balance, BalanceEntry, Candle, Fee, Market, Order, OrderBook, Ticker, Trade, TransferReceipt

__all__ = [
    "Credentials", "FeeSchedule", "GdaxConfig", "NetworkConfig", "load_config",
    "AuthenticationError", "BadSymbol", "BaseError", "ExchangeError", "HttpError",
    "InsufficientFunds", "InvalidOrder", "NetworkError", "NotSupported",
    "Exchange", "GdaxExchange", "create_exchange",
    "Balance", "BalanceEntry", "Candle", "Fee", "Market", "Order", "OrderBook",
    "Ticker", "Trade", "TransferReceipt",
]
