from __future__ import annotations
from typing import Any
from .base import Exchange
from .gdax import GdaxExchange, TransferRoute, select_transfer_route
from ..config import config_from_dict

def create_exchange(exchange_cfg: dict[str, Any]) -> Exchange:
    """
    Factory: exchange_cfg example:
    {"name":"gdax","api_key":"...","secret":"<base64>","passphrase":"...","sandbox":false}
    """
    name = exchange_cfg.get("name", "").lower()
    if name == "gdax":
        return GdaxExchange(config_from_dict(exchange_cfg))
    raise ValueError(f"Unknown exchange name: {name}")

__all__ = ["Exchange", "GdaxExchange", "TransferRoute", "select_transfer_route", "create_exchange"]
