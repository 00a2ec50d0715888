from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

API_URL = "https://api.gdax.com"
SANDBOX_URL = "https://api-public.sandbox.gdax.com"

DEBUG_MODE = os.getenv("DEBUG_MODE", "False") == "True"


@dataclass
class Credentials:
    api_key: str = ""
    secret: str = ""        # base64-encoded, as issued by the exchange
    passphrase: str = ""

    def missing(self) -> List[str]:
        names = {"api_key": self.api_key, "secret": self.secret, "passphrase": self.passphrase}
        return [name for name, value in names.items() if not value]


def _default_funding_withdraw() -> Dict[str, float]:
    return {"BCH": 0, "BTC": 0, "LTC": 0, "ETH": 0, "EUR": 0.15, "USD": 25}


def _default_funding_deposit() -> Dict[str, float]:
    return {"BCH": 0, "BTC": 0, "LTC": 0, "ETH": 0, "EUR": 0.15, "USD": 10}


@dataclass
class FeeSchedule:
    maker: float = 0.0
    taker: float = 0.0025
    tier_based: bool = True
    percentage: bool = True
    # ETH and LTC pairs are charged 0.3% instead of the 0.25% default
    taker_overrides: Dict[str, float] = field(default_factory=lambda: {"ETH": 0.003, "LTC": 0.003})
    withdraw: Dict[str, float] = field(default_factory=_default_funding_withdraw)
    deposit: Dict[str, float] = field(default_factory=_default_funding_deposit)

    def taker_for(self, base: str) -> float:
        return self.taker_overrides.get(base, self.taker)


@dataclass
class NetworkConfig:
    max_retries: int = 5
    base_backoff: float = 0.5     # seconds
    timeout_total: float = 12
    timeout_connect: float = 6
    timeout_read: float = 6


@dataclass
class GdaxConfig:
    credentials: Credentials = field(default_factory=Credentials)
    fees: FeeSchedule = field(default_factory=FeeSchedule)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    sandbox: bool = False
    api_url: Optional[str] = None
    debug: bool = DEBUG_MODE

    @property
    def base_url(self) -> str:
        if self.api_url:
            return self.api_url.rstrip("/")
        return SANDBOX_URL if self.sandbox else API_URL


def config_from_dict(raw: Dict[str, Any]) -> GdaxConfig:
    """
    Build a GdaxConfig from a plain dict, e.g.:

      {
        "api_key": "...", "secret": "...", "passphrase": "...",
        "sandbox": false,
        "fees": {"taker": 0.0025, "taker_overrides": {"ETH": 0.003}},
        "network": {"max_retries": 5, "base_backoff": 0.5}
      }

    GDAX_API_KEY / GDAX_SECRET / GDAX_PASSPHRASE override the file values.
    """
    credentials = Credentials(
        api_key=os.getenv("GDAX_API_KEY", raw.get("api_key", "")),
        secret=os.getenv("GDAX_SECRET", raw.get("secret", "")),
        passphrase=os.getenv("GDAX_PASSPHRASE", raw.get("passphrase", "")),
    )

    fees_raw = raw.get("fees", {})
    defaults = FeeSchedule()
    fees = FeeSchedule(
        maker=fees_raw.get("maker", defaults.maker),
        taker=fees_raw.get("taker", defaults.taker),
        tier_based=fees_raw.get("tier_based", defaults.tier_based),
        percentage=fees_raw.get("percentage", defaults.percentage),
        taker_overrides=fees_raw.get("taker_overrides", defaults.taker_overrides),
        withdraw=fees_raw.get("withdraw", defaults.withdraw),
        deposit=fees_raw.get("deposit", defaults.deposit),
    )

    network = NetworkConfig(**raw.get("network", {}))

    return GdaxConfig(
        credentials=credentials,
        fees=fees,
        network=network,
        sandbox=raw.get("sandbox", False),
        api_url=raw.get("api_url"),
        debug=raw.get("debug", DEBUG_MODE),
    )


def load_config(path: str | Path | None = None) -> GdaxConfig:
    path = Path(path or os.getenv("CONFIG_PATH", "/config/config.json"))
    with path.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = json.load(f)
    return config_from_dict(raw)
