import base64
from urllib.parse import urlsplit

import pytest

from gdax_adapter.config import Credentials, GdaxConfig
from gdax_adapter.exchanges.gdax import GdaxExchange

SECRET = base64.b64encode(b"secret-key").decode()

PRODUCTS = [
    {
        "id": "BTC-USD",
        "base_currency": "BTC",
        "quote_currency": "USD",
        "base_min_size": "0.001",
        "base_max_size": "10000",
        "quote_increment": "0.01000000",
        "min_market_funds": "5",
        "max_market_funds": "1000000",
        "status": "online",
    },
    {
        "id": "ETH-USD",
        "base_currency": "ETH",
        "quote_currency": "USD",
        "base_min_size": "0.01",
        "base_max_size": "5000",
        "quote_increment": "0.01",
        "status": "online",
    },
    {
        "id": "LTC-BTC",
        "base_currency": "LTC",
        "quote_currency": "BTC",
        "base_min_size": "0.1",
        "quote_increment": "0.00001",
        "status": "online",
    },
    {
        "id": "BCH-EUR",
        "base_currency": "BCH",
        "quote_currency": "EUR",
        "quote_increment": "1",
        "status": "delisted",
    },
]


class FakeTransport:
    """Records every send() and answers from a (METHOD, path) -> response table."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def add(self, method, path, response):
        self.routes[(method, path)] = response

    async def send(self, url, method, headers=None, body=None, rebuild=None, idempotent=True):
        self.calls.append({"url": url, "method": method, "headers": headers or {}, "body": body,
                           "idempotent": idempotent, "rebuild": rebuild})
        key = (method, urlsplit(url).path)
        if key not in self.routes:
            raise AssertionError(f"unexpected request {key}")
        response = self.routes[key]
        if isinstance(response, Exception):
            raise response
        return response

    def last(self, path=None):
        calls = self.calls
        if path is not None:
            calls = [c for c in calls if urlsplit(c["url"]).path == path]
        return calls[-1]


@pytest.fixture
def transport():
    return FakeTransport({("GET", "/products"): PRODUCTS})


@pytest.fixture
def credentials():
    return Credentials(api_key="key-1", secret=SECRET, passphrase="pass-1")


@pytest.fixture
def exchange(transport, credentials):
    nonces = iter(str(1500000000 + i) for i in range(1000))
    return GdaxExchange(
        GdaxConfig(credentials=credentials),
        transport=transport,
        nonce_source=lambda: next(nonces),
    )
