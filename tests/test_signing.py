"""Tests for request building and CB-ACCESS signing."""

import json

import pytest

from gdax_adapter.config import Credentials
from gdax_adapter.errors import AuthenticationError
from gdax_adapter.signing import (
    NonceSource,
    RequestSigner,
    extract_params,
    implode_params,
    sign_message,
)

from conftest import SECRET

BASE = "https://api.gdax.com"


def fixed_nonce():
    return "1500000000"


@pytest.fixture
def signer(credentials):
    return RequestSigner(BASE, credentials, nonce_source=fixed_nonce)


class TestPathParams:
    def test_extract(self):
        assert extract_params("products/{id}/candles") == ["id"]
        assert extract_params("products") == []

    def test_implode(self):
        assert implode_params("orders/{id}", {"id": "abc", "x": 1}) == "orders/abc"


class TestSignMessage:
    def test_known_vector(self):
        assert sign_message("1500000000GET/accounts", SECRET) == "SHvyTjyTMmil+Y600aDJdaJQOtzfxOfFo/CVOHEfkiA="

    def test_deterministic(self):
        assert sign_message("abc", SECRET) == sign_message("abc", SECRET)

    def test_single_byte_change_changes_signature(self):
        assert sign_message("1500000000GET/accounts", SECRET) != sign_message("1500000001GET/accounts", SECRET)
        assert sign_message("1500000000GET/accounts", SECRET) != sign_message("1500000000GET/account5", SECRET)


class TestPublicRequests:
    def test_get_with_query(self, signer):
        req = signer.sign("products/{id}/book", "public", "GET", {"id": "BTC-USD", "level": 2})
        assert req.url == BASE + "/products/BTC-USD/book?level=2"
        assert req.method == "GET"
        assert req.body is None
        assert req.headers == {}

    def test_public_needs_no_credentials(self):
        signer = RequestSigner(BASE, Credentials())
        req = signer.sign("products", "public", "GET", {})
        assert req.url == BASE + "/products"
        assert req.headers == {}


class TestPrivateRequests:
    def test_get_headers(self, signer):
        req = signer.sign("accounts", "private", "GET", {})
        assert req.url == BASE + "/accounts"
        assert req.body is None
        assert req.headers == {
            "CB-ACCESS-KEY": "key-1",
            "CB-ACCESS-SIGN": "SHvyTjyTMmil+Y600aDJdaJQOtzfxOfFo/CVOHEfkiA=",
            "CB-ACCESS-TIMESTAMP": "1500000000",
            "CB-ACCESS-PASSPHRASE": "pass-1",
        }

    def test_get_query_is_part_of_signed_path(self, signer):
        req = signer.sign("fills", "private", "GET", {"product_id": "BTC-USD"})
        assert req.url == BASE + "/fills?product_id=BTC-USD"
        assert req.headers["CB-ACCESS-SIGN"] == sign_message("1500000000GET/fills?product_id=BTC-USD", SECRET)

    def test_get_query_booleans_are_lowercase(self, signer):
        req = signer.sign("orders", "private", "GET", {"status": "open", "post_only": True, "stop": False})
        assert req.url == BASE + "/orders?status=open&post_only=true&stop=false"
        assert req.headers["CB-ACCESS-SIGN"] == sign_message(
            "1500000000GET/orders?status=open&post_only=true&stop=false", SECRET)

    def test_post_signs_exact_body(self, signer):
        params = {"size": "0.01", "price": "100.00", "side": "buy", "product_id": "BTC-USD"}
        req = signer.sign("orders", "private", "POST", params)
        assert req.body == '{"size":"0.01","price":"100.00","side":"buy","product_id":"BTC-USD"}'
        assert json.loads(req.body) == params
        assert req.headers["CB-ACCESS-SIGN"] == "ZZiridEg3tsvsNweM9TALrXlnlQOAzulbrpwUk27BkM="
        assert req.headers["Content-Type"] == "application/json"

    def test_delete_path_param_only_has_no_body(self, signer):
        req = signer.sign("orders/{id}", "private", "DELETE", {"id": "o-1"})
        assert req.url == BASE + "/orders/o-1"
        assert req.body is None
        assert "Content-Type" not in req.headers
        assert req.headers["CB-ACCESS-SIGN"] == sign_message("1500000000DELETE/orders/o-1", SECRET)

    @pytest.mark.parametrize("missing", ["api_key", "secret", "passphrase"])
    def test_missing_credentials(self, missing):
        values = {"api_key": "k", "secret": SECRET, "passphrase": "p"}
        values[missing] = ""
        signer = RequestSigner(BASE, Credentials(**values), nonce_source=fixed_nonce)
        with pytest.raises(AuthenticationError, match=missing):
            signer.sign("accounts", "private", "GET", {})


class TestNonceSource:
    def test_strictly_increasing_with_frozen_clock(self):
        nonce = NonceSource(clock=lambda: 1500000000.0)
        values = [nonce() for _ in range(3)]
        assert values == ["1500000000.000", "1500000000.001", "1500000000.002"]

    def test_follows_clock(self):
        ticks = iter([1500000000.0, 1500000005.25])
        nonce = NonceSource(clock=lambda: next(ticks))
        assert nonce() == "1500000000.000"
        assert nonce() == "1500000005.250"
