"""Tests for HTTP/error payload classification."""

import pytest

from gdax_adapter.errors import (
    AuthenticationError,
    ExchangeError,
    InsufficientFunds,
    InvalidOrder,
    check_response,
    handle_errors,
)


class TestHandleErrors:
    @pytest.mark.parametrize("body,error", [
        ('{"message":"Insufficient funds"}', InsufficientFunds),
        ('{"message":"price too small"}', InvalidOrder),
        ('{"message":"Order price too precise for BTC-USD"}', InvalidOrder),
        ('{"message":"Invalid API Key"}', AuthenticationError),
    ])
    def test_classified_messages(self, body, error):
        with pytest.raises(error):
            handle_errors(400, body)

    def test_unknown_message_is_generic(self):
        with pytest.raises(ExchangeError) as exc_info:
            handle_errors(400, '{"message":"weird"}')
        assert type(exc_info.value) is ExchangeError
        assert str(exc_info.value) == "gdax weird"

    def test_non_json_body_is_wrapped(self):
        with pytest.raises(ExchangeError) as exc_info:
            handle_errors(400, "Bad Request")
        assert type(exc_info.value) is ExchangeError
        assert "Bad Request" in str(exc_info.value)

    def test_equality_messages_need_exact_match(self):
        with pytest.raises(ExchangeError) as exc_info:
            handle_errors(400, '{"message":"Insufficient funds for order"}')
        assert type(exc_info.value) is ExchangeError

    @pytest.mark.parametrize("status", [200, 401, 404, 500])
    def test_other_statuses_pass_through(self, status):
        assert handle_errors(status, '{"message":"Insufficient funds"}') is None


class TestCheckResponse:
    def test_message_in_success_body(self):
        with pytest.raises(ExchangeError, match="NotFound"):
            check_response({"message": "NotFound"})

    def test_plain_payloads_pass(self):
        payload = [{"id": "BTC-USD"}]
        assert check_response(payload) is payload
        assert check_response({"id": "x"}) == {"id": "x"}
        assert check_response(None) is None
