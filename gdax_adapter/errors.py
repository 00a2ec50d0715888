from __future__ import annotations

import json
from typing import Any

EXCHANGE_ID = "gdax"


class BaseError(Exception):
    """Root of everything this adapter raises on purpose."""


class ExchangeError(BaseError):
    """Exchange rejected or mangled a request; carries the upstream message."""


class AuthenticationError(ExchangeError):
    pass


class InsufficientFunds(ExchangeError):
    pass


class InvalidOrder(ExchangeError):
    pass


class NotSupported(ExchangeError):
    pass


class BadSymbol(ExchangeError):
    """Symbol or market id not present in the loaded markets."""


class HttpError(ExchangeError):
    """Non-retryable HTTP status surfaced by the transport."""

    def __init__(self, status: int, body: str, message: str | None = None):
        super().__init__(message or f"{EXCHANGE_ID} HTTP {status}: {body[:300]}")
        self.status = status
        self.body = body


class NetworkError(BaseError):
    """Transport gave up after exhausting its retries."""


def handle_errors(status: int, body: str) -> None:
    """
    Classify an HTTP failure. Only 400s are classified here; anything else
    is left to the caller (the transport's HttpError propagates unchanged).
    """
    if status != 400:
        return
    response = None
    if body and body[0] == "{":
        try:
            response = json.loads(body)
        except ValueError:
            response = None
    if isinstance(response, dict):
        message = response.get("message")
        error = f"{EXCHANGE_ID} {message}"
        if isinstance(message, str):
            if "price too small" in message:
                raise InvalidOrder(error)
            if "price too precise" in message:
                raise InvalidOrder(error)
            if message == "Insufficient funds":
                raise InsufficientFunds(error)
            if message == "Invalid API Key":
                raise AuthenticationError(error)
        raise ExchangeError(error)
    raise ExchangeError(f"{EXCHANGE_ID} {body}")


def check_response(response: Any) -> Any:
    # upstream sometimes reports errors with a 2xx status
    if isinstance(response, dict) and "message" in response:
        raise ExchangeError(f"{EXCHANGE_ID} {json.dumps(response)}")
    return response
