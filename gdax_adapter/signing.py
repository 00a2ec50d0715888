"""
Request builder / signer for GDAX REST.

Private calls are authenticated with:
    CB-ACCESS-SIGN = base64(HMAC-SHA256(base64decode(secret), nonce + METHOD + requestPath + body))
The body that is signed is the exact string handed to the transport.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import re
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

from .config import Credentials
from .errors import EXCHANGE_ID, AuthenticationError

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


@dataclass
class SignedRequest:
    url: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None


class NonceSource:
    """
    Strictly increasing nonce, in seconds with millisecond resolution
    (the form CB-ACCESS-TIMESTAMP accepts). Share one instance between all
    clients using the same credentials.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last_ms = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            now_ms = int(self._clock() * 1000)
            self._last_ms = max(now_ms, self._last_ms + 1)
            ms = self._last_ms
        return f"{ms // 1000}.{ms % 1000:03d}"


def extract_params(path: str) -> List[str]:
    return _PLACEHOLDER.findall(path)


def implode_params(path: str, params: Dict[str, Any]) -> str:
    def repl(m: re.Match) -> str:
        name = m.group(1)
        return str(params[name]) if name in params else m.group(0)
    return _PLACEHOLDER.sub(repl, path)


def sign_message(message: str, secret: str) -> str:
    key = base64.b64decode(secret)
    digest = hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


class RequestSigner:
    def __init__(
        self,
        base_url: str,
        credentials: Credentials,
        nonce_source: Optional[Callable[[], str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.nonce = nonce_source or NonceSource()

    def check_required_credentials(self) -> None:
        missing = self.credentials.missing()
        if missing:
            raise AuthenticationError(f"{EXCHANGE_ID} requires {', '.join(missing)} for private endpoints")

    def sign(self, path: str, api: str = "public", method: str = "GET",
             params: Optional[Dict[str, Any]] = None) -> SignedRequest:
        params = params or {}
        method = method.upper()
        request = "/" + implode_params(path, params)
        placeholders = set(extract_params(path))
        query = {k: v for k, v in params.items() if k not in placeholders}

        body: Optional[str] = None
        if method == "GET":
            if query:
                # query strings carry JSON-style booleans
                query = {k: (str(v).lower() if isinstance(v, bool) else v) for k, v in query.items()}
                request += "?" + urlencode(query)
        elif query:
            body = json.dumps(query, separators=(",", ":"))

        url = self.base_url + request
        headers: Dict[str, str] = {}
        if api == "private":
            self.check_required_credentials()
            nonce = self.nonce()
            payload = body or ""
            what = nonce + method + request + payload
            headers = {
                "CB-ACCESS-KEY": self.credentials.api_key,
                "CB-ACCESS-SIGN": sign_message(what, self.credentials.secret),
                "CB-ACCESS-TIMESTAMP": nonce,
                "CB-ACCESS-PASSPHRASE": self.credentials.passphrase,
            }
            if body is not None:
                headers["Content-Type"] = "application/json"
        return SignedRequest(url=url, method=method, headers=headers, body=body)
