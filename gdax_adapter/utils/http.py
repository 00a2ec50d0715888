from __future__ import annotations

import asyncio
import json
import logging
import random
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout

from ..config import NetworkConfig
from ..errors import HttpError, NetworkError

logger = logging.getLogger(__name__)


async def jitter_backoff(attempt: int, base: float = 0.5) -> float:
    # exponential backoff with a small random jitter
    return base * (2 ** attempt) + random.uniform(0, 0.2)


def retry_after_seconds(value: Optional[str]) -> Optional[float]:
    """Retry-After as delay-seconds or an HTTP-date; None when absent or unparseable."""
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class HttpTransport:
    """
    aiohttp transport: send(url, method, headers, body) -> parsed JSON.
    Retries 429 / 5xx / network errors; raises HttpError for any other
    non-2xx status and NetworkError once retries are exhausted.

    `rebuild` returns a freshly signed (url, method, headers, body) for every
    retry so a nonce is never sent twice. With `idempotent=False` only 429s
    are retried: after a 5xx or a dropped connection the exchange may
    already have acted on the request.
    """

    def __init__(self, network: Optional[NetworkConfig] = None):
        self.network = network or NetworkConfig()
        self.timeout = ClientTimeout(
            total=self.network.timeout_total,
            sock_connect=self.network.timeout_connect,
            sock_read=self.network.timeout_read,
        )
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def _backoff(self, attempt: int) -> float:
        return await jitter_backoff(attempt, self.network.base_backoff)

    async def send(self, url: str, method: str, headers: Optional[Dict[str, str]] = None,
                   body: Optional[str] = None, rebuild: Optional[Callable[[], Any]] = None,
                   idempotent: bool = True) -> Any:
        session = await self._get_session()
        max_retries = self.network.max_retries
        last_err: Optional[Exception] = None

        for attempt in range(max_retries):
            if attempt and rebuild is not None:
                fresh = rebuild()
                url, method, headers, body = fresh.url, fresh.method, fresh.headers, fresh.body
            try:
                # body goes out verbatim: it is the exact string that was signed
                async with session.request(method, url, headers=headers, data=body) as resp:
                    if 200 <= resp.status < 300:
                        text = await resp.text()
                        if not text:
                            return None
                        if resp.content_type == "application/json" or text[0] in "[{":
                            return json.loads(text)
                        return text

                    if resp.status == 429:
                        wait = retry_after_seconds(resp.headers.get("Retry-After"))
                        if wait is None:
                            wait = await self._backoff(attempt)
                        logger.warning("⏳ 429 Too Many Requests on %s %s. Retrying after %.2fs (attempt %d/%d)",
                                       method, url, wait, attempt + 1, max_retries)
                        last_err = HttpError(resp.status, await resp.text())
                        await asyncio.sleep(wait)
                        continue

                    text = await resp.text()
                    if resp.status >= 500 and idempotent:
                        wait = await self._backoff(attempt)
                        logger.warning("⚠️ Server error %d: %s... Retrying in %.2fs (attempt %d/%d)",
                                       resp.status, text[:200], wait, attempt + 1, max_retries)
                        last_err = HttpError(resp.status, text)
                        await asyncio.sleep(wait)
                        continue

                    raise HttpError(resp.status, text)

            except asyncio.CancelledError:
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if not idempotent:
                    logger.error("🌐 %s %s failed: %s: %s. Not retrying a non-idempotent request",
                                 method, url, type(e).__name__, e)
                    raise NetworkError(f"gdax {method} {url} failed: {e}") from e
                last_err = e
                wait = await self._backoff(attempt)
                logger.warning("🌐 Network/timeout error: %s: %s. Retrying in %.2fs (attempt %d/%d)",
                               type(e).__name__, e, wait, attempt + 1, max_retries)
                await asyncio.sleep(wait)

        logger.error("🚫 Giving up on %s %s after %d attempts. Last error: %s", method, url, max_retries, last_err)
        raise NetworkError(f"gdax {method} {url} failed after {max_retries} attempts: {last_err}") from last_err

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
