from __future__ import annotations

import aiohttp, asyncio, logging, random
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from aiohttp import ClientTimeout

from ..errors import NetworkError

logger = logging.getLogger(__name__)

# Network/Retry settings (shared)
NET_MAX_RETRIES = 5
NET_BASE_BACKOFF = 0.5   # seconds
NET_TIMEOUT = ClientTimeout(total=12, sock_connect=6, sock_read=6)

_aiohttp_session: aiohttp.ClientSession | None = None

RetryPredicate = Callable[[int, Any], bool]
HeadersFactory = Callable[[], Dict[str, str]]


async def get_http_session() -> aiohttp.ClientSession:
    global _aiohttp_session
    if _aiohttp_session is None or _aiohttp_session.closed:
        _aiohttp_session = aiohttp.ClientSession(timeout=NET_TIMEOUT)
    return _aiohttp_session


async def close_http_session() -> None:
    global _aiohttp_session
    if _aiohttp_session is not None and not _aiohttp_session.closed:
        await _aiohttp_session.close()
    _aiohttp_session = None


async def jitter_backoff(attempt: int) -> float:
    # exponential backoff with a small random jitter
    return NET_BASE_BACKOFF * (2 ** attempt) + random.uniform(0, 0.2)


def _never(status: int, payload: Any) -> bool:
    return False


async def retry_after_seconds(value: Optional[str], attempt: int) -> float:
    """Retry-After is either delta-seconds or an HTTP-date; anything else backs off."""
    if not value:
        return await jitter_backoff(attempt)
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return await jitter_backoff(attempt)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class HttpTransport:
    """
    Executes prepared requests over a shared aiohttp session.
    Whether a failed response is worth another attempt is decided by the
    caller through `retry_on`; the transport only owns the waiting.
    Headers from `headers_factory` are rebuilt for every attempt so signed
    requests never resend a nonce. Network errors are retried for GET only.
    """

    def __init__(self, max_retries: int = NET_MAX_RETRIES, user_agent: str = "metalx-adapter/1.0"):
        self.max_retries = max_retries
        self.user_agent = user_agent

    async def _read(self, resp: aiohttp.ClientResponse) -> Any:
        if resp.content_type == "application/json":
            return await resp.json()
        return await resp.text()

    async def fetch(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None,
        retry_on: RetryPredicate = _never,
        headers_factory: Optional[HeadersFactory] = None,
    ) -> Tuple[int, Any]:
        session = await get_http_session()
        last_err: Exception | None = None

        for attempt in range(self.max_retries):
            last_attempt = attempt + 1 >= self.max_retries
            req_headers = {"Content-Type": "application/json", "User-Agent": self.user_agent}
            req_headers.update(headers or {})
            if headers_factory is not None:
                req_headers.update(headers_factory())
            try:
                async with session.request(method, url, headers=req_headers, data=body) as resp:
                    payload = await self._read(resp)
                    if 200 <= resp.status < 300:
                        return resp.status, payload
                    if not last_attempt and retry_on(resp.status, payload):
                        wait = await retry_after_seconds(resp.headers.get("Retry-After"), attempt)
                        logger.warning("⏳ %s %s -> %s. Retrying after %.2fs (attempt %d/%d)",
                                       method, url, resp.status, wait, attempt + 1, self.max_retries)
                        await asyncio.sleep(wait)
                        continue
                    return resp.status, payload
            except asyncio.CancelledError:
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_err = e
                if method.upper() != "GET":
                    # the server may already have acted on it
                    logger.error("🚫 %s %s failed, not resending: %s: %s", method, url, type(e).__name__, e)
                    raise NetworkError(f"network_error:{e}", payload=str(e)) from e
                if last_attempt:
                    break
                wait = await jitter_backoff(attempt)
                logger.warning("🌐 Network/timeout error: %s: %s. Retrying in %.2fs (attempt %d/%d)",
                               type(e).__name__, e, wait, attempt + 1, self.max_retries)
                await asyncio.sleep(wait)

        logger.error("🚫 Giving up after %d attempts. Last error: %s", self.max_retries, last_err)
        raise NetworkError(f"network_error:{last_err}", payload=str(last_err))

    async def close(self) -> None:
        await close_http_session()
