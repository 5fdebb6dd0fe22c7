"""Outbound HTTP: GET with bounded retries, and a per-source rate limiter."""

import asyncio
import logging
import time

import httpx

from healthequity.config import HTTP_TIMEOUT, MAX_RETRIES, RETRY_DELAY

logger = logging.getLogger(__name__)

# Optional transport shared by every outbound client (tests install a mock here).
transport: httpx.AsyncBaseTransport | None = None


class FetchError(Exception):
    """An upstream request that did not produce a usable response.

    ``status`` is the last HTTP status seen, or None when the request never
    got a response (DNS, connect, timeout) or the body could not be parsed.
    """

    def __init__(self, message: str, status: int | None = None, url: str | None = None):
        super().__init__(message)
        self.status = status
        self.url = url

    @property
    def retryable(self) -> bool:
        return self.status is None or self.status == 429 or self.status >= 500


def _retry_delay(resp: httpx.Response, default: float) -> float:
    retry_after = resp.headers.get("Retry-After")
    if retry_after:
        try:
            return float(int(retry_after))
        except ValueError:
            return default
    return default


def make_client(timeout: float | None = None, **kwargs) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=HTTP_TIMEOUT if timeout is None else timeout,
        transport=transport,
        follow_redirects=True,
        **kwargs,
    )


async def fetch_with_retry(
    url: str,
    params: dict | None = None,
    headers: dict | None = None,
    max_retries: int = MAX_RETRIES,
    timeout: float | None = None,
    retry_delay: float | None = None,
) -> httpx.Response:
    """GET ``url``, retrying 5xx/429 and transport errors up to ``max_retries`` times.

    Other non-2xx statuses raise immediately. ``Retry-After`` (seconds) wins
    over the fixed delay when the upstream sends it.
    """
    delay = RETRY_DELAY if retry_delay is None else retry_delay
    attempt = 0
    last_status = None

    async with make_client(timeout=timeout, headers=headers) as client:
        while True:
            try:
                resp = await client.get(url, params=params)
            except httpx.TransportError as e:
                attempt += 1
                if attempt > max_retries:
                    logger.error(f"GET {url} failed after {max_retries} retries: {e}")
                    raise FetchError(f"Request to {url} failed: {e}", status=None, url=url) from e
                logger.warning(f"Attempt {attempt} for {url} failed with error: {e}. Retrying in {delay}s...")
                await asyncio.sleep(delay)
                continue

            if resp.is_success:
                return resp

            last_status = resp.status_code
            if last_status >= 500 or last_status == 429:
                attempt += 1
                if attempt > max_retries:
                    break
                wait = _retry_delay(resp, delay)
                logger.warning(
                    f"Attempt {attempt} for {url} failed with status {last_status}. Retrying in {wait}s..."
                )
                await asyncio.sleep(wait)
                continue

            logger.warning(f"GET {url} returned {last_status}, not retrying")
            raise FetchError(
                f"Request failed with status {last_status}: {resp.reason_phrase}",
                status=last_status,
                url=url,
            )

    raise FetchError(
        f"Max retries ({max_retries}) exceeded, last status {last_status}",
        status=last_status,
        url=url,
    )


async def fetch_json(url: str, **kwargs):
    """``fetch_with_retry`` and parse the body as JSON."""
    resp = await fetch_with_retry(url, **kwargs)
    try:
        return resp.json()
    except ValueError as e:
        raise FetchError(f"Invalid JSON from {url}: {e}", status=None, url=url) from e


class RateLimiter:
    """Minimum interval between calls to the same upstream, per process."""

    def __init__(self, clock=time.monotonic, sleep=asyncio.sleep):
        self._clock = clock
        self._sleep = sleep
        self._limits: dict[str, dict] = {}

    async def acquire(self, source: str, delay: float):
        entry = self._limits.get(source)
        if entry is None:
            self._limits[source] = {"last_called": self._clock(), "delay": delay}
            return

        entry["delay"] = delay
        elapsed = self._clock() - entry["last_called"]
        if elapsed < delay:
            wait = delay - elapsed
            logger.info(f"Rate limit for {source} hit. Waiting {wait:.2f}s before next call.")
            await self._sleep(wait)

        entry["last_called"] = self._clock()

    def reset(self):
        self._limits.clear()


rate_limiter = RateLimiter()
