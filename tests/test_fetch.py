import asyncio

import httpx
import pytest

from healthequity.services import fetch

from conftest import install_upstream

URL = "https://data.example.org/resource/abcd-1234.json"


def _sequence(monkeypatch, *statuses):
    calls = []
    queue = list(statuses)

    def handler(request):
        calls.append(request)
        status = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(status, json=[{"ok": True}] if status == 200 else {"error": "nope"})

    install_upstream(monkeypatch, handler)
    return calls


def test_retries_server_errors_until_success(monkeypatch):
    calls = _sequence(monkeypatch, 503, 503, 200)
    data = asyncio.run(fetch.fetch_json(URL, max_retries=3))
    assert data == [{"ok": True}]
    assert len(calls) == 3


def test_client_error_is_not_retried(monkeypatch):
    calls = _sequence(monkeypatch, 404)
    with pytest.raises(fetch.FetchError) as exc:
        asyncio.run(fetch.fetch_json(URL, max_retries=3))
    assert exc.value.status == 404
    assert not exc.value.retryable
    assert len(calls) == 1


def test_gives_up_after_max_retries(monkeypatch):
    calls = _sequence(monkeypatch, 500)
    with pytest.raises(fetch.FetchError) as exc:
        asyncio.run(fetch.fetch_json(URL, max_retries=2))
    assert exc.value.status == 500
    assert len(calls) == 3


def test_zero_retries_means_single_attempt(monkeypatch):
    calls = _sequence(monkeypatch, 429)
    with pytest.raises(fetch.FetchError):
        asyncio.run(fetch.fetch_json(URL, max_retries=0))
    assert len(calls) == 1


def test_transport_errors_are_retried(monkeypatch):
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=[])

    install_upstream(monkeypatch, handler)
    assert asyncio.run(fetch.fetch_json(URL, max_retries=1)) == []
    assert len(attempts) == 2


def test_invalid_json_raises_fetch_error(monkeypatch):
    install_upstream(monkeypatch, lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    with pytest.raises(fetch.FetchError) as exc:
        asyncio.run(fetch.fetch_json(URL))
    assert exc.value.status is None


def _record_waits(monkeypatch):
    waits = []

    async def sleep(seconds):
        waits.append(seconds)

    monkeypatch.setattr(fetch.asyncio, "sleep", sleep)
    return waits


def _throttled_once(monkeypatch, retry_after):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(429, headers={"Retry-After": retry_after}, json={"error": "slow down"})
        return httpx.Response(200, json=[{"ok": True}])

    install_upstream(monkeypatch, handler)
    return calls


def test_retry_after_header_sets_the_wait(monkeypatch):
    waits = _record_waits(monkeypatch)
    calls = _throttled_once(monkeypatch, "2")
    assert asyncio.run(fetch.fetch_json(URL, max_retries=1)) == [{"ok": True}]
    assert waits == [2.0]
    assert len(calls) == 2


def test_unparseable_retry_after_uses_fixed_delay(monkeypatch):
    monkeypatch.setattr(fetch, "RETRY_DELAY", 1.5)
    waits = _record_waits(monkeypatch)
    _throttled_once(monkeypatch, "Wed, 21 Oct 2015 07:28:00 GMT")
    assert asyncio.run(fetch.fetch_json(URL, max_retries=1)) == [{"ok": True}]
    assert waits == [1.5]


def test_query_params_are_sent(monkeypatch):
    calls = _sequence(monkeypatch, 200)
    asyncio.run(fetch.fetch_json(URL, params={"$limit": 5}))
    assert calls[0].url.params["$limit"] == "5"


# ── Rate limiter ────────────────────────────────────────────────────────────

class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_rate_limiter_first_call_does_not_wait():
    clock = FakeClock()
    limiter = fetch.RateLimiter(clock=clock, sleep=clock.sleep)
    asyncio.run(limiter.acquire("CDC", 1.0))
    assert clock.sleeps == []


def test_rate_limiter_waits_out_the_remaining_interval():
    clock = FakeClock()
    limiter = fetch.RateLimiter(clock=clock, sleep=clock.sleep)

    async def run():
        await limiter.acquire("EpiQuery", 3.0)
        clock.now += 1.0
        await limiter.acquire("EpiQuery", 3.0)

    asyncio.run(run())
    assert clock.sleeps == [pytest.approx(2.0)]


def test_rate_limiter_tracks_sources_independently():
    clock = FakeClock()
    limiter = fetch.RateLimiter(clock=clock, sleep=clock.sleep)

    async def run():
        await limiter.acquire("CDC", 1.0)
        await limiter.acquire("NYCOpenData", 0.5)
        clock.now += 5
        await limiter.acquire("CDC", 1.0)

    asyncio.run(run())
    assert clock.sleeps == []


def test_rate_limiter_reset_forgets_history():
    clock = FakeClock()
    limiter = fetch.RateLimiter(clock=clock, sleep=clock.sleep)

    async def run():
        await limiter.acquire("CDC", 1.0)
        limiter.reset()
        await limiter.acquire("CDC", 1.0)

    asyncio.run(run())
    assert clock.sleeps == []


def test_rate_limiter_applies_the_latest_interval():
    clock = FakeClock()
    limiter = fetch.RateLimiter(clock=clock, sleep=clock.sleep)

    async def run():
        await limiter.acquire("CDC", 1.0)
        clock.now += 0.5
        await limiter.acquire("CDC", 3.0)

    asyncio.run(run())
    assert clock.sleeps == [pytest.approx(2.5)]
