import os
from types import SimpleNamespace

os.environ.setdefault("ENABLE_SCHEDULER", "0")
os.environ.pop("OPENAI_API_KEY", None)

import httpx
import pytest

from healthequity.services import fetch


async def _no_sleep(seconds):
    return None


def install_upstream(monkeypatch, handler):
    """Route every outbound request through ``handler`` (an httpx MockTransport handler)."""
    monkeypatch.setattr(fetch, "transport", httpx.MockTransport(handler))


class FakeChat:
    """Stands in for AsyncOpenAI: every chat completion answers with ``content``."""

    def __init__(self, content):
        self.content = content
        self.requests = []
        self.chat = SimpleNamespace(completions=self)

    def __call__(self, **kwargs):
        return self

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


@pytest.fixture(autouse=True)
def fast_fetch(monkeypatch):
    monkeypatch.setattr(fetch, "RETRY_DELAY", 0)
    monkeypatch.setattr(fetch, "rate_limiter", fetch.RateLimiter(sleep=_no_sleep))
    monkeypatch.setattr(fetch, "transport", None)


@pytest.fixture
def upstream_down(monkeypatch):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, text="upstream unavailable")

    install_upstream(monkeypatch, handler)
    return calls
