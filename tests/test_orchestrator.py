import asyncio

import httpx
import pytest

from healthequity.app import app
from healthequity.services import orchestrator

from conftest import install_upstream


@pytest.fixture(autouse=True)
def in_process_routes(monkeypatch):
    def client(base_url, timeout=None):
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test", timeout=timeout)

    monkeypatch.setattr(orchestrator, "_internal_client", client)


def healthy_upstreams(request: httpx.Request) -> httpx.Response:
    host = request.url.host
    if host == "data.cdc.gov":
        return httpx.Response(200, json=[
            {"topic": "Diabetes", "locationdesc": "New York", "year": "2022", "datavalue": "11.2"},
        ])
    if host == "a816-health.nyc.gov":
        return httpx.Response(200, json=[
            {"indicator": "Asthma ED visits", "borough": "Bronx", "value": "120.5", "year": 2023},
        ])
    return httpx.Response(200, json=[
        {"leading_cause": "Diabetes Mellitus", "geography": "Queens", "year": "2020", "deaths": "410"},
        {"leading_cause": "Influenza", "geography": "Newark", "year": "2020", "deaths": "12"},
    ])


def test_all_sources_failing_still_succeeds(upstream_down):
    result = asyncio.run(orchestrator.orchestrate("http://test"))
    assert result["success"] is True
    assert result["summary"]["totalSources"] == 3
    assert result["summary"]["failedSources"] == 3
    assert result["summary"]["totalRecords"] == 0
    assert result["summary"]["successRate"] == 0.0
    assert all(bucket == [] for bucket in result["data"].values())
    assert all(not r["success"] for r in result["sources"].values())


def test_records_are_bucketed_by_category(monkeypatch):
    install_upstream(monkeypatch, healthy_upstreams)
    result = asyncio.run(orchestrator.orchestrate("http://test", priority="comprehensive", borough="Queens"))
    assert result["priority"] == "comprehensive"
    assert result["summary"]["successfulSources"] == 3
    assert result["summary"]["totalRecords"] == 3
    assert result["summary"]["recordsBySource"] == {"cdc": 1, "epiquery": 1, "nyc": 1}
    assert {r["source"] for r in result["data"]["health"]} == {"cdc", "epiquery", "nyc"}
    assert result["data"]["environmental"] == []


def test_unknown_source_counts_as_failed(monkeypatch):
    install_upstream(monkeypatch, healthy_upstreams)
    result = asyncio.run(orchestrator.orchestrate("http://test", sources=["cdc", "weather"], priority="fast"))
    assert result["summary"]["successfulSources"] == 1
    assert result["summary"]["failedSources"] == 1
    assert "weather" in result["sources"]["weather"]["error"]


def test_repeated_source_is_scraped_once(monkeypatch):
    install_upstream(monkeypatch, healthy_upstreams)
    result = asyncio.run(orchestrator.orchestrate("http://test", sources=["cdc", "cdc"]))
    assert result["summary"]["totalSources"] == 1
    assert result["summary"]["successfulSources"] == 1
    assert result["summary"]["failedSources"] == 0
    assert result["summary"]["successRate"] == 100.0
    assert list(result["sources"]) == ["cdc"]


def test_unknown_priority_uses_balanced():
    assert orchestrator.get_policy("turbo")["name"] == "balanced"
    assert orchestrator.get_policy("fast")["max_retries"] == 1


def test_parse_sources():
    assert orchestrator.parse_sources(None) == ["cdc", "epiquery", "nyc"]
    assert orchestrator.parse_sources(" cdc, nyc ,") == ["cdc", "nyc"]
    assert orchestrator.parse_sources("nyc,cdc,nyc") == ["nyc", "cdc"]


def test_categorize_skips_untagged_records():
    buckets = {"health": [], "social": []}
    orchestrator.categorize([{"category": "health"}, {"category": "weather"}, "junk"], buckets, "cdc")
    assert buckets == {"health": [{"category": "health", "source": "cdc"}], "social": []}


def test_health_check(monkeypatch):
    install_upstream(monkeypatch, healthy_upstreams)
    result = asyncio.run(orchestrator.health_check("http://test"))
    assert result["overall"] is True
    assert result["status"]["cdc"] and result["status"]["epiquery"] and result["status"]["nyc"]


def test_health_check_unhealthy(upstream_down):
    result = asyncio.run(orchestrator.health_check("http://test"))
    assert result["overall"] is False
