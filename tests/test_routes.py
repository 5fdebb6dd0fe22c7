import httpx
from fastapi.testclient import TestClient

from healthequity.app import app
from healthequity.services.boroughs import BOROUGHS
from healthequity.services.reports import store

from conftest import FakeChat, install_upstream

client = TestClient(app)


def test_status():
    resp = client.get("/api/status")
    assert resp.status_code == 200
    assert resp.json()["status"] == "running"


def test_health_feed_falls_back_to_mock_for_requested_borough(upstream_down):
    resp = client.get("/api/nyc-data/health", params={"borough": "Brooklyn"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["error"]
    assert body["metadata"]["data_source"] == "mock"
    assert len(body["data"]) == 200
    assert {r["borough"] for r in body["data"]} == {"Brooklyn"}


def test_health_feed_all_boroughs_mock(upstream_down):
    body = client.get("/api/nyc-data/health", params={"borough": "allBoroughs"}).json()
    assert len(body["data"]) == 1000


def test_green_space_feed_drops_rows_outside_nyc(monkeypatch):
    rows = [
        {"signname": "Prospect Park", "borough": "B", "acres": "526"},
        {"signname": "Palisades", "borough": "NJ"},
        {"signname": "Pelham Bay Park", "borough": "Bronx"},
    ]
    install_upstream(monkeypatch, lambda request: httpx.Response(200, json=rows))
    body = client.get("/api/nyc-data/green-space").json()
    assert body["success"] is True
    assert [r["name"] for r in body["data"]] == ["Prospect Park", "Pelham Bay Park"]
    assert body["data"][0]["borough"] == "Brooklyn"
    assert body["data"][0]["acres"] == 526.0
    assert all(r["category"] == "environmental" for r in body["data"])


def test_domain_feed_moves_to_next_strategy(monkeypatch):
    seen = []

    def handler(request):
        seen.append(request)
        if len(seen) == 1:
            return httpx.Response(403, json={"message": "invalid app token"})
        return httpx.Response(200, json=[{"facility_name": "Queens SNAP Center", "borough": "QUEENS"}])

    install_upstream(monkeypatch, handler)
    body = client.get("/api/nyc-data/snap-access").json()
    assert body["success"] is True
    assert body["metadata"]["source"] == "Primary API without App Token"
    assert body["data"][0]["borough"] == "Queens"


def test_combined_reports_each_source(upstream_down):
    body = client.get("/api/nyc-data/combined").json()
    assert body["success"] is True
    assert set(body["data"]) == {"health", "greenSpace", "foodAccess", "snapAccess"}
    assert all(v == [] for v in body["data"].values())
    assert body["metadata"]["performance"]["failedSources"] == 4
    assert body["metadata"]["sources"]["health"]["dataSource"] == "mock"


def test_311_complaints_filter_mock_by_borough(upstream_down):
    body = client.get("/api/nyc-data/311-complaints", params={"borough": "Bronx"}).json()
    assert body["success"] is False
    assert [c["complaintType"] for c in body["data"]] == ["Air Quality"]
    assert body["summary"]["healthRelevanceDistribution"]["high"] == 1


def test_cdc_scrape_failure_returns_empty_data(upstream_down):
    body = client.get("/api/scraping/cdc", params={"endpoint": "mortality", "max_retries": 0}).json()
    assert body["success"] is False
    assert body["data"] == []
    assert body["metadata"]["status"] == 500
    assert len(upstream_down) == 1


def test_cdc_scrape_rejects_unknown_endpoint():
    assert client.get("/api/scraping/cdc", params={"endpoint": "weather"}).status_code == 422


def test_nyc_enhanced_scrape_normalizes_rows(monkeypatch):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[
            {"facility_id": "1", "facility_name": "Bellevue", "borough": "MANHATTAN"},
            {"facility_id": "2", "facility_name": "Westchester Medical", "borough": "WESTCHESTER"},
        ])

    install_upstream(monkeypatch, handler)
    body = client.get(
        "/api/scraping/nyc-enhanced", params={"endpoint": "healthcare_facilities", "borough": "Manhattan"}
    ).json()
    assert body["success"] is True
    assert [r["name"] for r in body["data"]] == ["Bellevue"]
    assert body["data"][0]["category"] == "geographic"
    assert "borough='MANHATTAN'" in seen[0].url.params["$where"]


def test_environmental_overlay():
    body = client.get("/api/environmental").json()
    assert body["success"] is True
    assert set(body["data"]) == {"airQuality", "parks", "foodAccess"}


def test_air_quality_rejects_bad_zip():
    assert client.get("/api/air-quality", params={"zipCode": "abc"}).status_code == 422


def test_air_quality_mock_on_failure(upstream_down):
    body = client.get("/api/air-quality", params={"borough": "Queens"}).json()
    assert body["data"]
    assert all(r["borough"] == "Queens" for r in body["data"])


def test_orchestrator_rejects_unknown_action():
    resp = client.post("/api/scraping/orchestrator", params={"action": "purge"})
    assert resp.status_code == 400


def test_analyze_without_data():
    body = client.post("/api/ai/analyze", json={"filters": {}}).json()
    assert body["summary"] == "No data available for analysis"
    assert body["topConcerns"] == []


def test_reports_round_trip():
    store.clear()
    created = client.post("/api/reports", json={"title": "Bronx asthma", "type": "csv-analysis", "data": {"rows": 3}})
    assert created.status_code == 200
    report = created.json()["report"]
    assert report["downloadUrl"].endswith(f"{report['id']}/download")

    listed = client.get("/api/reports").json()["reports"]
    assert [r["title"] for r in listed] == ["Bronx asthma"]


def test_reports_reject_unknown_type():
    resp = client.post("/api/reports", json={"title": "x", "type": "pdf"})
    assert resp.status_code == 422


def test_every_borough_is_accepted_by_domain_routes(upstream_down):
    for borough in BOROUGHS:
        body = client.get("/api/nyc-data/food-access", params={"borough": borough}).json()
        assert body["data"]
        assert {r["borough"] for r in body["data"]} == {borough}


def test_air_quality_monitors_retry_without_refused_token(monkeypatch):
    from healthequity.services import air_quality

    monkeypatch.setattr(air_quality, "NYC_OPENDATA_APP_TOKEN", "expired-token")
    seen = []

    def handler(request):
        seen.append(request)
        if "$$app_token" in request.url.params:
            return httpx.Response(403, json={"message": "invalid app token"})
        return httpx.Response(200, json=[
            {"geo_place_name": "Bronx", "data_value": "14.1", "name": "Fine particles (PM 2.5)"},
            {"geo_place_name": "Bronx", "data_value": "0"},
            {"geo_place_name": "Long Island", "data_value": "5"},
        ])

    install_upstream(monkeypatch, handler)
    body = client.get("/api/nyc-data/air-quality").json()
    assert len(seen) == 2
    assert body["success"] is True
    assert body["count"] == 1
    assert body["data"][0]["aqi"] == 54
    assert body["data"][0]["status"] == "Good"


def test_health_survey_mock_on_failure(upstream_down):
    body = client.get("/api/nyc-health", params={"borough": "Queens"}).json()
    assert body["success"] is False
    assert len(body["data"]) == 200
    assert {r["borough"] for r in body["data"]} == {"Queens"}


def test_domain_feed_error_object_serves_mock(monkeypatch):
    install_upstream(monkeypatch, lambda request: httpx.Response(200, json={"error": True, "message": "throttled"}))
    body = client.get("/api/nyc-data/health").json()
    assert body["success"] is False
    assert "dict" in body["error"]
    assert body["metadata"]["data_source"] == "mock"
    assert len(body["data"]) == 1000


def test_air_quality_monitors_error_object_serves_mock(monkeypatch):
    install_upstream(monkeypatch, lambda request: httpx.Response(200, json={"error": "query timeout"}))
    body = client.get("/api/nyc-data/air-quality").json()
    assert body["success"] is False
    assert body["error"].startswith("Failed to fetch air quality data")
    assert body["count"] == len(body["data"]) > 0


def test_health_survey_all_boroughs_sends_no_borough_filter(monkeypatch):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"geo_entity_name": "Bronx", "health_topic": "Asthma", "data_value": "9"}])

    install_upstream(monkeypatch, handler)
    body = client.get("/api/nyc-health", params={"borough": "allBoroughs", "condition": "Kid's Asthma"}).json()
    assert body["success"] is True
    assert body["data"][0]["rate"] == 9.0
    assert seen[0].url.params["$where"] == "health_topic='Kid''s Asthma'"


# ── Health insights ─────────────────────────────────────────────────────────

def test_health_insights_requires_query():
    resp = client.post("/api/perplexity/health-insights", json={})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Query is required"}
    assert client.post("/api/perplexity/health-insights", json={"query": "  "}).status_code == 400


def test_health_insights_without_api_key(monkeypatch):
    from healthequity.services import analysis

    monkeypatch.setattr(analysis, "OPENAI_API_KEY", "")
    resp = client.post("/api/perplexity/health-insights", json={"query": "Asthma in the Bronx"})
    assert resp.status_code == 503
    assert resp.json()["success"] is False


def test_health_insights_answer(monkeypatch):
    from healthequity.services import analysis

    fake = FakeChat("Asthma ED visits are highest in the South Bronx.")
    monkeypatch.setattr(analysis, "OPENAI_API_KEY", "test-key")
    monkeypatch.setattr(analysis, "AsyncOpenAI", fake)
    body = client.post("/api/perplexity/health-insights", json={"query": "Asthma in the Bronx"}).json()
    assert body == {
        "success": True,
        "content": "Asthma ED visits are highest in the South Bronx.",
        "citations": [],
        "isRealTime": False,
    }
    sent = fake.requests[0]
    assert sent["max_tokens"] == 1000
    assert sent["temperature"] == 0.7
    assert sent["messages"][0]["role"] == "system"
    assert sent["messages"][1] == {"role": "user", "content": "Asthma in the Bronx"}


def test_health_insights_empty_answer(monkeypatch):
    from healthequity.services import analysis

    monkeypatch.setattr(analysis, "OPENAI_API_KEY", "test-key")
    monkeypatch.setattr(analysis, "AsyncOpenAI", FakeChat(None))
    body = client.post("/api/perplexity/health-insights", json={"query": "Lead in Queens"}).json()
    assert body["content"] == "No insights available"


def test_scraping_routes_expose_only_used_parameters():
    paths = app.openapi()["paths"]

    def names(path):
        return {p["name"] for p in paths[path]["get"].get("parameters", [])}

    assert names("/api/scraping/cdc") == {"endpoint", "limit", "state", "year", "max_retries"}
    assert names("/api/scraping/epiquery") == {"year", "borough", "neighborhood", "max_retries"}
