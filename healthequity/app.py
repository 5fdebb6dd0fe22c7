"""Health Equity NYC data service: FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from healthequity.config import CORS_ORIGINS, ENABLE_SCHEDULER, HOST, PORT, PUBLIC_BASE_URL
from healthequity.scheduler import last_health, scheduler, setup_scheduler
from healthequity.services import air_quality, analysis, cdc, combined, complaints, domains, epiquery, mock_data
from healthequity.services import nyc_open_data, orchestrator
from healthequity.services.boroughs import requested_borough
from healthequity.services.reports import store as report_store
from healthequity.services.utils import now_iso

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("Starting Health Equity NYC data service...")
    if ENABLE_SCHEDULER:
        setup_scheduler()

    yield

    if scheduler.running:
        scheduler.shutdown(wait=False)
    logger.info("Data service shut down")


app = FastAPI(
    title="Health Equity NYC Data Service",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


def _base_url(request: Request) -> str:
    return PUBLIC_BASE_URL or str(request.base_url).rstrip("/")


# ── NYC Open Data domain feeds ──────────────────────────────────────────────

@app.get("/api/nyc-data/health")
async def api_nyc_health(borough: str = Query(None)):
    return await domains.fetch_domain("health", requested_borough(borough))


@app.get("/api/nyc-data/food-access")
async def api_nyc_food_access(borough: str = Query(None)):
    return await domains.fetch_domain("food-access", requested_borough(borough))


@app.get("/api/nyc-data/green-space")
async def api_nyc_green_space(borough: str = Query(None)):
    return await domains.fetch_domain("green-space", requested_borough(borough))


@app.get("/api/nyc-data/snap-access")
async def api_nyc_snap_access(borough: str = Query(None)):
    return await domains.fetch_domain("snap-access", requested_borough(borough))


@app.get("/api/nyc-data/air-quality")
async def api_nyc_air_quality():
    return await air_quality.fetch_monitor_readings()


@app.get("/api/nyc-data/311-complaints")
async def api_311_complaints(
    borough: str = Query(None),
    complaint_type: str = Query(None),
    limit: int = Query(1000, ge=1, le=5000),
):
    return await complaints.fetch_311_complaints(borough, complaint_type, limit)


@app.get("/api/nyc-data/combined")
async def api_nyc_combined():
    return await combined.fetch_combined()


# ── Dashboard data ──────────────────────────────────────────────────────────

@app.get("/api/air-quality")
async def api_air_quality(
    borough: str = Query(None),
    zipCode: str = Query(None, pattern=r"^\d{5}$"),
):
    return await air_quality.fetch_borough_air_quality(borough, zipCode)


@app.get("/api/nyc-health")
async def api_health_survey(
    condition: str = Query(None),
    borough: str = Query(None),
    ageGroup: str = Query(None),
    raceEthnicity: str = Query(None),
):
    return await complaints.fetch_health_survey(condition, borough, ageGroup, raceEthnicity)


@app.get("/api/environmental")
async def api_environmental(borough: str = Query(None), zipCode: str = Query(None)):
    """Static environmental overlay for the map (air, parks, food)."""
    return {
        "success": True,
        "data": mock_data.generate_environmental_overlay(requested_borough(borough), zipCode),
        "source": "Environmental Overlay",
        "timestamp": now_iso(),
    }


@app.get("/api/cdc-health-data")
async def api_cdc_health_data(
    limit: int = Query(1000, ge=1, le=50000),
    state: str = Query("New York"),
    condition: str = Query(None),
    year: str = Query(None, pattern=r"^\d{4}$"),
    borough: str = Query(None),
):
    return await cdc.fetch_cdc_health_data(limit, state, condition, year, borough)


# ── Scraping API ────────────────────────────────────────────────────────────

@app.get("/api/scraping/cdc")
async def api_scrape_cdc(
    endpoint: str = Query("chronic_disease", pattern="^(chronic_disease|mortality|environmental_health|social_determinants)$"),
    limit: int = Query(1000, ge=1, le=50000),
    state: str = Query("New York"),
    year: str = Query(None, pattern=r"^\d{4}$"),
    max_retries: int = Query(None, ge=0, le=5),
):
    return await cdc.scrape_cdc(endpoint, limit, state, year, max_retries=max_retries)


@app.get("/api/scraping/epiquery")
async def api_scrape_epiquery(
    year: int = Query(2023, ge=1990, le=2100),
    borough: str = Query(None),
    neighborhood: str = Query(None),
    max_retries: int = Query(None, ge=0, le=5),
):
    return await epiquery.fetch_epiquery(year, requested_borough(borough), neighborhood, max_retries=max_retries)


@app.get("/api/scraping/nyc-enhanced")
async def api_scrape_nyc(
    endpoint: str = Query("health_outcomes", pattern="^(" + "|".join(nyc_open_data.ENDPOINTS) + ")$"),
    borough: str = Query(None),
    limit: int = Query(2000, ge=1, le=50000),
    year: str = Query(None, pattern=r"^\d{4}$"),
    max_retries: int = Query(None, ge=0, le=5),
):
    return await nyc_open_data.scrape_nyc(endpoint, borough, limit, year, max_retries=max_retries)


@app.get("/api/scraping/orchestrator")
async def api_orchestrator(
    request: Request,
    sources: str = Query(None),
    borough: str = Query(None),
    year: str = Query(None, pattern=r"^\d{4}$"),
    priority: str = Query("balanced"),
):
    return await orchestrator.orchestrate(
        _base_url(request),
        orchestrator.parse_sources(sources),
        borough=borough,
        year=year,
        priority=priority,
    )


@app.post("/api/scraping/orchestrator")
async def api_orchestrator_action(request: Request, action: str = Query(None)):
    if action != "health-check":
        return JSONResponse({"error": "Invalid action"}, status_code=400)
    return await orchestrator.health_check(_base_url(request))


# ── AI analysis ─────────────────────────────────────────────────────────────

class AnalyzeRequest(BaseModel):
    data: list[dict] | None = None
    environmentalData: list[dict] | None = None
    healthData: list[dict] | None = None
    filters: dict = Field(default_factory=dict)


@app.post("/api/ai/analyze")
async def api_analyze(req: AnalyzeRequest):
    return await analysis.analyze(req.data, req.environmentalData, req.healthData, req.filters)


class InsightsRequest(BaseModel):
    query: str | None = None


@app.post("/api/perplexity/health-insights")
async def api_health_insights(req: InsightsRequest | None = None):
    query = (req.query or "").strip() if req else ""
    if not query:
        return JSONResponse({"success": False, "error": "Query is required"}, status_code=400)
    try:
        return await analysis.health_insights(query)
    except analysis.InsightsError as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=e.status)


# ── Reports ─────────────────────────────────────────────────────────────────

class ReportCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    type: str = Field("dashboard", pattern="^(dashboard|csv-analysis)$")
    data: Any = None


@app.get("/api/reports")
async def api_list_reports():
    return {"reports": report_store.list()}


@app.post("/api/reports")
async def api_save_report(req: ReportCreate):
    return {"success": True, "report": report_store.save(req.title, req.type, req.data)}


# ── Status ───────────────────────────────────────────────────────────────────

@app.get("/api/status")
async def api_status():
    """Service health with the last background probe of the scraping sources."""
    return {
        "status": "running",
        "scheduler": scheduler.running,
        "source_health": dict(last_health) or None,
        "timestamp": now_iso(),
    }


if __name__ == "__main__":
    import uvicorn
    print(f"\n  Health Equity NYC Data Service")
    print(f"  http://{HOST}:{PORT}\n")
    uvicorn.run(
        "healthequity.app:app",
        host=HOST,
        port=PORT,
        reload=False,
        log_level="info",
    )
