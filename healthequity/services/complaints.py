"""311 service requests with health relevance, and the DOHMH community health survey."""

import logging
import time
from collections import Counter

from healthequity.config import DATASETS, NYC_OPENDATA_APP_TOKEN, RATE_LIMITS, SOCRATA_PAGE_SIZE
from healthequity.services import fetch, mock_data
from healthequity.services.boroughs import normalize_borough, requested_borough
from healthequity.services.normalize import get_schema, keep_nyc_boroughs, normalize_records
from healthequity.services.utils import (
    elapsed_ms,
    now_iso,
    safe_float,
    session_id,
    socrata_headers,
    socrata_url,
    soql_literal,
)

logger = logging.getLogger(__name__)

# 311 complaint type -> health relevance (1-10)
HEALTH_RELEVANCE = {
    "Air Quality": 9,
    "Water Quality": 8,
    "Food Poisoning": 10,
    "Unsanitary Condition": 7,
    "Rodent": 6,
    "Noise - Residential": 4,
}


def health_relevance(complaint_type: str | None) -> int:
    return HEALTH_RELEVANCE.get(complaint_type or "", 1)


def complaint_rows(raw: list) -> list[dict]:
    records = keep_nyc_boroughs(
        normalize_records(raw, get_schema("nyc", "311"), source="nyc-311"), require=True
    )
    for record in records:
        record["createdDate"] = record.get("createdDate") or now_iso()
        record["latitude"] = safe_float(record.get("latitude"))
        record["longitude"] = safe_float(record.get("longitude"))
        record["healthRelevance"] = health_relevance(record["complaintType"])
        record["dataSource"] = "nyc_open_data"
    return records


def complaint_summary(complaints: list[dict]) -> dict:
    """Counts by borough, type and status, and a high/medium/low relevance split."""
    relevance = {"high": 0, "medium": 0, "low": 0}
    for c in complaints:
        score = c.get("healthRelevance") or 1
        if score >= 8:
            relevance["high"] += 1
        elif score >= 5:
            relevance["medium"] += 1
        else:
            relevance["low"] += 1
    return {
        "totalComplaints": len(complaints),
        "byBorough": dict(Counter(c.get("borough") or "Unknown" for c in complaints)),
        "byComplaintType": dict(Counter(c.get("complaintType") or "Unknown" for c in complaints)),
        "byStatus": dict(Counter(c.get("status") or "Unknown" for c in complaints)),
        "healthRelevanceDistribution": relevance,
    }


async def fetch_311_complaints(
    borough: str | None = None,
    complaint_type: str | None = None,
    limit: int = SOCRATA_PAGE_SIZE,
) -> dict:
    """Health-relevant 311 complaints, newest first, with summary statistics."""
    sid = session_id("311")
    start = time.perf_counter()
    url = socrata_url(DATASETS["311_requests"])
    types = ", ".join(f"'{t}'" for t in HEALTH_RELEVANCE)
    params = {
        "$limit": SOCRATA_PAGE_SIZE,
        "$where": f"complaint_type IN({types})",
        "$order": "created_date DESC",
    }
    if NYC_OPENDATA_APP_TOKEN:
        params["$$app_token"] = NYC_OPENDATA_APP_TOKEN

    error = None
    try:
        await fetch.rate_limiter.acquire("NYCOpenData", RATE_LIMITS["NYCOpenData"])
        raw = await fetch.fetch_json(url, params=params, headers=socrata_headers(False))
        if not isinstance(raw, list):
            raise fetch.FetchError(f"unexpected {type(raw).__name__} body instead of a row list")
        data = complaint_rows(raw)
        source = "NYC Open Data - 311 Service Requests"
        logger.info(f"[{sid}] 311 complaints: fetched {len(data)}")
    except fetch.FetchError as e:
        error = f"NYC 311 API error: {e}"
        logger.warning(f"[{sid}] 311 API failed, using mock data: {e}")
        data = mock_data.generate_311_data()
        source = "Mock 311 Data"

    wanted = requested_borough(borough)
    if wanted:
        data = [c for c in data if normalize_borough(c.get("borough")) == wanted]
    if complaint_type:
        needle = complaint_type.lower()
        data = [c for c in data if needle in (c.get("complaintType") or "").lower()]
    data = data[:limit]

    result = {
        "success": error is None,
        "data": data,
        "summary": complaint_summary(data),
        "metadata": {
            "total_records": len(data),
            "data_source": source,
            "last_updated": now_iso(),
            "response_time": elapsed_ms(start),
            "filters_applied": {"borough": borough, "complaint_type": complaint_type, "limit": limit},
        },
        "timestamp": now_iso(),
    }
    if error:
        result["error"] = error
    return result


# ── Community health survey ─────────────────────────────────────────────────

def survey_rows(raw: list) -> list[dict]:
    records = keep_nyc_boroughs(
        normalize_records(raw, get_schema("nyc", "health_survey"), source="nyc-survey"), require=True
    )
    for record in records:
        year = safe_float(record.get("year"))
        record["year"] = int(year) if year is not None else None
        record.setdefault("rate", 0.0)
        record["dataSource"] = "NYC DOHMH"
    return records


async def fetch_health_survey(
    condition: str | None = None,
    borough: str | None = None,
    age_group: str | None = None,
    race_ethnicity: str | None = None,
) -> dict:
    borough = requested_borough(borough)
    filters = {
        "health_topic": condition,
        "geo_entity_name": borough,
        "age_group": age_group,
        "race_ethnicity": race_ethnicity,
    }
    where = [f"{field}={soql_literal(value)}" for field, value in filters.items() if value]

    params = {"$limit": SOCRATA_PAGE_SIZE}
    if where:
        params["$where"] = " AND ".join(where)
    if NYC_OPENDATA_APP_TOKEN:
        params["$$app_token"] = NYC_OPENDATA_APP_TOKEN

    try:
        await fetch.rate_limiter.acquire("NYCOpenData", RATE_LIMITS["NYCOpenData"])
        raw = await fetch.fetch_json(
            socrata_url(DATASETS["community_health_survey"]), params=params, headers=socrata_headers(False)
        )
    except fetch.FetchError as e:
        logger.error(f"NYC health survey API error: {e}")
        data = mock_data.generate_health_data()
        if borough:
            data = [r for r in data if r["borough"] == borough]
        return {
            "success": False,
            "data": data,
            "source": "Mock Data (API Error)",
            "error": str(e),
            "timestamp": now_iso(),
        }

    data = survey_rows(raw)
    logger.info(f"NYC health survey: fetched {len(data)}")
    return {
        "success": True,
        "data": data,
        "source": "NYC Open Data",
        "count": len(data),
        "timestamp": now_iso(),
    }
