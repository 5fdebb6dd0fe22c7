"""CDC Socrata datasets: chronic disease, mortality, environmental health, social determinants."""

import logging
import random

from healthequity.config import CDC_BASE, CDC_DATASETS, RATE_LIMITS, USER_AGENT
from healthequity.services import fetch, mock_data
from healthequity.services.boroughs import BOROUGHS, requested_borough
from healthequity.services.normalize import get_schema, normalize_records
from healthequity.services.utils import now_iso, safe_float, socrata_url, soql_literal, to_float, to_int

logger = logging.getLogger(__name__)

CDC_ENDPOINTS = ("chronic_disease", "mortality", "environmental_health", "social_determinants")

# Column holding the state/jurisdiction name in each dataset
LOCATION_FIELDS = {
    "chronic_disease": "locationdesc",
    "mortality": "state",
    "environmental_health": "reportingjurisdiction",
    "social_determinants": "location",
}

CDC_HEADERS = {"Accept": "application/json", "User-Agent": USER_AGENT}

# Substrings of a CDC location description that identify a borough
LOCATION_KEYWORDS = [
    (("manhattan", "new york county"), "Manhattan"),
    (("brooklyn", "kings county"), "Brooklyn"),
    (("queens",), "Queens"),
    (("bronx",), "Bronx"),
    (("staten island", "richmond county"), "Staten Island"),
]


def _where(**conditions) -> str | None:
    parts = [f"{field}={soql_literal(value)}" for field, value in conditions.items() if value]
    return " AND ".join(parts) or None


async def scrape_cdc(
    endpoint: str = "chronic_disease",
    limit: int = 1000,
    state: str = "New York",
    year: str | None = None,
    max_retries: int | None = None,
) -> dict:
    """One CDC endpoint, normalized through its field mapping."""
    schema = get_schema("cdc", endpoint)
    url = socrata_url(CDC_DATASETS[endpoint], base=CDC_BASE)
    params = {"$limit": limit, "$order": "year DESC"}
    where = _where(**{LOCATION_FIELDS[endpoint]: state, "year": year})
    if where:
        params["$where"] = where

    kwargs = {"params": params, "headers": CDC_HEADERS}
    if max_retries is not None:
        kwargs["max_retries"] = max_retries

    logger.info(f"Scraping CDC data: {endpoint}")
    try:
        await fetch.rate_limiter.acquire("CDC", RATE_LIMITS["CDC"])
        raw = await fetch.fetch_json(url, **kwargs)
    except fetch.FetchError as e:
        logger.error(f"CDC scraping error ({endpoint}): {e}")
        return {
            "success": False,
            "source": "CDC",
            "endpoint": endpoint,
            "error": str(e),
            "data": [],
            "metadata": {"total_records": 0, "last_updated": now_iso(), "status": e.status},
        }

    data = normalize_records(raw, schema, source="cdc")
    logger.info(f"CDC {endpoint}: fetched {len(data)}")
    return {
        "success": True,
        "source": "CDC",
        "endpoint": endpoint,
        "data": data,
        "metadata": {
            "total_records": len(data),
            "last_updated": now_iso(),
            "source_url": url,
            "filters": {"state": state, "year": year, "limit": limit},
        },
    }


# ── Chronic disease indicators for the dashboard ────────────────────────────

def location_to_borough(location: str | None) -> str | None:
    """Borough named in a CDC location description.

    State- or city-level New York rows are spread across the five boroughs
    at random; anything else has no borough.
    """
    if not location:
        return None
    text = location.lower()
    for keywords, borough in LOCATION_KEYWORDS:
        if any(k in text for k in keywords):
            return borough
    if "new york" in text:
        return random.choice(BOROUGHS)
    return None


def _indicator_extras(record: dict, borough: str):
    low, high = record.pop("ciLow", None), record.pop("ciHigh", None)
    geolocation = record.pop("geolocation", None)
    record.pop("location", None)
    record["borough"] = borough
    record["neighborhood"] = (geolocation.get("city") if isinstance(geolocation, dict) else None) or borough
    record["rate"] = to_float(record.get("rate"))
    record["cases"] = to_int(record.get("cases"))
    record["population"] = to_int(record.get("population")) or 100000
    record["year"] = to_int(record.get("year")) or 2023
    record["id"] = f"cdc_{record['year']}_{record['condition']}_{borough}".replace(" ", "_")
    record["confidence_interval"] = f"{low}-{high}" if low and high else None
    record["dataSource"] = "CDC"


def transform_indicators(raw, borough: str | None = None, max_records: int = 500) -> list[dict]:
    data = []
    for record in normalize_records(raw, get_schema("cdc", "chronic_indicators"), source="cdc"):
        mapped = location_to_borough(record.get("location"))
        if mapped is None or (borough and mapped != borough):
            continue
        _indicator_extras(record, mapped)
        data.append(record)
        if len(data) >= max_records:
            break
    return data


def health_stats(data: list[dict]) -> dict:
    """Summary statistics over health records: averages, extremes, top conditions, per borough."""
    if not data:
        return {
            "totalRecords": 0,
            "averageRate": 0,
            "highestRate": 0,
            "lowestRate": 0,
            "conditionsCount": 0,
            "boroughsCount": 0,
            "topConditions": [],
            "boroughBreakdown": {},
        }

    rates = [r for r in (safe_float(item.get("rate")) for item in data) if r is not None]
    by_condition: dict[str, list[float]] = {}
    by_borough: dict[str, list[float]] = {}
    for item in data:
        rate = to_float(item.get("rate"))
        by_condition.setdefault(item.get("condition"), []).append(rate)
        by_borough.setdefault(item.get("borough"), []).append(rate)

    top = sorted(
        (
            {"condition": cond, "avgRate": sum(vals) / len(vals), "count": len(vals)}
            for cond, vals in by_condition.items()
        ),
        key=lambda c: c["avgRate"],
        reverse=True,
    )

    return {
        "totalRecords": len(data),
        "averageRate": round(sum(rates) / len(rates), 1) if rates else 0,
        "highestRate": round(max(rates), 1) if rates else 0,
        "lowestRate": round(min(rates), 1) if rates else 0,
        "conditionsCount": len(by_condition),
        "boroughsCount": len(by_borough),
        "topConditions": top[:5],
        "boroughBreakdown": {
            boro: {"count": len(vals), "avgRate": round(sum(vals) / len(vals), 1)}
            for boro, vals in by_borough.items()
        },
    }


async def fetch_cdc_health_data(
    limit: int = 1000,
    state: str = "New York",
    condition: str | None = None,
    year: str | None = None,
    borough: str | None = None,
) -> dict:
    url = socrata_url(CDC_DATASETS["chronic_disease_indicators"], base=CDC_BASE)
    params = {"$limit": limit, "$order": "year DESC"}
    topic = condition if condition and condition != "allConditions" else None
    where = _where(locationdesc=state, topic=topic, year=year)
    if where:
        params["$where"] = where
    wanted = requested_borough(borough)
    filters = {"state": state, "condition": condition, "year": year, "borough": borough, "limit": limit}

    try:
        await fetch.rate_limiter.acquire("CDC", RATE_LIMITS["CDC"])
        raw = await fetch.fetch_json(url, params=params, headers=CDC_HEADERS)
        if not isinstance(raw, list):
            raise fetch.FetchError(f"unexpected {type(raw).__name__} body instead of a row list")
    except fetch.FetchError as e:
        logger.error(f"CDC API fetch error: {e}")
        data = mock_data.generate_cdc_data(topic, wanted)
        return {
            "success": False,
            "source": "CDC_MOCK",
            "error": str(e),
            "data": data,
            "stats": health_stats(data),
            "metadata": {"total_records": len(data), "last_updated": now_iso(), "is_mock": True},
        }

    data = transform_indicators(raw, wanted)
    logger.info(f"CDC chronic disease indicators: fetched {len(raw) if isinstance(raw, list) else 0}, kept {len(data)}")
    return {
        "success": True,
        "source": "CDC",
        "data": data,
        "stats": health_stats(data),
        "metadata": {
            "total_records": len(data),
            "raw_records": len(raw) if isinstance(raw, list) else 0,
            "last_updated": now_iso(),
            "source_url": url,
            "filters": filters,
        },
    }
