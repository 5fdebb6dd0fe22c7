"""NYC Open Data multi-endpoint scraper with per-endpoint ordering and filters."""

import logging
from datetime import date, timedelta

from healthequity.config import DATASETS, NYC_OPENDATA_APP_TOKEN, RATE_LIMITS
from healthequity.services import fetch
from healthequity.services.boroughs import county_name, requested_borough, subway_code
from healthequity.services.normalize import data_freshness, get_schema, keep_nyc_boroughs, normalize_records
from healthequity.services.utils import now_iso, socrata_headers, socrata_url, soql_literal

logger = logging.getLogger(__name__)

# endpoint -> (dataset key, $order)
ENDPOINTS = {
    "health_outcomes": ("leading_causes_of_death", "year DESC"),
    "air_quality": ("air_quality", "start_date DESC"),
    "water_quality": ("drinking_water_quality", "sample_date DESC"),
    "food_establishments": ("restaurant_inspections", "inspection_date DESC"),
    "parks": ("parks", "signname ASC"),
    "snap_retailers": ("snap_retailers", "business_name ASC"),
    "healthcare_facilities": ("healthcare_facilities", "facility_name ASC"),
    "subway_stations": ("subway_stations", "name ASC"),
}

# Endpoints whose date column is filtered by year; others have no year filter
YEAR_COLUMNS = {
    "air_quality": "start_date",
    "water_quality": "sample_date",
    "food_establishments": "inspection_date",
}

# Endpoints restricted to the last three months of samples
RECENT_COLUMNS = {
    "air_quality": "start_date",
    "water_quality": "sample_date",
}


def _borough_condition(endpoint: str, borough: str) -> str | None:
    conditions = {
        "health_outcomes": f"geography={soql_literal(borough)}",
        "air_quality": f"geo_place_name={soql_literal(county_name(borough))}",
        "water_quality": f"borough={soql_literal(borough.upper())}",
        "food_establishments": f"boro={soql_literal(borough)}",
        "parks": f"borough={soql_literal(borough)}",
        "snap_retailers": f"borough={soql_literal(borough.upper())}",
        "healthcare_facilities": f"borough={soql_literal(borough.upper())}",
        "subway_stations": f"borough={soql_literal(subway_code(borough))}",
    }
    return conditions.get(endpoint)


def build_where(endpoint: str, borough: str | None = None, year: str | None = None, today: date | None = None) -> list[str]:
    conditions = []
    if year:
        if endpoint == "health_outcomes":
            conditions.append(f"year={soql_literal(year)}")
        elif endpoint in YEAR_COLUMNS:
            conditions.append(f"{YEAR_COLUMNS[endpoint]} >= '{year}-01-01T00:00:00.000'")

    borough = requested_borough(borough)
    if borough:
        condition = _borough_condition(endpoint, borough)
        if condition:
            conditions.append(condition)

    if endpoint in RECENT_COLUMNS:
        recent = (today or date.today()) - timedelta(days=90)
        conditions.append(f"{RECENT_COLUMNS[endpoint]} >= '{recent.isoformat()}T00:00:00.000'")
    return conditions


async def scrape_nyc(
    endpoint: str = "health_outcomes",
    borough: str | None = None,
    limit: int = 2000,
    year: str | None = None,
    max_retries: int | None = None,
) -> dict:
    schema = get_schema("nyc", endpoint)
    dataset_key, order = ENDPOINTS[endpoint]
    url = socrata_url(DATASETS[dataset_key])
    params = {"$limit": limit, "$order": order}
    where = build_where(endpoint, borough, year)
    if where:
        params["$where"] = " AND ".join(where)
    if NYC_OPENDATA_APP_TOKEN:
        params["$$app_token"] = NYC_OPENDATA_APP_TOKEN

    kwargs = {"params": params, "headers": socrata_headers()}
    if max_retries is not None:
        kwargs["max_retries"] = max_retries

    logger.info(f"Scraping NYC Open Data: {endpoint}")
    try:
        await fetch.rate_limiter.acquire("NYCOpenData", RATE_LIMITS["NYCOpenData"])
        raw = await fetch.fetch_json(url, **kwargs)
    except fetch.FetchError as e:
        logger.error(f"NYC Open Data scraping error ({endpoint}): {e}")
        return {
            "success": False,
            "source": "NYC Open Data",
            "endpoint": endpoint,
            "error": str(e),
            "data": [],
            "metadata": {"total_records": 0, "last_updated": now_iso(), "status": e.status},
        }

    data = keep_nyc_boroughs(normalize_records(raw, schema, source="nyc"))
    logger.info(f"NYC Open Data {endpoint}: fetched {len(data)}")
    return {
        "success": True,
        "source": "NYC Open Data",
        "endpoint": endpoint,
        "data": data,
        "metadata": {
            "total_records": len(data),
            "last_updated": now_iso(),
            "source_url": url,
            "filters": {"borough": borough, "year": year, "limit": limit},
            "data_freshness": data_freshness(data),
        },
    }
