"""DOHMH air quality measurements (dataset c3uy-2p5r)."""

import logging
import random
from datetime import date, timedelta

from healthequity.config import AIR_QUALITY_TIMEOUT, DATASETS, NYC_OPENDATA_APP_TOKEN, RATE_LIMITS
from healthequity.services import fetch, mock_data
from healthequity.services.aqi import aqi_status, estimate_aqi, severity_from_value, simple_status
from healthequity.services.boroughs import (
    NYC_CENTER,
    borough_coordinates,
    county_name,
    requested_borough,
)
from healthequity.services.normalize import get_schema, keep_nyc_boroughs, normalize_records
from healthequity.services.utils import now_iso, soql_literal, socrata_headers, socrata_url

logger = logging.getLogger(__name__)


async def _get_air_quality(params: dict) -> list:
    """GET the dataset, retrying once without the app token when it is refused."""
    url = socrata_url(DATASETS["air_quality"])
    await fetch.rate_limiter.acquire("NYCOpenData", RATE_LIMITS["NYCOpenData"])
    if not NYC_OPENDATA_APP_TOKEN:
        return await fetch.fetch_json(
            url, params=params, headers=socrata_headers(False), timeout=AIR_QUALITY_TIMEOUT
        )
    try:
        return await fetch.fetch_json(
            url,
            params={**params, "$$app_token": NYC_OPENDATA_APP_TOKEN},
            headers=socrata_headers(False),
            timeout=AIR_QUALITY_TIMEOUT,
        )
    except fetch.FetchError as e:
        if e.status != 403:
            raise
        logger.warning("Air quality API: 403 with token, retrying without token")
        return await fetch.fetch_json(
            url, params=params, headers=socrata_headers(False), timeout=AIR_QUALITY_TIMEOUT
        )


def monitor_rows(raw: list) -> list[dict]:
    """Schema-mapped monitor readings; non-positive values and rows outside NYC are dropped."""
    records = keep_nyc_boroughs(
        normalize_records(raw, get_schema("nyc", "air_quality_monitor"), source="nyc-airquality"),
        require=True,
    )
    lat, lng = NYC_CENTER
    data = []
    for record in records:
        value = record.get("value", 0.0)
        if value <= 0:
            continue
        record["name"] = record.get("name") or "Air Quality Monitor"
        record["type"] = "airQuality"
        record["coordinates"] = [lat + (random.random() - 0.5) * 0.2, lng + (random.random() - 0.5) * 0.2]
        record["aqi"] = round(estimate_aqi(record["pollutant"], value))
        record["status"] = simple_status(value)
        record["sampleDate"] = record.get("sampleDate") or date.today().isoformat()
        record["severity"] = severity_from_value(value)
        record["dataSource"] = "nyc_open_data"
        data.append(record)
    return data


async def fetch_monitor_readings() -> dict:
    """The dashboard's air quality layer: latest 500 non-empty readings."""
    params = {
        "$limit": 500,
        "$order": "start_date DESC",
        "$where": "geo_place_name IS NOT NULL AND data_value IS NOT NULL",
    }
    try:
        raw = await _get_air_quality(params)
        if not isinstance(raw, list):
            raise fetch.FetchError(f"unexpected {type(raw).__name__} body instead of a row list")
    except fetch.FetchError as e:
        logger.error(f"NYC air quality API error: {e}")
        data = mock_data.generate_air_quality_data()
        return {
            "success": False,
            "data": data,
            "count": len(data),
            "error": f"Failed to fetch air quality data: {e}",
            "timestamp": now_iso(),
        }

    data = monitor_rows(raw)
    logger.info(f"Air quality: fetched {len(data)} readings")
    return {"success": True, "data": data, "count": len(data), "timestamp": now_iso()}


def measurement_rows(raw: list) -> list[dict]:
    records = keep_nyc_boroughs(
        normalize_records(raw, get_schema("nyc", "air_quality_measurement"), source="nyc-airquality"),
        require=True,
    )
    for record in records:
        aqi = estimate_aqi(record["pollutant"], record.get("value", 0.0))
        record["type"] = "airQuality"
        record["aqi"] = round(aqi)
        record["status"] = aqi_status(aqi)
        record["coordinates"] = borough_coordinates(record["borough"])
        record["dataSource"] = "NYC DOHMH"
    return records


async def fetch_borough_air_quality(borough: str | None = None, zip_code: str | None = None) -> dict:
    """Two years of measurements for one borough or ZIP, with an AQI per pollutant."""
    borough = requested_borough(borough)
    since = date.today() - timedelta(days=730)
    where = []
    if borough:
        where.append(f"geo_place_name={soql_literal(county_name(borough))}")
    if zip_code:
        where.append(f"geo_entity_id={soql_literal(zip_code)}")
    where.append(f"start_date >= '{since.isoformat()}'")
    params = {"$limit": 1000, "$order": "start_date DESC", "$where": " AND ".join(where)}

    try:
        raw = await _get_air_quality(params)
    except fetch.FetchError as e:
        logger.error(f"Air quality API error: {e}")
        return {
            "success": False,
            "data": mock_data.generate_air_quality_data(borough, zip_code),
            "source": "Mock Data (API Error)",
            "error": str(e),
            "timestamp": now_iso(),
        }

    data = measurement_rows(raw)
    return {
        "success": True,
        "data": data or mock_data.generate_air_quality_data(borough, zip_code),
        "source": "NYC Open Data - Air Quality" if data else "Mock Air Quality Data",
        "count": len(data),
        "timestamp": now_iso(),
    }
