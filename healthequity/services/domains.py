"""NYC Open Data domain feeds: health, food access, green space, SNAP access.

Each domain tries its strategy list in order (primary dataset with app token,
primary without token, alternate dataset) and serves the first one that
answers. Rows whose borough is not one of the five are dropped. When every
strategy fails the domain's mock dataset is served with ``success: false``.
"""

import logging
import random

from healthequity.config import DATASETS, RATE_LIMITS
from healthequity.services import fetch, mock_data
from healthequity.services.boroughs import (
    BOROUGHS,
    borough_coordinates,
    random_zip_code,
)
from healthequity.services.normalize import get_schema, keep_nyc_boroughs, normalize_records
from healthequity.services.utils import now_iso, safe_float, session_id, socrata_headers, socrata_url

logger = logging.getLogger(__name__)


def _strategies(label: str, primary: str, alternate: str) -> list[dict]:
    return [
        {"name": "Primary API with App Token", "dataset": DATASETS[primary], "limit": 1000, "token": True},
        {"name": "Primary API without App Token", "dataset": DATASETS[primary], "limit": 500, "token": False},
        {"name": f"Alternative {label} Dataset", "dataset": DATASETS[alternate], "limit": 300, "token": False},
    ]


def _coordinates(record: dict) -> list[float]:
    loc = record.pop("location", None)
    if isinstance(loc, dict):
        lat, lng = safe_float(loc.get("latitude")), safe_float(loc.get("longitude"))
        if lat is not None and lng is not None:
            return [lat, lng]
    return borough_coordinates(record["borough"])


def _split(value) -> list[str]:
    if isinstance(value, list):
        return [str(part).strip() for part in value if str(part).strip()]
    return [part.strip() for part in str(value or "").split(",") if part.strip()]


# ── Derived fields ──────────────────────────────────────────────────────────
# Mapped fields come from the normalizer schemas; these add map helpers and
# the scores the upstream datasets do not carry.

def _enrich_health(record: dict, index: int):
    if "rate" not in record:
        record["rate"] = random.random() * 100
    record["year"] = int(record.get("year") or 2023)
    record["geography"] = record["borough"]
    record["severity"] = round(record["rate"])
    record["zipCode"] = random_zip_code(record["borough"])
    record["coordinates"] = borough_coordinates(record["borough"])


def _enrich_food(record: dict, index: int):
    record["name"] = record.get("name") or f"Store {index}"
    record["type"] = "foodAccess"
    record["coordinates"] = _coordinates(record)
    record["acceptsEBT"] = record.get("acceptsEBT") == "Y" or random.random() > 0.2
    record["acceptsWIC"] = record.get("acceptsWIC") == "Y" or random.random() > 0.4
    record.update({
        "healthyOptionsScore": round(random.random() * 60 + 40),
        "priceLevel": random.randint(1, 4),
        "freshProduceAvailable": random.random() > 0.3,
        "organicOptions": random.random() > 0.5,
        "operatingHours": random.choice(mock_data.STORE_HOURS),
        "walkingDistance": round(random.random() * 15 + 1),
    })


def _enrich_green_space(record: dict, index: int):
    record["name"] = record.get("name") or f"Park {index}"
    record["type"] = "greenSpace"
    if "acres" not in record:
        record["acres"] = round(random.random() * 50, 2)
    record["coordinates"] = _coordinates(record)
    record["amenities"] = _split(record.get("amenities"))
    record.update({
        "accessibility": random.random() > 0.3,
        "maintenanceScore": round(random.random() * 40 + 60),
        "crowdingLevel": round(random.random() * 100),
        "safetyScore": round(random.random() * 30 + 70),
    })


def _enrich_snap(record: dict, index: int):
    record["name"] = record.get("name") or f"Facility {index}"
    record["type"] = "snapAccess"
    record["coordinates"] = _coordinates(record)
    record["servicesOffered"] = _split(record.get("servicesOffered"))
    record["phoneNumber"] = record.get("phoneNumber") or mock_data.phone_number()
    record.update({
        "serviceQualityScore": round(random.random() * 40 + 60),
        "waitTime": round(random.random() * 45 + 5),
        "languageSupport": mock_data.language_support(),
        "accessibilityFeatures": mock_data.accessibility_features(),
        "operatingHours": mock_data.facility_hours(record["facilityType"]),
        "eligibilitySupport": random.random() > 0.2,
        "documentAssistance": random.random() > 0.3,
    })


DOMAINS = {
    "health": {
        "label": "Health",
        "schema": "health_domain",
        "strategies": _strategies("Health", "health_primary", "health_alternate"),
        "enrich": _enrich_health,
        "mock": mock_data.generate_health_data,
    },
    "food-access": {
        "label": "Food Access",
        "schema": "food_access",
        "strategies": _strategies("Food", "food_retail", "food_alternate"),
        "enrich": _enrich_food,
        "mock": mock_data.generate_food_access_data,
    },
    "green-space": {
        "label": "Green Space",
        "schema": "green_space",
        "strategies": _strategies("Parks", "parks_properties", "parks_alternate"),
        "enrich": _enrich_green_space,
        "mock": mock_data.generate_green_space_data,
    },
    "snap-access": {
        "label": "SNAP Access",
        "schema": "snap_access",
        "strategies": _strategies("Social Services", "social_services", "social_services_alternate"),
        "enrich": _enrich_snap,
        "mock": mock_data.generate_snap_access_data,
    },
}


def transform_rows(domain: str, raw) -> list[dict]:
    """Map upstream rows into dashboard records, dropping rows outside the five boroughs."""
    feed = DOMAINS[domain]
    prefix = "nyc-" + domain.replace("-", "")
    records = keep_nyc_boroughs(
        normalize_records(raw, get_schema("nyc", feed["schema"]), source=prefix), require=True
    )
    updated = now_iso()
    for index, record in enumerate(records):
        feed["enrich"](record, index)
        record["zipCode"] = record.get("zipCode") or random_zip_code(record["borough"])
        record.setdefault("severity", round(random.random() * 100))
        record.setdefault("status", "Active")
        record["dataSource"] = "nyc_open_data"
        record["lastUpdated"] = updated
    return records


def filter_borough(records: list[dict], borough: str | None) -> list[dict]:
    if not borough:
        return records
    return [r for r in records if r.get("borough") == borough]


async def fetch_domain(domain: str, borough: str | None = None) -> dict:
    """Serve one domain feed, falling back to mock data when every strategy fails."""
    feed = DOMAINS[domain]
    sid = session_id(domain.split("-")[0])
    logger.info(f"[{sid}] NYC {feed['label']} request started (borough={borough or 'all'})")

    last_error = None
    for strategy in feed["strategies"]:
        url = socrata_url(strategy["dataset"])
        params = {"$limit": strategy["limit"]}
        try:
            await fetch.rate_limiter.acquire("NYCOpenData", RATE_LIMITS["NYCOpenData"])
            raw = await fetch.fetch_json(url, params=params, headers=socrata_headers(strategy["token"]))
        except fetch.FetchError as e:
            last_error = str(e)
            logger.warning(f"[{sid}] {strategy['name']} failed: {e}")
            continue
        if not isinstance(raw, list):
            last_error = f"{strategy['name']} returned {type(raw).__name__} instead of a row list"
            logger.warning(f"[{sid}] {last_error}")
            continue

        data = filter_borough(transform_rows(domain, raw), borough)
        logger.info(f"[{sid}] {strategy['name']} successful: {len(raw)} rows, {len(data)} kept")
        return {
            "success": True,
            "data": data,
            "metadata": {
                "source": strategy["name"],
                "count": len(data),
                "data_source": "nyc_open_data",
                "boroughs": list(BOROUGHS),
                "last_updated": now_iso(),
            },
            "timestamp": now_iso(),
        }

    logger.warning(f"[{sid}] All {feed['label']} strategies failed, serving mock data")
    data = filter_borough(feed["mock"](), borough)
    return {
        "success": False,
        "data": data,
        "error": last_error or f"{feed['label']} API temporarily unavailable",
        "metadata": {
            "source": "Mock Data Generator",
            "count": len(data),
            "data_source": "mock",
            "boroughs": list(BOROUGHS),
            "last_updated": now_iso(),
            "note": "Using mock data due to API unavailability",
        },
        "timestamp": now_iso(),
    }
