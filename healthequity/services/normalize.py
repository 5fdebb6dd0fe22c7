"""Declarative field mappings from upstream datasets to dashboard records.

Each schema names the record ``category`` it produces, the target <- source
field map, which targets are numeric, and optional defaults. A source given
as a tuple lists candidate fields; the first one with a value wins.
``normalize_records`` is the only consumer; adapters pick a schema by
(source, endpoint) and add derived fields afterwards.
"""

import logging
from datetime import datetime, timezone

from healthequity.services.boroughs import normalize_borough
from healthequity.services.utils import to_float

logger = logging.getLogger(__name__)

CATEGORIES = ("health", "environmental", "social", "geographic")

SCHEMAS = {
    # ── CDC ────────────────────────────────────────────────────────────────
    ("cdc", "chronic_disease"): {
        "category": "health",
        "fields": {
            "id": "id",
            "condition": "topic",
            "location": "locationdesc",
            "year": "year",
            "dataValue": "datavalue",
            "dataValueUnit": "datavalueunit",
            "dataValueType": "datavaluetype",
            "measure": "measure",
            "ageGroup": "stratification1",
            "raceEthnicity": "stratification2",
            "gender": "stratification3",
        },
        "numeric": ["dataValue"],
    },
    ("cdc", "mortality"): {
        "category": "health",
        "fields": {
            "id": "id",
            "cause": "leading_cause",
            "location": "state",
            "year": "year",
            "deaths": "deaths",
            "deathRate": "age_adjusted_death_rate",
            "ageGroup": "age_group",
            "raceEthnicity": "race_ethnicity",
        },
        "numeric": ["deaths", "deathRate"],
    },
    ("cdc", "environmental_health"): {
        "category": "environmental",
        "fields": {
            "id": "id",
            "measure": "measure",
            "location": "reportingjurisdiction",
            "year": "year",
            "value": "datavalue",
            "unit": "unit",
        },
        "numeric": ["value"],
    },
    ("cdc", "social_determinants"): {
        "category": "social",
        "fields": {
            "id": "id",
            "indicator": "indicator",
            "location": "location",
            "year": "year",
            "value": "value",
            "subpopulation": "subpopulation",
        },
        "numeric": ["value"],
    },
    ("cdc", "chronic_indicators"): {
        "category": "health",
        "fields": {
            "condition": ("topic", "question"),
            "location": "locationdesc",
            "rate": ("datavalue", "data_value"),
            "cases": "sample_size",
            "population": "population",
            "ageGroup": "stratification1",
            "raceEthnicity": "stratification2",
            "gender": "stratification3",
            "year": "year",
            "measure": "measure",
            "unit": "datavalueunit",
            "ciLow": "confidence_limit_low",
            "ciHigh": "confidence_limit_high",
            "geolocation": "geolocation",
        },
        "numeric": ["rate", "cases", "population", "year"],
        "defaults": {
            "condition": "Unknown Condition",
            "ageGroup": "All Ages",
            "raceEthnicity": "All Groups",
            "gender": "All Genders",
            "measure": "Prevalence",
            "unit": "%",
        },
    },
    # ── NYC Open Data (enhanced scraper) ───────────────────────────────────
    ("nyc", "health_outcomes"): {
        "category": "health",
        "fields": {
            "id": "unique_id",
            "condition": "leading_cause",
            "borough": "geography",
            "year": "year",
            "deaths": "deaths",
            "deathRate": "death_rate",
            "ageAdjustedRate": "age_adjusted_death_rate",
            "raceEthnicity": "race_ethnicity",
            "sex": "sex",
        },
        "numeric": ["deaths", "deathRate", "ageAdjustedRate"],
    },
    ("nyc", "air_quality"): {
        "category": "environmental",
        "fields": {
            "id": "unique_id",
            "geography": "geo_place_name",
            "measure": "name",
            "value": "data_value",
            "unit": "measure_info",
            "startDate": "start_date",
            "endDate": "end_date",
        },
        "numeric": ["value"],
    },
    ("nyc", "water_quality"): {
        "category": "environmental",
        "fields": {
            "id": "unique_key",
            "sampleSite": "sample_site",
            "sampleDate": "sample_date",
            "residualChlorine": "residual_free_chlorine_mg_l",
            "turbidity": "turbidity_ntu",
            "fluoride": "fluoride_mg_l",
            "ph": "ph",
            "coliform": "coliform_quanti_tray_mpn_100ml",
            "ecoli": "e_coli_quanti_tray_mpn_100ml",
        },
        "numeric": ["residualChlorine", "turbidity", "fluoride", "ph"],
    },
    ("nyc", "food_establishments"): {
        "category": "social",
        "fields": {
            "id": "camis",
            "name": "dba",
            "address": "building",
            "street": "street",
            "borough": "boro",
            "zipCode": "zipcode",
            "cuisine": "cuisine_description",
            "inspectionDate": "inspection_date",
            "grade": "grade",
            "score": "score",
            "latitude": "latitude",
            "longitude": "longitude",
        },
        "numeric": ["score", "latitude", "longitude"],
    },
    ("nyc", "parks"): {
        "category": "geographic",
        "fields": {
            "id": "gispropnum",
            "name": "signname",
            "borough": "borough",
            "acres": "acres",
            "parkType": "typecategory",
            "address": "address",
            "communityBoard": "communityboard",
        },
        "numeric": ["acres"],
    },
    ("nyc", "snap_retailers"): {
        "category": "social",
        "fields": {
            "id": "license_number",
            "name": "business_name",
            "address": "business_address",
            "borough": "borough",
            "zipCode": "postcode",
            "licenseType": "license_type",
            "industry": "industry",
        },
        "numeric": [],
    },
    ("nyc", "healthcare_facilities"): {
        "category": "geographic",
        "fields": {
            "id": "facility_id",
            "name": "facility_name",
            "facilityType": "facility_type",
            "address": "address",
            "borough": "borough",
            "zipCode": "zip_code",
            "phone": "phone",
        },
        "numeric": [],
    },
    ("nyc", "subway_stations"): {
        "category": "geographic",
        "fields": {
            "id": "objectid",
            "name": "name",
            "borough": "borough",
            "line": "line",
            "ada": "ada",
            "latitude": "gtfs_latitude",
            "longitude": "gtfs_longitude",
        },
        "numeric": ["latitude", "longitude"],
    },
    # ── NYC Open Data (dashboard domain feeds) ─────────────────────────────
    ("nyc", "health_domain"): {
        "category": "health",
        "fields": {
            "condition": ("topic", "measure"),
            "borough": ("geography", "borough"),
            "rate": ("data_value", "rate"),
            "ageGroup": "age_group",
            "raceEthnicity": "race_ethnicity",
            "year": ("year_description", "year"),
        },
        "numeric": ["rate", "year"],
        "defaults": {
            "condition": "Unknown Condition",
            "ageGroup": "All Ages",
            "raceEthnicity": "All Groups",
        },
    },
    ("nyc", "food_access"): {
        "category": "social",
        "fields": {
            "name": ("store_name", "dba"),
            "borough": "borough",
            "storeType": "store_type",
            "acceptsEBT": "accepts_ebt",
            "acceptsWIC": "accepts_wic",
            "location": "location",
        },
        "numeric": [],
        "defaults": {"storeType": "Grocery Store"},
    },
    ("nyc", "green_space"): {
        "category": "environmental",
        "fields": {
            "name": ("signname", "park_name"),
            "borough": "borough",
            "parkType": "typecategory",
            "acres": "acres",
            "amenities": "amenities",
            "location": "location",
        },
        "numeric": ["acres"],
        "defaults": {"parkType": "Park"},
    },
    ("nyc", "snap_access"): {
        "category": "social",
        "fields": {
            "name": ("facility_name", "organization_name"),
            "borough": "borough",
            "facilityType": "facility_type",
            "servicesOffered": "services_offered",
            "phoneNumber": "phone",
            "location": "location",
        },
        "numeric": [],
        "defaults": {"facilityType": "Social Services"},
    },
    ("nyc", "air_quality_monitor"): {
        "category": "environmental",
        "fields": {
            "id": "unique_id",
            "name": "geo_place_name",
            "borough": "geo_place_name",
            "neighborhood": "geo_place_name",
            "pollutant": "name",
            "value": "data_value",
            "unit": "measure_info",
            "sampleDate": "start_date",
        },
        "numeric": ["value"],
        "defaults": {"pollutant": "PM2.5", "unit": "µg/m³"},
    },
    ("nyc", "air_quality_measurement"): {
        "category": "environmental",
        "fields": {
            "id": "unique_id",
            "borough": "geo_place_name",
            "zipCode": "geo_entity_id",
            "pollutant": ("name", "measure"),
            "value": "data_value",
            "unit": "measure_info",
            "date": "start_date",
            "geoType": "geo_type_name",
        },
        "numeric": ["value"],
        "defaults": {"pollutant": "Unknown", "unit": "μg/m³"},
    },
    ("nyc", "311"): {
        "category": "social",
        "fields": {
            "id": "unique_key",
            "complaintType": "complaint_type",
            "descriptor": "descriptor",
            "borough": "borough",
            "neighborhood": "incident_address",
            "zipCode": "incident_zip",
            "createdDate": "created_date",
            "status": "status",
            "agency": "agency",
            "latitude": "latitude",
            "longitude": "longitude",
        },
        "numeric": [],
        "defaults": {
            "complaintType": "Unknown",
            "descriptor": "",
            "neighborhood": "",
            "zipCode": "",
            "status": "Open",
            "agency": "Unknown",
        },
    },
    ("nyc", "health_survey"): {
        "category": "health",
        "fields": {
            "id": "unique_id",
            "borough": ("geo_entity_name", "borough"),
            "condition": ("health_topic", "indicator_name"),
            "rate": ("data_value", "rate"),
            "ageGroup": "age_group",
            "raceEthnicity": "race_ethnicity",
            "year": ("time_period", "year"),
            "zipCode": "geo_entity_id",
            "confidence": "confidence_interval",
            "sampleSize": "sample_size",
        },
        "numeric": ["rate"],
        "defaults": {"ageGroup": "All Ages", "raceEthnicity": "All Groups"},
    },
    # ── EpiQuery ───────────────────────────────────────────────────────────
    ("epiquery", "community_health"): {
        "category": "health",
        "fields": {
            "id": "id",
            "indicator": "indicator",
            "borough": "borough",
            "neighborhood": "neighborhood",
            "value": "value",
            "unit": "unit",
            "year": "year",
        },
        "numeric": ["value"],
    },
}


def get_schema(source: str, endpoint: str) -> dict:
    try:
        return SCHEMAS[(source, endpoint)]
    except KeyError:
        raise ValueError(f"No field mapping for {source}/{endpoint}") from None


def normalize_record(item: dict, schema: dict, index: int = 0, source: str = "") -> dict:
    fields = schema["fields"]
    numeric = set(schema.get("numeric", ()))
    record = {}
    for target, src in fields.items():
        present = [s for s in (src if isinstance(src, tuple) else (src,)) if s in item]
        if not present:
            continue
        value = next((item[s] for s in present if item[s] not in (None, "")), item[present[0]])
        record[target] = to_float(value) if target in numeric else value
    for target, default in schema.get("defaults", {}).items():
        if record.get(target) in (None, ""):
            record[target] = default
    if not record.get("id"):
        record["id"] = f"{source or 'record'}-{index}"
    record["category"] = schema["category"]
    return record


def normalize_records(raw, schema: dict, source: str = "") -> list[dict]:
    """Project raw upstream rows through ``schema``; non-dict rows are skipped."""
    if not isinstance(raw, list):
        logger.warning(f"Expected a list of records from {source or 'upstream'}, got {type(raw).__name__}")
        return []
    return [
        normalize_record(item, schema, index, source)
        for index, item in enumerate(raw)
        if isinstance(item, dict)
    ]


def keep_nyc_boroughs(records: list[dict], require: bool = False) -> list[dict]:
    """Canonicalize ``borough`` and drop records whose borough is not one of the five.

    Records without a borough value (city- or state-wide rows) pass through
    unless ``require`` is set.
    """
    kept = []
    for record in records:
        if not record.get("borough"):
            if not require:
                kept.append(record)
            continue
        borough = normalize_borough(record["borough"])
        if borough is None:
            continue
        record["borough"] = borough
        kept.append(record)
    dropped = len(records) - len(kept)
    if dropped:
        logger.info(f"Dropped {dropped} records outside the five boroughs")
    return kept


def _parse_date(value) -> datetime | None:
    if value is None or value == "":
        return None
    text = str(value)
    if text.isdigit() and len(text) == 4:
        return datetime(int(text), 1, 1, tzinfo=timezone.utc)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def data_freshness(records: list[dict], now: datetime | None = None) -> dict | None:
    """Most recent / oldest date across the records and a fresh/recent/stale label."""
    dates = []
    for item in records:
        for field in ("year", "startDate", "sampleDate", "inspectionDate"):
            if item.get(field):
                parsed = _parse_date(item[field])
                if parsed:
                    dates.append(parsed)
                break
    if not dates:
        return None

    dates.sort(reverse=True)
    most_recent, oldest = dates[0], dates[-1]
    now = now or datetime.now(timezone.utc)
    days = (now - most_recent).days

    if days < 7:
        freshness = "fresh"
    elif days < 30:
        freshness = "recent"
    else:
        freshness = "stale"

    return {
        "mostRecentDate": most_recent.isoformat(),
        "oldestDate": oldest.isoformat(),
        "daysSinceUpdate": days,
        "freshness": freshness,
    }
