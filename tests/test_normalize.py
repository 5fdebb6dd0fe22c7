from datetime import datetime, timezone

import pytest

from healthequity.services.normalize import (
    SCHEMAS,
    data_freshness,
    get_schema,
    keep_nyc_boroughs,
    normalize_records,
)


def test_every_schema_declares_a_known_category():
    for key, schema in SCHEMAS.items():
        assert schema["category"] in ("health", "environmental", "social", "geographic"), key
        assert set(schema["numeric"]) <= set(schema["fields"]), key


def test_unknown_mapping_raises():
    with pytest.raises(ValueError):
        get_schema("cdc", "weather")


def test_fields_are_renamed_and_category_stamped():
    raw = [{"leading_cause": "Diabetes", "geography": "Bronx", "year": "2019", "deaths": "321", "extra": "x"}]
    [record] = normalize_records(raw, get_schema("nyc", "health_outcomes"), source="nyc")
    assert record["condition"] == "Diabetes"
    assert record["borough"] == "Bronx"
    assert record["deaths"] == 321.0
    assert record["category"] == "health"
    assert record["id"] == "nyc-0"
    assert "extra" not in record


def test_malformed_numbers_become_zero():
    raw = [{"datavalue": "n/a", "topic": "Asthma"}, {"datavalue": None, "topic": "Obesity"}]
    records = normalize_records(raw, get_schema("cdc", "chronic_disease"), source="cdc")
    assert [r["dataValue"] for r in records] == [0.0, 0.0]


def test_non_list_payload_yields_nothing():
    assert normalize_records({"error": "bad"}, get_schema("cdc", "mortality")) == []


def test_non_dict_rows_are_skipped():
    records = normalize_records(["junk", {"indicator": "Poverty"}], get_schema("cdc", "social_determinants"))
    assert len(records) == 1
    assert records[0]["category"] == "social"


def test_keep_nyc_boroughs_canonicalizes_and_drops_outsiders():
    records = [
        {"id": 1, "borough": "BROOKLYN"},
        {"id": 2, "borough": "Kings"},
        {"id": 3, "borough": "Yonkers"},
        {"id": 4},
    ]
    kept = keep_nyc_boroughs(records)
    assert [r["id"] for r in kept] == [1, 2, 4]
    assert [r.get("borough") for r in kept] == ["Brooklyn", "Brooklyn", None]


def test_data_freshness_labels():
    now = datetime(2024, 6, 30, tzinfo=timezone.utc)
    fresh = data_freshness([{"startDate": "2024-06-28T00:00:00"}], now=now)
    assert fresh["freshness"] == "fresh"
    assert fresh["daysSinceUpdate"] == 2

    stale = data_freshness([{"year": "2019"}, {"year": "2021"}], now=now)
    assert stale["freshness"] == "stale"
    assert stale["mostRecentDate"].startswith("2021-01-01")
    assert stale["oldestDate"].startswith("2019-01-01")


def test_data_freshness_without_dates_is_none():
    assert data_freshness([{"name": "Central Park"}]) is None


def test_first_non_empty_candidate_wins_and_defaults_fill_gaps():
    raw = [{"topic": "", "measure": "Asthma", "borough": "Bronx", "year": "2021"}]
    [record] = normalize_records(raw, get_schema("nyc", "health_domain"), source="nyc-health")
    assert record["condition"] == "Asthma"
    assert record["ageGroup"] == "All Ages"
    assert record["year"] == 2021.0
    assert "rate" not in record
    assert record["id"] == "nyc-health-0"


def test_keep_nyc_boroughs_can_require_a_borough():
    kept = keep_nyc_boroughs([{"id": 1, "borough": "bronx"}, {"id": 2}], require=True)
    assert kept == [{"id": 1, "borough": "Bronx"}]
