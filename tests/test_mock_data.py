from healthequity.services import mock_data
from healthequity.services.boroughs import BOROUGHS


def test_health_mock_covers_every_combination():
    data = mock_data.generate_health_data()
    assert len(data) == 1000
    assert {r["borough"] for r in data} == set(BOROUGHS)
    assert all(0 <= r["rate"] <= mock_data.RATE_CAP for r in data)
    assert all(r["category"] == "health" and r["dataSource"] == "mock" for r in data)
    assert len({r["id"] for r in data}) == 1000


def test_food_access_mock_expands_store_locations():
    data = mock_data.generate_food_access_data()
    expected = sum(mock_data.store_location_count(store_type) for _, _, store_type, _ in mock_data.STORES)
    assert len(data) == expected
    assert {r["borough"] for r in data} == set(BOROUGHS)
    assert all(r["category"] == "social" and r["type"] == "foodAccess" for r in data)


def test_green_space_mock_splits_large_parks():
    data = mock_data.generate_green_space_data()
    expected = sum(mock_data.park_section_count(acres) for _, _, acres, _ in mock_data.PARKS)
    assert len(data) == expected
    central = [r for r in data if r["name"].startswith("Central Park")]
    assert len(central) == 3
    assert all("Benches" in r["amenities"] for r in data)


def test_snap_access_mock():
    data = mock_data.generate_snap_access_data()
    expected = sum(mock_data.facility_location_count(kind) for _, _, kind, _ in mock_data.FACILITIES)
    assert len(data) == expected
    assert all(2 <= len(r["languageSupport"]) <= 5 for r in data)
    assert all(r["servicesOffered"][0] == "SNAP Application" for r in data)


def test_cdc_mock_respects_condition_and_borough():
    data = mock_data.generate_cdc_data("Asthma", "Queens")
    assert len(data) == 1
    assert data[0]["condition"] == "Asthma"
    assert data[0]["borough"] == "Queens"
    assert len(mock_data.generate_cdc_data()) == len(mock_data.CDC_CONDITIONS) * len(BOROUGHS)


def test_air_quality_mock_uses_requested_location():
    data = mock_data.generate_air_quality_data("Bronx", "10451")
    assert len(data) == 3
    assert all(r["borough"] == "Bronx" and r["zipCode"] == "10451" for r in data)
