import pytest

from healthequity.services.aqi import aqi_status, estimate_aqi, pm25_aqi, severity_from_value, simple_status


@pytest.mark.parametrize(
    "pm25, expected",
    [(0.0, 0), (12.0, 50), (35.4, 100), (55.4, 150), (150.4, 200)],
)
def test_pm25_band_edges(pm25, expected):
    assert pm25_aqi(pm25) == pytest.approx(expected)


def test_pm25_is_monotonic():
    values = [pm25_aqi(x / 2) for x in range(0, 400)]
    assert values == sorted(values)


def test_estimate_aqi_dispatches_by_pollutant_name():
    assert estimate_aqi("Fine particles (PM 2.5)", 12.0) == pytest.approx(50)
    assert estimate_aqi("Ozone (O3)", 0.027) == pytest.approx(25)
    assert estimate_aqi("Nitrogen dioxide (NO2)", 53) == pytest.approx(50)
    assert estimate_aqi("Boiler Emissions", 999) == 50


def test_status_labels():
    assert aqi_status(42) == "Good"
    assert aqi_status(75) == "Moderate"
    assert aqi_status(120) == "Unhealthy for Sensitive Groups"
    assert aqi_status(420) == "Hazardous"
    assert simple_status(40) == "Unhealthy"
    assert simple_status(10) == "Good"


def test_severity_is_clamped():
    assert severity_from_value(80) == 100
    assert severity_from_value(-3) == 0
    assert severity_from_value(12.5) == 25
