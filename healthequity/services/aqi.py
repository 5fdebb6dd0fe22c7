"""Air Quality Index from pollutant concentrations."""

# (conc_low, conc_high, aqi_low, aqi_high), EPA 24-hour PM2.5 bands.
# Each band starts at the previous band's AQI ceiling.
PM25_BREAKPOINTS = [
    (0.0, 12.0, 0, 50),
    (12.1, 35.4, 50, 100),
    (35.5, 55.4, 100, 150),
    (55.5, 150.4, 150, 200),
    (150.5, 250.4, 200, 300),
    (250.5, 500.4, 300, 500),
]

AQI_STATUS = [
    (50, "Good"),
    (100, "Moderate"),
    (150, "Unhealthy for Sensitive Groups"),
    (200, "Unhealthy"),
    (300, "Very Unhealthy"),
]


def _interpolate(value: float, c_lo: float, c_hi: float, i_lo: float, i_hi: float) -> float:
    return i_lo + (i_hi - i_lo) / (c_hi - c_lo) * (value - c_lo)


def pm25_aqi(pm25: float) -> float:
    for c_lo, c_hi, i_lo, i_hi in PM25_BREAKPOINTS:
        if pm25 <= c_hi:
            if c_lo == 0.0:
                return i_hi / c_hi * pm25
            return _interpolate(pm25, c_lo, c_hi, i_lo, i_hi)
    c_lo, c_hi, i_lo, i_hi = PM25_BREAKPOINTS[-1]
    return _interpolate(pm25, c_lo, c_hi, i_lo, i_hi)


def ozone_aqi(ozone_ppm: float) -> float:
    """Simplified 8-hour ozone curve; input in ppm."""
    ppb = ozone_ppm * 1000
    if ppb <= 54:
        return 50 / 54 * ppb
    if ppb <= 70:
        return _interpolate(ppb, 55, 70, 50, 100)
    if ppb <= 85:
        return _interpolate(ppb, 71, 85, 100, 150)
    if ppb <= 105:
        return _interpolate(ppb, 86, 105, 150, 200)
    return _interpolate(ppb, 106, 200, 200, 300)


def no2_aqi(no2_ppb: float) -> float:
    if no2_ppb <= 53:
        return 50 / 53 * no2_ppb
    if no2_ppb <= 100:
        return _interpolate(no2_ppb, 54, 100, 50, 100)
    if no2_ppb <= 360:
        return _interpolate(no2_ppb, 101, 360, 100, 150)
    return _interpolate(no2_ppb, 361, 649, 150, 200)


def estimate_aqi(pollutant: str, value: float) -> float:
    """AQI for a named pollutant; unknown pollutants read as moderate (50)."""
    name = (pollutant or "").lower()
    if "pm2.5" in name or "pm 2.5" in name or "fine particle" in name:
        return pm25_aqi(value)
    if "ozone" in name or "o3" in name:
        return ozone_aqi(value)
    if "no2" in name or "nitrogen dioxide" in name:
        return no2_aqi(value)
    return 50.0


def aqi_status(aqi: float) -> str:
    for upper, label in AQI_STATUS:
        if aqi <= upper:
            return label
    return "Hazardous"


def severity_from_value(value: float, scale: float = 2.0) -> float:
    """0-100 map severity from a raw concentration."""
    return min(100.0, max(0.0, value * scale))


def simple_status(value: float, threshold: float = 35.0) -> str:
    return "Unhealthy" if value > threshold else "Good"
