"""The five NYC boroughs: canonical names, aliases, and map helpers."""

import random

BOROUGHS = ("Manhattan", "Brooklyn", "Queens", "Bronx", "Staten Island")

ALL_BOROUGHS = "allBoroughs"

# Lower-case alias -> canonical borough
BOROUGH_ALIASES = {
    "manhattan": "Manhattan",
    "new york": "Manhattan",
    "new york county": "Manhattan",
    "ny county": "Manhattan",
    "brooklyn": "Brooklyn",
    "kings": "Brooklyn",
    "kings county": "Brooklyn",
    "queens": "Queens",
    "queens county": "Queens",
    "bronx": "Bronx",
    "the bronx": "Bronx",
    "bronx county": "Bronx",
    "staten island": "Staten Island",
    "richmond": "Staten Island",
    "richmond county": "Staten Island",
    "si": "Staten Island",
    # Single-letter and short codes used by Parks and MTA datasets
    "m": "Manhattan",
    "b": "Brooklyn",
    "bk": "Brooklyn",
    "q": "Queens",
    "x": "Bronx",
    "bx": "Bronx",
    "r": "Staten Island",
}

BOROUGH_COORDINATES = {
    "Manhattan": (40.7831, -73.9712),
    "Brooklyn": (40.6782, -73.9442),
    "Queens": (40.7282, -73.7949),
    "Bronx": (40.8448, -73.8648),
    "Staten Island": (40.5795, -74.1502),
}
NYC_CENTER = (40.7128, -74.006)

ZIP_RANGES = {
    "Manhattan": (10001, 10282),
    "Brooklyn": (11201, 11256),
    "Queens": (11101, 11697),
    "Bronx": (10451, 10475),
    "Staten Island": (10301, 10314),
}

# County names used by DOHMH datasets (geo_place_name, boro)
COUNTY_NAMES = {
    "Manhattan": "New York",
    "Brooklyn": "Kings",
    "Queens": "Queens",
    "Bronx": "Bronx",
    "Staten Island": "Richmond",
}

SUBWAY_CODES = {
    "Manhattan": "M",
    "Brooklyn": "Bk",
    "Queens": "Q",
    "Bronx": "Bx",
    "Staten Island": "SI",
}


def normalize_borough(value: str | None) -> str | None:
    """Map any known spelling of a borough to its canonical name, else None."""
    if not value:
        return None
    text = str(value).strip()
    if text in BOROUGHS:
        return text
    return BOROUGH_ALIASES.get(text.lower())


def requested_borough(value: str | None) -> str | None:
    """A borough query parameter, with ``allBoroughs`` and blanks meaning no filter."""
    if not value or value == ALL_BOROUGHS:
        return None
    return normalize_borough(value) or value


def borough_coordinates(borough: str | None) -> list[float]:
    return list(BOROUGH_COORDINATES.get(borough, NYC_CENTER))


def jittered_coordinates(borough: str, spread: float) -> list[float]:
    lat, lng = BOROUGH_COORDINATES[borough]
    return [lat + (random.random() - 0.5) * spread, lng + (random.random() - 0.5) * spread]


def random_zip_code(borough: str) -> str:
    low, high = ZIP_RANGES[borough]
    return str(random.randint(low, high))


def county_name(borough: str) -> str:
    return COUNTY_NAMES.get(borough, borough)


def subway_code(borough: str) -> str:
    return SUBWAY_CODES.get(borough, borough)
