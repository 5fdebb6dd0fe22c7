from healthequity.services.boroughs import (
    BOROUGHS,
    ZIP_RANGES,
    borough_coordinates,
    normalize_borough,
    random_zip_code,
    requested_borough,
)


def test_canonical_names_pass_through():
    for borough in BOROUGHS:
        assert normalize_borough(borough) == borough


def test_aliases_map_to_canonical_names():
    assert normalize_borough("BROOKLYN") == "Brooklyn"
    assert normalize_borough(" kings ") == "Brooklyn"
    assert normalize_borough("New York") == "Manhattan"
    assert normalize_borough("Richmond County") == "Staten Island"
    assert normalize_borough("the bronx") == "Bronx"
    assert normalize_borough("Bx") == "Bronx"


def test_unknown_borough_is_none():
    assert normalize_borough("Jersey City") is None
    assert normalize_borough("") is None
    assert normalize_borough(None) is None


def test_requested_borough_treats_all_as_no_filter():
    assert requested_borough("allBoroughs") is None
    assert requested_borough(None) is None
    assert requested_borough("queens") == "Queens"


def test_zip_codes_fall_in_borough_range():
    for borough in BOROUGHS:
        low, high = ZIP_RANGES[borough]
        assert low <= int(random_zip_code(borough)) <= high


def test_unknown_borough_coordinates_default_to_city_center():
    assert borough_coordinates("Hoboken") == [40.7128, -74.006]
