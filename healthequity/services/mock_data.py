"""Fallback datasets served when the upstream APIs are unavailable.

Shapes and counts are fixed; values are random on every call. Every record
carries ``dataSource: "mock"`` so the front end can tell it apart.
"""

import random
from datetime import datetime, timedelta, timezone

from healthequity.services.boroughs import (
    BOROUGHS,
    borough_coordinates,
    jittered_coordinates,
    random_zip_code,
)
from healthequity.services.utils import now_iso

# ── Health ──────────────────────────────────────────────────────────────────

HEALTH_CONDITIONS = [
    "Heart Disease",
    "Diabetes",
    "Hypertension",
    "Cancer",
    "Stroke",
    "COPD",
    "Asthma",
    "Mental Health",
    "Obesity",
    "Substance Abuse",
]
AGE_GROUPS = ["0-17", "18-34", "35-64", "65+"]
RACE_ETHNICITIES = ["White", "Black", "Hispanic", "Asian", "Other"]

CARDIOMETABOLIC = {"Heart Disease", "Diabetes", "Hypertension"}
AGE_RELATED = {"Heart Disease", "Stroke", "Cancer"}
RATE_CAP = 95.0


def _disparity_boost(borough: str, condition: str, age_group: str, race: str) -> float:
    boost = 0.0
    if borough == "Bronx" and condition in CARDIOMETABOLIC:
        boost += 15
    if borough == "Manhattan" and condition == "Mental Health":
        boost += 10
    if race == "Black" and condition in CARDIOMETABOLIC:
        boost += 20
    if age_group == "65+" and condition in AGE_RELATED:
        boost += 25
    return boost


def generate_health_data() -> list[dict]:
    """Borough x condition x age group x ethnicity; 1000 records for all five boroughs."""
    data = []
    updated = now_iso()
    record_id = 1
    for borough in BOROUGHS:
        for condition in HEALTH_CONDITIONS:
            for age_group in AGE_GROUPS:
                for race in RACE_ETHNICITIES:
                    rate = random.random() * 100 + _disparity_boost(borough, condition, age_group, race)
                    rate = min(rate, RATE_CAP)
                    data.append({
                        "id": f"health-{record_id}",
                        "category": "health",
                        "condition": condition,
                        "borough": borough,
                        "geography": borough,
                        "rate": round(rate, 1),
                        "ageGroup": age_group,
                        "raceEthnicity": race,
                        "year": 2023,
                        "severity": round(rate),
                        "zipCode": random_zip_code(borough),
                        "coordinates": borough_coordinates(borough),
                        "dataSource": "mock",
                        "lastUpdated": updated,
                    })
                    record_id += 1
    return data


# ── Food access ─────────────────────────────────────────────────────────────

STORES = [
    ("Whole Foods Market", "Manhattan", "Supermarket", 95),
    ("Trader Joe's", "Manhattan", "Supermarket", 90),
    ("Gristedes", "Manhattan", "Grocery Store", 75),
    ("Union Square Greenmarket", "Manhattan", "Farmers Market", 100),
    ("Local Bodega", "Manhattan", "Bodega", 30),
    ("ShopRite", "Brooklyn", "Supermarket", 85),
    ("Key Food", "Brooklyn", "Grocery Store", 70),
    ("Park Slope Food Coop", "Brooklyn", "Food Co-op", 95),
    ("Brooklyn Farmers Market", "Brooklyn", "Farmers Market", 100),
    ("Neighborhood Grocery", "Brooklyn", "Corner Store", 40),
    ("Stop & Shop", "Queens", "Supermarket", 80),
    ("Associated Supermarket", "Queens", "Grocery Store", 65),
    ("Queens Night Market", "Queens", "Farmers Market", 85),
    ("Local Market", "Queens", "Corner Store", 35),
    ("Fresh Direct Pickup", "Queens", "Supermarket", 90),
    ("Concourse Plaza Multiplex", "Bronx", "Supermarket", 70),
    ("Bronx Terminal Market", "Bronx", "Grocery Store", 60),
    ("Hunts Point Market", "Bronx", "Farmers Market", 95),
    ("Corner Deli", "Bronx", "Bodega", 25),
    ("Community Garden Store", "Bronx", "Food Co-op", 85),
    ("ShopRite Staten Island", "Staten Island", "Supermarket", 85),
    ("Stop & Shop SI", "Staten Island", "Supermarket", 80),
    ("Staten Island Mall Food Court", "Staten Island", "Corner Store", 45),
    ("St. George Market", "Staten Island", "Farmers Market", 90),
    ("Local Grocery", "Staten Island", "Grocery Store", 65),
]

STORE_HOURS = [
    "24/7",
    "6 AM - 11 PM",
    "7 AM - 10 PM",
    "8 AM - 9 PM",
    "9 AM - 8 PM",
    "10 AM - 7 PM (Weekends: 9 AM - 8 PM)",
]


def store_location_count(store_type: str) -> int:
    if store_type == "Supermarket":
        return 3
    if store_type == "Bodega":
        return 5
    return 2


def generate_food_access_data() -> list[dict]:
    data = []
    updated = now_iso()
    record_id = 1
    for name, borough, store_type, healthy in STORES:
        count = store_location_count(store_type)
        for i in range(count):
            data.append({
                "id": f"foodaccess-{record_id}",
                "category": "social",
                "name": f"{name} #{i + 1}" if count > 1 else name,
                "borough": borough,
                "type": "foodAccess",
                "storeType": store_type,
                "healthyOptionsScore": healthy + round((random.random() - 0.5) * 20),
                "coordinates": jittered_coordinates(borough, 0.08),
                "acceptsEBT": random.random() > 0.2,
                "acceptsWIC": random.random() > 0.4,
                "priceLevel": random.randint(1, 4),
                "freshProduceAvailable": healthy > 50,
                "organicOptions": healthy > 70,
                "operatingHours": random.choice(STORE_HOURS),
                "walkingDistance": round(random.random() * 15 + 1),
                "zipCode": random_zip_code(borough),
                "dataSource": "mock",
                "lastUpdated": updated,
                "severity": round(random.random() * 100),
                "status": "Active",
            })
            record_id += 1
    return data


# ── Green space ─────────────────────────────────────────────────────────────

PARKS = [
    ("Central Park", "Manhattan", 843, "Community Park"),
    ("Washington Square Park", "Manhattan", 9.75, "Neighborhood Park"),
    ("Bryant Park", "Manhattan", 9.6, "Neighborhood Park"),
    ("Madison Square Park", "Manhattan", 6.2, "Neighborhood Park"),
    ("Riverside Park", "Manhattan", 330, "Waterfront"),
    ("Prospect Park", "Brooklyn", 526, "Community Park"),
    ("Brooklyn Bridge Park", "Brooklyn", 85, "Waterfront"),
    ("McCarren Park", "Brooklyn", 35.8, "Community Park"),
    ("Fort Greene Park", "Brooklyn", 30.2, "Neighborhood Park"),
    ("Sunset Park", "Brooklyn", 24.5, "Neighborhood Park"),
    ("Flushing Meadows Corona Park", "Queens", 897, "Community Park"),
    ("Forest Park", "Queens", 538, "Community Park"),
    ("Astoria Park", "Queens", 59.5, "Community Park"),
    ("Cunningham Park", "Queens", 358, "Community Park"),
    ("Alley Pond Park", "Queens", 655, "Community Park"),
    ("Bronx Park", "Bronx", 718, "Community Park"),
    ("Van Cortlandt Park", "Bronx", 1146, "Community Park"),
    ("Pelham Bay Park", "Bronx", 2772, "Community Park"),
    ("Crotona Park", "Bronx", 127.5, "Community Park"),
    ("St. Mary's Park", "Bronx", 34.4, "Neighborhood Park"),
    ("Great Kills Park", "Staten Island", 580, "Waterfront"),
    ("Clove Lakes Park", "Staten Island", 193, "Community Park"),
    ("Wolfe's Pond Park", "Staten Island", 302, "Waterfront"),
    ("Silver Lake Park", "Staten Island", 209, "Community Park"),
    ("Snug Harbor Cultural Center", "Staten Island", 83, "Garden"),
]

PARK_AMENITIES = {
    "Community Park": ["Playground", "Sports Fields", "Restrooms", "Picnic Areas", "Dog Run"],
    "Neighborhood Park": ["Playground", "Basketball Court", "Restrooms"],
    "Playground": ["Playground Equipment", "Safety Surfacing", "Seating"],
    "Garden": ["Gardens", "Educational Programs", "Greenhouse"],
    "Recreation Center": ["Indoor Facilities", "Sports Courts", "Pool", "Fitness Equipment"],
    "Waterfront": ["Waterfront Access", "Fishing Areas", "Boat Launch", "Scenic Views"],
}


def park_amenities(park_type: str) -> list[str]:
    options = PARK_AMENITIES.get(park_type, [])
    extra = options[: random.randint(1, len(options))] if options else []
    return ["Benches", "Walking Paths"] + extra


def park_section_count(acres: float) -> int:
    return 3 if acres > 100 else 1


def generate_green_space_data() -> list[dict]:
    data = []
    updated = now_iso()
    record_id = 1
    for name, borough, acres, park_type in PARKS:
        for i in range(park_section_count(acres)):
            data.append({
                "id": f"greenspace-{record_id}",
                "category": "environmental",
                "name": name if i == 0 else f"{name} Section {i + 1}",
                "borough": borough,
                "type": "greenSpace",
                "parkType": park_type,
                "acres": acres if i == 0 else round(acres / 3, 1),
                "coordinates": jittered_coordinates(borough, 0.05),
                "amenities": park_amenities(park_type),
                "accessibility": random.random() > 0.3,
                "maintenanceScore": round(random.random() * 40 + 60),
                "crowdingLevel": round(random.random() * 100),
                "safetyScore": round(random.random() * 30 + 70),
                "zipCode": random_zip_code(borough),
                "dataSource": "mock",
                "lastUpdated": updated,
                "severity": round(random.random() * 100),
                "status": "Active",
            })
            record_id += 1
    return data


# ── SNAP access ─────────────────────────────────────────────────────────────

FACILITIES = [
    ("Manhattan SNAP Center", "Manhattan", "SNAP Office", 95),
    ("Lower East Side Community Center", "Manhattan", "Community Center", 80),
    ("Harlem Food Bank", "Manhattan", "Food Bank", 90),
    ("Chelsea WIC Office", "Manhattan", "WIC Office", 85),
    ("Midtown Social Services", "Manhattan", "Social Services", 75),
    ("Brooklyn SNAP Center", "Brooklyn", "SNAP Office", 90),
    ("Bedford-Stuyvesant Community Center", "Brooklyn", "Community Center", 85),
    ("Brooklyn Food Pantry", "Brooklyn", "Food Bank", 88),
    ("Sunset Park WIC", "Brooklyn", "WIC Office", 80),
    ("Crown Heights Social Services", "Brooklyn", "Social Services", 70),
    ("Queens SNAP Center", "Queens", "SNAP Office", 85),
    ("Flushing Community Center", "Queens", "Community Center", 75),
    ("Astoria Food Bank", "Queens", "Food Bank", 82),
    ("Jackson Heights WIC", "Queens", "WIC Office", 78),
    ("Elmhurst Social Services", "Queens", "Social Services", 65),
    ("Bronx SNAP Center", "Bronx", "SNAP Office", 88),
    ("South Bronx Community Center", "Bronx", "Community Center", 80),
    ("Hunts Point Food Bank", "Bronx", "Food Bank", 85),
    ("Fordham WIC Office", "Bronx", "WIC Office", 75),
    ("Mott Haven Social Services", "Bronx", "Social Services", 68),
    ("Staten Island SNAP Center", "Staten Island", "SNAP Office", 82),
    ("St. George Community Center", "Staten Island", "Community Center", 70),
    ("Staten Island Food Bank", "Staten Island", "Food Bank", 78),
    ("Stapleton WIC Office", "Staten Island", "WIC Office", 72),
    ("Port Richmond Social Services", "Staten Island", "Social Services", 60),
]

FACILITY_SERVICES = {
    "SNAP Office": ["SNAP Recertification", "Emergency SNAP", "Case Management", "Appeals Process"],
    "Community Center": ["Community Outreach", "Educational Workshops", "Resource Navigation"],
    "Social Services": ["Medicaid Application", "Housing Assistance", "Job Training Referrals"],
    "Food Bank": ["Food Distribution", "Nutrition Education", "Emergency Food Assistance"],
    "WIC Office": ["WIC Application", "Nutrition Counseling", "Breastfeeding Support"],
}

FACILITY_HOURS = {
    "SNAP Office": ["Mon-Fri 8 AM - 5 PM", "Mon-Fri 9 AM - 4 PM", "Mon-Thu 8 AM - 6 PM, Fri 8 AM - 4 PM"],
    "Community Center": ["Mon-Fri 9 AM - 8 PM, Sat 10 AM - 4 PM", "Daily 8 AM - 9 PM"],
    "Social Services": ["Mon-Fri 8:30 AM - 4:30 PM", "Mon-Wed-Fri 9 AM - 5 PM, Tue-Thu 9 AM - 7 PM"],
    "Food Bank": ["Mon-Fri 10 AM - 6 PM, Sat 9 AM - 3 PM", "Tue-Thu 11 AM - 7 PM, Sat 10 AM - 2 PM"],
    "WIC Office": ["Mon-Fri 8 AM - 4 PM", "Mon-Thu 8 AM - 6 PM, Fri 8 AM - 3 PM"],
}

LANGUAGES = ["English", "Spanish", "Chinese", "Arabic", "Russian", "French", "Korean"]
ACCESSIBILITY_FEATURES = [
    "Wheelchair Accessible",
    "Sign Language Interpreter",
    "Large Print Materials",
    "Audio Assistance",
]


def facility_location_count(facility_type: str) -> int:
    if facility_type == "SNAP Office":
        return 2
    if facility_type == "Community Center":
        return 3
    return 1


def facility_services(facility_type: str) -> list[str]:
    options = FACILITY_SERVICES.get(facility_type, [])
    extra = options[: random.randint(1, len(options))] if options else []
    return ["SNAP Application", "Information & Referral"] + extra


def facility_hours(facility_type: str) -> str:
    return random.choice(FACILITY_HOURS.get(facility_type, ["Mon-Fri 9 AM - 5 PM"]))


def language_support() -> list[str]:
    return LANGUAGES[: random.randint(2, 5)]


def accessibility_features() -> list[str]:
    return ACCESSIBILITY_FEATURES[: random.randint(1, len(ACCESSIBILITY_FEATURES))]


def phone_number() -> str:
    return f"({random.randint(100, 999)}) {random.randint(100, 999)}-{random.randint(1000, 9999)}"


def generate_snap_access_data() -> list[dict]:
    data = []
    updated = now_iso()
    record_id = 1
    for name, borough, facility_type, services in FACILITIES:
        count = facility_location_count(facility_type)
        for i in range(count):
            data.append({
                "id": f"snapaccess-{record_id}",
                "category": "social",
                "name": f"{name} - Location {i + 1}" if count > 1 else name,
                "borough": borough,
                "type": "snapAccess",
                "facilityType": facility_type,
                "serviceQualityScore": services + round((random.random() - 0.5) * 15),
                "coordinates": jittered_coordinates(borough, 0.06),
                "servicesOffered": facility_services(facility_type),
                "waitTime": round(random.random() * 45 + 5),
                "languageSupport": language_support(),
                "accessibilityFeatures": accessibility_features(),
                "operatingHours": facility_hours(facility_type),
                "phoneNumber": phone_number(),
                "eligibilitySupport": random.random() > 0.2,
                "documentAssistance": random.random() > 0.3,
                "zipCode": random_zip_code(borough),
                "dataSource": "mock",
                "lastUpdated": updated,
                "severity": round(random.random() * 100),
                "status": "Active",
            })
            record_id += 1
    return data


# ── Air quality ─────────────────────────────────────────────────────────────

def generate_air_quality_data(borough: str | None = None, zip_code: str | None = None) -> list[dict]:
    timestamp = now_iso()
    samples = [
        ("aq_brooklyn_1", "Brooklyn", "11212", [40.6782, -73.9442], 68, "PM2.5", 15.2, "μg/m³"),
        ("aq_manhattan_1", "Manhattan", "10001", [40.7589, -73.9851], 72, "NO2", 28.5, "ppb"),
        ("aq_queens_1", "Queens", "11101", [40.7282, -73.7949], 65, "O3", 0.068, "ppm"),
    ]
    return [
        {
            "id": record_id,
            "category": "environmental",
            "type": "airQuality",
            "borough": borough or default_borough,
            "zipCode": zip_code or default_zip,
            "coordinates": coords,
            "aqi": aqi,
            "pollutant": pollutant,
            "value": value,
            "status": "Moderate",
            "unit": unit,
            "dataSource": "mock",
            "timestamp": timestamp,
        }
        for record_id, default_borough, default_zip, coords, aqi, pollutant, value, unit in samples
    ]


# ── CDC ─────────────────────────────────────────────────────────────────────

CDC_CONDITIONS = ["Diabetes", "Hypertension", "Asthma", "Obesity", "Heart Disease"]


def generate_cdc_data(condition: str | None = None, borough: str | None = None) -> list[dict]:
    conditions = [condition] if condition and condition != "allConditions" else CDC_CONDITIONS
    boroughs = [borough] if borough else list(BOROUGHS)
    return [
        {
            "id": f"mock_{cond}_{boro}".replace(" ", "_"),
            "category": "health",
            "condition": cond,
            "borough": boro,
            "neighborhood": boro,
            "rate": round(5 + random.random() * 20, 1),
            "cases": random.randint(100, 1099),
            "population": 100000,
            "ageGroup": "All Ages",
            "raceEthnicity": "All Groups",
            "gender": "All Genders",
            "year": 2023,
            "dataSource": "mock",
            "measure": "Prevalence",
            "unit": "%",
        }
        for cond in conditions
        for boro in boroughs
    ]


# ── EpiQuery ────────────────────────────────────────────────────────────────

def generate_epiquery_data(year: int, borough: str | None = None) -> list[dict]:
    area = borough or "NYC"
    indicators = [
        ("aqi", "Air Quality Index", 78.4, "AQI", "environmental"),
        ("food", "Food Access Score", 69.1, "Score", "social"),
        ("green", "Green Space Access", 63.2, "%", "environmental"),
    ]
    return [
        {
            "id": f"epi_mock_{key}_{area}_{year}".replace(" ", "_"),
            "category": category,
            "indicator": indicator,
            "borough": area,
            "value": value,
            "unit": unit,
            "year": year,
            "dataSource": "mock",
        }
        for key, indicator, value, unit, category in indicators
    ]


# ── 311 complaints ──────────────────────────────────────────────────────────

def generate_311_data() -> list[dict]:
    now = datetime.now(timezone.utc)
    samples = [
        ("Air Quality", "Smoke - Non-Residential", "BRONX", "MOTT HAVEN", "10451", "Open", "DEP", 40.8089, -73.9201, 9),
        ("Water Quality", "Taste/Odor", "BROOKLYN", "BEDFORD STUYVESANT", "11216", "In Progress", "DEP", 40.6892, -73.9442, 8),
        ("Food Poisoning", "Food Poisoning - Restaurant", "MANHATTAN", "EAST HARLEM", "10029", "Closed", "DOHMH", 40.7957, -73.9389, 10),
        ("Unsanitary Condition", "Dirty Conditions", "QUEENS", "JACKSON HEIGHTS", "11372", "Open", "DOHMH", 40.7505, -73.8803, 7),
        ("Rodent", "Rat Sighting", "STATEN ISLAND", "ST. GEORGE", "10301", "In Progress", "DOHMH", 40.6437, -74.0776, 6),
    ]
    return [
        {
            "id": f"mock_{i + 1:03d}",
            "category": "social",
            "complaintType": complaint_type,
            "descriptor": descriptor,
            "borough": borough,
            "neighborhood": neighborhood,
            "zipCode": zip_code,
            "createdDate": (now - timedelta(days=i + 1)).isoformat(),
            "status": status,
            "agency": agency,
            "latitude": lat,
            "longitude": lng,
            "healthRelevance": relevance,
            "dataSource": "mock",
        }
        for i, (complaint_type, descriptor, borough, neighborhood, zip_code, status, agency, lat, lng, relevance)
        in enumerate(samples)
    ]


# ── Environmental overlay ───────────────────────────────────────────────────

def generate_environmental_overlay(borough: str | None = None, zip_code: str | None = None) -> dict:
    return {
        "airQuality": [
            {
                "id": "aq_1",
                "category": "environmental",
                "type": "airQuality",
                "borough": borough or "Brooklyn",
                "zipCode": zip_code or "11212",
                "coordinates": [40.6782, -73.9442],
                "data": {"aqi": 68, "pollutant": "PM2.5", "value": 15.2, "status": "Moderate", "unit": "μg/m³"},
            },
            {
                "id": "aq_2",
                "category": "environmental",
                "type": "airQuality",
                "borough": borough or "Manhattan",
                "zipCode": zip_code or "10001",
                "coordinates": [40.7589, -73.9851],
                "data": {"aqi": 72, "pollutant": "NO2", "value": 28.5, "status": "Moderate", "unit": "ppb"},
            },
        ],
        "parks": [
            {
                "id": "park_1",
                "category": "environmental",
                "type": "greenSpace",
                "borough": borough or "Brooklyn",
                "coordinates": [40.6892, -73.9442],
                "data": {"name": "Prospect Park", "address": "95 Prospect Park W, Brooklyn, NY 11215", "acres": 526},
            },
            {
                "id": "park_2",
                "category": "environmental",
                "type": "greenSpace",
                "borough": borough or "Manhattan",
                "coordinates": [40.7829, -73.9654],
                "data": {"name": "Central Park", "address": "New York, NY 10024", "acres": 843},
            },
        ],
        "foodAccess": [
            {
                "id": "food_1",
                "category": "social",
                "type": "foodDeserts",
                "borough": borough or "Brooklyn",
                "coordinates": [40.6782, -73.9442],
                "data": {"name": "Food Desert Area", "riskLevel": "High", "details": {"distance_to_supermarket": 1.2}},
            },
            {
                "id": "snap_1",
                "category": "social",
                "type": "snapAccess",
                "borough": borough or "Queens",
                "coordinates": [40.7282, -73.7949],
                "data": {"name": "SNAP Retailer", "address": "123 Main St, Queens, NY", "details": {"accepts_snap": True}},
            },
        ],
    }
