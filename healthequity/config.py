import os

# NYC Open Data (Socrata SODA API)
NYC_OPENDATA_BASE = "https://data.cityofnewyork.us/resource"
NYC_OPENDATA_APP_TOKEN = os.environ.get(
    "NYC_OPEN_DATA_APP_TOKEN", os.environ.get("NYC_OPEN_DATA_API_KEY", "")
)

# CDC Socrata portal
CDC_BASE = "https://data.cdc.gov/resource"

# NYC DOHMH EpiQuery
EPIQUERY_BASE = "https://a816-health.nyc.gov"

# Dataset IDs
DATASETS = {
    # Per-domain routes: primary dataset, then alternate
    "health_primary": "cw4k-4w9k",
    "health_alternate": "jb7j-dtam",
    "food_retail": "9a8c-vfzj",
    "food_alternate": "4d7f-74pe",
    "parks_properties": "enfh-gkve",
    "parks_alternate": "ghu2-eden",
    "social_services": "pqg4-dm6b",
    "social_services_alternate": "8b5a-2grb",
    "air_quality": "c3uy-2p5r",
    "311_requests": "erm2-nwe9",
    "community_health_survey": "jb7j-dtam",
    # Enhanced scraper endpoints
    "leading_causes_of_death": "jb7j-dtam",
    "drinking_water_quality": "bkwf-xfky",
    "restaurant_inspections": "43nn-pn8j",
    "parks": "enfh-gkve",
    "snap_retailers": "w7w3-xahh",
    "healthcare_facilities": "ymhw-9cz9",
    "subway_stations": "kk4q-3rt2",
}

CDC_DATASETS = {
    "chronic_disease": "g4ie-h725",
    "chronic_disease_indicators": "55yu-xksw",
    "mortality": "bi63-dtpu",
    "environmental_health": "cjae-szjv",
    "social_determinants": "bpgx-2w5r",
}

EPIQUERY_PATHS = {
    "public": "/hdi/epiquery/api/public/data",
    "legacy": "/hdi/epiquery/api/data",
}

# Outbound HTTP
USER_AGENT = "HealthEquityNYC-Dashboard/1.0"
HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "30"))
AIR_QUALITY_TIMEOUT = 8.0
MAX_RETRIES = 3
RETRY_DELAY = 1.0

# Minimum seconds between two calls to the same upstream
RATE_LIMITS = {
    "CDC": 1.0,
    "NYCOpenData": 0.5,
    "EpiQuery": 3.0,
}

# Orchestrator priority policies
PRIORITY_STRATEGIES = {
    "fast": {"parallel": True, "timeout": 10, "max_retries": 1, "cache_minutes": 60},
    "balanced": {"parallel": True, "timeout": 30, "max_retries": 2, "cache_minutes": 30},
    "comprehensive": {"parallel": False, "timeout": 60, "max_retries": 3, "cache_minutes": 15},
}
DEFAULT_PRIORITY = "balanced"

# Narrative report generation
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o")
REPORT_TIMEOUT = 60.0

# Base URL the orchestrator uses to reach this service's own routes.
# Empty means "derive it from the incoming request".
PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "")
if not PUBLIC_BASE_URL and os.environ.get("VERCEL_URL"):
    PUBLIC_BASE_URL = f"https://{os.environ['VERCEL_URL']}"

# Server
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "8050"))
CORS_ORIGINS = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()
]

# Scheduler intervals (in minutes)
SCHEDULE = {
    "source_health": int(os.environ.get("SOURCE_HEALTH_MINUTES", "15")),
}
ENABLE_SCHEDULER = os.environ.get("ENABLE_SCHEDULER", "1") == "1"

# Socrata API limits
SOCRATA_PAGE_SIZE = 1000
