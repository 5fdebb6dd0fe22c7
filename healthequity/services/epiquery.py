"""NYC DOHMH EpiQuery community health indicators.

The public data path is tried first, then the legacy path. EpiQuery can
answer 200 with an HTML error page, so anything that is not
``application/json`` counts as a failed attempt.
"""

import logging

from healthequity.config import EPIQUERY_BASE, EPIQUERY_PATHS, RATE_LIMITS, USER_AGENT
from healthequity.services import fetch, mock_data
from healthequity.services.normalize import get_schema, keep_nyc_boroughs, normalize_records
from healthequity.services.utils import now_iso

logger = logging.getLogger(__name__)

EPIQUERY_HEADERS = {"Accept": "application/json", "User-Agent": USER_AGENT}

SOURCE_LABELS = {
    "public": "EpiQuery NYC Health (public API)",
    "legacy": "EpiQuery NYC Health (legacy API)",
}


async def _fetch_path(path: str, params: dict, max_retries: int | None = None) -> list:
    """Rows from one EpiQuery path; an empty list means the path gave nothing usable."""
    url = f"{EPIQUERY_BASE}{path}"
    kwargs = {"params": params, "headers": EPIQUERY_HEADERS}
    if max_retries is not None:
        kwargs["max_retries"] = max_retries
    try:
        await fetch.rate_limiter.acquire("EpiQuery", RATE_LIMITS["EpiQuery"])
        resp = await fetch.fetch_with_retry(url, **kwargs)
    except fetch.FetchError as e:
        logger.warning(f"EpiQuery fetch failed for {path}: {e}")
        return []

    content_type = resp.headers.get("content-type", "")
    if "application/json" not in content_type:
        logger.warning(f"EpiQuery expected JSON from {path}, received {content_type!r}: {resp.text[:250]}")
        return []
    try:
        data = resp.json()
    except ValueError as e:
        logger.warning(f"EpiQuery returned invalid JSON from {path}: {e}")
        return []
    return data if isinstance(data, list) else []


async def fetch_epiquery(
    year: int = 2023,
    borough: str | None = None,
    neighborhood: str | None = None,
    max_retries: int | None = None,
) -> dict:
    params = {"format": "json", "year": year}
    if borough:
        params["borough"] = borough
    if neighborhood:
        params["neighborhood"] = neighborhood

    schema = get_schema("epiquery", "community_health")
    for key in ("public", "legacy"):
        path = EPIQUERY_PATHS[key]
        raw = await _fetch_path(path, params, max_retries=max_retries)
        data = keep_nyc_boroughs(normalize_records(raw, schema, source="epiquery"))
        if data:
            logger.info(f"EpiQuery {key} path: fetched {len(data)}")
            return {
                "success": True,
                "source": SOURCE_LABELS[key],
                "endpoint": path,
                "count": len(data),
                "timestamp": now_iso(),
                "data": data,
            }

    logger.warning("EpiQuery public and legacy paths failed, serving mock data")
    data = mock_data.generate_epiquery_data(year, borough)
    return {
        "success": False,
        "source": "EpiQuery NYC Health (mock)",
        "endpoint": "local-mock",
        "count": len(data),
        "timestamp": now_iso(),
        "error": "EpiQuery public and legacy APIs returned no data",
        "data": data,
    }
