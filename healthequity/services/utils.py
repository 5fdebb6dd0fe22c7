"""Shared helpers for the data source services."""

import random
import string
import time
from datetime import datetime, timezone

from healthequity.config import NYC_OPENDATA_APP_TOKEN, NYC_OPENDATA_BASE, USER_AGENT


def socrata_url(dataset_id: str, base: str = NYC_OPENDATA_BASE) -> str:
    return f"{base}/{dataset_id}.json"


def socrata_headers(with_token: bool = True) -> dict:
    headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    if with_token and NYC_OPENDATA_APP_TOKEN:
        headers["X-App-Token"] = NYC_OPENDATA_APP_TOKEN
    return headers


def soql_literal(value) -> str:
    """Quote a value for a SoQL ``$where`` clause, doubling embedded single quotes."""
    escaped = str(value).replace("'", "''")
    return f"'{escaped}'"


def safe_float(val) -> float | None:
    if val is None:
        return None
    try:
        return float(val)
    except (ValueError, TypeError):
        return None


def to_float(val, default: float = 0.0) -> float:
    """Permissive float parse: anything unparseable becomes ``default``."""
    parsed = safe_float(val)
    return default if parsed is None else parsed


def to_int(val, default: int = 0) -> int:
    parsed = safe_float(val)
    return default if parsed is None else int(parsed)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def session_id(prefix: str) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"
