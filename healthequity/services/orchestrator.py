"""Fan-out over the scraping routes (CDC, EpiQuery, NYC Open Data).

Each source is fetched through this service's own HTTP route, in parallel or
one after another depending on the priority policy. Records are bucketed by
the ``category`` their producer stamped on them.
"""

import asyncio
import logging
import time

import httpx

from healthequity.config import DEFAULT_PRIORITY, PRIORITY_STRATEGIES
from healthequity.services import fetch
from healthequity.services.normalize import CATEGORIES
from healthequity.services.utils import elapsed_ms, now_iso, session_id

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = ("cdc", "epiquery", "nyc")

# source -> (route, endpoint)
SOURCE_ROUTES = {
    "cdc": ("/api/scraping/cdc", "chronic_disease"),
    "epiquery": ("/api/scraping/epiquery", "community_health"),
    "nyc": ("/api/scraping/nyc-enhanced", "health_outcomes"),
}


class SourceFailed(Exception):
    pass


def _internal_client(base_url: str, timeout: float | None = None) -> httpx.AsyncClient:
    return fetch.make_client(timeout=timeout, base_url=base_url)


def get_policy(priority: str | None) -> dict:
    """Priority policy by name; unknown names get the balanced policy."""
    name = priority if priority in PRIORITY_STRATEGIES else DEFAULT_PRIORITY
    return {"name": name, **PRIORITY_STRATEGIES[name]}


def parse_sources(sources: str | None) -> list[str]:
    if not sources:
        return list(DEFAULT_SOURCES)
    # repeated names are scraped once, first occurrence wins the order
    return list(dict.fromkeys(s.strip() for s in sources.split(",") if s.strip()))


async def scrape_source(client: httpx.AsyncClient, source: str, filters: dict, policy: dict, sid: str) -> dict:
    if source not in SOURCE_ROUTES:
        raise SourceFailed(f"Unknown source: {source}")
    path, endpoint = SOURCE_ROUTES[source]
    params = {"endpoint": endpoint, "max_retries": policy["max_retries"]}
    params.update({k: v for k, v in filters.items() if v})

    logger.info(f"[{sid}] Scraping {source}: {path}")
    start = time.perf_counter()
    resp = await client.get(path, params=params)
    resp.raise_for_status()
    body = resp.json()
    if not body.get("success"):
        raise SourceFailed(body.get("error") or f"Failed to scrape {source}")
    body["responseTime"] = elapsed_ms(start)
    return body


async def _settle(client, source, filters, policy, sid) -> dict:
    """A source result that never raises: failures become ``success: false``."""
    start = time.perf_counter()
    try:
        return await scrape_source(client, source, filters, policy, sid)
    except (SourceFailed, httpx.HTTPError, ValueError) as e:
        logger.warning(f"[{sid}] Source {source} failed: {e}")
        return {"success": False, "error": str(e) or type(e).__name__, "data": [], "responseTime": elapsed_ms(start)}


def categorize(records: list, buckets: dict[str, list], source: str):
    for item in records if isinstance(records, list) else []:
        category = item.get("category") if isinstance(item, dict) else None
        if category not in buckets:
            logger.warning(f"Record from {source} has no known category ({category!r}), skipping")
            continue
        buckets[category].append({**item, "source": source})


async def orchestrate(
    base_url: str,
    sources: list[str] | None = None,
    borough: str | None = None,
    year: str | None = None,
    priority: str | None = None,
) -> dict:
    sources = list(dict.fromkeys(sources or DEFAULT_SOURCES))
    policy = get_policy(priority)
    sid = session_id("orchestrator")
    start = time.perf_counter()
    filters = {"borough": borough, "year": year}
    logger.info(f"[{sid}] Starting data orchestration for sources: {', '.join(sources)} ({policy['name']})")

    async with _internal_client(base_url, timeout=policy["timeout"]) as client:
        if policy["parallel"]:
            outcomes = await asyncio.gather(*(_settle(client, s, filters, policy, sid) for s in sources))
        else:
            outcomes = [await _settle(client, s, filters, policy, sid) for s in sources]

    results = dict(zip(sources, outcomes))
    buckets = {category: [] for category in CATEGORIES}
    for source, outcome in results.items():
        if outcome.get("success"):
            categorize(outcome.get("data"), buckets, source)

    successful = sum(1 for r in results.values() if r.get("success"))
    response_times = [r["responseTime"] for r in results.values() if "responseTime" in r]
    summary = {
        "totalSources": len(sources),
        "successfulSources": successful,
        "failedSources": len(sources) - successful,
        "totalRecords": sum(len(b) for b in buckets.values()),
        "executionTime": elapsed_ms(start),
        "successRate": round(successful / len(sources) * 100, 1) if sources else 0.0,
        "averageResponseTime": round(sum(response_times) / len(response_times)) if response_times else 0,
        "recordsBySource": {
            source: len(r.get("data") or []) if r.get("success") else 0 for source, r in results.items()
        },
    }
    logger.info(
        f"[{sid}] Orchestration completed in {summary['executionTime']}ms: "
        f"{successful}/{len(sources)} sources, {summary['totalRecords']} records"
    )
    return {
        "success": True,
        "sessionId": sid,
        "priority": policy["name"],
        "sources": results,
        "summary": summary,
        "data": buckets,
        "timestamp": now_iso(),
    }


async def health_check(base_url: str) -> dict:
    """Probe each scraping route with ``limit=1``; overall is healthy when at least two answer."""
    policy = {"max_retries": 1}
    sid = session_id("healthcheck")
    async with _internal_client(base_url, timeout=PRIORITY_STRATEGIES["fast"]["timeout"]) as client:
        outcomes = await asyncio.gather(
            *(_settle(client, s, {"limit": 1}, policy, sid) for s in DEFAULT_SOURCES)
        )
    status = {source: bool(o.get("success")) for source, o in zip(DEFAULT_SOURCES, outcomes)}
    healthy = sum(status.values())
    logger.info(f"[{sid}] Source health: {healthy}/{len(status)} healthy")
    return {
        "success": True,
        "status": {**status, "timestamp": now_iso()},
        "overall": healthy >= 2,
    }
