"""All four NYC domain feeds in one response, with per-source status and timings."""

import asyncio
import logging
import time

from healthequity.services import domains
from healthequity.services.utils import elapsed_ms, now_iso, session_id

logger = logging.getLogger(__name__)

# response key -> domain
COMBINED_SOURCES = {
    "health": "health",
    "greenSpace": "green-space",
    "foodAccess": "food-access",
    "snapAccess": "snap-access",
}


async def _timed(domain: str) -> dict:
    start = time.perf_counter()
    result = await domains.fetch_domain(domain)
    result["responseTime"] = elapsed_ms(start)
    return result


async def fetch_combined() -> dict:
    sid = session_id("combined")
    start = time.perf_counter()
    logger.info(f"[{sid}] Combined request started")

    outcomes = await asyncio.gather(*(_timed(d) for d in COMBINED_SOURCES.values()))
    results = dict(zip(COMBINED_SOURCES, outcomes))

    successful = [name for name, r in results.items() if r.get("success")]
    failed = [name for name in results if name not in successful]
    total_time = elapsed_ms(start)
    avg_time = sum(r["responseTime"] for r in results.values()) / len(results)

    logger.info(
        f"[{sid}] Combined request completed in {total_time}ms: "
        f"ok={','.join(successful) or '-'} failed={','.join(failed) or '-'}"
    )
    return {
        "success": True,
        "data": {name: r["data"] if r.get("success") else [] for name, r in results.items()},
        "metadata": {
            "sources": {
                name: {
                    "success": bool(r.get("success")),
                    "count": len(r.get("data") or []),
                    "error": r.get("error"),
                    "responseTime": r["responseTime"],
                    "dataSource": r.get("metadata", {}).get("data_source", "unknown"),
                }
                for name, r in results.items()
            },
            "performance": {
                "totalResponseTime": total_time,
                "avgResponseTime": avg_time,
                "successRate": len(successful) / len(results) * 100,
                "successfulSources": len(successful),
                "failedSources": len(failed),
            },
            "dataFreshness": {name: r.get("metadata", {}).get("last_updated") for name, r in results.items()},
            "last_updated": now_iso(),
            "session_id": sid,
        },
    }
