"""Narrative health equity report: LLM analysis with a local markdown fallback."""

import asyncio
import json
import logging
from datetime import datetime

from openai import APIStatusError, AsyncOpenAI, OpenAIError

from healthequity.config import OPENAI_API_KEY, OPENAI_MODEL, REPORT_TIMEOUT
from healthequity.services import cdc, epiquery, nyc_open_data
from healthequity.services.utils import now_iso, to_float

logger = logging.getLogger(__name__)

# Records from each source that make it into the prompt or report
MAX_SOURCE_RECORDS = 10

NO_DATA_ANALYSIS = {
    "summary": "No data available for analysis",
    "insights": ["Please select health conditions or environmental factors to analyze"],
    "recommendations": ["Use the filter panel to select data for analysis"],
    "correlations": [],
    "topConcerns": [],
}

DEFAULT_INSIGHTS = [
    "Health disparities exist across NYC boroughs",
    "Environmental factors correlate with health outcomes",
    "Community-level interventions can improve health equity",
]

DEFAULT_RECOMMENDATIONS = [
    "Advocate for better healthcare access in underserved areas",
    "Support environmental justice initiatives",
    "Engage with local community health programs",
]


def severity(rate) -> str:
    rate = to_float(rate)
    if rate > 20:
        return "high"
    if rate > 10:
        return "medium"
    return "low"


def top_concerns(health_data: list[dict], limit: int = 5) -> list[dict]:
    """Health records ranked by rate, highest first."""
    ranked = sorted(health_data, key=lambda h: to_float(h.get("rate")), reverse=True)
    return [
        {
            "condition": h.get("condition") or "Unknown",
            "severity": severity(h.get("rate")),
            "affectedAreas": [h.get("borough") or "NYC"],
            "trend": "stable",
        }
        for h in ranked[:limit]
    ]


async def gather_sources(filters: dict) -> dict:
    """CDC, EpiQuery and NYC Open Data records fetched in-process for the report."""
    borough = filters.get("borough")
    cdc_result, epi_result, nyc_result = await asyncio.gather(
        cdc.scrape_cdc("chronic_disease", limit=MAX_SOURCE_RECORDS),
        epiquery.fetch_epiquery(borough=borough),
        nyc_open_data.scrape_nyc("healthcare_facilities", borough=borough, limit=MAX_SOURCE_RECORDS),
    )
    status = {
        "cdc": bool(cdc_result.get("success")),
        "epiQuery": bool(epi_result.get("success")),
        "nycOpenData": bool(nyc_result.get("success")),
    }
    logger.info(f"Report data sources: {status}")
    return {
        "cdcData": cdc_result["data"][:MAX_SOURCE_RECORDS] if status["cdc"] else [],
        "epiQueryData": epi_result["data"][:MAX_SOURCE_RECORDS] if status["epiQuery"] else [],
        "nycOpenData": nyc_result["data"][:MAX_SOURCE_RECORDS] if status["nycOpenData"] else [],
        "dataSourceStatus": status,
    }


def build_prompt(health_data: list[dict], environmental_data: list[dict], sources: dict, filters: dict) -> str:
    location = filters.get("neighborhood") or filters.get("borough") or "NYC"
    health_lines = "\n".join(
        f"- {h.get('condition')}: {h.get('rate')}% in {h.get('borough')} ({h.get('cases') or 'unknown'} cases)"
        for h in health_data
    )
    env_lines = "\n".join(
        f"- {e.get('indicator') or e.get('type')}: {e.get('value')} in {e.get('borough')}"
        for e in environmental_data
    )
    cdc_lines = "\n".join(
        f"- {c.get('condition')}: {c.get('dataValue')} {c.get('dataValueUnit') or ''} ({c.get('year')})"
        for c in sources["cdcData"]
    )
    epi_lines = "\n".join(
        f"- {e.get('indicator')}: {e.get('value')} {e.get('unit') or ''} in {e.get('borough') or e.get('neighborhood')}"
        for e in sources["epiQueryData"]
    )
    nyc_lines = "\n".join(
        f"- {n.get('name')} ({n.get('facilityType')}) in {n.get('borough')}" for n in sources["nycOpenData"]
    )
    return f"""You are a public health expert analyzing community health data for {location}, New York City.

Health Conditions Data:
{health_lines or "- none selected"}

Environmental Factors:
{env_lines or "- none selected"}

CDC chronic disease surveillance:
{cdc_lines or "- unavailable"}

NYC EpiQuery community indicators:
{epi_lines or "- unavailable"}

NYC healthcare facilities:
{nyc_lines or "- unavailable"}

Focus on health equity and disparities, environmental justice, community-actionable
solutions and clear, accessible language.

Return only valid JSON with this structure:
{{
  "summary": "string",
  "insights": ["string"],
  "recommendations": ["string"],
  "correlations": [{{"factor1": "string", "factor2": "string", "correlation": 0.0, "significance": "string"}}],
  "topConcerns": [{{"condition": "string", "severity": "high|medium|low", "affectedAreas": ["string"], "trend": "increasing|decreasing|stable"}}]
}}"""


async def llm_analysis(prompt: str, health_data: list[dict]) -> dict:
    client = AsyncOpenAI(api_key=OPENAI_API_KEY, timeout=REPORT_TIMEOUT)
    resp = await client.chat.completions.create(
        model=OPENAI_MODEL,
        messages=[{"role": "user", "content": prompt}],
        temperature=0.7,
        max_tokens=2000,
        response_format={"type": "json_object"},
    )
    text = resp.choices[0].message.content or ""
    try:
        analysis = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse model response as JSON: {e}")
        analysis = None
    if not isinstance(analysis, dict):
        if analysis is not None:
            logger.warning(f"Model returned JSON {type(analysis).__name__}, expected an object")
        analysis = {
            "summary": "Analysis completed based on your selected health and environmental data.",
            "insights": list(DEFAULT_INSIGHTS),
            "recommendations": list(DEFAULT_RECOMMENDATIONS),
            "correlations": [],
            "topConcerns": top_concerns(health_data),
        }
    analysis.update({"provider": "openai", "model": OPENAI_MODEL, "timestamp": now_iso()})
    return analysis


def _source_section(title: str, records: list[dict], line, missing: str) -> str:
    if not records:
        return f"### {title}\n**Status:** Currently unavailable. {missing}\n"
    rows = "\n".join(f"{i}. {line(r)}" for i, r in enumerate(records, 1))
    return f"### {title}\n{rows}\n"


def local_analysis(health_data: list[dict], environmental_data: list[dict], sources: dict, filters: dict) -> dict:
    """Templated markdown report built from whatever data is at hand."""
    location = filters.get("neighborhood") or filters.get("borough") or "NYC"
    status = sources["dataSourceStatus"]
    concerns = top_concerns(health_data)

    def mark(ok: bool) -> str:
        return "Active" if ok else "Unavailable"

    parts = [
        "# Health Equity Analysis",
        "",
        "## Executive Summary",
        f"- **Location:** {location}",
        f"- **Analysis Date:** {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        f"- **CDC Health Data:** {mark(status['cdc'])} ({len(sources['cdcData'])} records)",
        f"- **NYC EpiQuery:** {mark(status['epiQuery'])} ({len(sources['epiQueryData'])} indicators)",
        f"- **NYC Open Data:** {mark(status['nycOpenData'])} ({len(sources['nycOpenData'])} facilities)",
        f"- **Dashboard Data:** {len(health_data)} health records, {len(environmental_data)} environmental records",
        "",
        "## Top Health Concerns",
    ]
    if concerns:
        parts += [
            f"{i}. **{c['condition']}** ({c['severity']}) in {', '.join(c['affectedAreas'])}"
            for i, c in enumerate(concerns, 1)
        ]
    else:
        parts.append("No health conditions selected.")
    parts += [
        "",
        "## Multi-Source Findings",
        _source_section(
            "CDC Chronic Disease Surveillance",
            sources["cdcData"],
            lambda c: f"**{c.get('condition')}**: {c.get('dataValue')} {c.get('dataValueUnit') or ''} ({c.get('year')})",
            "Federal context is limited.",
        ),
        _source_section(
            "NYC EpiQuery Community Health Profiles",
            sources["epiQueryData"],
            lambda e: f"**{e.get('indicator')}**: {e.get('value')} in {e.get('borough') or e.get('neighborhood')}",
            "Neighborhood-level indicators are limited.",
        ),
        _source_section(
            "NYC Healthcare Facilities",
            sources["nycOpenData"],
            lambda n: f"**{n.get('name')}** ({n.get('facilityType')}) in {n.get('borough')}",
            "Facility distribution is unknown.",
        ),
        "## Recommendations",
        *[f"- {r}" for r in DEFAULT_RECOMMENDATIONS],
        "",
        "## Resources",
        "- **NYC Health + Hospitals**: 1-844-NYC-4NYC",
        "- **NYC Care**: 1-646-NYC-CARE",
        "- **Crisis Support**: 1-888-NYC-WELL",
    ]

    insights = list(DEFAULT_INSIGHTS)
    if concerns and concerns[0]["severity"] == "high":
        insights.insert(0, f"{concerns[0]['condition']} is the most pressing concern in {location}")

    return {
        "summary": "\n".join(parts),
        "insights": insights,
        "recommendations": list(DEFAULT_RECOMMENDATIONS),
        "correlations": [],
        "topConcerns": concerns,
        "provider": "local",
        "model": "health-equity-analyzer",
        "timestamp": now_iso(),
        "dataSources": {
            "cdc": len(sources["cdcData"]),
            "epiQuery": len(sources["epiQueryData"]),
            "nycOpenData": len(sources["nycOpenData"]),
            "dashboard": len(health_data),
        },
    }


async def analyze(
    data: list[dict] | None = None,
    environmental_data: list[dict] | None = None,
    health_data: list[dict] | None = None,
    filters: dict | None = None,
) -> dict:
    if not data and not environmental_data and not health_data:
        return dict(NO_DATA_ANALYSIS)

    filters = filters or {}
    health = list(health_data or []) + list(data or [])
    environmental = list(environmental_data or [])
    sources = await gather_sources(filters)

    if OPENAI_API_KEY:
        try:
            logger.info(f"Generating report with {OPENAI_MODEL}")
            return await llm_analysis(build_prompt(health, environmental, sources, filters), health)
        except OpenAIError as e:
            logger.error(f"OpenAI analysis failed, using local analysis: {e}")

    return local_analysis(health, environmental, sources, filters)


# ── Health insights ─────────────────────────────────────────────────────────

INSIGHTS_SYSTEM_PROMPT = (
    "You are a health data analyst providing insights about NYC health conditions and "
    "environmental factors. Focus on factual, actionable information."
)


class InsightsError(Exception):
    """An insights request that could not be answered; ``status`` is the HTTP status to return."""

    def __init__(self, message: str, status: int = 500):
        super().__init__(message)
        self.status = status


async def health_insights(query: str) -> dict:
    """Free-text question answered by the chat model with the health analyst prompt."""
    if not OPENAI_API_KEY:
        raise InsightsError("AI insights are not configured", status=503)

    client = AsyncOpenAI(api_key=OPENAI_API_KEY, timeout=REPORT_TIMEOUT)
    try:
        resp = await client.chat.completions.create(
            model=OPENAI_MODEL,
            messages=[
                {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            max_tokens=1000,
            temperature=0.7,
        )
    except APIStatusError as e:
        logger.error(f"Health insights API error: {e.status_code} {e}")
        raise InsightsError(f"API Error: {e.status_code}", status=e.status_code) from e
    except OpenAIError as e:
        logger.error(f"Health insights request failed: {e}")
        raise InsightsError("Failed to fetch insights") from e

    content = resp.choices[0].message.content if resp.choices else None
    return {
        "success": True,
        "content": content or "No insights available",
        "citations": getattr(resp, "citations", None) or [],
        "isRealTime": False,
    }
