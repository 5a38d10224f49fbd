"""
app/mappers/company_mapper.py

Field mapping from raw company export rows to prompt data and enriched records.
"""

from __future__ import annotations

import re

from app.domain.target_list import EnrichedCompany, NoLogo, NormalizedRow, SourceColumn
from llm_synthesis.prompt_builder import SummaryPromptData
from llm_synthesis.schema import SummaryResult

_PROTOCOL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
_WWW_PATTERN = re.compile(r"^www\.", re.IGNORECASE)

NOT_SPECIFIED = "Not specified"
NOT_DISCLOSED = "Not disclosed"


def _value(row: NormalizedRow, column: str) -> str:
    raw = row.get(column)
    if raw is None:
        return ""
    return str(raw).strip()


def extract_domain(website: str) -> str:
    """
    Strip protocol, `www.`, path and query string from a website value.
    """

    if not website:
        return ""
    domain = _PROTOCOL_PATTERN.sub("", website.strip())
    domain = _WWW_PATTERN.sub("", domain)
    domain = domain.split("/")[0]
    return domain.split("?")[0]


def normalize_logo_domain(domain: str) -> str:
    """
    Normalize a domain or URL into the lowercase key used by logo sources.
    """

    return extract_domain(domain).lower().strip()


def logo_lookup_key(domain: str, company_name: str) -> str:
    """
    Key that links a logo result back to its company.

    The company name is part of the key even when a domain is present, so
    two companies on one domain keep their own initials badge.
    """

    name = company_name.strip().lower()
    normalized = normalize_logo_domain(domain)
    if normalized:
        return f"{normalized}|{name}"
    return f"name:{name}"


def parse_revenue(revenue: str) -> float:
    """
    Parse a raw revenue cell ("11,590,000") into dollars; invalid -> 0.0.
    """

    if not revenue:
        return 0.0
    try:
        return float(revenue.replace(",", "").replace("$", "").strip())
    except ValueError:
        return 0.0


def revenue_in_millions(revenue: str) -> float:
    return parse_revenue(revenue) / 1_000_000


def format_revenue(revenue: str) -> str:
    """
    Format raw revenue for prompts: $1.23B, $11.59M, $850K or Not disclosed.
    """

    if not revenue or not revenue.strip():
        return NOT_DISCLOSED
    try:
        amount = float(revenue.replace(",", "").replace("$", "").strip())
    except ValueError:
        return NOT_DISCLOSED

    millions = amount / 1_000_000
    if millions >= 1000:
        return f"${millions / 1000:.2f}B"
    if millions >= 1:
        return f"${millions:.2f}M"
    return f"${amount / 1000:.0f}K"


def format_city_state(city: str, state: str) -> str:
    return ", ".join(part for part in (city, state) if part)


def executive_name(first_name: str, last_name: str) -> str:
    return " ".join(part for part in (first_name, last_name) if part)


def format_executive(first_name: str, last_name: str, title: str, separator: str = "\n") -> str:
    """
    Combine executive name and title ("Jane Doe\\nCEO"), tolerating gaps.
    """

    name = executive_name(first_name, last_name)
    if not name and not title:
        return ""
    if not title:
        return name
    if not name:
        return title
    return f"{name}{separator}{title}"


def build_prompt_data(row: NormalizedRow) -> SummaryPromptData:
    """
    Collect the prompt fields for one company row.
    """

    return SummaryPromptData(
        company_name=_value(row, SourceColumn.COMPANY_NAME),
        industries=_value(row, SourceColumn.INDUSTRIES) or NOT_SPECIFIED,
        revenue=format_revenue(_value(row, SourceColumn.LATEST_ESTIMATED_REVENUE)),
        employees=_value(row, SourceColumn.EMPLOYEE_COUNT) or NOT_SPECIFIED,
        location=format_city_state(_value(row, SourceColumn.CITY), _value(row, SourceColumn.STATE)),
        specialties=_value(row, SourceColumn.SPECIALTIES),
        full_description=_value(row, SourceColumn.DESCRIPTION),
    )


def build_enriched_company(row: NormalizedRow, summary: SummaryResult) -> EnrichedCompany:
    """
    Flatten one source row and its summary result into an enriched record.

    The logo starts as NoLogo and is attached after the logo phase.
    """

    first_name = _value(row, SourceColumn.EXECUTIVE_FIRST_NAME)
    last_name = _value(row, SourceColumn.EXECUTIVE_LAST_NAME)
    title = _value(row, SourceColumn.EXECUTIVE_TITLE)
    city = _value(row, SourceColumn.CITY)
    state = _value(row, SourceColumn.STATE)
    website = _value(row, SourceColumn.WEBSITE)
    revenue = _value(row, SourceColumn.LATEST_ESTIMATED_REVENUE)

    return EnrichedCompany(
        company_name=_value(row, SourceColumn.COMPANY_NAME),
        informal_name=_value(row, SourceColumn.INFORMAL_NAME),
        city=city,
        state=state,
        city_state=format_city_state(city, state),
        website=website,
        domain=extract_domain(website),
        original_description=_value(row, SourceColumn.DESCRIPTION),
        specialties=_value(row, SourceColumn.SPECIALTIES),
        industries=_value(row, SourceColumn.INDUSTRIES),
        employee_count=_value(row, SourceColumn.EMPLOYEE_COUNT),
        latest_estimated_revenue=parse_revenue(revenue),
        est_rev_millions=revenue_in_millions(revenue),
        growth_rate_6mo=_value(row, SourceColumn.GROWTH_RATE_6MO),
        growth_rate_9mo=_value(row, SourceColumn.GROWTH_RATE_9MO),
        growth_rate_24mo=_value(row, SourceColumn.GROWTH_RATE_24MO),
        executive_title=title,
        executive_first_name=first_name,
        executive_last_name=last_name,
        executive_name=executive_name(first_name, last_name),
        executive_formatted=format_executive(first_name, last_name, title),
        summary=summary.summary,
        summary_quality=summary.quality,
        summary_retries=summary.retries,
        summary_error=summary.error,
        logo=NoLogo(),
    )
