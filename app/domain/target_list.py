"""
app/domain/target_list.py

Domain models for target list enrichment.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import ClassVar, Literal, Union

from llm_synthesis.schema import QualityTier

NormalizedRow = Mapping[str, str]

LogoSource = Literal["primary", "secondary", "synthesized", "none"]
OutputFormat = Literal["detailed", "minimal"]

SummaryProgressCallback = Callable[[int, int, str], None]
LogoProgressCallback = Callable[[int, int], None]


class SourceColumn:
    """
    Column headers of the Sourcescrub company export.
    """

    COMPANY_NAME = "Company Name"
    INFORMAL_NAME = "Informal Name"
    CITY = "City"
    STATE = "State"
    WEBSITE = "Website"
    DESCRIPTION = "Description"
    SPECIALTIES = "Specialties"
    INDUSTRIES = "Industries"
    EMPLOYEE_COUNT = "Employee Count"
    LATEST_ESTIMATED_REVENUE = "Latest Estimated Revenue ($)"
    GROWTH_RATE_6MO = "6 Months Growth Rate %"
    GROWTH_RATE_9MO = "9 Months Growth Rate %"
    GROWTH_RATE_24MO = "24 Months Growth Rate %"
    EXECUTIVE_TITLE = "Executive Title"
    EXECUTIVE_FIRST_NAME = "Executive First Name"
    EXECUTIVE_LAST_NAME = "Executive Last Name"


REQUIRED_COLUMNS: tuple[str, ...] = (
    SourceColumn.COMPANY_NAME,
    SourceColumn.CITY,
    SourceColumn.STATE,
    SourceColumn.WEBSITE,
    SourceColumn.DESCRIPTION,
    SourceColumn.EMPLOYEE_COUNT,
    SourceColumn.LATEST_ESTIMATED_REVENUE,
    SourceColumn.EXECUTIVE_TITLE,
    SourceColumn.EXECUTIVE_FIRST_NAME,
    SourceColumn.EXECUTIVE_LAST_NAME,
)

CRITICAL_VALUE_COLUMNS: tuple[str, ...] = (
    SourceColumn.COMPANY_NAME,
    SourceColumn.DESCRIPTION,
    SourceColumn.LATEST_ESTIMATED_REVENUE,
)


@dataclass(frozen=True)
class PrimaryLogo:
    """
    Logo served by the primary logo-by-domain source.
    """

    source: ClassVar[LogoSource] = "primary"
    data: str


@dataclass(frozen=True)
class SecondaryLogo:
    """
    Favicon served by the secondary source.
    """

    source: ClassVar[LogoSource] = "secondary"
    data: str


@dataclass(frozen=True)
class SynthesizedLogo:
    """
    Locally generated initials badge.
    """

    source: ClassVar[LogoSource] = "synthesized"
    data: str


@dataclass(frozen=True)
class NoLogo:
    """
    No logo could be produced for the company.
    """

    source: ClassVar[LogoSource] = "none"
    error: str | None = None


LogoResult = Union[PrimaryLogo, SecondaryLogo, SynthesizedLogo, NoLogo]


def logo_data(result: LogoResult) -> str | None:
    """
    Return the data URL of a logo result, or None when no logo exists.
    """

    if isinstance(result, NoLogo):
        return None
    return result.data


@dataclass(frozen=True)
class LogoRequest:
    """
    One logo lookup: normalized key plus the name used for initials.
    """

    key: str
    domain: str
    company_name: str


@dataclass(frozen=True)
class EnrichedCompany:
    """
    Output-facing company record consumed by the renderers.
    """

    company_name: str
    informal_name: str
    city: str
    state: str
    city_state: str
    website: str
    domain: str
    original_description: str
    specialties: str
    industries: str
    employee_count: str
    latest_estimated_revenue: float
    est_rev_millions: float
    growth_rate_6mo: str
    growth_rate_9mo: str
    growth_rate_24mo: str
    executive_title: str
    executive_first_name: str
    executive_last_name: str
    executive_name: str
    executive_formatted: str
    summary: str
    summary_quality: QualityTier
    summary_retries: int
    summary_error: str | None = None
    logo: LogoResult = field(default_factory=NoLogo)

    @property
    def logo_source(self) -> LogoSource:
        return self.logo.source


@dataclass(frozen=True)
class UploadValidationResult:
    """
    Validation outcome for one uploaded company table.
    """

    is_valid: bool
    row_count: int
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    missing_columns: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParsedTable:
    """
    Parsed source rows in file order plus their header order.
    """

    headers: list[str]
    rows: list[dict[str, str]]
    validation: UploadValidationResult


@dataclass(frozen=True)
class QualityStats:
    """
    Aggregate summary quality over an enriched batch.
    """

    total: int
    excellent: int
    good: int
    needs_review: int
    fallbacks: int
    average_retries: float
    logos_by_source: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ReportConfig:
    """
    Presentation options shared by the workbook and document renderers.
    """

    report_title: str
    output_format: OutputFormat = "detailed"
    company_name: str | None = None
