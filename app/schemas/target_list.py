"""
app/schemas/target_list.py

Response schemas for target list endpoints.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from app.domain.target_list import EnrichedCompany, QualityStats, UploadValidationResult, logo_data


class UploadValidationResponse(BaseModel):
    """
    API response model for one uploaded table's validation result.
    """

    is_valid: bool
    row_count: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    missing_columns: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: UploadValidationResult) -> "UploadValidationResponse":
        return cls(
            is_valid=result.is_valid,
            row_count=result.row_count,
            errors=list(result.errors),
            warnings=list(result.warnings),
            missing_columns=list(result.missing_columns),
        )


class EnrichedCompanyResponse(BaseModel):
    """
    API response model for one enriched company.
    """

    company_name: str
    informal_name: str = ""
    city: str = ""
    state: str = ""
    city_state: str = ""
    website: str = ""
    domain: str = ""
    original_description: str = ""
    specialties: str = ""
    industries: str = ""
    employee_count: str = ""
    latest_estimated_revenue: float = 0.0
    est_rev_millions: float = 0.0
    growth_rate_6mo: str = ""
    growth_rate_9mo: str = ""
    growth_rate_24mo: str = ""
    executive_title: str = ""
    executive_first_name: str = ""
    executive_last_name: str = ""
    executive_name: str = ""
    executive_formatted: str = ""
    summary: str
    summary_quality: Literal["excellent", "good", "needs_review"]
    summary_retries: int = Field(..., ge=0)
    summary_error: str | None = None
    logo_source: Literal["primary", "secondary", "synthesized", "none"]
    logo: str | None = None

    @classmethod
    def from_company(cls, company: EnrichedCompany) -> "EnrichedCompanyResponse":
        return cls(
            company_name=company.company_name,
            informal_name=company.informal_name,
            city=company.city,
            state=company.state,
            city_state=company.city_state,
            website=company.website,
            domain=company.domain,
            original_description=company.original_description,
            specialties=company.specialties,
            industries=company.industries,
            employee_count=company.employee_count,
            latest_estimated_revenue=company.latest_estimated_revenue,
            est_rev_millions=company.est_rev_millions,
            growth_rate_6mo=company.growth_rate_6mo,
            growth_rate_9mo=company.growth_rate_9mo,
            growth_rate_24mo=company.growth_rate_24mo,
            executive_title=company.executive_title,
            executive_first_name=company.executive_first_name,
            executive_last_name=company.executive_last_name,
            executive_name=company.executive_name,
            executive_formatted=company.executive_formatted,
            summary=company.summary,
            summary_quality=company.summary_quality,
            summary_retries=company.summary_retries,
            summary_error=company.summary_error,
            logo_source=company.logo_source,
            logo=logo_data(company.logo),
        )


class QualityStatsResponse(BaseModel):
    """
    API response model for batch summary quality.
    """

    total: int = Field(..., ge=0)
    excellent: int = Field(..., ge=0)
    good: int = Field(..., ge=0)
    needs_review: int = Field(..., ge=0)
    fallbacks: int = Field(..., ge=0)
    average_retries: float = Field(..., ge=0)
    logos_by_source: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_stats(cls, stats: QualityStats) -> "QualityStatsResponse":
        return cls(
            total=stats.total,
            excellent=stats.excellent,
            good=stats.good,
            needs_review=stats.needs_review,
            fallbacks=stats.fallbacks,
            average_retries=stats.average_retries,
            logos_by_source=dict(stats.logos_by_source),
        )


class TargetListProcessResponse(BaseModel):
    """
    API response model for a processed target list.
    """

    validation: UploadValidationResponse
    companies: list[EnrichedCompanyResponse] = Field(default_factory=list)
    stats: QualityStatsResponse


class HealthResponse(BaseModel):
    """
    API response model for the health endpoint.
    """

    status: Literal["ok"] = "ok"
    llm_adapter: str
    logo_fetch_enabled: bool
