"""
app/domain package marker.
"""

from app.domain.target_list import (
    EnrichedCompany,
    LogoRequest,
    LogoResult,
    NoLogo,
    ParsedTable,
    PrimaryLogo,
    QualityStats,
    ReportConfig,
    SecondaryLogo,
    SynthesizedLogo,
    UploadValidationResult,
)

__all__ = [
    "EnrichedCompany",
    "LogoRequest",
    "LogoResult",
    "NoLogo",
    "ParsedTable",
    "PrimaryLogo",
    "QualityStats",
    "ReportConfig",
    "SecondaryLogo",
    "SynthesizedLogo",
    "UploadValidationResult",
]
