"""
app/schemas package marker.
"""

from app.schemas.target_list import (
    EnrichedCompanyResponse,
    HealthResponse,
    QualityStatsResponse,
    TargetListProcessResponse,
    UploadValidationResponse,
)

__all__ = [
    "EnrichedCompanyResponse",
    "HealthResponse",
    "QualityStatsResponse",
    "TargetListProcessResponse",
    "UploadValidationResponse",
]
