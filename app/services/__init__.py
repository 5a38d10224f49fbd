"""
app/services package marker.
"""

from app.services.enrichment_service import (
    EnrichmentResult,
    EnrichmentService,
    get_enrichment_service,
    summarize_quality,
)
from app.services.logo_service import LogoService

__all__ = [
    "EnrichmentResult",
    "EnrichmentService",
    "get_enrichment_service",
    "summarize_quality",
    "LogoService",
]
