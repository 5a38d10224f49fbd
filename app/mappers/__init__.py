"""
app/mappers package marker.
"""

from app.mappers.company_mapper import (
    build_enriched_company,
    build_prompt_data,
    extract_domain,
    format_revenue,
    logo_lookup_key,
)

__all__ = [
    "build_enriched_company",
    "build_prompt_data",
    "extract_domain",
    "format_revenue",
    "logo_lookup_key",
]
