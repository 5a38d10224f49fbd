"""
app/connectors package marker.
"""

from app.connectors.logo_sources import (
    BaseLogoSource,
    LogoSourceError,
    PrimaryLogoSource,
    SecondaryLogoSource,
)

__all__ = [
    "BaseLogoSource",
    "LogoSourceError",
    "PrimaryLogoSource",
    "SecondaryLogoSource",
]
