"""
app/validators package marker.
"""

from app.validators.upload_validator import UploadValidator

__all__ = [
    "UploadValidator",
]
