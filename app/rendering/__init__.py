"""
app/rendering package marker.
"""

from app.rendering.common import RenderError, build_output_filename

__all__ = [
    "RenderError",
    "build_output_filename",
]
