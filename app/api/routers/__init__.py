"""
app/api/routers package marker.
"""

from app.api.routers.target_list import router as target_list_router

__all__ = [
    "target_list_router",
]
