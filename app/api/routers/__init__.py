"""
app/api/routers package marker.
"""

from app.api.routers.site_scan_router import router as site_scan_router
from app.api.routers.tracking_batch_router import router as tracking_batch_router

__all__ = [
    "site_scan_router",
    "tracking_batch_router",
]
