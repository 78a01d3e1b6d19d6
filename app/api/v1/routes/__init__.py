"""
API v1 routes package.
Usage ledger routes.
"""

from .health_routes import router as health_router
from .session_routes import router as session_router
from .stats_routes import router as stats_router
from .apps_routes import router as apps_router

__all__ = [
    "health_router",
    "session_router",
    "stats_router",
    "apps_router"
]
