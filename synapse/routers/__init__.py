"""API routers package.

Each router handles a specific slice of the HTTP API; the real-time
room layer lives in the websocket package.
"""

from .analysis import router as analysis_router
from .auth import router as auth_router
from .dashboard import router as dashboard_router
from .roadmaps import router as roadmaps_router
from .rooms import router as rooms_router

__all__ = [
    "analysis_router",
    "auth_router",
    "dashboard_router",
    "roadmaps_router",
    "rooms_router",
]
