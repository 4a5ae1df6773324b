"""API routers package.

This package contains all FastAPI routers for the application.
Each router handles a specific domain of the API.
"""

from .media import router as media_router
from .notify import router as notify_router

__all__ = [
    "media_router",
    "notify_router",
]
