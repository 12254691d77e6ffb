"""API routers for feature modules."""

from .display import router as display_router
from .realtime import router as realtime_router
from .screens import router as screens_router

__all__ = [
    "display_router",
    "realtime_router",
    "screens_router",
]
