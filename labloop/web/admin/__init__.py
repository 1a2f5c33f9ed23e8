"""
Admin routes package.

Routes here sit behind AdminWhitelistMiddleware (/admin prefix).
"""

from labloop.web.admin.counter_routes import router as counter_router

__all__ = [
    "counter_router",
]
