from labloop.middleware.admin_whitelist import AdminWhitelistMiddleware

__all__ = [
    "AdminWhitelistMiddleware",
]
