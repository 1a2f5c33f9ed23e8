"""
Admin IP Whitelist Middleware
Restricts /admin/* routes (counter administration) to allowed IPs.
Unknown IPs get 404 Not Found so the admin surface is not revealed.

Supports IPv4, IPv6 and CIDR notation (e.g. 10.0.0.0/8).
"""

import ipaddress
import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from typing import List, Optional, Union
from labloop.config import settings
from labloop.utils.ip_utils import get_client_ip

logger = logging.getLogger(__name__)

AllowedEntry = Union[
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
]


def parse_allowed_ips(ips_str: str) -> List[AllowedEntry]:
    """
    Parse comma-separated IPs/CIDRs.

    Invalid entries are logged and skipped; an empty result falls back to
    localhost only.
    """
    allowed: List[AllowedEntry] = []

    for entry in ips_str.split(","):
        entry = entry.strip()
        if not entry:
            continue

        try:
            if "/" in entry:
                allowed.append(ipaddress.ip_network(entry, strict=False))
            else:
                allowed.append(ipaddress.ip_address(entry))
        except ValueError as e:
            logger.warning(f"Invalid IP/CIDR in ADMIN_ALLOWED_IPS: '{entry}' - {e}")

    if not allowed:
        logger.warning("No valid IPs in ADMIN_ALLOWED_IPS, defaulting to localhost only")
        allowed = [
            ipaddress.ip_address("127.0.0.1"),
            ipaddress.ip_address("::1"),
        ]

    return allowed


def is_ip_allowed(client_ip: str, allowed_ips: List[AllowedEntry]) -> bool:
    try:
        ip = ipaddress.ip_address(client_ip)
    except ValueError:
        logger.warning(f"Invalid client IP format: '{client_ip}'")
        return False

    for allowed in allowed_ips:
        if isinstance(allowed, (ipaddress.IPv4Network, ipaddress.IPv6Network)):
            if ip in allowed:
                return True
        elif ip == allowed:
            return True

    return False


class AdminWhitelistMiddleware:
    """
    Middleware restricting /admin/* routes to whitelisted IPs.

    IPs come from ADMIN_ALLOWED_IPS (default "127.0.0.1,::1").
    X-Real-IP is only honoured when the direct peer is a trusted proxy.
    """

    def __init__(self, app, allowed_ips: Optional[str] = None):
        self.app = app
        self.allowed_ips = parse_allowed_ips(
            allowed_ips if allowed_ips is not None else settings.ADMIN_ALLOWED_IPS
        )
        logger.info(f"Admin whitelist configured with {len(self.allowed_ips)} IP/range(s)")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")

        if path.startswith("/admin"):
            request = Request(scope, receive)
            client_ip = get_client_ip(request)

            if not is_ip_allowed(client_ip, self.allowed_ips):
                logger.info(f"Blocked admin access attempt from IP: {client_ip}")
                response = JSONResponse(
                    content={"detail": "Not Found"},
                    status_code=404,
                )
                await response(scope, receive, send)
                return

        await self.app(scope, receive, send)
