"""
IP Address Utilities

Client IP extraction with proxy header validation to prevent IP spoofing.
"""

import ipaddress
from typing import List, Union
from fastapi import Request

TRUSTED_PROXIES: List[Union[ipaddress.IPv4Address, ipaddress.IPv6Address]] = [
    ipaddress.ip_address("127.0.0.1"),
    ipaddress.ip_address("::1"),
]


def is_trusted_proxy(client_ip: str) -> bool:
    """
    Check if a request came from a trusted proxy.

    Only localhost connections are trusted, as the reverse proxy runs on
    the same host.
    """
    try:
        ip = ipaddress.ip_address(client_ip)
        return ip in TRUSTED_PROXIES
    except ValueError:
        return False


def get_client_ip(request: Request) -> str:
    """
    Get the client IP with trusted proxy validation.

    Priority:
    1. If connection is from trusted proxy (localhost) → trust X-Real-IP
    2. Otherwise → use direct connection IP

    Args:
        request: FastAPI Request object

    Returns:
        Client IP address
    """
    direct_ip = request.client.host if request.client else "unknown"

    if is_trusted_proxy(direct_ip):
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    return direct_ip
