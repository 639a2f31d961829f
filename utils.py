"""
Shared utilities for Chain Doctor.
Provides the probe HTTP client, SSRF checks for user-supplied RPC URLs,
and display formatting for measurement results.
"""

import ipaddress
import math
import socket
import ssl
import urllib.parse
from typing import Optional, Tuple, Union

import httpx

import config


def get_ssl_context() -> Optional[ssl.SSLContext]:
    """
    Get SSL context with secure defaults.
    Only disables verification if INSECURE_SSL env var is explicitly set.

    Returns:
        SSLContext with verification off, or None for httpx defaults
    """
    if config.INSECURE_SSL:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return ctx
    return None


def make_client() -> httpx.AsyncClient:
    """Async HTTP client used by every probe."""
    ctx = get_ssl_context()
    return httpx.AsyncClient(
        verify=ctx if ctx is not None else True,
        timeout=config.PROBE_TIMEOUT_SECONDS,
        headers={"User-Agent": "Mozilla/5.0"},
    )


def is_private_ip(ip_obj: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    """Check if IP address is private/reserved."""
    return (
        ip_obj.is_private
        or ip_obj.is_loopback
        or ip_obj.is_link_local
        or ip_obj.is_reserved
        or ip_obj.is_multicast
        or ip_obj.is_unspecified
    )


def is_safe_url(url: str) -> Tuple[bool, Optional[str]]:
    """
    Validate an RPC URL before the server probes it.
    Blocks private IPs, localhost, and internal networks.

    Args:
        url: URL to validate

    Returns:
        Tuple of (is_safe, error_reason)
    """
    try:
        parsed = urllib.parse.urlparse(url)
    except ValueError as e:
        return False, f"invalid_url:{e}"

    if parsed.scheme not in ("http", "https"):
        return False, "invalid_scheme"

    try:
        host = parsed.hostname
        port = parsed.port
    except ValueError as e:
        return False, f"invalid_url:{e}"
    if not host:
        return False, "missing_host"

    host_lower = host.strip(".").lower()

    if (
        host_lower == "localhost"
        or host_lower.endswith(".localhost")
        or host_lower.endswith(".local")
        or host_lower in ("localhost.localdomain", "ip6-localhost", "ip6-loopback")
    ):
        return False, "localhost_blocked"

    try:
        ip_obj = ipaddress.ip_address(host_lower)
        if is_private_ip(ip_obj):
            return False, "private_ip_blocked"
        return True, None
    except ValueError:
        pass  # Not an IP, continue with DNS check

    # DNS resolution check (catches rebinding to internal hosts)
    port = port or (443 if parsed.scheme == "https" else 80)
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except socket.gaierror:
        return False, "dns_error"

    for info in infos:
        addr = info[4][0]
        try:
            ip_obj = ipaddress.ip_address(addr)
        except ValueError:
            continue
        if is_private_ip(ip_obj):
            return False, "private_ip_blocked"

    return True, None


def format_cups(value: Optional[float]) -> str:
    """Two decimals, or "-" when the measurement produced no result."""
    if value is None:
        return "-"
    return f"{value:.2f}"


def format_rps(value: Optional[float]) -> Union[int, str]:
    if value is None:
        return "-"
    # Half-up like the dashboard, not banker's rounding
    return math.floor(value + 0.5)
