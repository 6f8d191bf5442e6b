"""Rate limiting configuration for the notesync backend.

Uses trusted proxy configuration to prevent X-Forwarded-For spoofing.
Only trusts forwarded headers from known proxy IPs.
"""

import ipaddress
from collections.abc import Iterable
from typing import Optional

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import get_settings
from .logging_config import get_logger

logger = get_logger("notesync.rate_limit")

Network = ipaddress.IPv4Network | ipaddress.IPv6Network


def parse_trusted_cidrs(cidrs: Iterable[str]) -> list[Network]:
    """Parse proxy CIDRs, skipping (and logging) invalid entries."""
    networks = []
    for cidr in cidrs:
        try:
            networks.append(ipaddress.ip_network(cidr.strip(), strict=False))
        except ValueError:
            logger.warning(f"Ignoring invalid trusted proxy CIDR: {cidr!r}")
    return networks


_trusted_networks: Optional[list[Network]] = None


def _get_trusted_networks() -> list[Network]:
    global _trusted_networks
    if _trusted_networks is None:
        _trusted_networks = parse_trusted_cidrs(get_settings().trusted_proxy_cidrs)
    return _trusted_networks


def is_trusted_address(ip_str: str) -> bool:
    """True when ``ip_str`` parses and falls inside a trusted proxy network."""
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in network for network in _get_trusted_networks())


def forwarded_hops(request) -> list[str]:
    """X-Forwarded-For entries, nearest proxy last."""
    header = request.headers.get("x-forwarded-for") or ""
    return [hop.strip() for hop in header.split(",") if hop.strip()]


def get_client_ip(request) -> str:
    """Resolve the rate-limit key for a request.

    A peer outside the trusted networks is the client. Behind trusted
    proxies the forwarded chain is walked from the nearest hop outwards and
    the first untrusted address wins, so a client cannot pick its key by
    prepending entries to the header.
    """
    peer = get_remote_address(request)
    if not is_trusted_address(peer):
        return peer

    hops = forwarded_hops(request)
    for hop in reversed(hops):
        if not is_trusted_address(hop):
            return hop
    # Every hop is one of ours (internal traffic)
    return hops[0] if hops else peer


def sync_rate_limit() -> str:
    return get_settings().sync_rate_limit


def status_rate_limit() -> str:
    return get_settings().status_rate_limit


# Create limiter using client IP address as the key
limiter = Limiter(key_func=get_client_ip, enabled=get_settings().rate_limit_enabled)
