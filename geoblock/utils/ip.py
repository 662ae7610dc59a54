"""
Client IP helpers — extraction from proxy headers and public/private classification.
"""
import ipaddress
from typing import Mapping, Optional


def get_client_ip(headers: Mapping[str, str], peer_host: Optional[str]) -> Optional[str]:
    """
    First X-Forwarded-For entry (the original client behind proxies/ngrok),
    falling back to the socket peer address.
    """
    forwarded = headers.get("x-forwarded-for") or ""
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    return peer_host or None


def is_public_ip(ip: Optional[str]) -> bool:
    """False for private, loopback, link-local, multicast, reserved or unparseable addresses."""
    if not ip:
        return False
    try:
        addr = ipaddress.ip_address(ip.strip())
    except ValueError:
        return False
    # IPv4-mapped IPv6 (::ffff:a.b.c.d) is classified by its IPv4 part
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        addr = addr.ipv4_mapped
    return not (
        addr.is_private
        or addr.is_loopback
        or addr.is_link_local
        or addr.is_multicast
        or addr.is_reserved
        or addr.is_unspecified
    )
