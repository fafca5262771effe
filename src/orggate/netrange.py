from __future__ import annotations

import ipaddress
from typing import Optional


def _ip2int(ip: str) -> int:
    """IPv4 string -> 32-bit integer. Raises ValueError."""
    return int(ipaddress.IPv4Address(ip))


def classful_prefix(ip: str) -> Optional[int]:
    """Return the historical class A/B/C prefix length for an IPv4 address.

    Class D (multicast) and E (reserved) have no default mask: None.
    """
    try:
        first_octet = ipaddress.IPv4Address(ip).packed[0]
    except ValueError:
        return None
    if first_octet < 128:
        return 8
    if first_octet < 192:
        return 16
    if first_octet < 224:
        return 24
    return None


def _parse_network(start: str, prefix: Optional[int]) -> Optional[ipaddress.IPv4Network]:
    if prefix is None:
        return None
    try:
        # host bits are masked off rather than rejected
        return ipaddress.IPv4Network(f"{start}/{prefix}", strict=False)
    except ValueError:
        return None


def derive_network(start: str, end: str) -> Optional[ipaddress.IPv4Network]:
    """Derive a stable covering network for a registry start/end pair.

    The prefix length is the number of bits set in ``end AND NOT start``.
    This isn't the tightest CIDR for the range, but it's deterministic,
    which is all a cache key needs. When it can't be computed, the
    classful mask of ``start`` is used instead. Returns None when neither
    yields a valid network.
    """
    try:
        prefix: Optional[int] = bin(_ip2int(end) & ~_ip2int(start) & 0xFFFFFFFF).count("1")
    except ValueError:
        prefix = None

    network = _parse_network(start, prefix)
    if network is None:
        network = _parse_network(start, classful_prefix(start))
    return network
