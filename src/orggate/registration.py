from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ipwhois import IPWhois  # type: ignore[import-untyped]
from ipwhois.exceptions import BaseIpwhoisException  # type: ignore[import-untyped]

from .errors import LookupFailed

logger = logging.getLogger(__name__)

# (ip, timeout) -> raw RDAP result dict as returned by IPWhois.lookup_rdap
RdapLookup = Callable[[str, Optional[float]], Dict[str, Any]]


@dataclass(frozen=True)
class LookupResult:
    """The parts of an RDAP answer the decision engine uses."""

    ip_version: Optional[str]  # "v4" / "v6"
    start_address: Optional[str]
    end_address: Optional[str]
    # vCard "fn" of each top-level entity, in response order
    names: tuple[str, ...] = ()


def rdap_lookup(ip: str, timeout: Optional[float] = None) -> Dict[str, Any]:
    """Query RDAP for an IP through ipwhois. No retries."""
    if timeout is None:
        obj = IPWhois(ip)
    else:
        obj = IPWhois(ip, timeout=timeout)
    return obj.lookup_rdap(retry_count=0, asn_methods=["whois"])


def extract_names(result: Dict[str, Any]) -> List[str]:
    """Collect entity display names from an ipwhois RDAP result.

    ipwhois lists entity handles under "entities" and puts the parsed
    objects under "objects"; the vCard "fn" ends up as contact["name"].
    Entities without a contact (or without a name) are skipped.
    """
    names: List[str] = []
    objects = result.get("objects") or {}
    for handle in result.get("entities") or []:
        obj = objects.get(handle) or {}
        contact = obj.get("contact")
        if not contact:
            continue
        name = contact.get("name")
        if isinstance(name, str):
            names.append(name)
    return names


def parse_result(result: Dict[str, Any]) -> LookupResult:
    """Turn a raw RDAP result into a LookupResult. Raises LookupFailed."""
    try:
        net = result.get("network") or {}
        return LookupResult(
            ip_version=net.get("ip_version"),
            start_address=net.get("start_address"),
            end_address=net.get("end_address"),
            names=tuple(extract_names(result)),
        )
    except (AttributeError, TypeError) as e:
        raise LookupFailed(f"malformed RDAP result: {e}") from e


@dataclass
class RegistrationResolver:
    """Resolves an IP to its registration data (RDAP).

    The actual network call is ``lookup``; tests swap it for a stub.
    """

    lookup: RdapLookup = field(default=rdap_lookup)

    def fetch(self, ip: str, timeout: Optional[float] = None) -> LookupResult:
        """Look up ``ip``. Raises LookupFailed on any failure."""
        try:
            raw = self.lookup(ip, timeout)
        except BaseIpwhoisException as e:
            raise LookupFailed(f"RDAP lookup for {ip} failed: {e}") from e
        except (ValueError, OSError, KeyError, IndexError, TypeError) as e:
            # invalid address, network failure, or a payload ipwhois choked on
            raise LookupFailed(f"RDAP lookup for {ip} failed: {e}") from e
        if not isinstance(raw, dict):
            raise LookupFailed(f"RDAP lookup for {ip} returned {type(raw).__name__}")
        return parse_result(raw)

    def query_ip(self, ip: str, timeout: Optional[float] = None) -> Optional[LookupResult]:
        """Return registration data for ``ip``, or None if the lookup failed.

        Never raises for lookup problems. A result with no names means the
        registry answered but listed no organization.
        """
        try:
            return self.fetch(ip, timeout)
        except LookupFailed as e:
            logger.warning("%s", e)
            return None
