from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .netrange import derive_network
from .org_cache import CacheRecord, OrgCache
from .registration import LookupResult, RegistrationResolver

logger = logging.getLogger(__name__)

UNKNOWN_ORGANIZATION = "Unknown organization"


@dataclass(frozen=True)
class Verdict:
    blocked: bool
    organization: str

    @classmethod
    def from_record(cls, record: CacheRecord) -> "Verdict":
        return cls(blocked=record.blocked, organization=record.organization)


def cache_key_for(peer_ip: str, result: Optional[LookupResult]) -> str:
    """CIDR of the registered IPv4 range when derivable, else the bare IP."""
    if result is None or result.ip_version != "v4":
        return peer_ip
    if not result.start_address or not result.end_address:
        return peer_ip
    network = derive_network(result.start_address, result.end_address)
    if network is None:
        return peer_ip
    return str(network)


def match_blocked(
    names: Sequence[str], patterns: Sequence[str]
) -> Optional[str]:
    """Return the first blocked pattern contained in any of ``names``.

    Names are checked in order; for each name every pattern is tried in
    order. Matching is a case-sensitive substring test.
    """
    for name in names:
        for pattern in patterns:
            if pattern in name:
                return pattern
    return None


@dataclass
class DecisionEngine:
    """Decides whether a peer IP belongs to a blocked organization.

    Safe to share between connection threads: the only shared state is
    the cache, and the RDAP lookup runs without holding any lock.
    """

    blocked_organizations: Sequence[str]
    resolver: RegistrationResolver = field(default_factory=RegistrationResolver)
    cache: OrgCache = field(default_factory=OrgCache)
    lookup_timeout: Optional[float] = None

    def decide(self, peer_ip: str, timeout: Optional[float] = None) -> Verdict:
        if timeout is None:
            timeout = self.lookup_timeout

        logger.debug("Finding organization for %s", peer_ip)
        result = self.resolver.query_ip(peer_ip, timeout)

        if result is None:
            # fail open: a broken registry never blocks anyone
            self.cache.set(peer_ip, UNKNOWN_ORGANIZATION, False)
            return Verdict(blocked=False, organization=UNKNOWN_ORGANIZATION)

        key = cache_key_for(peer_ip, result)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Organization cache hit for %s (%s)", peer_ip, key)
            return Verdict.from_record(cached)

        pattern = match_blocked(result.names, self.blocked_organizations)
        if pattern is not None:
            record = self.cache.set(key, pattern, True)
        else:
            record = self.cache.set(key, ", ".join(result.names), False)
        return Verdict.from_record(record)
