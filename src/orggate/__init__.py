"""Block inbound connections by the organization that registered the peer's IP."""

from .decision import DecisionEngine, Verdict
from .org_cache import CacheRecord, OrgCache
from .registration import LookupResult, RegistrationResolver

__all__ = [
    "CacheRecord",
    "DecisionEngine",
    "LookupResult",
    "OrgCache",
    "RegistrationResolver",
    "Verdict",
]

__version__ = "0.1.0"
