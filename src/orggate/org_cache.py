from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, Optional


@dataclass(frozen=True)
class CacheRecord:
    organization: str
    blocked: bool


@dataclass
class OrgCache:
    """Thread-safe mapping from cache key -> resolved organization record.

    Keys are either a CIDR network ("192.0.0.0/8") or a bare IP string.

    - First write for a key wins; later writes are ignored.
    - Writes are serialized by a lock; reads are not. A read is a single
      dict lookup returning an immutable record, so it never sees a
      half-written entry and never waits on a writer or other readers.
    - Entries live for the life of the process (no eviction, no expiry).
    """

    _records: Dict[str, CacheRecord] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock, init=False, repr=False)

    def get(self, key: str) -> Optional[CacheRecord]:
        return self._records.get(key)

    def set(self, key: str, organization: str, blocked: bool) -> CacheRecord:
        """Store a record unless the key is already present.

        Returns the record that ends up cached, which is the existing one
        when another writer got there first.
        """
        record = CacheRecord(organization=organization, blocked=blocked)
        with self._lock:
            return self._records.setdefault(key, record)

    def __len__(self) -> int:
        return len(self._records)
