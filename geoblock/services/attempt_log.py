"""
Attempt log store — in-memory audit trail of checks, blocks and unblocks.
Listing is always newest-first.
"""
import logging
import threading
import uuid
from datetime import datetime
from typing import Optional

from geoblock.models.attempt_log import BlockedAttemptLog
from geoblock.services.pagination import MAX_PAGE_SIZE, Page, paginate

logger = logging.getLogger(__name__)


class AttemptLogStore:
    """Thread-safe append-only store of BlockedAttemptLog entries keyed by id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._attempts: dict[uuid.UUID, BlockedAttemptLog] = {}

    def append(self, record: BlockedAttemptLog) -> None:
        with self._lock:
            self._attempts[record.id] = record

    def list_page(
        self,
        search_term: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> Page[BlockedAttemptLog]:
        """Page over a snapshot sorted by timestamp, most recent first."""
        # Reversed insertion order so entries sharing a timestamp still list latest first
        with self._lock:
            snapshot = list(reversed(self._attempts.values()))
        return paginate(
            snapshot,
            page=page,
            page_size=page_size,
            max_page_size=max_page_size,
            search_term=search_term,
            search_fields=lambda a: (a.country_code, a.country_name, a.ip_address),
            sort_key=lambda a: a.timestamp,
            descending=True,
        )

    def evict_older_than(self, cutoff: datetime) -> int:
        """Delete every entry with timestamp < cutoff. Returns the number removed."""
        with self._lock:
            stale = [key for key, a in self._attempts.items() if a.timestamp < cutoff]
            for key in stale:
                del self._attempts[key]
        logger.info("Evicted %d attempt log entries older than %s", len(stale), cutoff.isoformat())
        return len(stale)

    def count(self) -> int:
        with self._lock:
            return len(self._attempts)
