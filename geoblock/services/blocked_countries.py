"""
Blocked country registry — in-memory map of country code -> BlockedCountry.

Expiry is hybrid:
- lazy: get()/is_blocked()/add()/pop()/remove() drop an expired entry they touch
- active: sweep_expired() drops every expired entry (run by the expiry sweeper)

list_page() does not evaluate expiry. An expired entry stays listed until the
next sweep or the next lazy read of that code.

Every method takes the registry lock for a bounded in-memory operation and
never awaits, so the registry can be shared by request handlers on the event
loop, worker threads and the sweeper task.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from geoblock.models.blocked_country import BlockedCountry
from geoblock.services.pagination import MAX_PAGE_SIZE, Page, paginate

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_country_code(country_code: str) -> str:
    return (country_code or "").strip().upper()


class BlockedCountryRegistry:
    """Thread-safe registry of blocked countries keyed by ISO alpha-2 code."""

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._lock = threading.Lock()
        self._countries: dict[str, BlockedCountry] = {}

    def add(self, country: BlockedCountry) -> bool:
        """
        Insert a block unless a live one already exists for the code.

        An expired entry that has not been swept yet does not count as live
        and is replaced.
        """
        code = normalize_country_code(country.country_code)
        now = self._clock()
        with self._lock:
            existing = self._countries.get(code)
            if existing is not None and not existing.is_expired(now):
                return False
            if existing is not None:
                logger.debug("Replacing expired block for %s", code, extra={"country_code": code})
            self._countries[code] = country
            return True

    def pop(self, country_code: str) -> Optional[BlockedCountry]:
        """Remove and return the live block for a code in one locked step.

        An expired entry is dropped as well, but None is returned for it.
        """
        code = normalize_country_code(country_code)
        now = self._clock()
        with self._lock:
            existing = self._countries.pop(code, None)
        if existing is None or existing.is_expired(now):
            return None
        return existing

    def remove(self, country_code: str) -> bool:
        """Remove the live block for a code. False if none (or only an expired one) exists."""
        return self.pop(country_code) is not None

    def get(self, country_code: str) -> Optional[BlockedCountry]:
        """Return the live block for a code, evicting it first if it has expired."""
        code = normalize_country_code(country_code)
        now = self._clock()
        with self._lock:
            existing = self._countries.get(code)
            if existing is None:
                return None
            if existing.is_expired(now):
                del self._countries[code]
                logger.info(
                    "Temporary block for %s expired (lazy eviction)", code,
                    extra={"country_code": code},
                )
                return None
            return existing

    def is_blocked(self, country_code: str) -> bool:
        return self.get(country_code) is not None

    def list_page(
        self,
        search_term: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> Page[BlockedCountry]:
        """Page over a snapshot of stored blocks in insertion order."""
        with self._lock:
            snapshot = list(self._countries.values())
        return paginate(
            snapshot,
            page=page,
            page_size=page_size,
            max_page_size=max_page_size,
            search_term=search_term,
            search_fields=lambda c: (c.country_code, c.country_name),
        )

    def sweep_expired(self) -> int:
        """Remove every expired temporary block. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [code for code, c in self._countries.items() if c.is_expired(now)]
            for code in expired:
                del self._countries[code]
        if expired:
            logger.info("Swept %d expired temporary blocks: %s", len(expired), ", ".join(expired))
        return len(expired)

    def count(self) -> int:
        with self._lock:
            return len(self._countries)
