"""
Blocking service — orchestrates the registry, the attempt log and the
geolocation/country lookups behind the HTTP routes.

Outbound lookups always happen before a store is touched, so no store lock is
ever held across an await. Every block, unblock and check writes an audit
entry (blocks only when they succeed).
"""
import logging
from datetime import timedelta
from typing import Optional

from pydantic import BaseModel

from geoblock.models.attempt_log import AttemptAction, BlockedAttemptLog
from geoblock.models.blocked_country import BlockedCountry
from geoblock.services.attempt_log import AttemptLogStore
from geoblock.services.blocked_countries import (
    BlockedCountryRegistry,
    Clock,
    normalize_country_code,
    utc_now,
)
from geoblock.services.countries import CountryClient, CountryInfo
from geoblock.services.errors import (
    CountryAlreadyBlockedError,
    CountryNotBlockedError,
    CountryNotFoundError,
    InvalidAddressError,
    InvalidCountryCodeError,
    InvalidDurationError,
    InvalidIpAddressError,
    UpstreamError,
    UpstreamServiceError,
)
from geoblock.services.geolocation import GeoLocationClient, IpLocation
from geoblock.services.pagination import MAX_PAGE_SIZE, Page
from geoblock.utils.country_codes import is_valid_country_code
from geoblock.utils.logging import set_action

logger = logging.getLogger(__name__)

MAX_BLOCK_DURATION_MINUTES = 1440
MAX_RETENTION_DAYS = 3650


class RequestContext(BaseModel):
    """Caller details copied into audit entries."""
    ip_address: str = ""
    user_agent: str = ""
    request_path: str = ""


class BlockCheckResult(BaseModel):
    is_blocked: bool
    country_code: str
    country_name: str
    ip_address: str


class BlockingService:
    def __init__(
        self,
        registry: BlockedCountryRegistry,
        attempts: AttemptLogStore,
        geolocation: GeoLocationClient,
        countries: CountryClient,
        clock: Clock = utc_now,
        enrich_country_names: bool = True,
        max_duration_minutes: int = MAX_BLOCK_DURATION_MINUTES,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.registry = registry
        self.attempts = attempts
        self.geolocation = geolocation
        self.countries = countries
        self._clock = clock
        self.enrich_country_names = enrich_country_names
        self.max_duration_minutes = max_duration_minutes
        self.max_page_size = max_page_size

    # === BLOCKS ===

    async def block_country(
        self,
        country_code: str,
        context: RequestContext,
        is_temporary: bool = False,
        duration_minutes: Optional[int] = None,
    ) -> BlockedCountry:
        """
        Block a country permanently, or for duration_minutes when is_temporary.

        Raises InvalidCountryCodeError, InvalidDurationError,
        UpstreamServiceError (name lookup failed, nothing is blocked) or
        CountryAlreadyBlockedError.
        """
        set_action("block")
        code = self._validate_code(country_code)
        if is_temporary:
            self._validate_duration(duration_minutes)

        country_name = await self._lookup_country_name(code)

        now = self._clock()
        if is_temporary:
            country = BlockedCountry.temporary(
                code, now, duration_minutes,
                country_name=country_name, blocked_by=context.ip_address or None,
            )
        else:
            country = BlockedCountry.permanent(
                code, now, country_name=country_name, blocked_by=context.ip_address or None,
            )

        if not self.registry.add(country):
            logger.info("Country already blocked: %s", code, extra={"country_code": code})
            raise CountryAlreadyBlockedError(f"Country {code} is already blocked")

        self._record(context, "block", code, country_name or "", blocked=True)
        logger.info(
            "Blocked country %s (%s)",
            code, f"until {country.expires_at.isoformat()}" if is_temporary else "permanent",
            extra={"country_code": code, "action": "block"},
        )
        return country

    async def temporarily_block_country(
        self,
        country_code: str,
        duration_minutes: Optional[int],
        context: RequestContext,
    ) -> BlockedCountry:
        if duration_minutes is None:
            raise InvalidDurationError("Duration is required for temporary blocks")
        return await self.block_country(
            country_code, context, is_temporary=True, duration_minutes=duration_minutes,
        )

    def unblock_country(self, country_code: str, context: RequestContext) -> BlockedCountry:
        """Remove a block. The attempt is logged whether or not a block existed."""
        set_action("unblock")
        code = self._validate_code(country_code)

        removed = self.registry.pop(code)
        country_name = removed.country_name if removed and removed.country_name else ""

        self._record(context, "unblock", code, country_name, blocked=False)

        if removed is None:
            logger.info("Unblock requested for unblocked country %s", code, extra={"country_code": code})
            raise CountryNotBlockedError(f"Country {code} is not blocked")

        logger.info("Unblocked country %s", code, extra={"country_code": code, "action": "unblock"})
        return removed

    def get_blocked(self, country_code: str) -> Optional[BlockedCountry]:
        return self.registry.get(normalize_country_code(country_code))

    def list_blocked(
        self,
        search_term: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page[BlockedCountry]:
        return self.registry.list_page(search_term, page, page_size, self.max_page_size)

    # === LOOKUPS ===

    async def validate_country(self, country_code: str) -> CountryInfo:
        code = self._validate_code(country_code)
        try:
            info = await self.countries.fetch(code)
        except UpstreamError as e:
            raise UpstreamServiceError(f"Country lookup failed: {e}") from e
        if info is None:
            raise CountryNotFoundError(f"Country {code} not found")
        return info

    async def lookup_ip(self, ip_address: str) -> IpLocation:
        try:
            return await self.geolocation.resolve(ip_address)
        except InvalidAddressError as e:
            raise InvalidIpAddressError(str(e)) from e
        except UpstreamError as e:
            raise UpstreamServiceError(f"Geolocation lookup failed: {e}") from e

    async def resolve_public_ip(self) -> str:
        try:
            return await self.geolocation.get_public_ip()
        except UpstreamError as e:
            raise UpstreamServiceError(f"Could not determine public IP: {e}") from e

    async def check_block(self, ip_address: str, context: RequestContext) -> BlockCheckResult:
        """Resolve an IP to its country and report whether that country is blocked. Always logged."""
        set_action("check")
        location = await self.lookup_ip(ip_address)
        is_blocked = self.registry.is_blocked(location.country_code)

        self._record(
            context.model_copy(update={"ip_address": location.ip}),
            "check", location.country_code, location.country_name, blocked=is_blocked,
        )
        logger.info(
            "Block check for %s -> %s blocked=%s", location.ip, location.country_code, is_blocked,
            extra={"ip_address": location.ip, "country_code": location.country_code, "action": "check"},
        )
        return BlockCheckResult(
            is_blocked=is_blocked,
            country_code=location.country_code,
            country_name=location.country_name,
            ip_address=location.ip,
        )

    # === AUDIT LOG ===

    def list_attempts(
        self,
        search_term: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page[BlockedAttemptLog]:
        return self.attempts.list_page(search_term, page, page_size, self.max_page_size)

    def purge_attempts(self, older_than_days: int) -> int:
        if not 0 <= older_than_days <= MAX_RETENTION_DAYS:
            raise InvalidDurationError(
                f"olderThanDays must be between 0 and {MAX_RETENTION_DAYS}"
            )
        cutoff = self._clock() - timedelta(days=older_than_days)
        return self.attempts.evict_older_than(cutoff)

    # === HELPERS ===

    def _validate_code(self, country_code: str) -> str:
        code = normalize_country_code(country_code)
        if not code:
            raise InvalidCountryCodeError("Country code is required")
        if not is_valid_country_code(code):
            raise InvalidCountryCodeError(f"Invalid country code: {country_code}")
        return code

    def _validate_duration(self, duration_minutes: Optional[int]) -> None:
        if duration_minutes is None:
            raise InvalidDurationError("Duration is required for temporary blocks")
        if not 1 <= duration_minutes <= self.max_duration_minutes:
            raise InvalidDurationError(
                f"Duration must be between 1 and {self.max_duration_minutes} minutes"
            )

    async def _lookup_country_name(self, code: str) -> Optional[str]:
        if not self.enrich_country_names:
            return None
        try:
            info = await self.countries.fetch(code)
        except UpstreamError as e:
            logger.error("Country lookup failed for %s: %s", code, str(e), extra={"country_code": code})
            raise UpstreamServiceError(f"Country lookup failed: {e}") from e
        if info is None:
            raise InvalidCountryCodeError(f"Unknown country code: {code}")
        return info.common_name or None

    def _record(
        self,
        context: RequestContext,
        action: AttemptAction,
        country_code: str,
        country_name: str,
        blocked: bool,
    ) -> None:
        self.attempts.append(BlockedAttemptLog(
            ip_address=context.ip_address,
            country_code=country_code,
            country_name=country_name,
            user_agent=context.user_agent,
            request_path=context.request_path,
            timestamp=self._clock(),
            blocked_status=blocked,
            action=action,
        ))
