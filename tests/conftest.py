"""
Test configuration and fixtures.
Stores are real (in-memory). Geolocation and REST Countries are mocked.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from geoblock.config import Settings
from geoblock.services.attempt_log import AttemptLogStore
from geoblock.services.blocked_countries import BlockedCountryRegistry
from geoblock.services.blocking import BlockingService, RequestContext
from geoblock.services.countries import CountryInfo
from geoblock.services.geolocation import IpLocation

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

COUNTRY_NAMES = {
    "US": "United States",
    "FR": "France",
    "DE": "Germany",
    "EG": "Egypt",
    "GB": "United Kingdom",
}

IP_COUNTRIES = {
    "8.8.8.8": ("US", "United States"),
    "81.2.69.160": ("GB", "United Kingdom"),
    "88.198.50.1": ("DE", "Germany"),
    "90.84.0.1": ("FR", "France"),
}


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_geolocation_mock() -> MagicMock:
    geo = MagicMock()

    async def resolve(ip):
        from geoblock.services.geolocation import is_valid_ip
        from geoblock.services.errors import InvalidAddressError

        if not is_valid_ip(ip):
            raise InvalidAddressError(f"Invalid IP address format: {ip!r}")
        code, name = IP_COUNTRIES.get(ip, ("EG", "Egypt"))
        return IpLocation(ip=ip, country_code=code, country_name=name)

    geo.resolve = AsyncMock(side_effect=resolve)
    geo.get_public_ip = AsyncMock(return_value="8.8.8.8")
    geo.aclose = AsyncMock()
    return geo


def make_countries_mock() -> MagicMock:
    countries = MagicMock()

    async def fetch(code):
        code = code.upper()
        if code not in COUNTRY_NAMES:
            return None
        return CountryInfo(
            country_code=code,
            common_name=COUNTRY_NAMES[code],
            official_name=f"Official {COUNTRY_NAMES[code]}",
        )

    countries.fetch = AsyncMock(side_effect=fetch)
    countries.aclose = AsyncMock()
    return countries


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return BlockedCountryRegistry(clock=clock)


@pytest.fixture
def attempts():
    return AttemptLogStore()


@pytest.fixture
def geolocation():
    return make_geolocation_mock()


@pytest.fixture
def countries():
    return make_countries_mock()


@pytest.fixture
def service(registry, attempts, geolocation, countries, clock):
    return BlockingService(
        registry=registry,
        attempts=attempts,
        geolocation=geolocation,
        countries=countries,
        clock=clock,
    )


@pytest.fixture
def context():
    return RequestContext(ip_address="203.0.113.7", user_agent="pytest", request_path="/test")


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        app_env="test",
        log_level="WARNING",
        ipgeolocation_api_key="test-key",
        sweep_interval_seconds=300,
    )


@pytest.fixture
def app(test_settings, clock, geolocation, countries):
    from geoblock.main import create_app

    return create_app(
        settings=test_settings,
        clock=clock,
        geolocation=geolocation,
        countries=countries,
    )


@pytest.fixture
def client(app):
    """TestClient without lifespan - the sweeper is not started."""
    return TestClient(app)
