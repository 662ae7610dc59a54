"""
IP geolocation via ipgeolocation.io (v2 API).

GET {base}/v2/ipgeo?apiKey=...&ip=...  -> location of an address
GET {base}/v2/getip                    -> public IP of this service

Never called while a store lock is held; each call may suspend freely.
"""
import ipaddress
import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from geoblock.services.errors import InvalidAddressError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.ipgeolocation.io/"
TIMEOUT = 30.0


class IpLocation(BaseModel):
    """Flattened subset of the ipgeolocation.io response."""
    ip: str
    country_code: str = ""
    country_code3: str = ""
    country_name: str = ""
    country_name_official: str = ""
    country_capital: str = ""
    continent_code: str = ""
    continent_name: str = ""
    state_prov: str = ""
    city: str = ""
    zipcode: str = ""
    latitude: str = ""
    longitude: str = ""
    is_eu: bool = False
    country_flag: str = ""
    currency_code: str = ""

    @classmethod
    def from_api(cls, payload: dict, requested_ip: str) -> "IpLocation":
        location = payload.get("location") or {}
        currency = payload.get("currency") or {}
        return cls(
            ip=payload.get("ip") or requested_ip,
            country_code=(location.get("country_code2") or "").upper(),
            country_code3=location.get("country_code3") or "",
            country_name=location.get("country_name") or "",
            country_name_official=location.get("country_name_official") or "",
            country_capital=location.get("country_capital") or "",
            continent_code=location.get("continent_code") or "",
            continent_name=location.get("continent_name") or "",
            state_prov=location.get("state_prov") or "",
            city=location.get("city") or "",
            zipcode=location.get("zipcode") or "",
            latitude=str(location.get("latitude") or ""),
            longitude=str(location.get("longitude") or ""),
            is_eu=bool(location.get("is_eu", False)),
            country_flag=location.get("country_flag") or "",
            currency_code=currency.get("code") or "",
        )


def is_valid_ip(ip_address: str) -> bool:
    try:
        ipaddress.ip_address((ip_address or "").strip())
        return True
    except ValueError:
        return False


class GeoLocationClient:
    """Async client for ipgeolocation.io. Owns its httpx.AsyncClient unless one is injected."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def resolve(self, ip_address: str) -> IpLocation:
        """
        Resolve an IP address to its country.

        Raises InvalidAddressError for malformed input (before any request)
        and UpstreamError for a missing API key or any API/transport failure.
        """
        ip_address = (ip_address or "").strip()
        if not is_valid_ip(ip_address):
            raise InvalidAddressError(f"Invalid IP address format: {ip_address!r}")
        if not self.api_key:
            raise UpstreamError("IPGeolocation API key is not configured")

        logger.info("Looking up IP geolocation", extra={"ip_address": ip_address})
        payload = await self._get_json("v2/ipgeo", params={"apiKey": self.api_key, "ip": ip_address})
        location = IpLocation.from_api(payload, ip_address)
        logger.debug(
            "Resolved %s to %s (%s)", ip_address, location.country_code, location.country_name,
        )
        return location

    async def get_public_ip(self) -> str:
        """Public IP of this service, used when the caller sits on a private network."""
        payload = await self._get_json("v2/getip")
        ip = payload.get("ip")
        if not ip:
            raise UpstreamError("IP Geolocation API returned no ip for getip")
        return ip

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: Optional[dict] = None) -> dict:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.error("IP Geolocation API request failed: %s", str(e))
            raise UpstreamError(f"IP Geolocation API request failed: {e}") from e

        if response.is_error:
            logger.error(
                "IP Geolocation API returned error: %d - %s",
                response.status_code, response.text[:200],
            )
            raise UpstreamError(f"IP Geolocation API returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError("IP Geolocation API returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise UpstreamError("IP Geolocation API returned an unexpected payload")
        return payload
