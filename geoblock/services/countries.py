"""
Country metadata via REST Countries (v3.1).

GET {base}/v3.1/alpha/{code} returns a one-element array for a known code
and 404 for an unknown one.
"""
import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from geoblock.services.errors import UpstreamError
from geoblock.utils.country_codes import is_valid_country_code

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://restcountries.com/"
TIMEOUT = 30.0


class CountryInfo(BaseModel):
    country_code: str
    common_name: str = ""
    official_name: str = ""
    flag: str = ""
    capital: list[str] = Field(default_factory=list)
    region: str = ""
    subregion: str = ""
    population: int = 0

    @classmethod
    def from_api(cls, payload: dict) -> "CountryInfo":
        name = payload.get("name") or {}
        return cls(
            country_code=(payload.get("cca2") or "").upper(),
            common_name=name.get("common") or "",
            official_name=name.get("official") or "",
            flag=payload.get("flag") or "",
            capital=list(payload.get("capital") or []),
            region=payload.get("region") or "",
            subregion=payload.get("subregion") or "",
            population=int(payload.get("population") or 0),
        )


class CountryClient:
    """Async client for REST Countries. Owns its httpx.AsyncClient unless one is injected."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"User-Agent": "geoblock-api-client", "Accept": "application/json"},
        )

    async def fetch(self, country_code: str) -> Optional[CountryInfo]:
        """
        Look up a country by alpha-2 code.

        Returns None for codes that are malformed or unknown to the API.
        Raises UpstreamError when the API fails.
        """
        if not is_valid_country_code(country_code):
            logger.warning("Invalid country code provided: %s", country_code)
            return None

        code = country_code.strip().upper()
        logger.info("Fetching country information", extra={"country_code": code})

        try:
            response = await self._client.get(f"v3.1/alpha/{code}")
        except httpx.HTTPError as e:
            logger.error("REST Countries request failed for %s: %s", code, str(e))
            raise UpstreamError(f"REST Countries request failed: {e}") from e

        if response.status_code == 404:
            logger.warning("No country information found", extra={"country_code": code})
            return None
        if response.is_error:
            logger.error(
                "REST Countries API returned error: %d - %s",
                response.status_code, response.text[:200],
            )
            raise UpstreamError(f"REST Countries API returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError("REST Countries API returned invalid JSON") from e

        # The API answers with an array holding a single country
        if isinstance(payload, dict):
            payload = [payload]
        if not payload:
            logger.warning("No country information found", extra={"country_code": code})
            return None
        return CountryInfo.from_api(payload[0])

    async def aclose(self) -> None:
        await self._client.aclose()
