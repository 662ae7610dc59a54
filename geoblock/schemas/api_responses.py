"""
API request/response schemas. JSON uses camelCase; Python code uses snake_case.
"""
import uuid
from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BlockCountryRequest(ApiModel):
    country_code: str = ""
    is_temporary: bool = False
    duration_minutes: Optional[int] = None


class TemporalBlockRequest(ApiModel):
    country_code: str = ""
    duration_minutes: Optional[int] = Field(default=None, description="1-1440 minutes")


class BlockedCountryResponse(ApiModel):
    country_code: str
    country_name: Optional[str] = None
    blocked_at: datetime
    is_temporary: bool
    expires_at: Optional[datetime] = None


class AttemptLogResponse(ApiModel):
    id: uuid.UUID
    ip_address: str
    timestamp: datetime
    country_code: str
    country_name: str
    user_agent: str
    blocked_status: bool
    request_path: str
    action: str


class PaginatedResponse(ApiModel, Generic[T]):
    items: list[T]
    total_count: int
    page_number: int
    page_size: int


class CheckBlockResponse(ApiModel):
    is_blocked: bool
    country_code: str
    country_name: str
    ip_address: str


class CountryValidationResponse(ApiModel):
    country_code: str
    common_name: str
    official_name: str
    flag: str = ""
    capital: list[str] = Field(default_factory=list)
    region: str = ""
    subregion: str = ""
    population: int = 0


class IpLookupResponse(ApiModel):
    ip: str
    country_code: str
    country_code3: str = ""
    country_name: str
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


class PurgeAttemptsResponse(ApiModel):
    removed: int
