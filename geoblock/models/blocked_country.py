"""
BlockedCountry model — one entry in the in-memory block registry.
Permanent blocks have no expiry; temporary blocks carry expires_at.
"""
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class BlockedCountry(BaseModel):
    model_config = ConfigDict(frozen=True)

    country_code: str  # Upper-case ISO 3166-1 alpha-2
    country_name: Optional[str] = None
    blocked_at: datetime
    is_temporary: bool = False
    expires_at: Optional[datetime] = None
    blocked_by: Optional[str] = None  # IP of the caller that created the block

    @field_validator("country_code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def _check_expiry(self) -> "BlockedCountry":
        if self.is_temporary and self.expires_at is None:
            raise ValueError("temporary blocks require expires_at")
        if not self.is_temporary and self.expires_at is not None:
            raise ValueError("permanent blocks cannot carry expires_at")
        if self.expires_at is not None and self.expires_at <= self.blocked_at:
            raise ValueError("expires_at must be after blocked_at")
        return self

    @classmethod
    def permanent(
        cls,
        country_code: str,
        blocked_at: datetime,
        country_name: Optional[str] = None,
        blocked_by: Optional[str] = None,
    ) -> "BlockedCountry":
        return cls(
            country_code=country_code.upper(),
            country_name=country_name,
            blocked_at=blocked_at,
            blocked_by=blocked_by,
        )

    @classmethod
    def temporary(
        cls,
        country_code: str,
        blocked_at: datetime,
        duration_minutes: int,
        country_name: Optional[str] = None,
        blocked_by: Optional[str] = None,
    ) -> "BlockedCountry":
        return cls(
            country_code=country_code.upper(),
            country_name=country_name,
            blocked_at=blocked_at,
            is_temporary=True,
            expires_at=blocked_at + timedelta(minutes=duration_minutes),
            blocked_by=blocked_by,
        )

    def is_expired(self, now: datetime) -> bool:
        """A temporary block stays live up to and including expires_at."""
        return self.is_temporary and self.expires_at is not None and self.expires_at < now

    def __repr__(self) -> str:
        kind = f"until {self.expires_at.isoformat()}" if self.expires_at else "permanent"
        return f"<BlockedCountry {self.country_code} {kind}>"
