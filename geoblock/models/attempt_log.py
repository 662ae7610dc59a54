"""
BlockedAttemptLog model — audit record written for every check, block and unblock.
Entries are never mutated; only age-based eviction removes them.
"""
import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

AttemptAction = Literal["check", "block", "unblock"]


class BlockedAttemptLog(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    ip_address: str = ""
    country_code: str = ""
    country_name: str = ""
    user_agent: str = ""
    request_path: str = ""
    timestamp: datetime
    blocked_status: bool
    action: AttemptAction = "check"

    def __repr__(self) -> str:
        return (
            f"<BlockedAttemptLog {str(self.id)[:8]} {self.action} "
            f"{self.country_code} blocked={self.blocked_status}>"
        )
