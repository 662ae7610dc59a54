"""
Domain models - immutable values handed out by the in-memory stores.
"""
from geoblock.models.blocked_country import BlockedCountry
from geoblock.models.attempt_log import BlockedAttemptLog

__all__ = [
    "BlockedCountry",
    "BlockedAttemptLog",
]
