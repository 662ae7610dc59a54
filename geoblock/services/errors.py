"""
Error taxonomy for the blocking service.

Stores never raise for expected outcomes (conflict, absent key); they return
False/None. The service layer turns those outcomes into BlockingError
subclasses, which create_app renders as {"error": ..., "code": ...}.
"""
from enum import Enum


class ErrorCode(str, Enum):
    INVALID_COUNTRY_CODE = "INVALID_COUNTRY_CODE"
    COUNTRY_ALREADY_BLOCKED = "COUNTRY_ALREADY_BLOCKED"
    COUNTRY_NOT_FOUND = "COUNTRY_NOT_FOUND"
    INVALID_DURATION = "INVALID_DURATION"
    INVALID_IP_ADDRESS = "INVALID_IP_ADDRESS"
    GEOLOCATION_SERVICE_ERROR = "GEOLOCATION_SERVICE_ERROR"


class BlockingError(Exception):
    """Base class for expected failures surfaced to API callers."""
    status_code = 500
    error_code: ErrorCode

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidCountryCodeError(BlockingError):
    status_code = 400
    error_code = ErrorCode.INVALID_COUNTRY_CODE


class InvalidDurationError(BlockingError):
    status_code = 400
    error_code = ErrorCode.INVALID_DURATION


class InvalidIpAddressError(BlockingError):
    status_code = 400
    error_code = ErrorCode.INVALID_IP_ADDRESS


class CountryAlreadyBlockedError(BlockingError):
    status_code = 409
    error_code = ErrorCode.COUNTRY_ALREADY_BLOCKED


class CountryNotBlockedError(BlockingError):
    status_code = 404
    error_code = ErrorCode.COUNTRY_NOT_FOUND


class CountryNotFoundError(BlockingError):
    status_code = 404
    error_code = ErrorCode.COUNTRY_NOT_FOUND


class UpstreamServiceError(BlockingError):
    status_code = 502
    error_code = ErrorCode.GEOLOCATION_SERVICE_ERROR


# Raised by the outbound clients; the service layer translates them.

class InvalidAddressError(ValueError):
    """The IP address is malformed; no request was sent."""


class UpstreamError(Exception):
    """A third-party API failed, returned an error status or an unreadable body."""
