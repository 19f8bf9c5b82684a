"""HTTP Status Code Constants.

This module contains HTTP status code constants for clear and
type-safe handling of upstream responses.
"""


class HTTPStatusCodes:
    """HTTP status code constants."""

    # 2xx Success
    OK = 200
    NO_CONTENT = 204

    # 4xx Client Errors
    BAD_REQUEST = 400
    NOT_FOUND = 404
    REQUEST_TIMEOUT = 408
    TOO_MANY_REQUESTS = 429

    # 5xx Server Errors
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504

    @staticmethod
    def is_success(code: int) -> bool:
        """Check if status code indicates success (2xx)."""
        return 200 <= code < 300

    @staticmethod
    def is_rate_limited(code: int) -> bool:
        """Check if status code is the rate-limit signal (429)."""
        return code == HTTPStatusCodes.TOO_MANY_REQUESTS

    @staticmethod
    def is_server_error(code: int) -> bool:
        """Check if status code indicates server error (5xx)."""
        return 500 <= code < 600


class HTTPHeaders:
    """Common HTTP header names."""

    ACCEPT = "Accept"
    USER_AGENT = "User-Agent"
    RETRY_AFTER = "Retry-After"


class ContentTypes:
    """Common content type values."""

    JSON = "application/json"


__all__ = [
    "ContentTypes",
    "HTTPHeaders",
    "HTTPStatusCodes",
]
