"""Error type enumeration for Fractal.

Provides type-safe error categorization for logs and error responses.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes surfaced to host shells."""

    INVALID_URL = "INVALID_URL"
    AI_PROVIDER_ERROR = "AI_PROVIDER_ERROR"
    API_KEY_MISSING = "API_KEY_MISSING"
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    CONTENT_GENERATION_FAILED = "CONTENT_GENERATION_FAILED"


class ErrorType(str, Enum):
    """Error type categories for logs and error responses.

    These error types are used for:
    - ContentGenerationFailed.error_type
    - SSE error events (type field)
    - ErrorCode selection for ContentGenerationFailed
    - HTTP status selection in the API shell
    """

    # Request lifecycle errors
    UPSTREAM_TIMEOUT = "upstream_timeout"  # Backend call timed out

    # HTTP/API errors
    UPSTREAM_HTTP_ERROR = "upstream_http_error"  # Backend answered with non-2xx
    NETWORK_ERROR = "network_error"  # Transport failure before a response

    # Authentication/rate limiting
    AUTH_ERROR = "auth_error"  # Credential rejected by the backend
    RATE_LIMIT = "rate_limit"  # Backend rate limit exceeded

    # Streaming errors
    STREAMING_ERROR = "streaming_error"  # Error event inside a stream

    # Catch-all
    UNEXPECTED_ERROR = "unexpected_error"  # Unhandled/unexpected error


def error_type_for_status(status_code: int | None) -> ErrorType:
    """Classify an upstream HTTP status code."""
    if status_code in (401, 403):
        return ErrorType.AUTH_ERROR
    if status_code == 429:
        return ErrorType.RATE_LIMIT
    if status_code in (408, 504):
        return ErrorType.UPSTREAM_TIMEOUT
    if status_code is not None and status_code >= 400:
        return ErrorType.UPSTREAM_HTTP_ERROR
    return ErrorType.UNEXPECTED_ERROR


def error_code_for_type(error_type: ErrorType) -> ErrorCode:
    """Error code a failed generation reports for its classification."""
    if error_type is ErrorType.NETWORK_ERROR:
        return ErrorCode.NETWORK_ERROR
    if error_type is ErrorType.RATE_LIMIT:
        return ErrorCode.RATE_LIMIT_EXCEEDED
    return ErrorCode.CONTENT_GENERATION_FAILED
