"""Exception hierarchy for the generation core.

All exceptions inherit from FractalError, allowing host shells to catch
every core failure with a single except clause and render ``code``.

Example:
    >>> try:
    ...     await orchestrator.generate(request)
    ... except FractalError as e:
    ...     print(f"{e.code}: {e}")
"""

from __future__ import annotations

import httpx

from fractal.core.clients.base import UpstreamError
from fractal.core.error_types import (
    ErrorCode,
    ErrorType,
    error_code_for_type,
    error_type_for_status,
)


class FractalError(Exception):
    """Base exception for all generation core errors.

    Attributes:
        code: Stable error code for host shells
        provider: Provider id involved in the failure, when known
        status_code: Upstream HTTP status, when the failure came from one
    """

    code: ErrorCode = ErrorCode.AI_PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, provider={self.provider!r})"


class NoProvidersAvailable(FractalError):
    """Raised when no backend has a configured credential."""

    code = ErrorCode.API_KEY_MISSING

    def __init__(self, message: str = "No AI providers configured. Please set up API keys.") -> None:
        super().__init__(message)


class ProviderNotFound(FractalError):
    """Raised when a provider id is not in the registry."""

    code = ErrorCode.AI_PROVIDER_ERROR

    def __init__(self, provider: str) -> None:
        super().__init__(f"Provider {provider} not found", provider=provider)


class CredentialMissing(FractalError):
    """Raised when a registered provider has an empty credential."""

    code = ErrorCode.API_KEY_MISSING

    def __init__(self, provider: str) -> None:
        super().__init__(f"API key not configured for provider {provider}", provider=provider)


class UnsupportedProvider(FractalError):
    """Raised when no backend client exists for a provider id."""

    code = ErrorCode.AI_PROVIDER_ERROR

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported provider: {provider}", provider=provider)


class ContentGenerationFailed(FractalError):
    """Raised when a backend call or stream fails.

    ``code`` follows ``error_type``: transport failures report NETWORK_ERROR
    and rate limits RATE_LIMIT_EXCEEDED.

    Attributes:
        original_message: Message of the underlying transport/backend error
        error_type: Classification used for logs and error payloads
    """

    code = ErrorCode.CONTENT_GENERATION_FAILED

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        original_message: str | None = None,
        error_type: ErrorType = ErrorType.UNEXPECTED_ERROR,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, provider=provider, status_code=status_code)
        self.original_message = original_message if original_message is not None else message
        self.error_type = error_type
        self.code = error_code_for_type(error_type)


class InvalidUrl(FractalError):
    """Raised when a user-supplied URL cannot be normalized."""

    code = ErrorCode.INVALID_URL

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Invalid URL {url!r}: {reason}")
        self.url = url
        self.reason = reason


def classify_exception(exc: BaseException) -> ErrorType:
    """Map a transport/backend exception to an ErrorType."""
    if isinstance(exc, httpx.TimeoutException):
        return ErrorType.UPSTREAM_TIMEOUT
    if isinstance(exc, UpstreamError):
        return error_type_for_status(exc.status_code)
    if isinstance(exc, httpx.TransportError):
        return ErrorType.NETWORK_ERROR
    return ErrorType.UNEXPECTED_ERROR


def wrap_generation_error(exc: BaseException, *, provider: str, prefix: str) -> FractalError:
    """Wrap a backend failure as ContentGenerationFailed.

    FractalErrors pass through unchanged so nothing is wrapped twice.
    """
    if isinstance(exc, FractalError):
        return exc
    original = str(exc) or type(exc).__name__
    return ContentGenerationFailed(
        f"{prefix}: {original}",
        provider=provider,
        original_message=original,
        error_type=classify_exception(exc),
        status_code=getattr(exc, "status_code", None),
    )
