"""Error responses for the HTTP shell.

Error response format:
{
    "type": "error",
    "error": {
        "type": "<error_type>",
        "code": "<error_code>",
        "message": "<error_message>",
        "provider": "<provider id or null>"
    }
}
"""

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fractal.core.error_types import ErrorType
from fractal.core.errors import (
    ContentGenerationFailed,
    CredentialMissing,
    FractalError,
    InvalidUrl,
    NoProvidersAvailable,
    ProviderNotFound,
    UnsupportedProvider,
)

logger = logging.getLogger(__name__)


def _error_type(exc: FractalError) -> str:
    if isinstance(exc, ContentGenerationFailed):
        return exc.error_type.value
    if isinstance(exc, InvalidUrl):
        return "invalid_url"
    if isinstance(exc, ProviderNotFound):
        return "not_found"
    if isinstance(exc, UnsupportedProvider):
        return "unsupported_provider"
    if isinstance(exc, (NoProvidersAvailable, CredentialMissing)):
        return "service_unavailable"
    return ErrorType.UNEXPECTED_ERROR.value


def status_code_for(exc: FractalError) -> int:
    if isinstance(exc, (InvalidUrl, UnsupportedProvider)):
        return 400
    if isinstance(exc, ProviderNotFound):
        return 404
    if isinstance(exc, (NoProvidersAvailable, CredentialMissing)):
        return 503
    if isinstance(exc, ContentGenerationFailed):
        return 504 if exc.error_type is ErrorType.UPSTREAM_TIMEOUT else 502
    return 500


def error_payload(exc: FractalError) -> dict[str, Any]:
    return {
        "type": "error",
        "error": {
            "type": _error_type(exc),
            "code": exc.code.value,
            "message": exc.message,
            "provider": exc.provider,
        },
    }


@dataclass(frozen=True, slots=True)
class ErrorResponseBuilder:
    """Centralized builder for consistent error responses across all endpoints."""

    @staticmethod
    def from_error(exc: FractalError) -> JSONResponse:
        return JSONResponse(status_code=status_code_for(exc), content=error_payload(exc))

    @staticmethod
    def not_found(resource: str, identifier: str) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={
                "type": "error",
                "error": {
                    "type": "not_found",
                    "message": f"{resource} '{identifier}' not found",
                },
            },
        )


async def fractal_error_handler(request: Request, exc: FractalError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code.value}: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code.value}: {exc}")
    return ErrorResponseBuilder.from_error(exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FractalError, fractal_error_handler)
