"""Centralized error factory for the pub/sub REST SDK.

Provides consistent error creation and transformation across all SDK
components: HTTP responses, transport exceptions and auth callback failures
all end up as PubSubError subclasses.
"""

from __future__ import annotations

from typing import Any

import httpx
import msgpack
from msgpack.exceptions import UnpackException
from pydantic import ValidationError

from ..errors import (
    AuthCallbackError,
    ErrorCode,
    NetworkError,
    PubSubError,
    TimeoutError,
    UnexpectedError,
)
from ..models import WrappedError

MSGPACK_CONTENT_TYPE = "application/x-msgpack"


class ErrorFactory:
    """Centralized error creation with consistent structure."""

    @staticmethod
    def from_http_response(response: httpx.Response) -> PubSubError:
        """Create SDK error from a non-2xx HTTP response.

        The body is expected to hold ``{"error": {code, message, statusCode}}``
        encoded as JSON or MessagePack. Anything else yields an
        UnexpectedError carrying the HTTP status.

        Args:
            response: HTTP response object (already read).

        Returns:
            PubSubError describing the failure.
        """
        status = response.status_code
        try:
            wrapped = WrappedError.model_validate(_decode_error_body(response))
        except (ValueError, TypeError, ValidationError, UnpackException) as e:
            return UnexpectedError(f"Unexpected error: {e}", status_code=status)

        error = PubSubError.from_error_info(wrapped.error)
        if error.status_code is None:
            error.status_code = status
        return error

    @staticmethod
    def from_exception(exc: Exception) -> PubSubError:
        """Create SDK error from a transport exception.

        Args:
            exc: Original exception.

        Returns:
            Appropriate PubSubError subclass.
        """
        if isinstance(exc, PubSubError):
            return exc

        if isinstance(exc, httpx.TimeoutException):
            return TimeoutError(f"Request timed out: {exc}", cause=exc)

        if isinstance(exc, httpx.HTTPError):
            return NetworkError(f"HTTP error: {exc}", cause=exc)

        return NetworkError(f"Unexpected error: {exc}", cause=exc)

    @staticmethod
    def normalize_callback_error(exc: Exception) -> PubSubError:
        """Map an auth callback failure onto the token acquisition error.

        Generic bad-request errors become 40170 with status 401; other SDK
        errors pass through unchanged; foreign exceptions are wrapped.

        Args:
            exc: Exception raised while obtaining a token.

        Returns:
            Normalized PubSubError.
        """
        if isinstance(exc, PubSubError):
            if exc.code == ErrorCode.BAD_REQUEST:
                exc.code = int(ErrorCode.TOKEN_ACQUISITION_FAILED)
                exc.status_code = 401
            return exc

        return AuthCallbackError(str(exc) or "Failed to obtain a token", cause=exc)


def _decode_error_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() == MSGPACK_CONTENT_TYPE:
        return msgpack.unpackb(response.content, raw=False)
    return response.json()
