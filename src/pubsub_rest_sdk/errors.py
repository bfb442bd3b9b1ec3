"""Error classes for the pub/sub REST SDK.

Every failure surfaced by the SDK is a :class:`PubSubError` carrying a
numeric error code, a human-readable message and, where one applies, the
HTTP status the service (or the SDK on its behalf) associates with it.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import ErrorInfo


class ErrorCode(IntEnum):
    """Numeric error codes shared with the REST service."""

    # Bad request (400xx)
    BAD_REQUEST = 40000
    INVALID_CONTENT_TYPE = 40001
    INVALID_LINK_HEADER = 40004
    INVALID_CLIENT_ID = 40012

    # Authentication (401xx)
    UNAUTHORIZED = 40100
    API_KEY_REQUIRED = 40106
    TOKEN_ACQUISITION_FAILED = 40170
    NO_MEANS_TO_RENEW = 40171

    # Server (500xx)
    INTERNAL_ERROR = 50000
    TIMEOUT = 50003


class PubSubError(Exception):
    """Base error for the SDK with structured error information."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | int,
        *,
        status_code: int | None = None,
        href: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = int(code)
        self.status_code = status_code
        self.href = href
        self.details = details or {}

    @classmethod
    def from_error_info(cls, info: ErrorInfo) -> PubSubError:
        """Create an error from a decoded service error body."""
        return cls(
            info.message,
            info.code,
            status_code=info.status_code,
            href=info.href,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "href": self.href,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class InvalidKeyError(PubSubError):
    """API key string is not of the form ``<name>:<value>``."""

    def __init__(self, message: str = "Invalid key") -> None:
        super().__init__(message, ErrorCode.BAD_REQUEST, status_code=400)


class DecodeError(PubSubError):
    """A payload could not be decoded into the expected shape."""

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.BAD_REQUEST,
            status_code=400,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class NotPageableError(PubSubError):
    """Request cannot be repeated for a following page."""

    def __init__(self, message: str = "not a pageable request") -> None:
        super().__init__(message, ErrorCode.BAD_REQUEST, status_code=400)


class ContentTypeError(PubSubError):
    """Response Content-Type is missing or not acceptable."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INVALID_CONTENT_TYPE,
        *,
        content_type: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code,
            status_code=401 if code == ErrorCode.TOKEN_ACQUISITION_FAILED else 400,
            details={"content_type": content_type} if content_type else None,
        )
        self.content_type = content_type


class InvalidLinkHeaderError(PubSubError):
    """Link header does not match ``<path?params>; rel="name"``."""

    def __init__(self, message: str = "Invalid Link header") -> None:
        super().__init__(message, ErrorCode.INVALID_LINK_HEADER, status_code=400)


class InvalidClientIdError(PubSubError):
    """client_id was given as an empty string."""

    def __init__(self, message: str = "client_id can't be an empty string") -> None:
        super().__init__(message, ErrorCode.INVALID_CLIENT_ID, status_code=400)


class ApiKeyRequiredError(PubSubError):
    """A signed token request needs a local API key."""

    def __init__(
        self,
        message: str = "API key required to create signed token requests",
    ) -> None:
        super().__init__(message, ErrorCode.API_KEY_REQUIRED, status_code=401)


class AuthCallbackError(PubSubError):
    """Token acquisition through an auth callback failed."""

    def __init__(
        self,
        message: str = "Failed to obtain a token",
        *,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.TOKEN_ACQUISITION_FAILED,
            status_code=401,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class TokenTooLargeError(PubSubError):
    """Token string exceeds the permitted length."""

    def __init__(self, length: int) -> None:
        super().__init__(
            f"Token string exceeded max permitted length (was {length} bytes)",
            ErrorCode.TOKEN_ACQUISITION_FAILED,
            status_code=401,
            details={"length": length},
        )
        self.length = length


class NoRenewalMeansError(PubSubError):
    """Neither a key, token, auth callback nor auth URL is configured."""

    def __init__(self, message: str = "no means provided to renew auth token") -> None:
        super().__init__(message, ErrorCode.NO_MEANS_TO_RENEW, status_code=401)


class UnexpectedError(PubSubError):
    """Non-2xx response without a decodable error body."""

    def __init__(
        self,
        message: str = "Unexpected error",
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INTERNAL_ERROR,
            status_code=status_code,
        )


class NetworkError(PubSubError):
    """Network request failed before a response was received."""

    def __init__(
        self,
        message: str = "Network request failed",
        *,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INTERNAL_ERROR,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class TimeoutError(PubSubError):
    """Request timed out."""

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.TIMEOUT,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause
