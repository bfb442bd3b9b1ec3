"""Pub/sub REST SDK: authentication and paginated HTTP transport."""

from .auth import Auth
from .callbacks import (
    AuthCallback,
    AuthUrlCallback,
    FunctionAuthCallback,
    KeyAuthCallback,
    TokenAuthCallback,
)
from .client import AsyncRestClient
from .config import ClientOptions, Format
from .errors import (
    ApiKeyRequiredError,
    AuthCallbackError,
    ContentTypeError,
    DecodeError,
    ErrorCode,
    InvalidClientIdError,
    InvalidKeyError,
    InvalidLinkHeaderError,
    NetworkError,
    NoRenewalMeansError,
    NotPageableError,
    PubSubError,
    TokenTooLargeError,
    UnexpectedError,
)
from .models import (
    Credential,
    Key,
    KeyCredential,
    Token,
    TokenCredential,
    TokenDetails,
    TokenParams,
    TokenRequest,
    parse_token,
)
from .pagination import PageIterator, PaginatedRequestBuilder, PaginatedResult

__all__ = [
    "ApiKeyRequiredError",
    "AsyncRestClient",
    "Auth",
    "AuthCallback",
    "AuthCallbackError",
    "AuthUrlCallback",
    "ClientOptions",
    "ContentTypeError",
    "Credential",
    "DecodeError",
    "ErrorCode",
    "Format",
    "FunctionAuthCallback",
    "InvalidClientIdError",
    "InvalidKeyError",
    "InvalidLinkHeaderError",
    "Key",
    "KeyAuthCallback",
    "KeyCredential",
    "NetworkError",
    "NoRenewalMeansError",
    "NotPageableError",
    "PageIterator",
    "PaginatedRequestBuilder",
    "PaginatedResult",
    "PubSubError",
    "Token",
    "TokenAuthCallback",
    "TokenCredential",
    "TokenDetails",
    "TokenParams",
    "TokenRequest",
    "TokenTooLargeError",
    "UnexpectedError",
    "parse_token",
]

__version__ = "0.1.0"
