"""Configuration for the pub/sub REST SDK.

Uses Pydantic v2 for validation with sensible defaults. The options are
read-only input to the SDK: nothing in the SDK mutates them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

from .models import Key, Token, TokenParams, parse_token

DEFAULT_REST_URL = "https://rest.ably.io"

_AUTH_METHODS = {"GET", "POST"}


class Format(StrEnum):
    """Encoding used for request and response bodies."""

    JSON = "json"
    MSGPACK = "msgpack"


class ClientOptions(BaseModel):
    """Options for authenticating with, and talking to, the REST API."""

    model_config = ConfigDict(
        frozen=True,
        validate_default=True,
        arbitrary_types_allowed=True,
    )

    # Authentication
    key: Key | None = None
    token: Token | None = None
    client_id: str | None = None
    auth_callback: Any = None
    auth_url: HttpUrl | None = None
    auth_method: str = "GET"
    auth_headers: dict[str, str] | None = None
    auth_params: dict[str, str] | None = None
    default_token_params: TokenParams | None = None
    use_token_auth: bool = False

    # HTTP settings
    rest_url: HttpUrl = Field(default=DEFAULT_REST_URL)
    format: Format = Format.MSGPACK
    timeout: Annotated[float, Field(gt=0, le=300)] = 10.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 4.0

    @field_validator("key", mode="before")
    @classmethod
    def parse_key(cls, v: Any) -> Any:
        """Accept keys given as ``<keyName>:<keySecret>`` strings."""
        if isinstance(v, str):
            return Key.parse(v)
        return v

    @field_validator("token", mode="before")
    @classmethod
    def parse_token_value(cls, v: Any) -> Any:
        """Decode tokens given as mappings into their structured shape."""
        if isinstance(v, dict):
            return parse_token(v)
        return v

    @field_validator("auth_method")
    @classmethod
    def validate_auth_method(cls, v: str) -> str:
        """Validate the auth URL HTTP method."""
        method = v.upper()
        if method not in _AUTH_METHODS:
            msg = f"Unsupported auth_method: {v}. Supported: {sorted(_AUTH_METHODS)}"
            raise ValueError(msg)
        return method

    @model_validator(mode="after")
    def validate_auth_callback(self) -> Self:
        """auth_callback must be an AuthCallback or a coroutine function."""
        if self.auth_callback is not None and not (
            callable(self.auth_callback) or hasattr(self.auth_callback, "token")
        ):
            msg = "auth_callback must provide a token() coroutine or be callable"
            raise ValueError(msg)
        return self

    @property
    def rest_url_str(self) -> str:
        """Get REST URL as string without trailing slash."""
        return str(self.rest_url).rstrip("/")

    @property
    def auth_url_str(self) -> str | None:
        """Get auth URL as string."""
        return str(self.auth_url) if self.auth_url is not None else None

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new options with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

