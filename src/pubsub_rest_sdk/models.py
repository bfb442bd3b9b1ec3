"""Pydantic models for the pub/sub REST SDK.

Covers API keys, the token request/response shapes exchanged with the
service, the credential attached to outgoing requests, and the error body
returned on failures. All models are frozen; wire names are camelCase and
timestamps travel as integer milliseconds since the Unix epoch.
"""

from __future__ import annotations

import base64
from datetime import UTC, datetime, timedelta
from typing import Annotated, Any, Self, TypeAlias

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .errors import DecodeError, InvalidKeyError

# Maximum accepted length of a token string (128 KiB).
MAX_TOKEN_LENGTH = 128 * 1024

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def to_milliseconds(value: datetime) -> int:
    """Convert a datetime to integer milliseconds since the epoch.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - _EPOCH) // timedelta(milliseconds=1)


def from_milliseconds(value: int) -> datetime:
    """Convert integer milliseconds since the epoch to an aware datetime."""
    return _EPOCH + timedelta(milliseconds=value)


def _millis_or_passthrough(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return from_milliseconds(value)
    return value


_WIRE_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
    extra="ignore",
)


class Key(BaseModel):
    """API key used for HTTP Basic auth and for signing token requests."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, alias="keyName")
    value: str = Field(..., min_length=1, repr=False)

    @classmethod
    def parse(cls, key: str) -> Self:
        """Parse a key of the form ``<keyName>:<keySecret>``.

        Only the first ``:`` separates the name; the rest is the secret.

        Raises:
            InvalidKeyError: If the string is not a valid key.
        """
        name, sep, value = key.partition(":")
        if not sep or not name or not value:
            raise InvalidKeyError()
        return cls(name=name, value=value)


class TokenParams(BaseModel):
    """Parameters for a token; defaults are filled in only when signing."""

    model_config = ConfigDict(frozen=True)

    capability: str | None = None
    client_id: str | None = None
    nonce: str | None = None
    timestamp: datetime | None = None
    ttl: int | None = None

    def merge(self, overrides: TokenParams | None) -> TokenParams:
        """Return new params with every field set on ``overrides`` applied."""
        if overrides is None:
            return self
        return self.model_copy(update=overrides.model_dump(exclude_none=True))


class TokenRequest(BaseModel):
    """Signed request for a token, exchanged with the service for TokenDetails."""

    model_config = _WIRE_CONFIG

    key_name: str
    timestamp: datetime
    capability: str | None = None
    client_id: str | None = None
    nonce: str
    ttl: int | None = None
    mac: str | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        return _millis_or_passthrough(value)

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> int:
        return to_milliseconds(value)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire names, omitting absent fields and an empty nonce."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        if not self.nonce:
            data.pop("nonce", None)
        return data


class TokenDetails(BaseModel):
    """Token issued by the service, with optional metadata."""

    model_config = _WIRE_CONFIG

    token: str = Field(..., repr=False)
    expires: datetime | None = None
    issued: datetime | None = None
    capability: str | None = None
    client_id: str | None = None

    @field_validator("expires", "issued", mode="before")
    @classmethod
    def _parse_millis(cls, value: Any) -> Any:
        return _millis_or_passthrough(value)

    @field_serializer("expires", "issued")
    def _serialize_millis(self, value: datetime | None) -> int | None:
        return to_milliseconds(value) if value is not None else None

    @classmethod
    def from_literal(cls, token: str) -> Self:
        """Wrap a bare token string."""
        return cls(token=token)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the token has a known expiry that has passed."""
        if self.expires is None:
            return False
        return (now or datetime.now(UTC)) >= self.expires


# A token as returned by an auth callback: a request still to be exchanged,
# issued details, or a literal token string.
Token: TypeAlias = TokenRequest | TokenDetails | str

_TOKEN_ADAPTER: TypeAdapter[Token] = TypeAdapter(
    Annotated[TokenRequest | TokenDetails | str, Field(union_mode="left_to_right")]
)


def parse_token(data: Any) -> Token:
    """Decode a token without a discriminator field.

    Shapes are tried in order TokenRequest, TokenDetails, plain string, so a
    payload matching several shapes takes the earliest.

    Raises:
        DecodeError: If the payload matches none of them.
    """
    try:
        return _TOKEN_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise DecodeError("Unable to decode token", cause=e) from e


class KeyCredential(BaseModel):
    """API key credential, sent as HTTP Basic auth."""

    model_config = ConfigDict(frozen=True)

    key: Key

    def authorization_header(self) -> str:
        raw = f"{self.key.name}:{self.key.value}".encode()
        return f"Basic {base64.b64encode(raw).decode('ascii')}"


class TokenCredential(BaseModel):
    """Token credential, sent as HTTP Bearer auth."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., repr=False)

    def authorization_header(self) -> str:
        return f"Bearer {self.token}"


Credential: TypeAlias = KeyCredential | TokenCredential


class ErrorInfo(BaseModel):
    """Error details returned by the service in a non-2xx response body."""

    model_config = _WIRE_CONFIG

    code: int
    message: str = ""
    status_code: int | None = None
    href: str | None = None


class WrappedError(BaseModel):
    """Error body envelope: ``{"error": {...}}``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    error: ErrorInfo
