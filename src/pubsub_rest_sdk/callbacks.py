"""Auth callbacks: pluggable sources of tokens.

An AuthCallback is anything with a ``token(client, params)`` coroutine that
returns a Token: a TokenRequest still to be exchanged, TokenDetails, or a
literal token string. Built-in callbacks cover API keys, fixed tokens and
auth URLs; coroutine functions are adapted with FunctionAuthCallback.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .core.token_ops import sign
from .errors import ContentTypeError, ErrorCode
from .http import JSON_CONTENT_TYPE
from .models import (
    Key,
    Token,
    TokenDetails,
    TokenParams,
    TokenRequest,
    parse_token,
    to_milliseconds,
)

if TYPE_CHECKING:
    from .client import AsyncRestClient

LITERAL_TOKEN_CONTENT_TYPES = frozenset({"text/plain", "application/jwt"})


@runtime_checkable
class AuthCallback(Protocol):
    """Provides a Token when the SDK needs to authenticate."""

    async def token(self, client: AsyncRestClient, params: TokenParams) -> Token:
        ...


class KeyAuthCallback:
    """Signs token params locally with an API key."""

    def __init__(self, key: Key) -> None:
        self.key = key

    async def token(self, client: AsyncRestClient, params: TokenParams) -> Token:
        return sign(params, self.key)

    def __repr__(self) -> str:
        return f"KeyAuthCallback(key_name={self.key.name!r})"


class TokenAuthCallback:
    """Always returns the same token, without any I/O."""

    def __init__(self, token: Token) -> None:
        self._token = token

    async def token(self, client: AsyncRestClient, params: TokenParams) -> Token:
        return self._token

    def __repr__(self) -> str:
        return f"TokenAuthCallback(kind={type(self._token).__name__})"


class AuthUrlCallback:
    """Requests tokens from a URL.

    The response is interpreted strictly by Content-Type: JSON is decoded as
    a TokenRequest or TokenDetails, ``text/plain`` and ``application/jwt``
    bodies are literal tokens, anything else is an error.
    """

    def __init__(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> None:
        self.url = url
        self.method = method.upper()
        self.headers = dict(headers or {})
        self.params = dict(params or {})

    async def token(self, client: AsyncRestClient, params: TokenParams) -> Token:
        """Request a token from the URL.

        Token params are sent as query params for GET and as a form body
        for POST, after the configured auth params.

        Raises:
            ContentTypeError: If the response Content-Type is missing or
                unacceptable.
        """
        request = client.request_url(self.method, self.url).headers(self.headers)
        request.params(self.params)
        token_params = _token_params_to_query(params)
        if self.method == "POST":
            request.form(token_params)
        else:
            request.params(token_params)

        response = await request.send()

        content_type = response.content_type()
        if content_type is None:
            raise ContentTypeError(
                "authUrl response is missing a content-type header",
                ErrorCode.TOKEN_ACQUISITION_FAILED,
            )

        if content_type == JSON_CONTENT_TYPE:
            return parse_token(response.json())

        if content_type in LITERAL_TOKEN_CONTENT_TYPES:
            return response.text()

        raise ContentTypeError(
            f"authUrl responded with unacceptable content-type {content_type}, "
            "should be either text/plain, application/jwt or application/json",
            ErrorCode.TOKEN_ACQUISITION_FAILED,
            content_type=content_type,
        )

    def __repr__(self) -> str:
        return f"AuthUrlCallback(method={self.method!r}, url={self.url!r})"


class FunctionAuthCallback:
    """Adapts a function returning a Token (or an awaitable of one).

    The function takes either ``(params)`` or ``(client, params)``. Mappings
    it returns are decoded with :func:`parse_token`.
    """

    def __init__(self, func: Callable[..., Token | Awaitable[Token] | Any]) -> None:
        self._func = func
        try:
            arity = len(inspect.signature(func).parameters)
        except (TypeError, ValueError):
            arity = 1
        self._pass_client = arity >= 2

    async def token(self, client: AsyncRestClient, params: TokenParams) -> Token:
        if self._pass_client:
            result = self._func(client, params)
        else:
            result = self._func(params)
        if inspect.isawaitable(result):
            result = await result
        return parse_token(result)

    def __repr__(self) -> str:
        return f"FunctionAuthCallback({getattr(self._func, '__qualname__', self._func)!r})"


def as_auth_callback(value: Any) -> AuthCallback:
    """Coerce a key, token, callable or AuthCallback into an AuthCallback.

    Raises:
        TypeError: If ``value`` cannot provide tokens.
    """
    if isinstance(value, Key):
        return KeyAuthCallback(value)
    # Checked before the protocol: TokenDetails has a ``token`` attribute.
    if isinstance(value, (TokenRequest, TokenDetails, str)):
        return TokenAuthCallback(value)
    if isinstance(value, AuthCallback):
        return value
    if callable(value):
        return FunctionAuthCallback(value)
    msg = f"Cannot use {type(value).__name__} as an auth callback"
    raise TypeError(msg)


def _token_params_to_query(params: TokenParams) -> dict[str, str]:
    query: dict[str, str] = {}
    if params.capability is not None:
        query["capability"] = params.capability
    if params.client_id is not None:
        query["clientId"] = params.client_id
    if params.nonce is not None:
        query["nonce"] = params.nonce
    if params.timestamp is not None:
        query["timestamp"] = str(to_milliseconds(params.timestamp))
    if params.ttl is not None:
        query["ttl"] = str(params.ttl)
    return query
