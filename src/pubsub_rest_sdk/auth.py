"""Authentication for the pub/sub REST SDK.

Resolves which credential to attach to a request, signs token requests with
a local API key, and obtains tokens from whichever source the client options
configure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from .callbacks import (
    AuthCallback,
    AuthUrlCallback,
    KeyAuthCallback,
    TokenAuthCallback,
    as_auth_callback,
)
from .core.errors import ErrorFactory
from .core.token_ops import sign
from .errors import ApiKeyRequiredError, NoRenewalMeansError, TokenTooLargeError
from .models import (
    MAX_TOKEN_LENGTH,
    Credential,
    Key,
    KeyCredential,
    TokenCredential,
    TokenDetails,
    TokenParams,
    TokenRequest,
    parse_token,
)
from .telemetry import get_logger, trace_operation, traced_async

if TYPE_CHECKING:
    from .client import AsyncRestClient
    from .config import ClientOptions


class Auth:
    """Token and credential management for a client.

    Holds no state of its own beyond the client it belongs to: every call
    that needs a token obtains a fresh one.
    """

    def __init__(self, client: AsyncRestClient) -> None:
        self._client = client
        self._logger = get_logger()

    @property
    def options(self) -> ClientOptions:
        return self._client.options

    def create_token_request(
        self,
        params: TokenParams | None = None,
        *,
        key: Key | None = None,
    ) -> TokenRequest:
        """Create a TokenRequest signed by a local API key.

        Args:
            params: Token params; override the configured client_id.
            key: Key to sign with (defaults to the configured key).

        Returns:
            Signed TokenRequest.

        Raises:
            ApiKeyRequiredError: If no key is available.
            InvalidClientIdError: If client_id is an empty string.
        """
        key = key or self.options.key
        if key is None:
            raise ApiKeyRequiredError()

        base = TokenParams(client_id=self.options.client_id)
        return sign(base.merge(params), key)

    def resolve_callback(self, callback: Any = None) -> AuthCallback:
        """Pick the token source, first match wins.

        Order: the ``callback`` argument, the configured auth_callback, the
        auth URL, the API key, the configured token.

        Raises:
            NoRenewalMeansError: If nothing can provide a token.
        """
        if callback is not None:
            return as_auth_callback(callback)

        options = self.options
        if options.auth_callback is not None:
            return as_auth_callback(options.auth_callback)
        if options.auth_url is not None:
            return AuthUrlCallback(
                options.auth_url_str or "",
                method=options.auth_method,
                headers=options.auth_headers,
                params=options.auth_params,
            )
        if options.key is not None:
            return KeyAuthCallback(options.key)
        if options.token is not None:
            return TokenAuthCallback(options.token)

        raise NoRenewalMeansError()

    async def request_token(
        self,
        params: TokenParams | None = None,
        *,
        callback: Any = None,
    ) -> TokenDetails:
        """Obtain a token from the resolved token source.

        A TokenRequest returned by the source is exchanged with the service;
        a literal token is wrapped in TokenDetails.

        Args:
            params: Token params, applied over the configured defaults.
            callback: Token source overriding the configured ones.

        Returns:
            TokenDetails for the new token.

        Raises:
            NoRenewalMeansError: If no token source is configured.
            AuthCallbackError: If the token source failed.
            TokenTooLargeError: If the token exceeds 128 KiB.
        """
        source = self.resolve_callback(callback)
        token_params = self._token_params(params)

        with trace_operation(
            "request_token",
            attributes={"auth.callback": type(source).__name__},
        ):
            self._logger.debug("Requesting token", callback=repr(source))
            try:
                token = parse_token(await source.token(self._client, token_params))
            except Exception as e:
                error = ErrorFactory.normalize_callback_error(e)
                if error is e:
                    raise
                raise error from e

            if isinstance(token, TokenRequest):
                details = await self.exchange(token)
            elif isinstance(token, TokenDetails):
                details = token
            else:
                details = TokenDetails.from_literal(token)

            length = len(details.token.encode("utf-8"))
            if length > MAX_TOKEN_LENGTH:
                raise TokenTooLargeError(length)

            return details

    @traced_async("exchange_token")
    async def exchange(self, token_request: TokenRequest) -> TokenDetails:
        """Exchange a signed TokenRequest for a token via the requestToken endpoint."""
        key_name = quote(token_request.key_name, safe="")
        response = await (
            self._client.request(
                "POST",
                f"/keys/{key_name}/requestToken",
                authenticate=False,
            )
            .body(token_request.to_wire())
            .send()
        )
        return response.body(TokenDetails)

    async def credential(self) -> Credential:
        """Resolve the credential for an outgoing request.

        A configured key is used directly for Basic auth unless token auth is
        forced; otherwise a token is requested for Bearer auth.
        """
        if self.options.key is not None and not self.options.use_token_auth:
            return KeyCredential(key=self.options.key)

        details = await self.request_token()
        return TokenCredential(token=details.token)

    async def with_auth_headers(self, request: httpx.Request) -> None:
        """Set the Authorization header of an httpx request."""
        credential = await self.credential()
        request.headers["Authorization"] = credential.authorization_header()

    def _token_params(self, params: TokenParams | None) -> TokenParams:
        base = self.options.default_token_params or TokenParams()
        if self.options.client_id is not None:
            base = base.model_copy(update={"client_id": self.options.client_id})
        return base.merge(params)
