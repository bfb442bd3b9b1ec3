"""Async REST client for the pub/sub REST SDK.

Owns the client options, the ``httpx.AsyncClient`` and the Auth instance,
and is the entry point for building (authenticated) requests.
"""

from __future__ import annotations

from typing import Any, Self, TypeVar

import httpx

from .auth import Auth
from .config import ClientOptions, Format
from .http import CONTENT_TYPES, RequestBuilder, create_async_http_client
from .pagination import ItemHandler, PaginatedRequestBuilder

T = TypeVar("T")


class AsyncRestClient:
    """Asynchronous client for the REST API."""

    def __init__(
        self,
        options: ClientOptions | None = None,
        *,
        http: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize async client.

        Args:
            options: Client options; built from ``kwargs`` when omitted.
            http: HTTP client to use instead of a newly created one.
            **kwargs: ClientOptions fields.
        """
        self.options = options or ClientOptions(**kwargs)
        self._http = http or create_async_http_client(self.options)
        self.auth = Auth(self)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    @property
    def format(self) -> Format:
        return self.options.format

    def request(
        self,
        method: str,
        path: str,
        *,
        authenticate: bool = True,
    ) -> RequestBuilder:
        """Start building a request to a path of the REST API.

        Args:
            method: HTTP method.
            path: Path replacing that of the configured REST URL.
            authenticate: Whether to attach an Authorization header.

        Returns:
            RequestBuilder for the request.
        """
        url = httpx.URL(self.options.rest_url_str).copy_with(path=path)
        builder = RequestBuilder(
            self._http,
            method,
            url,
            format=self.format,
            auth=self.auth if authenticate else None,
        )
        return builder.headers({"Accept": CONTENT_TYPES[self.format]})

    def request_url(self, method: str, url: str) -> RequestBuilder:
        """Start building an unauthenticated request to an absolute URL."""
        return RequestBuilder(self._http, method, url, format=self.format)

    def paginated_request(
        self,
        method: str,
        path: str,
        item_type: type[T] | Any = Any,
        handler: ItemHandler[T] | None = None,
    ) -> PaginatedRequestBuilder[T]:
        """Start building a paginated request to a path of the REST API.

        Args:
            method: HTTP method (normally GET).
            path: Path of the resource listing.
            item_type: Type each item of a page is decoded into.
            handler: Optional function applied to each decoded item.

        Returns:
            PaginatedRequestBuilder for the request.
        """
        return PaginatedRequestBuilder(self.request(method, path), item_type, handler)
