"""HTTP request/response envelope for the pub/sub REST SDK.

Builds requests (query params, headers, encoded body, Authorization),
sends them through an ``httpx.AsyncClient`` and decodes responses by
Content-Type. Non-2xx responses are turned into PubSubError before they
reach the caller.
"""

from __future__ import annotations

import functools
import json
import re
from collections.abc import AsyncIterable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Self
from urllib.parse import quote

import httpx
import msgpack
from msgpack.exceptions import UnpackException
from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import Format
from .core.errors import MSGPACK_CONTENT_TYPE, ErrorFactory
from .errors import (
    ContentTypeError,
    DecodeError,
    ErrorCode,
    InvalidLinkHeaderError,
    PubSubError,
)
from .telemetry import SDK_NAME, SDK_VERSION, get_logger, trace_operation

if TYPE_CHECKING:
    from .auth import Auth
    from .config import ClientOptions
    from .models import Credential

JSON_CONTENT_TYPE = "application/json"

PROTOCOL_VERSION_HEADER = "X-Ably-Version"
PROTOCOL_VERSION = "1.2"

CONTENT_TYPES = {
    Format.JSON: JSON_CONTENT_TYPE,
    Format.MSGPACK: MSGPACK_CONTENT_TYPE,
}

# Link: <./messages?limit=10&direction=forwards&cont=true>; rel="next"
_LINK_RE = re.compile(r'^\s*<[^?]+\?(?P<params>.+)>;\s*rel="(?P<rel>\w+)"$')

# Separate link-values in one header; commas inside a URI are left alone.
_LINK_SPLIT_RE = re.compile(r",\s*(?=<)")

# Characters kept as-is when re-encoding a Link query; "%" keeps existing escapes.
_QUERY_SAFE = "!$&'()*+,/:;=?@[]~%"

QueryParams = Mapping[str, Any] | Iterable[tuple[str, Any]]


def create_async_http_client(options: ClientOptions) -> httpx.AsyncClient:
    """Create configured async HTTP client.

    Args:
        options: Client options.

    Returns:
        Configured httpx.AsyncClient.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=options.connect_timeout,
            read=options.timeout,
            write=options.timeout,
            pool=options.timeout,
        ),
        headers={"User-Agent": f"{SDK_NAME}/{SDK_VERSION} Python"},
        follow_redirects=False,
    )


def content_type_essence(value: str | None) -> str | None:
    """Return the lower-cased ``type/subtype`` of a Content-Type value."""
    if not value:
        return None
    essence = value.split(";", 1)[0].strip().lower()
    return essence or None


@functools.lru_cache(maxsize=128)
def _adapter(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


def encode_body(body: Any, format: Format) -> bytes:
    """Encode a request body in the given format.

    Pydantic models are dumped with their wire aliases, omitting unset
    optional fields.
    """
    if isinstance(body, BaseModel):
        mode = "json" if format == Format.JSON else "python"
        body = body.model_dump(mode=mode, by_alias=True, exclude_none=True)
    if format == Format.MSGPACK:
        return msgpack.packb(body, use_bin_type=True)
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


@dataclass(frozen=True)
class Link:
    """A parsed ``Link`` response header."""

    rel: str
    params: str

    @classmethod
    def parse(cls, value: str) -> Self:
        """Parse a header value like ``<./path?params>; rel="next"``.

        Raises:
            InvalidLinkHeaderError: If the value does not match.
        """
        match = _LINK_RE.match(value)
        if match is None:
            raise InvalidLinkHeaderError()
        return cls(rel=match["rel"], params=match["params"])


class Response:
    """A successful response from the REST API."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def raw(self) -> httpx.Response:
        """Get the underlying httpx response."""
        return self._response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    def content_type(self) -> str | None:
        """Get the Content-Type essence, e.g. ``application/json``."""
        return content_type_essence(self._response.headers.get("content-type"))

    def links(self) -> list[Link]:
        """Get all well-formed Link headers; malformed ones are skipped."""
        links: list[Link] = []
        for header in self._response.headers.get_list("link"):
            for value in _LINK_SPLIT_RE.split(header):
                try:
                    links.append(Link.parse(value))
                except InvalidLinkHeaderError:
                    get_logger().debug("Ignoring malformed Link header", link=value)
        return links

    def next_link(self) -> Link | None:
        """Get the ``rel="next"`` link, if any."""
        return next((link for link in self.links() if link.rel == "next"), None)

    def json(self) -> Any:
        """Decode the body as JSON."""
        try:
            return self._response.json()
        except ValueError as e:
            raise DecodeError(f"Invalid JSON response body: {e}", cause=e) from e

    def msgpack(self) -> Any:
        """Decode the body as MessagePack."""
        try:
            return msgpack.unpackb(self._response.content, raw=False)
        except (ValueError, TypeError, UnpackException) as e:
            raise DecodeError(f"Invalid MessagePack response body: {e}", cause=e) from e

    def text(self) -> str:
        """Get the body as text."""
        return self._response.text

    def body(self, type_: Any = Any) -> Any:
        """Decode the body according to its Content-Type.

        Args:
            type_: Type to validate the decoded data into.

        Returns:
            Decoded (and validated) body.

        Raises:
            ContentTypeError: If the Content-Type is missing or unsupported.
            DecodeError: If the body cannot be decoded into ``type_``.
        """
        content_type = self.content_type()
        if content_type is None:
            raise ContentTypeError("missing content-type")

        if content_type == JSON_CONTENT_TYPE:
            data = self.json()
        elif content_type == MSGPACK_CONTENT_TYPE:
            data = self.msgpack()
        else:
            raise ContentTypeError(
                f"invalid response content-type: {content_type}",
                content_type=content_type,
            )

        if type_ is Any:
            return data
        try:
            return _adapter(type_).validate_python(data)
        except ValidationError as e:
            raise DecodeError(f"Unexpected response body: {e}", cause=e) from e


class Request:
    """A built request, ready to be sent."""

    def __init__(self, http: httpx.AsyncClient, request: httpx.Request) -> None:
        self._http = http
        self._request = request

    @property
    def raw(self) -> httpx.Request:
        """Get the underlying httpx request."""
        return self._request

    @property
    def method(self) -> str:
        return self._request.method

    @property
    def url(self) -> httpx.URL:
        return self._request.url

    @property
    def headers(self) -> httpx.Headers:
        return self._request.headers

    def try_clone(self) -> Request | None:
        """Copy method, URL, headers and body.

        Returns None when the body is a stream that has not been read.
        """
        try:
            content = self._request.content
        except httpx.RequestNotRead:
            return None
        clone = httpx.Request(
            self._request.method,
            self._request.url,
            headers=self._request.headers,
            content=content,
            extensions=dict(self._request.extensions),
        )
        return Request(self._http, clone)

    def with_query(self, query: str) -> Request:
        """Return a copy of this request with its query string replaced.

        Characters that may not appear in a URL query are percent-encoded
        as UTF-8.

        Raises:
            InvalidLinkHeaderError: If the query still does not form a valid URL.
        """
        encoded = quote(query, safe=_QUERY_SAFE).encode("ascii")
        try:
            url = self._request.url.copy_with(query=encoded)
        except httpx.InvalidURL as e:
            raise InvalidLinkHeaderError(f"Invalid Link header query: {e}") from e
        clone = httpx.Request(
            self._request.method,
            url,
            headers=self._request.headers,
            content=self._request.content,
            extensions=dict(self._request.extensions),
        )
        return Request(self._http, clone)

    async def send(self) -> Response:
        """Send the request.

        Returns:
            The successful (2xx) response.

        Raises:
            PubSubError: Decoded from the error body of a non-2xx response,
                or an UnexpectedError carrying the HTTP status.
            NetworkError: On transport failure.
            TimeoutError: On transport timeout.
        """
        url = self._request.url.copy_with(query=None)
        with trace_operation(
            "http_request",
            attributes={"http.method": self._request.method, "http.url": str(url)},
        ):
            try:
                response = await self._http.send(self._request)
            except httpx.HTTPError as e:
                get_logger().warning(
                    "Request failed",
                    method=self._request.method,
                    url=str(url),
                    error=str(e),
                )
                raise ErrorFactory.from_exception(e) from e

            get_logger().debug(
                "Received response",
                method=self._request.method,
                url=str(url),
                status_code=response.status_code,
            )

            if response.is_success:
                return Response(response)

            raise ErrorFactory.from_http_response(response)


class RequestBuilder:
    """Accumulates the parts of a request to the REST API.

    Query params are additive. The Authorization header is attached only
    when the request is built: from an explicit credential if one was set,
    otherwise from ``Auth`` when authentication is enabled.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        method: str,
        url: httpx.URL | str,
        *,
        format: Format = Format.MSGPACK,
        auth: Auth | None = None,
    ) -> None:
        self._http = http
        self._method = method.upper()
        self._format = format
        self._auth = auth
        self._credential: Credential | None = None
        self._params: list[tuple[str, Any]] = []
        self._headers = httpx.Headers()
        self._content: bytes | AsyncIterable[bytes] | None = None
        self._form: dict[str, str] | None = None
        self._error: PubSubError | None = None
        try:
            self._url = httpx.URL(url)
        except httpx.InvalidURL as e:
            self._url = httpx.URL()
            self._error = PubSubError(
                f"Invalid request URL: {e}", ErrorCode.BAD_REQUEST, status_code=400
            )

    def format(self, format: Format) -> Self:
        """Set the body format."""
        self._format = format
        return self

    def params(self, params: QueryParams) -> Self:
        """Add query params; existing params are kept."""
        items = params.items() if isinstance(params, Mapping) else params
        self._params.extend((str(k), v) for k, v in items)
        return self

    def headers(self, headers: Mapping[str, str]) -> Self:
        """Add HTTP headers to the request."""
        self._headers.update(headers)
        return self

    def body(self, body: Any) -> Self:
        """Set the request body, encoded in the builder's format.

        An encoding failure is raised when the request is built.
        """
        try:
            self._content = encode_body(body, self._format)
        except (TypeError, ValueError, OverflowError) as e:
            self._error = PubSubError(
                f"Unable to encode request body: {e}",
                ErrorCode.BAD_REQUEST,
                status_code=400,
            )
            return self
        self._headers["Content-Type"] = CONTENT_TYPES[self._format]
        return self

    def form(self, data: Mapping[str, str]) -> Self:
        """Set a form-encoded request body."""
        self._form = dict(data)
        return self

    def content(
        self,
        content: bytes | AsyncIterable[bytes],
        content_type: str,
    ) -> Self:
        """Set a raw request body; streamed bodies cannot be paginated."""
        self._content = content
        self._headers["Content-Type"] = content_type
        return self

    def auth(self, credential: Credential) -> Self:
        """Attach an explicit credential."""
        self._credential = credential
        return self

    def authenticate(self, enabled: bool) -> Self:
        """Enable or disable authentication for this request."""
        if not enabled:
            self._auth = None
            self._credential = None
        return self

    def build(self, credential: Credential | None = None) -> Request:
        """Build the request with an optional credential.

        Raises:
            PubSubError: If an earlier builder step failed.
        """
        if self._error is not None:
            raise self._error

        headers = httpx.Headers(self._headers)
        headers[PROTOCOL_VERSION_HEADER] = PROTOCOL_VERSION

        credential = credential or self._credential
        if credential is not None:
            headers["Authorization"] = credential.authorization_header()

        url = self._url
        if self._params:
            existing = httpx.QueryParams(url.query.decode("ascii"))
            url = url.copy_with(params=[*existing.multi_items(), *self._params])

        try:
            request = self._http.build_request(
                self._method,
                url,
                headers=headers,
                content=self._content,
                data=self._form,
            )
        except (httpx.HTTPError, TypeError, ValueError) as e:
            raise PubSubError(
                f"Unable to build request: {e}", ErrorCode.BAD_REQUEST, status_code=400
            ) from e
        return Request(self._http, request)

    async def prepare(self) -> Request:
        """Resolve the credential (if needed) and build the request."""
        credential = self._credential
        if credential is None and self._auth is not None:
            credential = await self._auth.credential()
        return self.build(credential)

    async def send(self) -> Response:
        """Build and send the request."""
        request = await self.prepare()
        return await request.send()
