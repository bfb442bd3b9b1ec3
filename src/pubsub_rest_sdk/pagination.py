"""Paginated requests for the pub/sub REST SDK.

A paginated request yields pages lazily: each page is fetched only when the
consumer asks for it, and the request for the following page is derived from
the ``Link: <...?params>; rel="next"`` header of the current response.

Iteration produces zero or more pages and then either ends, or raises a
single error after which the iterator is exhausted::

    async for page in client.paginated_request("GET", "/channels", Channel).pages():
        for channel in page.items():
            ...
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, Generic, Self, TypeVar

from .errors import ErrorCode, NotPageableError, PubSubError
from .http import Link, QueryParams, Request, RequestBuilder, Response
from .models import to_milliseconds

T = TypeVar("T")

ItemHandler = Callable[[T], T]


class PaginatedResult(Generic[T]):
    """A single page of a paginated response."""

    def __init__(
        self,
        response: Response,
        item_type: Any = Any,
        handler: ItemHandler[T] | None = None,
    ) -> None:
        self._response = response
        self._item_type = item_type
        self._handler = handler

    @property
    def response(self) -> Response:
        return self._response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def items(self) -> list[T]:
        """Decode the page's items, running each through the item handler."""
        items: list[T] = self._response.body(list[self._item_type])
        if self._handler is not None:
            items = [self._handler(item) for item in items]
        return items

    def next_link(self) -> Link | None:
        return self._response.next_link()

    def has_next(self) -> bool:
        return self.next_link() is not None

    def is_last(self) -> bool:
        return not self.has_next()


class PageIterator(Generic[T]):
    """Async iterator over the pages of a paginated request.

    The only state is the pending next request (a builder, a built request,
    or the error building it produced); no pending request means exhausted.
    """

    def __init__(
        self,
        builder: RequestBuilder,
        item_type: Any = Any,
        handler: ItemHandler[T] | None = None,
    ) -> None:
        self._pending: RequestBuilder | Request | PubSubError | None = builder
        self._item_type = item_type
        self._handler = handler

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> PaginatedResult[T]:
        pending, self._pending = self._pending, None

        if pending is None:
            raise StopAsyncIteration

        if isinstance(pending, PubSubError):
            raise pending

        if isinstance(pending, RequestBuilder):
            request = await pending.prepare()
        else:
            request = pending

        # Clone before sending so the next page keeps method, URL and headers
        # (including Authorization).
        clone = request.try_clone()

        response = await request.send()
        page = PaginatedResult(response, self._item_type, self._handler)

        link = response.next_link()
        if link is not None:
            if clone is None:
                self._pending = NotPageableError()
            else:
                try:
                    self._pending = clone.with_query(link.params)
                except PubSubError as e:
                    self._pending = e

        return page


class PaginatedRequestBuilder(Generic[T]):
    """Builds a paginated request and exposes its pages."""

    def __init__(
        self,
        builder: RequestBuilder,
        item_type: Any = Any,
        handler: ItemHandler[T] | None = None,
    ) -> None:
        self._builder = builder
        self._item_type = item_type
        self._handler = handler

    def params(self, params: QueryParams) -> Self:
        """Add query params to the first request."""
        self._builder.params(params)
        return self

    def start(self, interval: datetime | int | str) -> Self:
        return self.params({"start": _interval(interval)})

    def end(self, interval: datetime | int | str) -> Self:
        return self.params({"end": _interval(interval)})

    def forwards(self) -> Self:
        return self.params({"direction": "forwards"})

    def backwards(self) -> Self:
        return self.params({"direction": "backwards"})

    def limit(self, limit: int) -> Self:
        return self.params({"limit": str(limit)})

    def pages(self) -> PageIterator[T]:
        """Start iterating pages from the first one."""
        return PageIterator(self._builder, self._item_type, self._handler)

    async def send(self) -> PaginatedResult[T]:
        """Retrieve the first page."""
        async for page in self.pages():
            return page
        raise PubSubError(
            "Unexpected error retrieving first page",
            ErrorCode.BAD_REQUEST,
            status_code=400,
        )


def _interval(value: datetime | int | str) -> str:
    if isinstance(value, datetime):
        return str(to_milliseconds(value))
    return str(value)
