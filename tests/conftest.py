"""
Shared test fixtures for pub/sub REST SDK tests.

Provides HTTP mocking through ``httpx.MockTransport``, client options and
test data.
"""

from collections.abc import Callable
from typing import Any

import httpx
import pytest
from hypothesis import settings

from pubsub_rest_sdk.client import AsyncRestClient
from pubsub_rest_sdk.config import ClientOptions, Format
from pubsub_rest_sdk.models import Key

settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=50)
settings.load_profile("dev")

REST_URL = "https://rest.example.com"
KEY_STRING = "appId.keyId:keySecret"

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def api_key() -> Key:
    """Provide a parsed API key."""
    return Key.parse(KEY_STRING)


@pytest.fixture
def base_options() -> ClientOptions:
    """Provide key-authenticated JSON client options."""
    return ClientOptions(key=KEY_STRING, rest_url=REST_URL, format=Format.JSON)


@pytest.fixture
def make_client() -> Callable[..., tuple[AsyncRestClient, RecordingTransport]]:
    """Provide a factory for clients backed by a recording mock transport."""

    def factory(handler: Handler, **options: Any) -> tuple[AsyncRestClient, RecordingTransport]:
        options.setdefault("rest_url", REST_URL)
        options.setdefault("format", Format.JSON)
        transport = RecordingTransport(handler)
        client = AsyncRestClient(
            ClientOptions(**options),
            http=httpx.AsyncClient(transport=transport),
        )
        return client, transport

    return factory


@pytest.fixture
def sample_token_details() -> dict:
    """Provide a sample requestToken response body."""
    return {
        "token": "xVLyHw.CLchevH3hF4IdY9Zr4NQZ",
        "keyName": "appId.keyId",
        "issued": 1635552598723,
        "expires": 1635556198723,
        "capability": '{"*":["*"]}',
    }
