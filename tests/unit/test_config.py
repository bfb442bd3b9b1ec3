"""Unit tests for client options."""

import pytest
from pydantic import ValidationError

import pubsub_rest_sdk
from pubsub_rest_sdk.config import DEFAULT_REST_URL, ClientOptions, Format
from pubsub_rest_sdk.errors import InvalidKeyError
from pubsub_rest_sdk.models import Key, TokenDetails, TokenRequest


class TestClientOptions:
    """Tests for ClientOptions validation."""

    def test_defaults(self) -> None:
        options = ClientOptions()

        assert options.key is None
        assert options.token is None
        assert options.auth_method == "GET"
        assert options.use_token_auth is False
        assert options.format == Format.MSGPACK
        assert options.rest_url_str == DEFAULT_REST_URL
        assert options.auth_url_str is None

    def test_key_string_is_parsed(self) -> None:
        options = ClientOptions(key="appId.keyId:keySecret")

        assert options.key == Key(name="appId.keyId", value="keySecret")

    def test_invalid_key_string(self) -> None:
        with pytest.raises(InvalidKeyError):
            ClientOptions(key="no-separator")

    def test_token_mapping_is_decoded(self) -> None:
        options = ClientOptions(token={"token": "abc123"})

        assert isinstance(options.token, TokenDetails)
        assert options.token.token == "abc123"

    def test_token_request_mapping_is_decoded(self) -> None:
        options = ClientOptions(
            token={"keyName": "appId.keyId", "timestamp": 1635552598723, "nonce": "n", "mac": "m"}
        )

        assert isinstance(options.token, TokenRequest)

    def test_literal_token(self) -> None:
        assert ClientOptions(token="abc123").token == "abc123"

    def test_auth_method_normalized(self) -> None:
        assert ClientOptions(auth_method="post").auth_method == "POST"

    def test_invalid_auth_method(self) -> None:
        with pytest.raises(ValidationError, match="Unsupported auth_method"):
            ClientOptions(auth_method="PUT")

    def test_invalid_auth_callback(self) -> None:
        with pytest.raises(ValidationError, match="auth_callback"):
            ClientOptions(auth_callback=42)

    def test_invalid_timeout(self) -> None:
        with pytest.raises(ValidationError):
            ClientOptions(timeout=0)

    def test_rest_url_without_trailing_slash(self) -> None:
        options = ClientOptions(rest_url="https://rest.example.com/")

        assert options.rest_url_str == "https://rest.example.com"

    def test_frozen(self) -> None:
        options = ClientOptions()

        with pytest.raises(ValidationError):
            options.use_token_auth = True  # type: ignore[misc]

    def test_with_overrides(self) -> None:
        options = ClientOptions(key="appId.keyId:keySecret", client_id="alice")

        updated = options.with_overrides(use_token_auth=True)

        assert updated.use_token_auth is True
        assert updated.key == options.key
        assert updated.client_id == "alice"
        assert options.use_token_auth is False


    def test_environment_is_not_read(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ABLY_KEY", "appId.keyId:keySecret")
        monkeypatch.setenv("ABLY_CLIENT_ID", "alice")

        options = ClientOptions()

        assert options.key is None
        assert options.client_id is None
        assert not hasattr(ClientOptions, "from_env")
        assert "telemetry" not in ClientOptions.model_fields
        assert not hasattr(pubsub_rest_sdk, "configure_telemetry")
