"""Unit tests for token request signing."""

import base64
import hashlib
import hmac
from datetime import UTC, datetime

import pytest

from pubsub_rest_sdk.core.token_ops import (
    NONCE_LENGTH,
    canonical_token_request,
    compute_mac,
    generate_nonce,
    sign,
)
from pubsub_rest_sdk.errors import InvalidClientIdError
from pubsub_rest_sdk.models import Key, TokenParams

KEY = Key.parse("appId.keyId:keySecret")
TIMESTAMP = datetime(2021, 10, 30, 0, 9, 58, 723000, tzinfo=UTC)


def expected_mac(secret: str, text: str) -> str:
    digest = hmac.new(secret.encode(), text.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


class TestNonce:
    """Tests for nonce generation."""

    def test_default_length(self) -> None:
        nonce = generate_nonce()

        assert len(nonce) == NONCE_LENGTH == 16
        assert nonce.isascii()
        assert nonce.isalnum()

    def test_nonces_differ(self) -> None:
        assert len({generate_nonce() for _ in range(20)}) == 20


class TestSign:
    """Tests for signing token params with an API key."""

    def test_canonical_form(self) -> None:
        params = TokenParams(
            capability='{"*":["*"]}',
            client_id="alice",
            nonce="abcdefghijklmnop",
            timestamp=TIMESTAMP,
            ttl=3600000,
        )

        request = sign(params, KEY)

        assert canonical_token_request(KEY, request) == (
            b'appId.keyId\n3600000\n{"*":["*"]}\nalice\n1635552598723\nabcdefghijklmnop\n'
        )

    def test_mac_is_hmac_sha256_of_canonical_form(self) -> None:
        params = TokenParams(
            capability='{"*":["*"]}',
            client_id="alice",
            nonce="abcdefghijklmnop",
            timestamp=TIMESTAMP,
            ttl=3600000,
        )

        request = sign(params, KEY)

        assert request.mac == expected_mac(
            "keySecret",
            'appId.keyId\n3600000\n{"*":["*"]}\nalice\n1635552598723\nabcdefghijklmnop\n',
        )

    def test_absent_fields_are_empty_lines(self) -> None:
        request = sign(TokenParams(nonce="n", timestamp=TIMESTAMP), KEY)

        assert canonical_token_request(KEY, request) == b"appId.keyId\n\n\n\n1635552598723\nn\n"
        assert request.mac == expected_mac("keySecret", "appId.keyId\n\n\n\n1635552598723\nn\n")

    def test_signed_fields(self) -> None:
        request = sign(TokenParams(client_id="alice", ttl=60), KEY)

        assert request.key_name == "appId.keyId"
        assert request.client_id == "alice"
        assert request.ttl == 60
        assert request.capability is None
        assert request.mac == compute_mac(KEY, request)

    def test_generates_timestamp_and_nonce(self) -> None:
        before = datetime.now(UTC)
        request = sign(TokenParams(), KEY)
        after = datetime.now(UTC)

        assert before <= request.timestamp <= after
        assert len(request.nonce) == NONCE_LENGTH

    def test_params_are_not_modified(self) -> None:
        params = TokenParams(client_id="alice")

        sign(params, KEY)

        assert params.nonce is None
        assert params.timestamp is None

    def test_deterministic_for_fixed_inputs(self) -> None:
        params = TokenParams(nonce="abcdefghijklmnop", timestamp=TIMESTAMP, ttl=60)

        assert sign(params, KEY).mac == sign(params, KEY).mac

    def test_mac_changes_with_fields(self) -> None:
        params = TokenParams(nonce="abcdefghijklmnop", timestamp=TIMESTAMP, ttl=60)

        original = sign(params, KEY).mac

        assert sign(params.merge(TokenParams(ttl=61)), KEY).mac != original
        assert sign(params.merge(TokenParams(client_id="bob")), KEY).mac != original
        assert sign(params.merge(TokenParams(nonce="ponmlkjihgfedcba")), KEY).mac != original
        assert sign(params, Key.parse("appId.keyId:otherSecret")).mac != original

    def test_empty_client_id_rejected(self) -> None:
        with pytest.raises(InvalidClientIdError) as exc_info:
            sign(TokenParams(client_id=""), KEY)

        assert exc_info.value.code == 40012
        assert exc_info.value.message == "client_id can't be an empty string"

    def test_explicit_empty_nonce_is_kept(self) -> None:
        request = sign(TokenParams(nonce="", timestamp=TIMESTAMP), KEY)

        assert request.nonce == ""
        assert "nonce" not in request.to_wire()
