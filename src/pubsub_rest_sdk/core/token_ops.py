"""Token request signing for the pub/sub REST SDK.

Implements the canonical MAC over a TokenRequest's fields so that a request
signed locally with an API key is accepted by the service's requestToken
endpoint.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import string
from datetime import UTC, datetime

from ..errors import InvalidClientIdError
from ..models import Key, TokenParams, TokenRequest, to_milliseconds

NONCE_LENGTH = 16

_NONCE_ALPHABET = string.ascii_letters + string.digits


def generate_nonce(length: int = NONCE_LENGTH) -> str:
    """Generate a random alphanumeric nonce.

    Args:
        length: Number of characters.

    Returns:
        Random string of ASCII letters and digits.
    """
    return "".join(secrets.choice(_NONCE_ALPHABET) for _ in range(length))


def canonical_token_request(key: Key, request: TokenRequest) -> bytes:
    """Build the newline-joined byte sequence covered by the MAC.

    Field order is key name, ttl, capability, client_id, timestamp in
    milliseconds, nonce; each is followed by a newline and absent fields
    contribute an empty string.
    """
    fields = [
        key.name,
        str(request.ttl) if request.ttl is not None else "",
        request.capability or "",
        request.client_id or "",
        str(to_milliseconds(request.timestamp)),
        request.nonce,
    ]
    return "".join(f"{field}\n" for field in fields).encode("utf-8")


def compute_mac(key: Key, request: TokenRequest) -> str:
    """Compute the base64-encoded HMAC-SHA256 of a token request.

    Args:
        key: API key whose secret value keys the HMAC.
        request: Token request to sign (its ``mac`` is ignored).

    Returns:
        Base64-encoded digest.
    """
    digest = hmac.new(
        key.value.encode("utf-8"),
        canonical_token_request(key, request),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(params: TokenParams, key: Key) -> TokenRequest:
    """Sign token params with an API key.

    Missing timestamp and nonce are generated; ``params`` itself is left
    untouched.

    Args:
        params: Requested token parameters.
        key: API key to sign with.

    Returns:
        Signed TokenRequest with ``mac`` set.

    Raises:
        InvalidClientIdError: If client_id is present but empty.
    """
    if params.client_id is not None and params.client_id == "":
        raise InvalidClientIdError()

    unsigned = TokenRequest(
        key_name=key.name,
        timestamp=params.timestamp or datetime.now(UTC),
        capability=params.capability,
        client_id=params.client_id,
        nonce=params.nonce if params.nonce is not None else generate_nonce(),
        ttl=params.ttl,
    )
    return unsigned.model_copy(update={"mac": compute_mac(key, unsigned)})
