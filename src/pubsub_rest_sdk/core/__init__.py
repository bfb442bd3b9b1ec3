"""Core components for the pub/sub REST SDK.

Error mapping and token request signing shared by the auth and HTTP layers.
"""

from __future__ import annotations

from .errors import ErrorFactory
from .token_ops import compute_mac, generate_nonce, sign

__all__ = [
    "ErrorFactory",
    "compute_mac",
    "generate_nonce",
    "sign",
]
