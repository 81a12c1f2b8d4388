"""
Request authentication.

Modules:
    signer: Ed25519 signing and header construction
"""

from retail_client.auth.signer import (
    MAX_TIMESTAMP_SKEW_MS,
    RequestSigner,
    build_headers,
    build_stream_headers,
    load_signing_key,
    now_ms,
    sign,
    signing_message,
    validate_timestamp,
)

__all__: list[str] = [
    "MAX_TIMESTAMP_SKEW_MS",
    "RequestSigner",
    "build_headers",
    "build_stream_headers",
    "load_signing_key",
    "now_ms",
    "sign",
    "signing_message",
    "validate_timestamp",
]
