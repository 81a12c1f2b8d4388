"""
Unit tests for request signing.
"""

import base64

import pytest
from nacl.encoding import RawEncoder
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey

from retail_client.auth.signer import (
    MAX_TIMESTAMP_SKEW_MS,
    RequestSigner,
    build_headers,
    load_signing_key,
    sign,
    signing_message,
    validate_timestamp,
)
from tests.conftest import FIXED_TS, SEED


class TestSigningMessage:
    """Test signing message construction"""

    def test_query_string_is_dropped(self):
        """Test the query never enters the signed message"""
        message = signing_message(FIXED_TS, "GET", "/v1/portfolio/positions?limit=10")
        assert message == "1704067200000GET/v1/portfolio/positions"

    def test_method_is_uppercased(self):
        """Test lower-case methods are normalized"""
        assert signing_message(1, "post", "/v1/orders") == "1POST/v1/orders"

    def test_fragment_is_dropped(self):
        """Test fragments are removed along with the query"""
        assert signing_message(1, "GET", "/v1/markets?active=true#top") == "1GET/v1/markets"


class TestSign:
    """Test detached signatures"""

    def test_signature_verifies(self, signing_key):
        """Test signature verifies against the public key"""
        signature = sign(signing_key, FIXED_TS, "GET", "/v1/portfolio/positions?limit=10")

        assert len(signature) == 64
        signing_key.verify_key.verify(b"1704067200000GET/v1/portfolio/positions", signature)

    def test_signature_bound_to_timestamp(self, signing_key):
        """Test a signature does not verify for another timestamp"""
        signature = sign(signing_key, FIXED_TS, "GET", "/v1/markets")

        with pytest.raises(BadSignatureError):
            signing_key.verify_key.verify(b"1704067200001GET/v1/markets", signature)

    def test_build_headers(self, signing_key):
        """Test REST headers carry key, timestamp and base64 signature"""
        signature = sign(signing_key, FIXED_TS, "GET", "/v1/markets")
        headers = build_headers("key-1", FIXED_TS, signature)

        assert headers["X-PM-Access-Key"] == "key-1"
        assert headers["X-PM-Timestamp"] == "1704067200000"
        assert base64.b64decode(headers["X-PM-Signature"]) == signature


class TestLoadSigningKey:
    """Test private key decoding"""

    def test_seed_form(self, signing_key):
        """Test 32-byte seed is accepted"""
        key = load_signing_key(base64.b64encode(SEED).decode())
        assert key.verify_key == signing_key.verify_key

    def test_full_form(self, private_key_b64, signing_key):
        """Test 64-byte seed + public key is accepted"""
        key = load_signing_key(private_key_b64)
        assert key.verify_key == signing_key.verify_key

    def test_mismatched_public_half(self):
        """Test 64-byte key whose public half is wrong is rejected"""
        other = SigningKey.generate().verify_key.encode(RawEncoder)
        with pytest.raises(ValueError, match="public half"):
            load_signing_key(base64.b64encode(SEED + other).decode())

    def test_wrong_length(self):
        """Test keys of other lengths are rejected"""
        with pytest.raises(ValueError, match="length"):
            load_signing_key(base64.b64encode(b"x" * 16).decode())

    def test_bad_base64(self):
        """Test non-base64 input is rejected"""
        with pytest.raises(ValueError, match="decode"):
            load_signing_key("not base64!!")


class TestValidateTimestamp:
    """Test timestamp window"""

    def test_within_window(self):
        validate_timestamp(FIXED_TS, now=FIXED_TS + MAX_TIMESTAMP_SKEW_MS)
        validate_timestamp(FIXED_TS, now=FIXED_TS - MAX_TIMESTAMP_SKEW_MS)

    def test_outside_window(self):
        with pytest.raises(ValueError, match="outside valid window"):
            validate_timestamp(FIXED_TS, now=FIXED_TS + MAX_TIMESTAMP_SKEW_MS + 1)


class TestRequestSigner:
    """Test RequestSigner header production"""

    def test_rest_headers(self, signer, signing_key):
        """Test REST headers sign the bare path"""
        headers = signer.rest_headers("GET", "/v1/portfolio/positions?limit=10")
        signature = base64.b64decode(headers["X-PM-Signature"])

        assert headers["X-PM-Access-Key"] == "test-api-key"
        assert headers["X-PM-Timestamp"] == str(FIXED_TS)
        signing_key.verify_key.verify(b"1704067200000GET/v1/portfolio/positions", signature)

    def test_stream_headers(self, signer, signing_key):
        """Test stream headers sign GET on the path, passphrase signs the key"""
        headers = signer.stream_headers("/v1/ws/private")

        assert set(headers) == {"X-API-Key", "X-API-Timestamp", "X-API-Signature", "X-API-Passphrase"}
        assert headers["X-API-Key"] == "test-api-key"
        signing_key.verify_key.verify(
            b"1704067200000GET/v1/ws/private",
            base64.b64decode(headers["X-API-Signature"]),
        )
        signing_key.verify_key.verify(
            b"test-api-key",
            base64.b64decode(headers["X-API-Passphrase"]),
        )

    def test_fresh_timestamp_per_call(self, signing_key):
        """Test each call takes a new timestamp from the clock"""
        ticks = iter([100, 200])
        signer = RequestSigner("k", signing_key, clock=lambda: next(ticks))

        first = signer.rest_headers("GET", "/v1/markets")
        second = signer.rest_headers("GET", "/v1/markets")

        assert first["X-PM-Timestamp"] == "100"
        assert second["X-PM-Timestamp"] == "200"
        assert first["X-PM-Signature"] != second["X-PM-Signature"]

    def test_empty_api_key_rejected(self, signing_key):
        with pytest.raises(ValueError):
            RequestSigner("", signing_key)

    def test_verify_key_b64(self, signer, signing_key):
        assert base64.b64decode(signer.verify_key_b64) == signing_key.verify_key.encode(RawEncoder)
