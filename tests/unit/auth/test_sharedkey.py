"""Tests for SharedKey Authorization header assembly."""

import base64
import hashlib
import hmac
import logging

import pytest

from storagesign.auth.exceptions import (
    InvalidAccountKeyError,
    MalformedQueryError,
    MalformedURLError,
    UnsupportedAuthVariantError,
)
from storagesign.auth.sharedkey import SharedKeySigner, compute_signature, decode_account_key
from storagesign.auth.variants import AuthVariant


KEY_BYTES = b"0123456789abcdef0123456789abcdef"
ACCOUNT_KEY = base64.b64encode(KEY_BYTES).decode("ascii")
DATE = "Tue, 01 Jan 2019 00:00:00 GMT"
URL = "https://acct.service.example/container/blob?comp=metadata&restype=container"
STRING_TO_SIGN = "GET\n/acct"


def expected_signature(string_to_sign: str) -> str:
    digest = hmac.new(KEY_BYTES, string_to_sign.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


@pytest.fixture
def signer():
    return SharedKeySigner("acct", ACCOUNT_KEY)


@pytest.fixture
def headers():
    return {
        "Content-Length": "0",
        "Date": DATE,
        "x-ms-version": "2018-03-28",
    }


class TestComputeSignature:
    """Test the HMAC-SHA256 primitive."""

    def test_matches_hmac_sha256(self):
        assert compute_signature(b"GET\n/acct", KEY_BYTES) == expected_signature("GET\n/acct")

    def test_different_keys_differ(self):
        assert compute_signature(b"GET", b"key-one") != compute_signature(b"GET", b"key-two")


class TestAccountKey:
    """Test account key decoding at signer construction."""

    def test_decode(self):
        assert decode_account_key(ACCOUNT_KEY) == KEY_BYTES

    @pytest.mark.parametrize("key", ["", "not base64!!", "abc"])
    def test_invalid_key_rejected(self, key):
        with pytest.raises(InvalidAccountKeyError) as exc_info:
            SharedKeySigner("acct", key)

        assert exc_info.value.error_code == "InvalidAccountKey"

    def test_invalid_default_variant_rejected(self):
        with pytest.raises(UnsupportedAuthVariantError):
            SharedKeySigner("acct", ACCOUNT_KEY, default_variant="Digest")


class TestCreateAuthorizationHeader:
    """Test scheme label selection and formatting."""

    @pytest.mark.parametrize("variant,scheme", [
        (AuthVariant.SHARED_KEY, "SharedKey"),
        (AuthVariant.SHARED_KEY_FOR_TABLE, "SharedKey"),
        (AuthVariant.SHARED_KEY_LITE, "SharedKeyLite"),
        (AuthVariant.SHARED_KEY_LITE_FOR_TABLE, "SharedKeyLite"),
    ])
    def test_scheme_label(self, signer, variant, scheme):
        header = signer.create_authorization_header(STRING_TO_SIGN, variant)

        assert header == f"{scheme} acct:{expected_signature(STRING_TO_SIGN)}"

    def test_custom_sign_function(self):
        calls = []

        def sign(message, key):
            calls.append((message, key))
            return "c2lnbmF0dXJl"

        signer = SharedKeySigner("acct", ACCOUNT_KEY, sign=sign)

        header = signer.create_authorization_header("a\nb", AuthVariant.SHARED_KEY_LITE)

        assert header == "SharedKeyLite acct:c2lnbmF0dXJl"
        assert calls == [(b"a\nb", KEY_BYTES)]

    def test_utf8_string_to_sign(self, signer):
        header = signer.create_authorization_header("PUT\n/acct/café", AuthVariant.SHARED_KEY)

        assert header.endswith(expected_signature("PUT\n/acct/café"))


class TestGetSharedKey:
    """Test end-to-end signing."""

    def test_example_request(self, signer, headers):
        string_to_sign = (
            "GET\n\n\n\n\n\n" + DATE + "\n\n\n\n\n\n"
            "x-ms-version:2018-03-28\n"
            "/acct/container/blob\ncomp:metadata\nrestype:container"
        )

        header = signer.get_shared_key("GET", URL, headers, AuthVariant.SHARED_KEY)

        assert header == f"SharedKey acct:{expected_signature(string_to_sign)}"

    def test_lite_table_example(self, signer, headers):
        string_to_sign = f"{DATE}\n/acct/container/blob?comp=metadata"

        header = signer.get_shared_key("GET", URL, headers, AuthVariant.SHARED_KEY_LITE_FOR_TABLE)

        assert header == f"SharedKeyLite acct:{expected_signature(string_to_sign)}"

    def test_deterministic(self, signer, headers):
        first = signer.get_shared_key("GET", URL, headers, AuthVariant.SHARED_KEY)
        second = signer.get_shared_key("GET", URL, dict(headers), AuthVariant.SHARED_KEY)

        assert first == second

    def test_secondary_account(self, headers):
        """Test the -secondary suffix is dropped from resource and header."""
        secondary = SharedKeySigner("acct-secondary", ACCOUNT_KEY)
        primary = SharedKeySigner("acct", ACCOUNT_KEY)

        assert secondary.canonicalized_account_name == "acct"
        assert secondary.build_canonicalized_resource(URL, AuthVariant.SHARED_KEY).startswith("/acct/")
        assert (
            secondary.get_shared_key("GET", URL, headers, AuthVariant.SHARED_KEY)
            == primary.get_shared_key("GET", URL, headers, AuthVariant.SHARED_KEY)
        )

    def test_default_variant_used(self, headers):
        signer = SharedKeySigner("acct", ACCOUNT_KEY, default_variant="SharedKeyLite")

        header = signer.get_shared_key("GET", URL, headers)

        assert header.startswith("SharedKeyLite acct:")

    def test_does_not_modify_headers(self, signer, headers):
        original = dict(headers)

        signer.get_shared_key("GET", URL, headers, AuthVariant.SHARED_KEY)

        assert headers == original


class TestAddAuthorizationHeader:
    """Test writing the Authorization header."""

    def test_header_added(self, signer, headers):
        expected = signer.get_shared_key("GET", URL, headers, AuthVariant.SHARED_KEY)

        result = signer.add_authorization_header("GET", URL, headers, AuthVariant.SHARED_KEY)

        assert result is headers
        assert headers["Authorization"] == expected
        assert headers["x-ms-version"] == "2018-03-28"

    @pytest.mark.parametrize("url,variant,error", [
        ("https://[::1/c", AuthVariant.SHARED_KEY, MalformedURLError),
        ("https://acct.blob.example/c?a=%zz", AuthVariant.SHARED_KEY, MalformedQueryError),
        (URL, "SharedKeyV2", UnsupportedAuthVariantError),
    ])
    def test_no_header_on_error(self, signer, headers, url, variant, error):
        with pytest.raises(error):
            signer.add_authorization_header("GET", url, headers, variant)

        assert "Authorization" not in headers

    def test_key_and_signature_not_logged(self, signer, headers, caplog):
        caplog.set_level(logging.DEBUG, logger="storagesign")

        signer.add_authorization_header("GET", URL, headers, AuthVariant.SHARED_KEY)

        signature = headers["Authorization"].split(":", 1)[1]
        assert "Signed request" in caplog.text
        assert signature not in caplog.text
        assert ACCOUNT_KEY not in caplog.text
