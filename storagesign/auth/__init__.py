"""
StorageSign Authentication Module.

Builds canonicalized resources and strings-to-sign and assembles Shared Key
Authorization headers.

Author: StorageSign Team
Date: 2026-10-18
"""

from storagesign.auth.exceptions import (
    SigningError,
    MalformedURLError,
    MalformedQueryError,
    UnsupportedAuthVariantError,
    InvalidAccountKeyError,
)
from storagesign.auth.variants import AuthVariant, coerce_variant
from storagesign.auth.resource import (
    build_canonicalized_resource,
    canonicalize_account_name,
    escape_path,
    parse_query,
)
from storagesign.auth.string_to_sign import (
    build_canonicalized_headers,
    build_canonicalized_string,
    normalize_header_name,
    resolve_date,
)
from storagesign.auth.sharedkey import (
    SharedKeySigner,
    compute_signature,
    decode_account_key,
)

__all__ = [
    # Exceptions
    "SigningError",
    "MalformedURLError",
    "MalformedQueryError",
    "UnsupportedAuthVariantError",
    "InvalidAccountKeyError",
    # Variants
    "AuthVariant",
    "coerce_variant",
    # Canonicalization
    "build_canonicalized_resource",
    "canonicalize_account_name",
    "escape_path",
    "parse_query",
    "build_canonicalized_headers",
    "build_canonicalized_string",
    "normalize_header_name",
    "resolve_date",
    # SharedKey signing
    "SharedKeySigner",
    "compute_signature",
    "decode_account_key",
]
