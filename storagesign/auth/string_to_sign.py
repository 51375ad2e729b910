"""
String-to-sign construction for the Shared Key variants.

Each variant signs a fixed list of newline-separated fields. A header that is
absent contributes an empty field, so the field count per variant never
changes:

    SharedKey              14 fields
    SharedKeyForTable       5 fields
    SharedKeyLite           6 fields
    SharedKeyLiteForTable   2 fields

Author: StorageSign Team
Date: 2026-10-18
"""

import logging
from typing import Dict, Mapping, Optional, Union

from storagesign.auth.exceptions import UnsupportedAuthVariantError
from storagesign.auth.variants import (
    AuthVariant,
    HEADER_CONTENT_ENCODING,
    HEADER_CONTENT_LANGUAGE,
    HEADER_CONTENT_LENGTH,
    HEADER_CONTENT_MD5,
    HEADER_CONTENT_TYPE,
    HEADER_DATE,
    HEADER_IF_MATCH,
    HEADER_IF_MODIFIED_SINCE,
    HEADER_IF_NONE_MATCH,
    HEADER_IF_UNMODIFIED_SINCE,
    HEADER_MS_DATE,
    HEADER_RANGE,
    METADATA_HEADER_PREFIX,
    coerce_variant,
)

logger = logging.getLogger(__name__)


def normalize_header_name(name: str) -> str:
    """Case-fold and trim a header name."""
    return name.strip().lower()


def fold_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """
    Re-key a header mapping by normalized header name.
    
    Values are kept verbatim.
    """
    return {normalize_header_name(name): value for name, value in headers.items()}


def build_canonicalized_headers(headers: Mapping[str, str]) -> str:
    """
    Build the CanonicalizedHeaders block.
    
    Rules:
    1. Include headers whose normalized name starts with "x-ms-"
    2. Sort by normalized name
    3. Format as "name:value", one header per line
    4. Values are not trimmed or unfolded
    
    Args:
        headers: Request headers (any casing)
    
    Returns:
        Canonicalized headers string, "" when no header matches
    """
    ms_headers = {
        name: value
        for name, value in fold_headers(headers).items()
        if name.startswith(METADATA_HEADER_PREFIX)
    }
    
    return "\n".join(f"{name}:{ms_headers[name]}" for name in sorted(ms_headers))


def resolve_date(
    date: Optional[str],
    ms_date: Optional[str],
    variant: AuthVariant
) -> str:
    """
    Resolve the Date field of the string-to-sign.
    
    When x-ms-date is present it replaces Date. SharedKey and SharedKeyLite
    sign x-ms-date inside the canonicalized headers, so their Date field is
    left empty; the table variants sign the x-ms-date value in this field.
    
    Args:
        date: Date header value, None when absent
        ms_date: x-ms-date header value, None when absent
        variant: Shared Key variant
    
    Returns:
        Value of the Date field
    """
    if ms_date is not None:
        if variant.is_table:
            return ms_date
        return ""
    return date or ""


def _content_length(headers: Dict[str, str]) -> str:
    # Zero-length bodies are signed as an empty field
    content_length = headers.get(normalize_header_name(HEADER_CONTENT_LENGTH), "")
    if content_length == "0":
        return ""
    return content_length


def build_canonicalized_string(
    verb: str,
    headers: Mapping[str, str],
    canonicalized_resource: str,
    variant: Union[AuthVariant, str]
) -> str:
    """
    Build the string-to-sign for a request.
    
    Args:
        verb: HTTP method, signed as given
        headers: Request headers (any casing)
        canonicalized_resource: Output of build_canonicalized_resource
        variant: Shared Key variant
    
    Returns:
        String to sign (no trailing newline)
    
    Raises:
        UnsupportedAuthVariantError: If the variant is unknown
    """
    variant = coerce_variant(variant)
    folded = fold_headers(headers)
    
    def header(name: str) -> str:
        return folded.get(normalize_header_name(name), "")
    
    date = resolve_date(
        folded.get(normalize_header_name(HEADER_DATE)),
        folded.get(normalize_header_name(HEADER_MS_DATE)),
        variant
    )
    
    if variant == AuthVariant.SHARED_KEY:
        parts = [
            verb,
            header(HEADER_CONTENT_ENCODING),
            header(HEADER_CONTENT_LANGUAGE),
            _content_length(folded),
            header(HEADER_CONTENT_MD5),
            header(HEADER_CONTENT_TYPE),
            date,
            header(HEADER_IF_MODIFIED_SINCE),
            header(HEADER_IF_MATCH),
            header(HEADER_IF_NONE_MATCH),
            header(HEADER_IF_UNMODIFIED_SINCE),
            header(HEADER_RANGE),
            build_canonicalized_headers(headers),
            canonicalized_resource,
        ]
    elif variant == AuthVariant.SHARED_KEY_FOR_TABLE:
        parts = [
            verb,
            header(HEADER_CONTENT_MD5),
            header(HEADER_CONTENT_TYPE),
            date,
            canonicalized_resource,
        ]
    elif variant == AuthVariant.SHARED_KEY_LITE:
        parts = [
            verb,
            header(HEADER_CONTENT_MD5),
            header(HEADER_CONTENT_TYPE),
            date,
            build_canonicalized_headers(headers),
            canonicalized_resource,
        ]
    elif variant == AuthVariant.SHARED_KEY_LITE_FOR_TABLE:
        parts = [
            date,
            canonicalized_resource,
        ]
    else:
        raise UnsupportedAuthVariantError(variant)
    
    string_to_sign = "\n".join(parts)
    logger.debug(
        f"Built {variant.value} string-to-sign: "
        f"{string_to_sign.encode('unicode_escape').decode('ascii')}"
    )
    return string_to_sign
