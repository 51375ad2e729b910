"""Shared Key authentication variants and header names."""

from enum import Enum
from typing import Union

from storagesign.auth.exceptions import UnsupportedAuthVariantError


class AuthVariant(str, Enum):
    """Shared Key variants; each selects a string-to-sign layout and a scheme label."""
    SHARED_KEY = "SharedKey"
    SHARED_KEY_FOR_TABLE = "SharedKeyForTable"
    SHARED_KEY_LITE = "SharedKeyLite"
    SHARED_KEY_LITE_FOR_TABLE = "SharedKeyLiteForTable"

    @property
    def scheme(self) -> str:
        """Scheme label written in front of the Authorization credentials."""
        if self in (AuthVariant.SHARED_KEY_LITE, AuthVariant.SHARED_KEY_LITE_FOR_TABLE):
            return "SharedKeyLite"
        return "SharedKey"

    @property
    def is_table(self) -> bool:
        return self in (AuthVariant.SHARED_KEY_FOR_TABLE, AuthVariant.SHARED_KEY_LITE_FOR_TABLE)


def coerce_variant(variant: Union[AuthVariant, str]) -> AuthVariant:
    """
    Resolve a variant tag to an AuthVariant.
    
    Args:
        variant: AuthVariant member or its string value
    
    Returns:
        AuthVariant member
    
    Raises:
        UnsupportedAuthVariantError: If the value is not a known variant
    """
    if isinstance(variant, AuthVariant):
        return variant
    try:
        return AuthVariant(variant)
    except ValueError:
        raise UnsupportedAuthVariantError(variant) from None


# Headers
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_LENGTH = "Content-Length"
HEADER_DATE = "Date"
HEADER_MS_DATE = "x-ms-date"
HEADER_CONTENT_ENCODING = "Content-Encoding"
HEADER_CONTENT_LANGUAGE = "Content-Language"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_CONTENT_MD5 = "Content-MD5"
HEADER_IF_MODIFIED_SINCE = "If-Modified-Since"
HEADER_IF_MATCH = "If-Match"
HEADER_IF_NONE_MATCH = "If-None-Match"
HEADER_IF_UNMODIFIED_SINCE = "If-Unmodified-Since"
HEADER_RANGE = "Range"

METADATA_HEADER_PREFIX = "x-ms-"
SECONDARY_SUFFIX = "-secondary"
