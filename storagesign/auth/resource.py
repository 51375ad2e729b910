"""
Canonicalized resource construction for Shared Key signing.

The canonicalized resource identifies the addressed account and resource:

    /account/container/blob
    comp:metadata
    restype:container

SharedKey includes every query parameter, sorted by name. The table and lite
variants only carry the ``comp`` parameter, as ``?comp=value``.

Reference: https://learn.microsoft.com/rest/api/storageservices/authorize-with-shared-key

Author: StorageSign Team
Date: 2026-10-18
"""

import re
import string
from typing import Dict, List, Union
from urllib.parse import parse_qs, quote, unquote_to_bytes, urlsplit

from storagesign.auth.exceptions import MalformedQueryError, MalformedURLError
from storagesign.auth.variants import AuthVariant, SECONDARY_SUFFIX, coerce_variant

_INVALID_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_CONTROL_CHARACTER = re.compile(r"[\x00-\x1f\x7f]")

_PATH_SAFE = "$&+,/:;=@"
_VALID_PATH_CHARACTERS = frozenset(
    string.ascii_letters + string.digits + "-_.~" + _PATH_SAFE + "!'()*[]%"
)


def canonicalize_account_name(account_name: str) -> str:
    """
    Strip the ``-secondary`` suffix used to address the read-only secondary
    endpoint of a geo-replicated account.
    """
    if account_name.endswith(SECONDARY_SUFFIX):
        return account_name[:-len(SECONDARY_SUFFIX)]
    return account_name


def escape_path(path: str) -> str:
    """
    Return the request-line form of a URL path.
    
    A path made only of characters that are valid in an encoded path is
    returned as written, existing escapes included. Otherwise the path is
    decoded and re-escaped, encoding non-ASCII characters as UTF-8 and
    leaving unreserved characters and "$&+,/:;=@" unescaped.
    
    Args:
        path: Raw path; percent-escapes must already be well formed
    
    Returns:
        Escaped path
    """
    if all(c in _VALID_PATH_CHARACTERS for c in path):
        return path
    return quote(unquote_to_bytes(path), safe=_PATH_SAFE)


def parse_query(query: str) -> Dict[str, List[str]]:
    """
    Parse a raw query string into parameter name -> list of values.
    
    Names and values are percent-decoded; blank values are kept.
    
    Args:
        query: Raw query string (without the leading "?")
    
    Returns:
        Dict of parameter name -> values in request order
    
    Raises:
        MalformedQueryError: On an invalid or non-UTF-8 percent-escape, or a
            ";" separator
    """
    if ";" in query:
        raise MalformedQueryError(f"Invalid semicolon separator in query: {query!r}")
    
    if match := _INVALID_ESCAPE.search(query):
        raise MalformedQueryError(
            f"Invalid URL escape {query[match.start():match.start() + 3]!r} in query"
        )
    
    try:
        return parse_qs(query, keep_blank_values=True, errors="strict")
    except UnicodeDecodeError as e:
        raise MalformedQueryError(f"Query escape does not decode as UTF-8: {e}") from e


def build_canonicalized_resource(
    url: str,
    account_name: str,
    variant: Union[AuthVariant, str]
) -> str:
    """
    Build the CanonicalizedResource string for a request URL.
    
    Args:
        url: Request URL, absolute or path-only, optionally with a query string
        account_name: Storage account name (a "-secondary" suffix is dropped)
        variant: Shared Key variant
    
    Returns:
        Canonicalized resource string
    
    Raises:
        MalformedURLError: If the URL cannot be parsed
        MalformedQueryError: If the query string cannot be parsed
        UnsupportedAuthVariantError: If the variant is unknown
    """
    variant = coerce_variant(variant)
    
    if _CONTROL_CHARACTER.search(url):
        raise MalformedURLError(f"Invalid control character in URL: {url!r}")
    
    try:
        parsed = urlsplit(url)
    except ValueError as e:
        raise MalformedURLError(f"Could not parse URL {url!r}: {e}") from e
    
    # Well-formed escapes are kept exactly as written in the request line
    if match := _INVALID_ESCAPE.search(parsed.path):
        raise MalformedURLError(
            f"Invalid URL escape {parsed.path[match.start():match.start() + 3]!r} in path"
        )
    
    resource = "/" + canonicalize_account_name(account_name) + escape_path(parsed.path)
    
    params = parse_query(parsed.query)
    
    if variant == AuthVariant.SHARED_KEY:
        if params:
            lines = []
            for name in sorted(params):
                values = params[name]
                if len(values) > 1:
                    values = sorted(values)
                lines.append(f"{name}:{','.join(values)}")
            resource += "\n" + "\n".join(lines)
    elif "comp" in params:
        # Only the first comp value is signed
        resource += "?comp=" + params["comp"][0]
    
    return resource
