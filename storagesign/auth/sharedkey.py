"""
SharedKey request signing for Azure-compatible storage services.

Signs outgoing blob, queue and table requests with one of the four Shared Key
variants:
- SharedKey / SharedKeyForTable (scheme label "SharedKey")
- SharedKeyLite / SharedKeyLiteForTable (scheme label "SharedKeyLite")

Reference: https://learn.microsoft.com/rest/api/storageservices/authorize-with-shared-key

Author: StorageSign Team
Date: 2026-10-18
"""

import base64
import hashlib
import hmac
import logging
from typing import TYPE_CHECKING, Callable, Mapping, MutableMapping, Optional, Union

from storagesign.auth.exceptions import InvalidAccountKeyError
from storagesign.auth.resource import build_canonicalized_resource, canonicalize_account_name
from storagesign.auth.string_to_sign import build_canonicalized_string
from storagesign.auth.variants import HEADER_AUTHORIZATION, AuthVariant, coerce_variant

if TYPE_CHECKING:
    from storagesign.core.config_manager import StorageSignConfig

logger = logging.getLogger(__name__)

SignFunction = Callable[[bytes, bytes], str]


def compute_signature(message: bytes, key: bytes) -> str:
    """
    Compute HMAC-SHA256 signature.
    
    Signature = Base64(HMAC-SHA256(message, key))
    
    Args:
        message: UTF-8 bytes of the string to sign
        key: Decoded account key
    
    Returns:
        Base64-encoded signature
    """
    signature_bytes = hmac.new(key, message, hashlib.sha256).digest()
    return base64.b64encode(signature_bytes).decode("utf-8")


def decode_account_key(account_key: str) -> bytes:
    """
    Decode a base64 account key.
    
    Raises:
        InvalidAccountKeyError: If the key is empty or not valid base64
    """
    if not account_key:
        raise InvalidAccountKeyError("Account key cannot be empty")
    try:
        return base64.b64decode(account_key, validate=True)
    except ValueError as e:
        raise InvalidAccountKeyError(f"Account key is not valid base64: {e}") from e


class SharedKeySigner:
    """
    Produces Shared Key Authorization headers for one storage account.
    
    The signer only holds the account name and decoded key, both read-only,
    so one instance may sign requests from many threads as long as each call
    receives its own header mapping.
    
    Example:
        signer = SharedKeySigner("myaccount", "<base64 key>")
        signer.add_authorization_header(
            "GET",
            "https://myaccount.blob.core.windows.net/container?restype=container",
            headers,
            AuthVariant.SHARED_KEY,
        )
    """
    
    def __init__(
        self,
        account_name: str,
        account_key: str,
        *,
        default_variant: Union[AuthVariant, str] = AuthVariant.SHARED_KEY,
        sign: Optional[SignFunction] = None
    ):
        """
        Initialize signer.
        
        Args:
            account_name: Storage account name, optionally with "-secondary"
            account_key: Base64-encoded account key
            default_variant: Variant used when a request does not name one
            sign: Keyed-signing primitive (message, key) -> base64 digest;
                  defaults to HMAC-SHA256
        
        Raises:
            InvalidAccountKeyError: If the key cannot be decoded
            UnsupportedAuthVariantError: If default_variant is unknown
        """
        self.account_name = account_name
        self.default_variant = coerce_variant(default_variant)
        self._key = decode_account_key(account_key)
        self._sign = sign or compute_signature
    
    @classmethod
    def from_config(cls, config: "StorageSignConfig") -> "SharedKeySigner":
        """Create a signer for the account described by a loaded configuration."""
        return cls(
            config.account.endpoint_account_name,
            config.account.key,
            default_variant=config.signing.default_variant,
        )
    
    @property
    def canonicalized_account_name(self) -> str:
        return canonicalize_account_name(self.account_name)
    
    def _resolve_variant(self, variant: Optional[Union[AuthVariant, str]]) -> AuthVariant:
        if variant is None:
            return self.default_variant
        return coerce_variant(variant)
    
    def build_canonicalized_resource(self, url: str, variant: Union[AuthVariant, str]) -> str:
        return build_canonicalized_resource(url, self.account_name, variant)
    
    def create_authorization_header(
        self,
        string_to_sign: str,
        variant: Union[AuthVariant, str]
    ) -> str:
        """
        Sign a string-to-sign and format the Authorization header value.
        
        Returns:
            "<SchemeLabel> <account>:<signature>"
        """
        variant = coerce_variant(variant)
        signature = self._sign(string_to_sign.encode("utf-8"), self._key)
        return f"{variant.scheme} {self.canonicalized_account_name}:{signature}"
    
    def get_shared_key(
        self,
        verb: str,
        url: str,
        headers: Mapping[str, str],
        variant: Optional[Union[AuthVariant, str]] = None
    ) -> str:
        """
        Compute the Authorization header value for a request.
        
        Args:
            verb: HTTP method
            url: Request URL
            headers: Request headers
            variant: Shared Key variant, defaults to the signer's default_variant
        
        Returns:
            Authorization header value
        
        Raises:
            MalformedURLError: If the URL cannot be parsed
            MalformedQueryError: If the query string cannot be parsed
            UnsupportedAuthVariantError: If the variant is unknown
        """
        variant = self._resolve_variant(variant)
        canonicalized_resource = self.build_canonicalized_resource(url, variant)
        string_to_sign = build_canonicalized_string(
            verb, headers, canonicalized_resource, variant
        )
        return self.create_authorization_header(string_to_sign, variant)
    
    def add_authorization_header(
        self,
        verb: str,
        url: str,
        headers: MutableMapping[str, str],
        variant: Optional[Union[AuthVariant, str]] = None
    ) -> MutableMapping[str, str]:
        """
        Sign a request and store the result under the Authorization header.
        
        The header mapping is only modified when signing succeeds.
        
        Returns:
            The same header mapping, now carrying Authorization
        """
        variant = self._resolve_variant(variant)
        headers[HEADER_AUTHORIZATION] = self.get_shared_key(verb, url, headers, variant)
        logger.debug(
            "Signed request",
            extra={"context": {
                "verb": verb,
                "account": self.canonicalized_account_name,
                "variant": variant.value,
            }}
        )
        return headers
