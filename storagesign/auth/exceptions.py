"""
Signing exceptions for StorageSign.

Author: StorageSign Team
Date: 2026-10-18
"""


class SigningError(Exception):
    """Base exception for request signing errors."""
    
    def __init__(self, message: str, error_code: str = "SigningFailed"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class MalformedURLError(SigningError):
    """Raised when the request URL cannot be parsed."""
    
    def __init__(self, message: str = "Request URL could not be parsed"):
        super().__init__(message, "MalformedURL")


class MalformedQueryError(SigningError):
    """Raised when the request query string cannot be parsed."""
    
    def __init__(self, message: str = "Request query string could not be parsed"):
        super().__init__(message, "MalformedQuery")


class UnsupportedAuthVariantError(SigningError):
    """Raised when a signing variant outside the known set is requested."""
    
    def __init__(self, variant: object):
        self.variant = variant
        super().__init__(
            f"{variant} authentication is not supported",
            "UnsupportedAuthVariant"
        )


class InvalidAccountKeyError(SigningError):
    """Raised when the account key is not valid base64."""
    
    def __init__(self, message: str = "Account key must be base64-encoded"):
        super().__init__(message, "InvalidAccountKey")
