"""
StorageSign: Shared Key request signing for Azure-compatible storage services.

Computes the Authorization header for blob, queue and table requests.
"""

__version__ = "0.1.0"

from .auth.sharedkey import SharedKeySigner
from .auth.variants import AuthVariant

__all__ = ["SharedKeySigner", "AuthVariant", "__version__"]
