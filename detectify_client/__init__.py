"""
Detectify API client library

Authenticates every outgoing request to the Detectify API with the
X-Detectify-Key header and, when a signature secret is configured, an
HMAC-SHA256 signature bound to a timestamp.

Example usage:
    from detectify_client import DetectifyClient

    client = DetectifyClient("your-api-key", signature="your-base64-secret")
    response = client.get("/v2/assets/")
"""

from .client import Credentials, DetectifyClient, DetectifySession
from .transport import DetectifyAdapter
from .signature import calculate_signature, canonical_message, decode_secret
from .exceptions import (
    DetectifyClientError,
    ConfigurationError,
    DecodingError,
    TransportError
)
from .constants import (
    HEADER_API_KEY,
    HEADER_TIMESTAMP,
    HEADER_SIGNATURE,
    DEFAULT_BASE_URL,
    DEFAULT_CONFIG
)

__version__ = "1.0.0"
__all__ = [
    "Credentials",
    "DetectifyClient",
    "DetectifySession",
    "DetectifyAdapter",
    "calculate_signature",
    "canonical_message",
    "decode_secret",
    "DetectifyClientError",
    "ConfigurationError",
    "DecodingError",
    "TransportError",
    "HEADER_API_KEY",
    "HEADER_TIMESTAMP",
    "HEADER_SIGNATURE",
    "DEFAULT_BASE_URL",
    "DEFAULT_CONFIG"
]
