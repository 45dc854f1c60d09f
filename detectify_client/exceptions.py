"""
Custom exceptions for Detectify client library.
"""


class DetectifyClientError(Exception):
    """Base exception for Detectify client errors."""
    pass


class ConfigurationError(DetectifyClientError):
    """Raised when client configuration is invalid."""
    pass


class DecodingError(ConfigurationError):
    """Raised when the signature secret is not valid base64."""
    pass


class TransportError(DetectifyClientError):
    """Raised when the underlying HTTP transport fails."""
    pass
