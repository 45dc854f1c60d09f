"""
Constants for Detectify client library.
Header names match the Detectify API authentication documentation.
"""

# HTTP Headers
HEADER_API_KEY = "X-Detectify-Key"
HEADER_TIMESTAMP = "X-Detectify-Timestamp"
HEADER_SIGNATURE = "X-Detectify-Signature"

# Environment variables read by Credentials.from_env()
ENV_API_KEY = "DETECTIFY_API_KEY"
ENV_SIGNATURE = "DETECTIFY_SIGNATURE"

DEFAULT_BASE_URL = "https://api.detectify.com/rest"

# Default configuration values
DEFAULT_CONFIG = {
    'timeout': 30,              # HTTP timeout in seconds
    'user_agent': None,         # Optional User-Agent override
}

# Separator between fields of the canonical message
FIELD_SEPARATOR = ";"

# Headers carrying credentials; dropped when a redirect leaves the API
AUTH_HEADERS = (HEADER_API_KEY, HEADER_TIMESTAMP, HEADER_SIGNATURE)
