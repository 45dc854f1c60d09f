"""
Detectify API client with HMAC request authentication.

This module wires configuration (API key, optional signature secret) into a
dedicated requests session whose transport authenticates every request.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

import requests

from .constants import (
    AUTH_HEADERS,
    DEFAULT_BASE_URL,
    DEFAULT_CONFIG,
    ENV_API_KEY,
    ENV_SIGNATURE,
    FIELD_SEPARATOR,
)
from .exceptions import ConfigurationError, TransportError
from .transport import DetectifyAdapter

logger = logging.getLogger(__name__)


class DetectifySession(requests.Session):
    """Session that drops Detectify credentials on redirects leaving the API."""

    def rebuild_auth(self, prepared_request, response):
        super().rebuild_auth(prepared_request, response)

        try:
            adapter = self.get_adapter(prepared_request.url)
        except requests.exceptions.InvalidSchema:
            adapter = None

        # redirects back into the API are re-signed by the adapter
        if not isinstance(adapter, DetectifyAdapter):
            for name in AUTH_HEADERS:
                prepared_request.headers.pop(name, None)


@dataclass(frozen=True)
class Credentials:
    """Detectify API credentials."""

    api_key: str
    signature: Optional[str] = None

    def __post_init__(self):
        if not self.api_key:
            raise ConfigurationError("api_key cannot be empty")
        if self.signature and FIELD_SEPARATOR in self.api_key:
            raise ConfigurationError("api_key must not contain ';' when signing is enabled")

    def __repr__(self):
        return f"Credentials(api_key='***', signing={bool(self.signature)})"

    @property
    def signing_enabled(self) -> bool:
        return bool(self.signature)

    @classmethod
    def from_env(cls) -> "Credentials":
        """
        Load credentials from DETECTIFY_API_KEY and DETECTIFY_SIGNATURE.

        Raises:
            ConfigurationError: If DETECTIFY_API_KEY is not set
        """
        api_key = os.getenv(ENV_API_KEY)
        if not api_key:
            raise ConfigurationError(f"Environment variable '{ENV_API_KEY}' is not set")
        return cls(api_key=api_key, signature=os.getenv(ENV_SIGNATURE) or None)


class DetectifyClient:
    """
    Client for making authenticated requests to the Detectify API.

    Each client owns its own session, so credentials never leak into a
    process-wide default.
    """

    def __init__(self, api_key: str, signature: Optional[str] = None,
                 base_url: str = DEFAULT_BASE_URL, **config):
        """
        Initialize Detectify client.

        Args:
            api_key: Detectify API key
            signature: Base64 encoded signature secret; enables request signing
            base_url: Base URL for HTTP requests
            **config: Configuration options (timeout, user_agent, transport)

        Raises:
            ConfigurationError: If the configuration is invalid
            DecodingError: If signature is not valid base64
        """
        self.base_url = base_url.rstrip('/')
        self.credentials = Credentials(api_key=api_key, signature=signature or None)

        transport = config.pop('transport', None)

        # Merge default config with user overrides
        self.config = {**DEFAULT_CONFIG, **config}
        self._validate_config()

        self.adapter = DetectifyAdapter(
            self.credentials.api_key,
            self.credentials.signature,
            transport=transport,
        )

        self.session = DetectifySession()
        self.session.mount(self.base_url + '/', self.adapter)
        if self.config['user_agent']:
            self.session.headers['User-Agent'] = self.config['user_agent']

        logger.debug("Detectify client for %s (signing %s)", self.base_url,
                     "enabled" if self.adapter.signing_enabled else "disabled")

    @classmethod
    def from_env(cls, base_url: str = DEFAULT_BASE_URL, **config) -> "DetectifyClient":
        """Create a client from DETECTIFY_API_KEY and DETECTIFY_SIGNATURE."""
        credentials = Credentials.from_env()
        return cls(credentials.api_key, credentials.signature, base_url=base_url, **config)

    def _validate_config(self):
        """Validate client configuration."""
        if not self.base_url:
            raise ConfigurationError("base_url cannot be empty")

        if self.config['timeout'] is not None and self.config['timeout'] <= 0:
            raise ConfigurationError("timeout must be positive")

    def _prepare_request_body(self, json_data=None, data=None):
        """Prepare request body for sending."""
        if json_data is not None:
            return json.dumps(json_data, separators=(',', ':')).encode('utf-8')
        if isinstance(data, str):
            return data.encode('utf-8')
        return data

    def request(self, method: str, path: str, json=None, data=None, **kwargs) -> requests.Response:
        """
        Make authenticated HTTP request.

        Args:
            method: HTTP method
            path: URL path (relative to base_url)
            json: JSON data to send
            data: Raw data to send (str, bytes or a file-like object)
            **kwargs: Additional requests arguments

        Returns:
            requests.Response object

        Raises:
            TransportError: If the request could not be sent
        """
        url = urljoin(self.base_url + '/', path.lstrip('/'))

        headers = dict(kwargs.pop('headers', None) or {})
        if json is not None:
            headers['Content-Type'] = 'application/json'
        kwargs.setdefault('timeout', self.config['timeout'])

        body = self._prepare_request_body(json, data)

        try:
            return self.session.request(method, url, data=body, headers=headers, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"HTTP request failed: {e}") from e

    def get(self, path: str, **kwargs) -> requests.Response:
        """Make authenticated GET request."""
        return self.request('GET', path, **kwargs)

    def post(self, path: str, json=None, data=None, **kwargs) -> requests.Response:
        """Make authenticated POST request."""
        return self.request('POST', path, json=json, data=data, **kwargs)

    def put(self, path: str, json=None, data=None, **kwargs) -> requests.Response:
        """Make authenticated PUT request."""
        return self.request('PUT', path, json=json, data=data, **kwargs)

    def patch(self, path: str, json=None, data=None, **kwargs) -> requests.Response:
        """Make authenticated PATCH request."""
        return self.request('PATCH', path, json=json, data=data, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        """Make authenticated DELETE request."""
        return self.request('DELETE', path, **kwargs)

    def close(self):
        """Close HTTP session."""
        if self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
