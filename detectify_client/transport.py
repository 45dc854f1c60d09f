"""
Transport adapter that authenticates every outgoing Detectify API request.

The adapter wraps another requests adapter. Before delegating it attaches
the static X-Detectify-Key header and, when a signature secret is
configured, a fresh X-Detectify-Timestamp and X-Detectify-Signature.
"""

import logging
import time
import types
from typing import Callable, Dict, Mapping, Optional
from urllib.parse import unquote, urlsplit

from requests.adapters import BaseAdapter, HTTPAdapter

from .constants import FIELD_SEPARATOR, HEADER_API_KEY, HEADER_SIGNATURE, HEADER_TIMESTAMP
from .exceptions import ConfigurationError
from .signature import canonical_message, check_fields, decode_secret, read_body, sign

logger = logging.getLogger(__name__)


class DetectifyAdapter(BaseAdapter):
    """
    Authenticating transport adapter for Detectify API requests.

    Mount it on a requests.Session for the API base URL. The adapter holds
    only immutable configuration, so one instance can serve concurrent
    requests as long as the wrapped transport is thread-safe.
    """

    def __init__(self, api_key: str, signature: Optional[str] = None,
                 transport: Optional[BaseAdapter] = None,
                 clock: Callable[[], float] = time.time,
                 headers: Optional[Mapping[str, str]] = None):
        """
        Initialize the adapter.

        Args:
            api_key: Detectify API key, sent in X-Detectify-Key
            signature: Base64 encoded signature secret; empty disables signing
            transport: Wrapped sender, defaults to a new HTTPAdapter
            clock: Returns the current unix time in seconds
            headers: Extra static headers applied to every request

        Raises:
            ConfigurationError: If api_key is empty, or contains ';' when signing
            DecodingError: If signature is not valid base64
        """
        super().__init__()
        if not api_key:
            raise ConfigurationError("api_key cannot be empty")

        self._api_key = api_key
        self._key = decode_secret(signature) if signature else None
        if self._key is not None and FIELD_SEPARATOR in api_key:
            raise ConfigurationError("api_key must not contain ';' when signing is enabled")
        self._transport = transport if transport is not None else HTTPAdapter()
        self._clock = clock

        static = dict(headers or {})
        static[HEADER_API_KEY] = api_key
        self._headers = types.MappingProxyType(static)

    @property
    def signing_enabled(self) -> bool:
        return self._key is not None

    @property
    def headers(self) -> Mapping[str, str]:
        """Static headers applied to every request."""
        return self._headers

    def send(self, request, **kwargs):
        """
        Authenticate request and send it through the wrapped transport.

        Headers are collected in a dict local to this call and then written
        onto the request. The response, or any exception, comes back from
        the wrapped transport untouched.
        """
        headers: Dict[str, str] = {}

        if self._key is not None:
            headers.update(self._signature_headers(request))

        # static headers take precedence over anything the caller set
        headers.update(self._headers)
        request.headers.update(headers)

        return self._transport.send(request, **kwargs)

    def _signature_headers(self, request) -> Dict[str, str]:
        # validated before the body is read, so a rejected request is left as it was
        check_fields(request.method, self._api_key)

        timestamp = int(self._clock())
        path = request_path(request.url)
        body = read_body(request.body)
        signature = sign(self._key, canonical_message(request.method, path, self._api_key, timestamp, body))
        logger.debug("Signing %s %s at %d", request.method, path, timestamp)

        if request.body is not None and not isinstance(request.body, bytes):
            # the wrapped transport must send exactly the bytes that were signed
            request.body = body
            request.headers.pop('Transfer-Encoding', None)
            request.headers['Content-Length'] = str(len(body))

        return {
            HEADER_TIMESTAMP: str(timestamp),
            HEADER_SIGNATURE: signature,
        }

    def close(self):
        self._transport.close()


def request_path(url: str) -> str:
    """Return the decoded URL path used for signing, without the query string."""
    return unquote(urlsplit(url).path)
