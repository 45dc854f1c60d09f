"""
HMAC request signatures for the Detectify API.

A signature is HMAC-SHA256 over the canonical message

    {method};{path};{api_key};{unix_timestamp};{body}

keyed with the base64-decoded signature secret, and sent base64-encoded in
the X-Detectify-Signature header.
"""

import base64
import binascii
import datetime
import hashlib
import hmac
from typing import Any, Optional, Union

from .constants import FIELD_SEPARATOR
from .exceptions import DecodingError

Timestamp = Union[int, datetime.datetime]


def decode_secret(secret_key: Union[str, bytes]) -> bytes:
    """
    Decode the configured signature secret into raw HMAC key bytes.

    Args:
        secret_key: Standard base64 encoded secret

    Returns:
        Decoded key bytes

    Raises:
        DecodingError: If the secret is not valid base64 or decodes to nothing
    """
    if isinstance(secret_key, str):
        secret_key = secret_key.strip()
    else:
        secret_key = bytes(secret_key).strip()

    try:
        key = base64.b64decode(secret_key, validate=True)
    except (binascii.Error, ValueError) as e:
        # the secret itself is never part of the message
        raise DecodingError(f"signature secret is not valid base64: {e}") from e

    if not key:
        raise DecodingError("signature secret decodes to an empty key")
    return key


def unix_seconds(timestamp: Timestamp) -> int:
    """Convert a timestamp to integer seconds since the epoch."""
    if isinstance(timestamp, datetime.datetime):
        return int(timestamp.timestamp())
    return int(timestamp)


def read_body(body: Any) -> bytes:
    """
    Materialize a request body into the bytes that will go on the wire.

    Streams are read to the end and rewound when they support it, so the
    payload itself is signed rather than a description of the handle.

    Args:
        body: None, str, bytes, a readable stream or an iterable of chunks

    Returns:
        Body bytes (empty for no body)

    Raises:
        TypeError: If the body type cannot be materialized
    """
    if body is None:
        return b''
    if isinstance(body, bytes):
        return body
    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode('utf-8')

    if hasattr(body, 'read'):
        position = _tell(body)
        content = body.read()
        if position is not None:
            body.seek(position)
        return read_body(content)

    if hasattr(body, '__iter__'):
        return b''.join(read_body(chunk) for chunk in body)

    raise TypeError(f"cannot sign request body of type {type(body).__name__}")


def _tell(stream) -> Optional[int]:
    seekable = getattr(stream, 'seekable', None)
    if seekable is None or not seekable():
        return None
    return stream.tell()


def check_fields(method: str, api_key: str):
    """
    Reject a method or API key containing the field separator.

    Raises:
        ValueError: If method or api_key contains ';'
    """
    if FIELD_SEPARATOR in method:
        raise ValueError("HTTP method must not contain ';'")
    if FIELD_SEPARATOR in api_key:
        raise ValueError("API key must not contain ';'")


def canonical_message(method: str, path: str, api_key: str,
                      timestamp: Timestamp, body: Any = None) -> bytes:
    """
    Build the canonical message that gets signed.

    The method and API key may not contain the field separator. Path and
    body may, so the format does not tell every pair of distinct requests
    apart: text can shift between a path ending in ";<key>;<ts>;..." and
    the body. This is a limitation of the wire format.

    Raises:
        ValueError: If method or api_key contains ';'
    """
    check_fields(method, api_key)

    head = FIELD_SEPARATOR.join([
        method,
        path,
        api_key,
        str(unix_seconds(timestamp)),
        '',
    ])
    return head.encode('utf-8') + read_body(body)


def sign(key: bytes, message: bytes) -> str:
    """Return the base64 encoded HMAC-SHA256 of message under key."""
    mac = hmac.new(key, message, hashlib.sha256)
    return base64.b64encode(mac.digest()).decode('ascii')


def calculate_signature(method: str, path: str, api_key: str,
                        secret_key: Union[str, bytes], timestamp: Timestamp,
                        body: Any = None) -> str:
    """
    Calculate the X-Detectify-Signature value for a request.

    Args:
        method: HTTP method, used verbatim
        path: URL path only, without scheme, host or query string
        api_key: Plaintext API key
        secret_key: Base64 encoded signature secret
        timestamp: Unix seconds or a datetime
        body: Request body (see read_body)

    Returns:
        Standard base64 encoded HMAC-SHA256 digest

    Raises:
        DecodingError: If secret_key is not valid base64
    """
    key = decode_secret(secret_key)
    return sign(key, canonical_message(method, path, api_key, timestamp, body))
