"""Exceptions for django-typedkv.

Every error raised by the codec, the connection or the structure stores is a
``TypedKVError``. Library exceptions from redis-py / valkey-py never escape
unwrapped; they are re-raised as ``TransportError`` or ``PreconditionError``
with the original exception chained as ``__cause__``.

A missing key, field or member is not an error: reads return ``None`` or an
empty collection instead.
"""

from __future__ import annotations

import socket
from typing import Any

# Build exception tuples from available libraries (redis-py / valkey-py).
_exception_list: list[type[Exception]] = [socket.timeout]
_response_errors: list[type[Exception]] = []

try:
    from redis.exceptions import ConnectionError as RedisConnectionError
    from redis.exceptions import ResponseError as RedisResponseError
    from redis.exceptions import TimeoutError as RedisTimeoutError

    _exception_list.extend([RedisConnectionError, RedisTimeoutError, RedisResponseError])
    _response_errors.append(RedisResponseError)
except ImportError:
    pass

try:
    from valkey.exceptions import ConnectionError as ValkeyConnectionError
    from valkey.exceptions import ResponseError as ValkeyResponseError
    from valkey.exceptions import TimeoutError as ValkeyTimeoutError

    _exception_list.extend([ValkeyConnectionError, ValkeyTimeoutError, ValkeyResponseError])
    _response_errors.append(ValkeyResponseError)
except ImportError:
    pass

_main_exceptions = tuple(_exception_list)
_ResponseError = tuple(_response_errors)

# Server replies that mean the caller broke a precondition, not the transport.
_PRECONDITION_MARKERS = (
    "not an integer",
    "not a valid float",
    "index out of range",
    "no such key",
    "wrongtype",
)


class TypedKVError(Exception):
    """Base class for all django-typedkv errors."""


class EncodingError(TypedKVError):
    """Raised when a value cannot be encoded for storage.

    This can occur when:
    - The value contains a reference cycle
    - The value (or something nested in it) has no JSON representation
    - A custom serializer rejects the value
    """


class DecodingError(TypedKVError):
    """Raised when stored text cannot be decoded into the requested type.

    This can occur when:
    - The stored text is not valid JSON
    - The JSON does not validate against the requested type
    - A decoded set member is not hashable

    Fields present in the stored JSON but unknown to the requested type are
    ignored and never cause this error.
    """


class TransportError(TypedKVError):
    """Raised when the store cannot be reached or replies with a protocol error.

    The underlying library exception is available as ``__cause__``. Nothing in
    django-typedkv retries; callers that want retries wrap the call.

    Attributes:
        connection: The raw client the failing command was sent through, if any.
    """

    def __init__(self, message: str = "", *, connection: Any = None) -> None:
        self.connection = connection
        super().__init__(message or "Error while talking to the key-value store")


class PreconditionError(TypedKVError, ValueError):
    """Raised when the caller supplies an argument the operation cannot accept.

    This can occur when:
    - A required key is ``None``
    - A list index is out of range, or the list does not exist
    - A blocking timeout is zero or negative
    - The key holds a different data type than the operation expects
    - An increment targets a value that is not numeric
    - A rename source key does not exist

    Subclasses ``ValueError`` so callers catching plain ``ValueError`` keep working.
    """


def translate_error(error: Exception, connection: Any = None) -> TypedKVError:
    """Map a library exception to the matching django-typedkv exception.

    The caller is expected to ``raise translate_error(e, client) from e``.
    """
    if _ResponseError and isinstance(error, _ResponseError):
        message = str(error)
        lowered = message.lower()
        if any(marker in lowered for marker in _PRECONDITION_MARKERS):
            return PreconditionError(message)
    return TransportError(str(error), connection=connection)


__all__ = [
    "DecodingError",
    "EncodingError",
    "PreconditionError",
    "TransportError",
    "TypedKVError",
    "translate_error",
]
