"""Type aliases and small value types for django-typedkv.

Compatible with redis-py and valkey-py type systems, defined locally
to avoid a runtime dependency on either library for type annotations.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum, StrEnum
from typing import Any, Final, NamedTuple

# Keys are opaque text; connections run with decode_responses=True
type KeyT = str

# Expiry types (relative timeout) - matches redis.typing.ExpiryT
type ExpiryT = int | timedelta

# Absolute expiry types - matches redis.typing.AbsExpiryT
type AbsExpiryT = int | datetime

# Target type accepted by every decoding read (a class, or a typing form like list[int])
type TargetT = Any

# TTL reply for a key that does not exist
KEY_MISSING: Final = -2


class KeyType(StrEnum):
    """Redis key data types."""

    STRING = "string"
    LIST = "list"
    SET = "set"
    HASH = "hash"
    ZSET = "zset"
    STREAM = "stream"
    NONE = "none"


class Wait(Enum):
    """Markers for blocking list operations."""

    FOREVER = "forever"


# Explicit opt-in for a blocking pop without an upper bound
WAIT_FOREVER: Final = Wait.FOREVER


class TypedTuple(NamedTuple):
    """A sorted-set member together with its score."""

    value: Any
    score: float


class LexRange(NamedTuple):
    """Lexical bounds for sorted-set members that share a score.

    A bound of ``None`` is unbounded on that side.
    """

    min: Any = None
    max: Any = None
    min_inclusive: bool = True
    max_inclusive: bool = True
