"""Connection classes for Redis-compatible servers.

A connection owns the connection pools for one configured alias, the codec
values are stored with, and the key-level operations that do not care what
kind of value a key holds (existence, deletion, rename, expiry, type, scan).
The per-type operations live in ``django_typedkv.structures``.

Architecture:
- KeyValueConnection: Base class with all logic, library-agnostic
- RedisConnection: Sets class attributes for redis-py
- ValkeyConnection: Sets class attributes for valkey-py

Internal attributes:
- _lib: The library module (redis or valkey)
- _servers: List of server URLs, primary first
- _pools: Dict of connection pools by server index
- _client_class: The client class (Redis or Valkey)
- _pool_class: The connection pool class
- _pool_options: Options passed to the connection pool
"""

from __future__ import annotations

import logging
import random
import re
import threading
from contextlib import closing, contextmanager
from datetime import timedelta
from typing import TYPE_CHECKING, Any, cast

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from django_typedkv.codec import Codec
from django_typedkv.exceptions import PreconditionError, _main_exceptions, translate_error
from django_typedkv.types import KEY_MISSING, KeyType

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from django_typedkv.types import AbsExpiryT, ExpiryT, KeyT

_REDIS_AVAILABLE = False
_VALKEY_AVAILABLE = False

try:
    import redis

    _REDIS_AVAILABLE = True
except ImportError:
    redis = None  # type: ignore[assignment]

try:
    import valkey

    _VALKEY_AVAILABLE = True
except ImportError:
    valkey = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def validate_key(key: KeyT | None, name: str = "key") -> KeyT:
    """Reject a missing key before anything is sent to the server."""
    if key is None:
        raise PreconditionError(f"{name} must not be None")
    return key


def expiry_seconds(timeout: ExpiryT) -> float:
    """Return a relative expiry in seconds."""
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return timeout


class KeyValueConnection:
    """Base connection class with configurable library.

    Subclasses must set:
    - _lib: The library module (e.g., valkey or redis)
    - _client_class: The client class (e.g., valkey.Valkey)
    - _pool_class: The connection pool class

    Pools are created on first use, one per server. Writes always go to the
    first server in ``LOCATION``; with more than one server, reads go to a
    random replica. Every pool runs with ``decode_responses=True`` so the
    server's replies come back as text.
    """

    # Class attributes - subclasses override these
    _lib: Any = None
    _client_class: type | None = None
    _pool_class: type | None = None

    # Default scan iteration batch size
    _default_scan_itersize: int = 100

    # Options that shouldn't be passed to the connection pool
    _CLIENT_ONLY_OPTIONS = frozenset({"serializer_options", "check_on_startup", "scan_itersize"})

    def __init__(
        self,
        servers: str | list[str],
        serializer: str | type | Any | None = None,
        pool_class: str | type | None = None,
        parser_class: str | type | None = None,
        **options: Any,
    ) -> None:
        """Initialize the connection.

        Args:
            servers: Server URL, comma/semicolon separated URLs, or a list of URLs
            serializer: Serializer instance, class or import path
            pool_class: Connection pool class or import path
            parser_class: Parser class or import path
            **options: Additional options passed to the connection pool
        """
        if isinstance(servers, str):
            servers = re.split("[;,]", servers)
        self._servers = [s.strip() for s in servers if s and s.strip()]
        if not self._servers:
            raise ImproperlyConfigured("LOCATION must name at least one server URL")

        self._pools: dict[int, Any] = {}
        self._pools_lock = threading.Lock()

        if isinstance(pool_class, str):
            pool_class = import_string(pool_class)
        self._pool_class = pool_class or self.__class__._pool_class  # type: ignore[assignment]

        if isinstance(parser_class, str):
            parser_class = import_string(parser_class)
        if parser_class is None and self._lib is not None:
            parser_class = self._lib.connection.DefaultParser

        self._pool_options: dict[str, Any] = {"parser_class": parser_class}
        for key, value in options.items():
            if key not in self._CLIENT_ONLY_OPTIONS:
                self._pool_options[key] = value
        self._pool_options["decode_responses"] = True

        self._options = options
        self.scan_itersize = options.get("scan_itersize", self._default_scan_itersize)

        self.codec = Codec(serializer, **options.get("serializer_options", {}))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} servers={self._servers!r}>"

    # =========================================================================
    # Connection Pool Management
    # =========================================================================

    def _get_connection_pool_index(self, *, write: bool) -> int:
        """Get the pool index for read/write operations."""
        if write or len(self._servers) == 1:
            return 0
        return random.randint(1, len(self._servers) - 1)  # noqa: S311

    def _get_connection_pool(self, *, write: bool) -> Any:
        """Get a connection pool for the given operation type."""
        index = self._get_connection_pool_index(write=write)
        pool = self._pools.get(index)
        if pool is None:
            with self._pools_lock:
                pool = self._pools.get(index)
                if pool is None:
                    assert self._pool_class is not None, "Subclasses must set _pool_class"  # noqa: S101
                    logger.debug("Creating connection pool for %s", self._servers[index])
                    pool = self._pool_class.from_url(  # type: ignore[attr-defined]
                        self._servers[index],
                        **self._pool_options,
                    )
                    self._pools[index] = pool
        return pool

    def get_client(self, *, write: bool = False) -> Any:
        """Get a raw redis-py / valkey-py client.

        Args:
            write: Whether this is a write operation
        """
        pool = self._get_connection_pool(write=write)
        assert self._client_class is not None, "Subclasses must set _client_class"  # noqa: S101
        return self._client_class(connection_pool=pool)

    @contextmanager
    def client(self, *, write: bool = False) -> Iterator[Any]:
        """Yield a raw client; library errors raised inside are translated.

        Example::

            with connection.client(write=True) as client:
                client.set("greeting", "hello")
        """
        client = self.get_client(write=write)
        try:
            yield client
        except _main_exceptions as e:
            raise translate_error(e, client) from e

    def ping(self) -> bool:
        """Check that the primary server answers."""
        with self.client(write=True) as client:
            return bool(client.ping())

    def close(self) -> None:
        """Disconnect and forget every pool; new ones are created on next use."""
        with self._pools_lock:
            for pool in self._pools.values():
                pool.disconnect()
            self._pools.clear()

    # =========================================================================
    # Key Operations
    # =========================================================================

    def exists(self, key: KeyT) -> bool:
        """Check if a key exists."""
        key = validate_key(key)
        with self.client() as client:
            return bool(client.exists(key))

    def delete(self, key: KeyT) -> bool:
        """Delete a key. Returns True if it existed."""
        key = validate_key(key)
        with self.client(write=True) as client:
            return bool(client.delete(key))

    def delete_many(self, keys: Iterable[KeyT]) -> int:
        """Delete keys and return how many actually existed."""
        keys = [validate_key(k) for k in keys]
        if not keys:
            return 0
        with self.client(write=True) as client:
            return cast("int", client.delete(*keys))

    def rename(self, src: KeyT, dst: KeyT) -> bool:
        """Rename a key.

        Atomically renames src to dst. If dst already exists, it is overwritten.

        Raises:
            PreconditionError: If src does not exist
        """
        src = validate_key(src, "src")
        dst = validate_key(dst, "dst")
        with self.client(write=True) as client:
            client.rename(src, dst)
        return True

    def expire(self, key: KeyT, timeout: ExpiryT) -> bool:
        """Set a relative expiry on a key.

        Returns False, without contacting the server, when ``timeout`` is
        negative; otherwise returns whether the key existed. A zero timeout
        expires the key immediately, while fractional seconds keep millisecond
        precision.
        """
        key = validate_key(key)
        seconds = expiry_seconds(timeout)
        if seconds < 0:
            logger.debug("Skipping EXPIRE on %r: negative timeout %r", key, timeout)
            return False
        with self.client(write=True) as client:
            # Whole seconds use EXPIRE, anything finer uses PEXPIRE
            if seconds == int(seconds):
                return bool(client.expire(key, int(seconds)))
            return bool(client.pexpire(key, max(1, int(seconds * 1000))))

    def expire_at(self, key: KeyT, when: AbsExpiryT) -> bool:
        """Set expiry at an absolute time (datetime or Unix timestamp)."""
        key = validate_key(key)
        with self.client(write=True) as client:
            return bool(client.expireat(key, when))

    def persist(self, key: KeyT) -> bool:
        """Remove expiry from a key."""
        key = validate_key(key)
        with self.client(write=True) as client:
            return bool(client.persist(key))

    def ttl(self, key: KeyT) -> int | None:
        """Get TTL in seconds. Returns None if no expiry, KEY_MISSING if key doesn't exist."""
        key = validate_key(key)
        with self.client() as client:
            result = client.ttl(key)
        return _ttl_result(result)

    def pttl(self, key: KeyT) -> int | None:
        """Get TTL in milliseconds. Same sentinels as ``ttl``."""
        key = validate_key(key)
        with self.client() as client:
            result = client.pttl(key)
        return _ttl_result(result)

    def type(self, key: KeyT) -> KeyType:
        """Get the data type stored at a key (``KeyType.NONE`` if missing)."""
        key = validate_key(key)
        with self.client() as client:
            return KeyType(client.type(key))

    def scan_keys(self, pattern: str = "*", itersize: int | None = None) -> set[str]:
        """Collect every key matching a glob pattern using SCAN."""
        with self.client() as client, closing(self._scan_iter(client, pattern, itersize)) as keys:
            return set(keys)

    def iter_keys(self, pattern: str = "*", itersize: int | None = None) -> Iterator[str]:
        """Lazily iterate keys matching a glob pattern using SCAN.

        The server-side cursor is released when the iterator is exhausted or
        closed, so prefer ``scan_keys`` unless the key space is large.
        """
        with self.client() as client, closing(self._scan_iter(client, pattern, itersize)) as keys:
            yield from keys

    def _scan_iter(self, client: Any, pattern: str, itersize: int | None) -> Iterator[str]:
        return client.scan_iter(match=pattern, count=itersize or self.scan_itersize)


def _ttl_result(result: int) -> int | None:
    if result == -1:
        return None
    if result == -2:
        return KEY_MISSING
    return result


# =============================================================================
# RedisConnection - concrete implementation for redis-py
# =============================================================================

if _REDIS_AVAILABLE:

    class RedisConnection(KeyValueConnection):
        """Connection using redis-py."""

        _lib = redis
        _client_class = redis.Redis
        _pool_class = redis.ConnectionPool

else:

    class RedisConnection(KeyValueConnection):  # type: ignore[no-redef]
        """Connection (requires redis-py)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            msg = "RedisConnection requires redis-py. Install with: pip install redis"
            raise ImportError(msg)


# =============================================================================
# ValkeyConnection - concrete implementation for valkey-py
# =============================================================================

if _VALKEY_AVAILABLE:

    class ValkeyConnection(KeyValueConnection):
        """Connection using valkey-py."""

        _lib = valkey
        _client_class = valkey.Valkey
        _pool_class = valkey.ConnectionPool

else:

    class ValkeyConnection(KeyValueConnection):  # type: ignore[no-redef]
        """Connection (requires valkey-py)."""

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise ImportError("ValkeyConnection requires valkey-py. Install with: pip install django-typedkv[valkey]")


__all__ = [
    "_REDIS_AVAILABLE",
    "_VALKEY_AVAILABLE",
    "KeyValueConnection",
    "RedisConnection",
    "ValkeyConnection",
    "expiry_seconds",
    "validate_key",
]
