from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django_typedkv.client.default import validate_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from django_typedkv.client.default import KeyValueConnection
    from django_typedkv.codec import Codec
    from django_typedkv.types import ExpiryT, KeyT


class BaseStore:
    """Shared plumbing for the per-type stores.

    A store is stateless apart from the connection it is bound to. Without an
    explicit connection it resolves ``alias`` from the process-wide registry
    on first use, so stores can be created at import time.
    """

    def __init__(self, connection: KeyValueConnection | None = None, *, alias: str = "default") -> None:
        self._connection = connection
        self._alias = alias

    def __repr__(self) -> str:
        if self._connection is None:
            return f"<{self.__class__.__name__} alias={self._alias!r}>"
        return f"<{self.__class__.__name__} connection={self._connection!r}>"

    @property
    def connection(self) -> KeyValueConnection:
        if self._connection is None:
            from django_typedkv import get_connection

            self._connection = get_connection(self._alias)
        return self._connection

    @property
    def codec(self) -> Codec:
        return self.connection.codec

    # Key-level shortcuts

    def exists(self, key: KeyT) -> bool:
        return self.connection.exists(key)

    def expire(self, key: KeyT, timeout: ExpiryT) -> bool:
        return self.connection.expire(key, timeout)

    def ttl(self, key: KeyT) -> int | None:
        return self.connection.ttl(key)

    # Helpers

    @staticmethod
    def _key(key: KeyT | None, name: str = "key") -> KeyT:
        return validate_key(key, name)

    def _encode(self, value: Any) -> str:
        return self.codec.encode(value)

    def _encode_many(self, values: Iterable[Any]) -> list[str]:
        return self.codec.encode_many(values)
