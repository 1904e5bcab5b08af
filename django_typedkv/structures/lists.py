"""Double-ended sequences stored under a single key (Redis lists)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from django_typedkv.client.default import expiry_seconds
from django_typedkv.exceptions import PreconditionError
from django_typedkv.structures.base import BaseStore
from django_typedkv.types import WAIT_FOREVER, Wait

if TYPE_CHECKING:
    from collections.abc import Iterable

    from django_typedkv.types import ExpiryT, KeyT, TargetT

logger = logging.getLogger(__name__)


def _blocking_timeout(timeout: ExpiryT | Wait) -> float:
    """Convert a caller timeout to the server's blocking timeout (0 = no bound)."""
    if timeout is WAIT_FOREVER:
        return 0
    seconds = expiry_seconds(timeout)  # type: ignore[arg-type]
    if seconds <= 0:
        msg = f"timeout must be positive, got {timeout!r}; pass WAIT_FOREVER to block without a bound"
        raise PreconditionError(msg)
    return seconds


class ListStore(BaseStore):
    """Typed operations on lists.

    Pops take an optional ``timeout``. Without one they return immediately
    (None on an empty list). With a positive timeout, in seconds or as a
    timedelta, they block until an element arrives or the time runs out,
    then return None. Blocking without any bound requires passing
    ``WAIT_FOREVER`` explicitly.

    A blocking call holds a pooled connection for its whole wait, and the
    pool's ``socket_timeout`` (if set) must exceed the wait.
    """

    def size(self, key: KeyT) -> int:
        """Get the length of a list."""
        key = self._key(key)
        with self.connection.client() as client:
            return cast("int", client.llen(key))

    def index(self, key: KeyT, index: int, as_type: TargetT = None) -> Any:
        """Get the element at ``index`` (negative counts from the tail), or None."""
        key = self._key(key)
        with self.connection.client() as client:
            raw = client.lindex(key, index)
        return self.codec.decode(raw, as_type)

    def index_of(self, key: KeyT, value: Any) -> int | None:
        """Position of the first occurrence of ``value``, or None."""
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client() as client:
            return client.lpos(key, nvalue)

    def last_index_of(self, key: KeyT, value: Any) -> int | None:
        """Position of the last occurrence of ``value``, or None."""
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client() as client:
            return client.lpos(key, nvalue, rank=-1)

    def range(self, key: KeyT, start: int, end: int, as_type: TargetT = None) -> list[Any]:
        """Get the elements from ``start`` to ``end``, both inclusive."""
        key = self._key(key)
        with self.connection.client() as client:
            values = client.lrange(key, start, end)
        return self.codec.decode_many(values, as_type)

    def range_all(self, key: KeyT, as_type: TargetT = None) -> list[Any]:
        """Get every element of a list."""
        return self.range(key, 0, -1, as_type)

    def trim(self, key: KeyT, start: int, end: int) -> None:
        """Keep only the elements from ``start`` to ``end``; ``end < start`` empties the list."""
        key = self._key(key)
        with self.connection.client(write=True) as client:
            client.ltrim(key, start, end)

    def remove(self, key: KeyT, value: Any, count: int = 1) -> int:
        """Remove occurrences of ``value``.

        ``count > 0`` removes the first ``count`` matches from head to tail,
        ``count < 0`` from tail to head and ``count == 0`` all of them.
        Returns how many were removed.
        """
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client(write=True) as client:
            return cast("int", client.lrem(key, count, nvalue))

    def set_at(self, key: KeyT, index: int, value: Any) -> None:
        """Replace the element at ``index``.

        Raises:
            PreconditionError: If the index is out of range or the list doesn't exist
        """
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client(write=True) as client:
            client.lset(key, index, nvalue)

    # Pushes

    def left_push(self, key: KeyT, *values: Any) -> int:
        """Push values onto the head, in order. Returns the new length."""
        return self.left_push_all(key, values)

    def left_push_all(self, key: KeyT, values: Iterable[Any]) -> int:
        return self._push(key, values, "lpush")

    def right_push(self, key: KeyT, *values: Any) -> int:
        """Push values onto the tail, in order. Returns the new length."""
        return self.right_push_all(key, values)

    def right_push_all(self, key: KeyT, values: Iterable[Any]) -> int:
        return self._push(key, values, "rpush")

    def left_push_if_exists(self, key: KeyT, *values: Any) -> int:
        """Push onto the head only if the list exists. Returns the length (0 if absent)."""
        return self._push(key, values, "lpushx")

    def right_push_if_exists(self, key: KeyT, *values: Any) -> int:
        """Push onto the tail only if the list exists. Returns the length (0 if absent)."""
        return self._push(key, values, "rpushx")

    def _push(self, key: KeyT, values: Iterable[Any], command: str) -> int:
        key = self._key(key)
        nvalues = self._encode_many(values)
        if not nvalues:
            logger.debug("Skipping %s on %r: nothing to push", command.upper(), key)
            return self.size(key)
        with self.connection.client(write=True) as client:
            return cast("int", getattr(client, command)(key, *nvalues))

    # Pops

    def left_pop(self, key: KeyT, timeout: ExpiryT | Wait | None = None, as_type: TargetT = None) -> Any:
        """Pop from the head, optionally blocking up to ``timeout``."""
        return self._pop(key, timeout, as_type, left=True)

    def right_pop(self, key: KeyT, timeout: ExpiryT | Wait | None = None, as_type: TargetT = None) -> Any:
        """Pop from the tail, optionally blocking up to ``timeout``."""
        return self._pop(key, timeout, as_type, left=False)

    def _pop(self, key: KeyT, timeout: ExpiryT | Wait | None, as_type: TargetT, *, left: bool) -> Any:
        key = self._key(key)
        if timeout is None:
            with self.connection.client(write=True) as client:
                raw = client.lpop(key) if left else client.rpop(key)
            return self.codec.decode(raw, as_type)

        wait = _blocking_timeout(timeout)
        with self.connection.client(write=True) as client:
            result = client.blpop([key], timeout=wait) if left else client.brpop([key], timeout=wait)
        if result is None:
            return None
        _, raw = result
        return self.codec.decode(raw, as_type)

    def left_pop_count(self, key: KeyT, count: int, as_type: TargetT = None) -> list[Any]:
        """Pop up to ``count`` elements from the head."""
        return self._pop_count(key, count, as_type, left=True)

    def right_pop_count(self, key: KeyT, count: int, as_type: TargetT = None) -> list[Any]:
        """Pop up to ``count`` elements from the tail."""
        return self._pop_count(key, count, as_type, left=False)

    def _pop_count(self, key: KeyT, count: int, as_type: TargetT, *, left: bool) -> list[Any]:
        key = self._key(key)
        if count < 0:
            raise PreconditionError(f"count must not be negative, got {count}")
        if count == 0:
            return []
        with self.connection.client(write=True) as client:
            values = client.lpop(key, count) if left else client.rpop(key, count)
        return self.codec.decode_many(values or [], as_type)

    def pop_and_requeue(
        self,
        source: KeyT,
        destination: KeyT | None = None,
        timeout: ExpiryT | Wait | None = None,
        as_type: TargetT = None,
    ) -> Any:
        """Atomically move the tail of ``source`` to the head of ``destination``.

        ``destination`` defaults to ``source``, which rotates the list. Returns
        the moved element, or None if ``source`` is empty (or stayed empty
        for the whole ``timeout``).
        """
        source = self._key(source, "source")
        destination = source if destination is None else destination
        if timeout is None:
            with self.connection.client(write=True) as client:
                raw = client.lmove(source, destination, "RIGHT", "LEFT")
        else:
            wait = _blocking_timeout(timeout)
            with self.connection.client(write=True) as client:
                raw = client.blmove(source, destination, wait, "RIGHT", "LEFT")
        return self.codec.decode(raw, as_type)
