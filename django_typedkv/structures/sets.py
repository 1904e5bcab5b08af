"""Unordered collections of unique members (Redis sets)."""

from __future__ import annotations

import logging
from contextlib import closing
from typing import TYPE_CHECKING, Any, cast

from django_typedkv.exceptions import PreconditionError
from django_typedkv.structures.base import BaseStore

if TYPE_CHECKING:
    from collections.abc import Iterable

    from django_typedkv.types import KeyT, TargetT

# Alias builtin set type to avoid shadowing by set-returning method names
_Set = set

logger = logging.getLogger(__name__)


def _flatten_keys(keys: KeyT | Iterable[KeyT], other_keys: KeyT | Iterable[KeyT] | None) -> list[KeyT]:
    """Accept a key or an iterable of keys on both sides and return one list."""
    flat: list[KeyT] = []
    for group in (keys, other_keys):
        if group is None:
            continue
        if isinstance(group, str):
            flat.append(group)
        else:
            flat.extend(group)
    if any(k is None for k in flat):
        raise PreconditionError("keys must not contain None")
    return flat


class SetStore(BaseStore):
    """Typed operations on sets.

    Set algebra (``difference``, ``intersect``, ``union`` and their
    ``*_and_store`` variants) runs on the server in one command. Each takes
    ``keys`` and ``other_keys``, where either may be a single key or an
    iterable of keys, so all of these work::

        sets.intersect("tags:a", "tags:b")
        sets.intersect("tags:a", ["tags:b", "tags:c"])
        sets.intersect(["tags:a", "tags:b", "tags:c"])
    """

    def size(self, key: KeyT) -> int:
        """Get the number of members in a set."""
        key = self._key(key)
        with self.connection.client() as client:
            return cast("int", client.scard(key))

    def is_member(self, key: KeyT, value: Any) -> bool:
        """Check if a value is a member of the set."""
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client() as client:
            return bool(client.sismember(key, nvalue))

    def scan(self, key: KeyT, pattern: str = "*", as_type: TargetT = None, itersize: int | None = None) -> _Set[Any]:
        """Collect the members matching ``pattern`` using SSCAN.

        The cursor is drained and released before returning, also on error.
        """
        key = self._key(key)
        count = itersize or self.connection.scan_itersize
        with (
            self.connection.client() as client,
            closing(client.sscan_iter(key, match=pattern, count=count)) as members,
        ):
            raw = list(members)
        return self.codec.decode_set(raw, as_type)

    def add(self, key: KeyT, *values: Any) -> int:
        """Add members. Returns how many were not already present."""
        key = self._key(key)
        if not values:
            return 0
        nvalues = self._encode_many(values)
        with self.connection.client(write=True) as client:
            return cast("int", client.sadd(key, *nvalues))

    def remove(self, key: KeyT, *values: Any) -> int:
        """Remove members. Returns how many were present."""
        key = self._key(key)
        if not values:
            return 0
        nvalues = self._encode_many(values)
        with self.connection.client(write=True) as client:
            return cast("int", client.srem(key, *nvalues))

    # Set algebra

    def difference(
        self,
        keys: KeyT | Iterable[KeyT],
        other_keys: KeyT | Iterable[KeyT] | None = None,
        as_type: TargetT = None,
    ) -> _Set[Any]:
        """Members of the first set that are in none of the others."""
        return self._combine("sdiff", keys, other_keys, as_type)

    def intersect(
        self,
        keys: KeyT | Iterable[KeyT],
        other_keys: KeyT | Iterable[KeyT] | None = None,
        as_type: TargetT = None,
    ) -> _Set[Any]:
        """Members present in every set."""
        return self._combine("sinter", keys, other_keys, as_type)

    def union(
        self,
        keys: KeyT | Iterable[KeyT],
        other_keys: KeyT | Iterable[KeyT] | None = None,
        as_type: TargetT = None,
    ) -> _Set[Any]:
        """Members present in any set."""
        return self._combine("sunion", keys, other_keys, as_type)

    def difference_and_store(
        self,
        keys: KeyT | Iterable[KeyT],
        other_keys: KeyT | Iterable[KeyT] | None,
        dest_key: KeyT,
    ) -> int:
        """Store the difference in ``dest_key``. Returns its size."""
        return self._combine_and_store("sdiffstore", keys, other_keys, dest_key)

    def intersect_and_store(
        self,
        keys: KeyT | Iterable[KeyT],
        other_keys: KeyT | Iterable[KeyT] | None,
        dest_key: KeyT,
    ) -> int:
        """Store the intersection in ``dest_key``. Returns its size."""
        return self._combine_and_store("sinterstore", keys, other_keys, dest_key)

    def union_and_store(
        self,
        keys: KeyT | Iterable[KeyT],
        other_keys: KeyT | Iterable[KeyT] | None,
        dest_key: KeyT,
    ) -> int:
        """Store the union in ``dest_key``. Returns its size."""
        return self._combine_and_store("sunionstore", keys, other_keys, dest_key)

    def _combine(
        self,
        command: str,
        keys: KeyT | Iterable[KeyT],
        other_keys: KeyT | Iterable[KeyT] | None,
        as_type: TargetT,
    ) -> _Set[Any]:
        flat = _flatten_keys(keys, other_keys)
        if not flat:
            return _Set()
        with self.connection.client() as client:
            members = getattr(client, command)(flat)
        return self.codec.decode_set(members, as_type)

    def _combine_and_store(
        self,
        command: str,
        keys: KeyT | Iterable[KeyT],
        other_keys: KeyT | Iterable[KeyT] | None,
        dest_key: KeyT,
    ) -> int:
        dest_key = self._key(dest_key, "dest_key")
        flat = _flatten_keys(keys, other_keys)
        if not flat:
            logger.debug("Skipping %s into %r: no source keys", command.upper(), dest_key)
            return 0
        with self.connection.client(write=True) as client:
            return cast("int", getattr(client, command)(dest_key, flat))

    # Sampling and removal

    def pop(self, key: KeyT, count: int | None = None, as_type: TargetT = None) -> Any:
        """Remove and return a random member, or a set of up to ``count`` members."""
        key = self._key(key)
        if count is None:
            with self.connection.client(write=True) as client:
                raw = client.spop(key)
            return self.codec.decode(raw, as_type)
        if count < 0:
            raise PreconditionError(f"count must not be negative, got {count}")
        if count == 0:
            return _Set()
        with self.connection.client(write=True) as client:
            members = client.spop(key, count)
        return self.codec.decode_set(members or [], as_type)

    def random_member(self, key: KeyT, as_type: TargetT = None) -> Any:
        """Get one random member without removing it, or None if the set is empty."""
        key = self._key(key)
        with self.connection.client() as client:
            raw = client.srandmember(key)
        return self.codec.decode(raw, as_type)

    def random_members(self, key: KeyT, count: int, as_type: TargetT = None) -> list[Any]:
        """Get ``count`` random members; the same member may appear more than once."""
        key = self._key(key)
        if count < 0:
            raise PreconditionError(f"count must not be negative, got {count}")
        if count == 0:
            return []
        with self.connection.client() as client:
            # A negative count allows repeats
            members = client.srandmember(key, -count)
        return self.codec.decode_many(members or [], as_type)

    def distinct_random_members(self, key: KeyT, count: int, as_type: TargetT = None) -> _Set[Any]:
        """Get up to ``count`` distinct random members (at most the set's size)."""
        key = self._key(key)
        if count < 0:
            raise PreconditionError(f"count must not be negative, got {count}")
        if count == 0:
            return _Set()
        with self.connection.client() as client:
            members = client.srandmember(key, count)
        return self.codec.decode_set(members or [], as_type)

    def members(self, key: KeyT, as_type: TargetT = None) -> _Set[Any]:
        """Get every member of a set."""
        key = self._key(key)
        with self.connection.client() as client:
            members = client.smembers(key)
        return self.codec.decode_set(members, as_type)

    def move(self, key: KeyT, value: Any, dest_key: KeyT) -> bool:
        """Atomically move a member to another set. False if it wasn't in ``key``."""
        key = self._key(key)
        dest_key = self._key(dest_key, "dest_key")
        nvalue = self._encode(value)
        with self.connection.client(write=True) as client:
            return bool(client.smove(key, dest_key, nvalue))
