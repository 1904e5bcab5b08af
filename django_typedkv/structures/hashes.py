"""Field-keyed maps stored under a single key (Redis hashes)."""

from __future__ import annotations

import logging
from contextlib import closing
from typing import TYPE_CHECKING, Any, cast

from django_typedkv.exceptions import PreconditionError
from django_typedkv.structures.base import BaseStore

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from django_typedkv.types import KeyT, TargetT

logger = logging.getLogger(__name__)


def _pairs(reply: list[Any]) -> list[tuple[str, str]]:
    """Normalize an HRANDFIELD ... WITHVALUES reply to (field, value) pairs.

    RESP2 replies are flat ``[f1, v1, f2, v2]``; RESP3 replies are nested pairs.
    """
    if reply and isinstance(reply[0], (list, tuple)):
        return [(f, v) for f, v in reply]
    return list(zip(reply[::2], reply[1::2], strict=True))


class HashStore(BaseStore):
    """Typed operations on hashes.

    Field names go through the codec just like values, so non-text fields
    (ints, UUIDs, enums) round-trip. Reads take ``as_type`` for values and
    ``field_type`` for field names; both default to the raw text.
    """

    def size(self, key: KeyT) -> int:
        """Get the number of fields in a hash."""
        key = self._key(key)
        with self.connection.client() as client:
            return cast("int", client.hlen(key))

    def has_field(self, key: KeyT, field: Any) -> bool:
        """Check if a hash field exists."""
        key = self._key(key)
        nfield = self._encode(field)
        with self.connection.client() as client:
            return bool(client.hexists(key, nfield))

    def scan_fields(
        self,
        key: KeyT,
        pattern: str = "*",
        as_type: TargetT = None,
        field_type: TargetT = None,
        itersize: int | None = None,
    ) -> dict[Any, Any]:
        """Collect the entries whose field matches ``pattern`` using HSCAN.

        The cursor is drained and released before returning, also on error.
        """
        key = self._key(key)
        count = itersize or self.connection.scan_itersize
        with (
            self.connection.client() as client,
            closing(client.hscan_iter(key, match=pattern, count=count)) as entries,
        ):
            raw = dict(entries)
        return self.codec.decode_mapping(raw, as_type, field_type)

    def fields(self, key: KeyT, field_type: TargetT = None) -> set[Any]:
        """Get all field names in a hash."""
        key = self._key(key)
        with self.connection.client() as client:
            fields = client.hkeys(key)
        return self.codec.decode_set(fields, field_type)

    def get(self, key: KeyT, field: Any, as_type: TargetT = None) -> Any:
        """Get a hash field. Returns None if the field or the hash doesn't exist."""
        key = self._key(key)
        nfield = self._encode(field)
        with self.connection.client() as client:
            raw = client.hget(key, nfield)
        return self.codec.decode(raw, as_type)

    def multi_get(self, key: KeyT, fields: Iterable[Any], as_type: TargetT = None) -> list[Any]:
        """Get several fields, aligned with ``fields``; None marks a missing field."""
        key = self._key(key)
        nfields = self._encode_many(fields)
        if not nfields:
            return []
        with self.connection.client() as client:
            values = client.hmget(key, nfields)
        return self.codec.decode_many(values, as_type)

    def entries(self, key: KeyT, as_type: TargetT = None, field_type: TargetT = None) -> dict[Any, Any]:
        """Get all fields and values of a hash."""
        key = self._key(key)
        with self.connection.client() as client:
            raw = client.hgetall(key)
        return self.codec.decode_mapping(raw, as_type, field_type)

    def values(self, key: KeyT, as_type: TargetT = None) -> list[Any]:
        """Get all values in a hash."""
        key = self._key(key)
        with self.connection.client() as client:
            values = client.hvals(key)
        return self.codec.decode_many(values, as_type)

    def put(self, key: KeyT, field: Any, value: Any) -> bool:
        """Set a hash field. Returns True if the field is new."""
        key = self._key(key)
        nfield = self._encode(field)
        nvalue = self._encode(value)
        with self.connection.client(write=True) as client:
            return bool(client.hset(key, nfield, nvalue))

    def put_all(self, key: KeyT, mapping: Mapping[Any, Any]) -> int:
        """Set several hash fields. Returns how many fields are new."""
        key = self._key(key)
        if not mapping:
            logger.debug("Skipping HSET on %r: nothing to write", key)
            return 0
        nmap = self.codec.encode_mapping(mapping)
        with self.connection.client(write=True) as client:
            return cast("int", client.hset(key, mapping=nmap))

    def put_if_absent(self, key: KeyT, field: Any, value: Any) -> bool:
        """Set a hash field only if it doesn't exist (HSETNX)."""
        key = self._key(key)
        nfield = self._encode(field)
        nvalue = self._encode(value)
        with self.connection.client(write=True) as client:
            return bool(client.hsetnx(key, nfield, nvalue))

    def increment(self, key: KeyT, field: Any, step: float = 1) -> int | float:
        """Atomically add ``step`` to a numeric field (HINCRBY / HINCRBYFLOAT).

        Raises:
            PreconditionError: If the field holds a non-numeric value
        """
        key = self._key(key)
        if isinstance(step, bool) or not isinstance(step, (int, float)):
            raise PreconditionError(f"step must be an int or a float, got {type(step).__name__}")
        nfield = self._encode(field)
        with self.connection.client(write=True) as client:
            if isinstance(step, float):
                return float(client.hincrbyfloat(key, nfield, step))
            return cast("int", client.hincrby(key, nfield, step))

    def random_field(self, key: KeyT, field_type: TargetT = None) -> Any:
        """Get one random field name, or None if the hash is empty."""
        key = self._key(key)
        with self.connection.client() as client:
            raw = client.hrandfield(key)
        return self.codec.decode(raw, field_type)

    def random_fields(self, key: KeyT, count: int, field_type: TargetT = None) -> list[Any]:
        """Get ``count`` random field names; the same field may appear more than once."""
        key = self._key(key)
        if count < 0:
            raise PreconditionError(f"count must not be negative, got {count}")
        if count == 0:
            return []
        with self.connection.client() as client:
            # A negative count allows repeats
            fields = client.hrandfield(key, -count)
        return self.codec.decode_many(fields or [], field_type)

    def random_entry(self, key: KeyT, as_type: TargetT = None, field_type: TargetT = None) -> tuple[Any, Any] | None:
        """Get one random (field, value) pair, or None if the hash is empty."""
        entries = self.random_entries(key, 1, as_type, field_type)
        if not entries:
            return None
        return next(iter(entries.items()))

    def random_entries(
        self,
        key: KeyT,
        count: int,
        as_type: TargetT = None,
        field_type: TargetT = None,
    ) -> dict[Any, Any]:
        """Get up to ``count`` distinct random entries."""
        key = self._key(key)
        if count < 0:
            raise PreconditionError(f"count must not be negative, got {count}")
        if count == 0:
            return {}
        with self.connection.client() as client:
            reply = client.hrandfield(key, count, withvalues=True)
        return self.codec.decode_mapping(dict(_pairs(reply or [])), as_type, field_type)

    def delete(self, key: KeyT, *fields: Any) -> int:
        """Delete hash fields. Returns how many existed."""
        key = self._key(key)
        if not fields:
            return 0
        nfields = self._encode_many(fields)
        with self.connection.client(write=True) as client:
            return cast("int", client.hdel(key, *nfields))
