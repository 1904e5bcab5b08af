"""Scalar values stored under a single key (Redis strings)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from django_typedkv.client.default import expiry_seconds
from django_typedkv.exceptions import PreconditionError
from django_typedkv.structures.base import BaseStore

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from django_typedkv.types import ExpiryT, KeyT, TargetT

logger = logging.getLogger(__name__)


def _expiry_kwargs(seconds: float) -> dict[str, int]:
    # Whole seconds use EX, anything finer uses PX
    if seconds == int(seconds):
        return {"ex": int(seconds)}
    return {"px": max(1, int(seconds * 1000))}


def _check_step(step: Any) -> None:
    if isinstance(step, bool) or not isinstance(step, (int, float)):
        raise PreconditionError(f"step must be an int or a float, got {type(step).__name__}")


class ValueStore(BaseStore):
    """Typed get/set over plain keys.

    Values go through the connection's codec: text is stored as-is and
    anything else as JSON. Reads return the stored text unless ``as_type``
    asks for something else.

    Example::

        values = ValueStore()
        values.set("user:100:profile", Profile(name="Ada", age=36))
        values.get("user:100:profile", as_type=Profile)
    """

    def get(self, key: KeyT, as_type: TargetT = None) -> Any:
        """Fetch a value. Returns None if the key doesn't exist."""
        key = self._key(key)
        with self.connection.client() as client:
            raw = client.get(key)
        return self.codec.decode(raw, as_type)

    def set(self, key: KeyT, value: Any) -> None:
        """Store a value without expiry, replacing whatever was there."""
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client(write=True) as client:
            client.set(key, nvalue)

    def set_with_expiry(self, key: KeyT, value: Any, timeout: ExpiryT) -> bool:
        """Store a value that expires after ``timeout`` (seconds or timedelta).

        A timeout of zero or less skips the write entirely and returns False;
        the key is left untouched.
        """
        key = self._key(key)
        seconds = expiry_seconds(timeout)
        if seconds <= 0:
            logger.debug("Skipping write of %r: non-positive timeout %r", key, timeout)
            return False
        nvalue = self._encode(value)
        with self.connection.client(write=True) as client:
            client.set(key, nvalue, **_expiry_kwargs(seconds))
        return True

    def set_if_absent(self, key: KeyT, value: Any, timeout: ExpiryT | None = None) -> bool:
        """Store a value only if the key doesn't exist (one ``SET ... NX``).

        Returns True if the value was written. With a timeout, the value
        expires after it; the timeout must be positive.
        """
        key = self._key(key)
        expiry: dict[str, int] = {}
        if timeout is not None:
            seconds = expiry_seconds(timeout)
            if seconds <= 0:
                raise PreconditionError(f"timeout must be positive, got {timeout!r}")
            expiry = _expiry_kwargs(seconds)
        nvalue = self._encode(value)
        with self.connection.client(write=True) as client:
            return bool(client.set(key, nvalue, nx=True, **expiry))

    def append(self, key: KeyT, value: Any) -> int:
        """Append the encoded value to the stored text. Returns the new length."""
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client(write=True) as client:
            return cast("int", client.append(key, nvalue))

    def increment(self, key: KeyT, step: float = 1) -> int | float:
        """Atomically add ``step`` to a numeric value and return the result.

        An int step uses INCRBY, a float step uses INCRBYFLOAT. A missing key
        counts as 0.

        Raises:
            PreconditionError: If the stored value is not numeric
        """
        key = self._key(key)
        _check_step(step)
        with self.connection.client(write=True) as client:
            if isinstance(step, float):
                return float(client.incrbyfloat(key, step))
            return cast("int", client.incrby(key, step))

    def decrement(self, key: KeyT, step: float = 1) -> int | float:
        """Atomically subtract ``step`` from a numeric value."""
        _check_step(step)
        return self.increment(key, -step)

    def get_and_set(self, key: KeyT, value: Any, as_type: TargetT = None) -> Any:
        """Atomically replace a value and return the previous one.

        The previous value is decoded as ``as_type``, which defaults to the
        type of the new value. Storing None returns the previous raw text.
        """
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client(write=True) as client:
            raw = client.set(key, nvalue, get=True)
        if as_type is None and value is not None:
            as_type = type(value)
        return self.codec.decode(raw, as_type)

    def get_and_delete(self, key: KeyT, as_type: TargetT = None) -> Any:
        """Atomically delete a key and return the value it held."""
        key = self._key(key)
        with self.connection.client(write=True) as client:
            raw = client.getdel(key)
        return self.codec.decode(raw, as_type)

    def batch_set(self, mapping: Mapping[KeyT, Any]) -> None:
        """Store several values at once (MSET)."""
        if not mapping:
            logger.debug("Skipping MSET: nothing to write")
            return
        nmap = {self._key(k): self._encode(v) for k, v in mapping.items()}
        with self.connection.client(write=True) as client:
            client.mset(nmap)

    def batch_set_if_all_absent(self, mapping: Mapping[KeyT, Any]) -> bool:
        """Store several values only if none of the keys exist (MSETNX).

        All-or-nothing: if any key already exists nothing is written and
        False is returned. An empty mapping writes nothing and returns False.
        """
        if not mapping:
            logger.debug("Skipping MSETNX: nothing to write")
            return False
        nmap = {self._key(k): self._encode(v) for k, v in mapping.items()}
        with self.connection.client(write=True) as client:
            return bool(client.msetnx(nmap))

    def batch_get(self, keys: Iterable[KeyT], as_type: TargetT = None) -> list[Any]:
        """Fetch several values, aligned with ``keys``; None marks a missing key."""
        keys = [self._key(k) for k in keys]
        if not keys:
            return []
        with self.connection.client() as client:
            values = client.mget(keys)
        return self.codec.decode_many(values, as_type)
