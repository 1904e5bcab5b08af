"""Score-ordered collections of unique members (Redis sorted sets)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from django_typedkv.structures.base import BaseStore
from django_typedkv.types import LexRange, TypedTuple

if TYPE_CHECKING:
    from collections.abc import Iterable

    from django_typedkv.types import KeyT, TargetT

logger = logging.getLogger(__name__)


class SortedSetStore(BaseStore):
    """Typed operations on sorted sets.

    Members are ordered by score; members with equal scores are ordered by
    their encoded text. Batch writes take ``TypedTuple`` (or plain
    ``(value, score)``) pairs.
    """

    def size(self, key: KeyT) -> int:
        """Get the number of members in a sorted set."""
        key = self._key(key)
        with self.connection.client() as client:
            return cast("int", client.zcard(key))

    cardinality = size

    def remove(self, key: KeyT, *values: Any) -> int:
        """Remove members. Returns how many were present."""
        key = self._key(key)
        if not values:
            return 0
        nvalues = self._encode_many(values)
        with self.connection.client(write=True) as client:
            return cast("int", client.zrem(key, *nvalues))

    def count(self, key: KeyT, min_score: float, max_score: float) -> int:
        """Count members with ``min_score <= score <= max_score``."""
        key = self._key(key)
        with self.connection.client() as client:
            return cast("int", client.zcount(key, min_score, max_score))

    def lex_count(self, key: KeyT, lex_range: LexRange | None = None) -> int:
        """Count members within lexical bounds.

        Only meaningful when all members share a score. Bounds are values and
        go through the codec like members do.
        """
        key = self._key(key)
        lex_range = lex_range or LexRange()
        lower = self._lex_bound(lex_range.min, inclusive=lex_range.min_inclusive, unbounded="-")
        upper = self._lex_bound(lex_range.max, inclusive=lex_range.max_inclusive, unbounded="+")
        with self.connection.client() as client:
            return cast("int", client.zlexcount(key, lower, upper))

    def _lex_bound(self, value: Any, *, inclusive: bool, unbounded: str) -> str:
        if value is None:
            return unbounded
        return ("[" if inclusive else "(") + self._encode(value)

    def range(self, key: KeyT, start: int, end: int, as_type: TargetT = None) -> list[Any]:
        """Get members ranked ``start`` to ``end`` (inclusive), lowest score first."""
        key = self._key(key)
        with self.connection.client() as client:
            members = client.zrange(key, start, end)
        return self.codec.decode_many(members, as_type)

    def range_with_scores(self, key: KeyT, start: int, end: int, as_type: TargetT = None) -> list[TypedTuple]:
        """Like ``range`` but each member comes with its score."""
        key = self._key(key)
        with self.connection.client() as client:
            members = client.zrange(key, start, end, withscores=True)
        return [TypedTuple(self.codec.decode(m, as_type), float(s)) for m, s in members]

    def score(self, key: KeyT, value: Any) -> float | None:
        """Get the score of a member, or None if it isn't in the set."""
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client() as client:
            result = client.zscore(key, nvalue)
        return float(result) if result is not None else None

    def rank(self, key: KeyT, value: Any) -> int | None:
        """Get the 0-based rank of a member, lowest score first."""
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client() as client:
            return client.zrank(key, nvalue)

    def reverse_rank(self, key: KeyT, value: Any) -> int | None:
        """Get the 0-based rank of a member, highest score first."""
        key = self._key(key)
        nvalue = self._encode(value)
        with self.connection.client() as client:
            return client.zrevrank(key, nvalue)

    def add(self, key: KeyT, value: Any, score: float = 0.0) -> bool:
        """Add a member or update its score. True if the member is new."""
        return self._zadd(key, [(value, score)], nx=False) == 1

    def add_many(self, key: KeyT, tuples: Iterable[TypedTuple | tuple[Any, float]]) -> int:
        """Add members or update their scores. Returns how many are new."""
        return self._zadd(key, tuples, nx=False)

    def add_if_absent(self, key: KeyT, value: Any, score: float = 0.0) -> bool:
        """Add a member only if it isn't present; existing scores are kept."""
        return self._zadd(key, [(value, score)], nx=True) == 1

    def add_many_if_absent(self, key: KeyT, tuples: Iterable[TypedTuple | tuple[Any, float]]) -> int:
        """Add the members that aren't present. Returns how many were added."""
        return self._zadd(key, tuples, nx=True)

    def _zadd(self, key: KeyT, tuples: Iterable[TypedTuple | tuple[Any, float]], *, nx: bool) -> int:
        key = self._key(key)
        mapping = {self._encode(value): float(score) for value, score in tuples}
        if not mapping:
            logger.debug("Skipping ZADD on %r: nothing to add", key)
            return 0
        with self.connection.client(write=True) as client:
            return cast("int", client.zadd(key, mapping, nx=nx))
