"""Tests for set operations."""

import pytest

from django_typedkv.exceptions import PreconditionError
from django_typedkv.structures import SetStore


class TestSetBasics:
    def test_add_counts_new_members(self, sets: SetStore):
        assert sets.add("tags", "python", "redis") == 2
        assert sets.add("tags", "python", "django") == 1
        assert sets.size("tags") == 3

    def test_members_typed(self, sets: SetStore):
        sets.add("ids", 1, 2, 3)
        assert sets.members("ids") == {"1", "2", "3"}
        assert sets.members("ids", as_type=int) == {1, 2, 3}

    def test_is_member(self, sets: SetStore):
        sets.add("ids", 7)
        assert sets.is_member("ids", 7) is True
        assert sets.is_member("ids", 8) is False

    def test_remove(self, sets: SetStore):
        sets.add("s", "a", "b", "c")
        assert sets.remove("s", "a", "z") == 1
        assert sets.members("s") == {"b", "c"}

    def test_empty_and_missing(self, sets: SetStore):
        assert sets.add("s") == 0
        assert sets.remove("s") == 0
        assert sets.members("missing") == set()
        assert sets.size("missing") == 0

    def test_move(self, sets: SetStore):
        sets.add("todo", "write", "test")
        assert sets.move("todo", "write", "done") is True
        assert sets.move("todo", "deploy", "done") is False
        assert sets.members("todo") == {"test"}
        assert sets.members("done") == {"write"}


class TestSetAlgebra:
    @pytest.fixture(autouse=True)
    def _data(self, sets: SetStore):
        sets.add("a", 1, 2, 3, 4)
        sets.add("b", 3, 4, 5)
        sets.add("c", 4, 5, 6)

    def test_difference(self, sets: SetStore):
        assert sets.difference("a", "b", as_type=int) == {1, 2}
        assert sets.difference("a", ["b", "c"], as_type=int) == {1, 2}

    def test_intersect(self, sets: SetStore):
        assert sets.intersect("a", "b", as_type=int) == {3, 4}
        assert sets.intersect(["a", "b", "c"], as_type=int) == {4}

    def test_union(self, sets: SetStore):
        assert sets.union("a", ["b", "c"], as_type=int) == {1, 2, 3, 4, 5, 6}
        assert sets.union("a", "missing", as_type=int) == {1, 2, 3, 4}

    def test_store_variants(self, sets: SetStore):
        assert sets.difference_and_store("a", "b", "out:diff") == 2
        assert sets.intersect_and_store("a", ["b", "c"], "out:inter") == 1
        assert sets.union_and_store("b", "c", "out:union") == 4

        assert sets.members("out:diff", as_type=int) == {1, 2}
        assert sets.members("out:inter", as_type=int) == {4}
        assert sets.members("out:union", as_type=int) == {3, 4, 5, 6}

    def test_empty_keys(self, sets: SetStore):
        assert sets.union([]) == set()
        assert sets.union_and_store([], None, "out") == 0


class TestSetScan:
    def test_scan_returns_every_match(self, sets: SetStore):
        sets.add("emails", *(f"user{i}@example.com" for i in range(200)))
        sets.add("emails", "admin@example.org")

        found = sets.scan("emails", "*@example.com")

        assert len(found) == 200

    def test_scan_small_itersize(self, sets: SetStore):
        sets.add("s", *range(30))
        assert sets.scan("s", as_type=int, itersize=3) == set(range(30))


class TestSetSampling:
    def test_pop(self, sets: SetStore):
        sets.add("s", "a", "b", "c")
        popped = sets.pop("s")
        assert popped in {"a", "b", "c"}
        assert sets.size("s") == 2

    def test_pop_count(self, sets: SetStore):
        sets.add("s", 1, 2, 3)
        assert sets.pop("s", 10, as_type=int) == {1, 2, 3}
        assert sets.pop("s") is None
        assert sets.pop("s", 0) == set()

    def test_random_member(self, sets: SetStore):
        assert sets.random_member("missing") is None
        sets.add("s", "only")
        assert sets.random_member("s") == "only"
        assert sets.size("s") == 1

    def test_random_members_may_repeat(self, sets: SetStore):
        sets.add("s", "only")
        assert sets.random_members("s", 4) == ["only"] * 4

    def test_distinct_random_members(self, sets: SetStore):
        sets.add("s", 1, 2, 3)
        assert sets.distinct_random_members("s", 10, as_type=int) == {1, 2, 3}
        assert len(sets.distinct_random_members("s", 2)) == 2

    def test_negative_count(self, sets: SetStore):
        with pytest.raises(PreconditionError):
            sets.random_members("s", -1)
        with pytest.raises(PreconditionError):
            sets.pop("s", -2)
