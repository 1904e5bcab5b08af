"""Tests for list operations."""

import threading
import time
from datetime import timedelta

import pytest

from django_typedkv.exceptions import PreconditionError
from django_typedkv.structures import ListStore


class TestListPushPop:
    def test_left_push_is_lifo(self, lists: ListStore):
        assert lists.left_push("queue", "a") == 1
        assert lists.left_push("queue", "b") == 2

        assert lists.range_all("queue") == ["b", "a"]
        assert lists.right_pop("queue") == "a"

    def test_right_push_preserves_order(self, lists: ListStore):
        lists.right_push("queue", 1, 2, 3)
        assert lists.range_all("queue", as_type=int) == [1, 2, 3]
        assert lists.left_pop("queue", as_type=int) == 1

    def test_push_all(self, lists: ListStore):
        lists.right_push_all("q", ["b", "c"])
        lists.left_push_all("q", ["a"])
        assert lists.range_all("q") == ["a", "b", "c"]

    def test_empty_push_returns_size(self, lists: ListStore):
        lists.right_push("q", "x")
        assert lists.right_push("q") == 1
        assert lists.left_push_all("missing", []) == 0

    def test_push_if_exists(self, lists: ListStore):
        assert lists.left_push_if_exists("q", "a") == 0
        assert lists.size("q") == 0
        lists.right_push("q", "a")
        assert lists.right_push_if_exists("q", "b") == 2
        assert lists.left_push_if_exists("q", "z") == 3

    def test_pop_empty(self, lists: ListStore):
        assert lists.left_pop("missing") is None
        assert lists.right_pop("missing") is None

    def test_pop_count(self, lists: ListStore):
        lists.right_push("q", 1, 2, 3, 4)
        assert lists.left_pop_count("q", 2, as_type=int) == [1, 2]
        assert lists.right_pop_count("q", 5, as_type=int) == [4, 3]
        assert lists.left_pop_count("q", 2) == []

    def test_pop_count_zero_and_negative(self, lists: ListStore):
        lists.right_push("q", 1)
        assert lists.left_pop_count("q", 0) == []
        with pytest.raises(PreconditionError):
            lists.left_pop_count("q", -1)
        assert lists.size("q") == 1


class TestListBlockingPop:
    def test_timeout_elapses(self, lists: ListStore):
        started = time.monotonic()
        assert lists.left_pop("jobs", timeout=0.1) is None
        assert time.monotonic() - started >= 0.09

    def test_element_already_there(self, lists: ListStore):
        lists.right_push("jobs", {"id": 1})
        assert lists.right_pop("jobs", timeout=timedelta(seconds=1), as_type=dict) == {"id": 1}

    def test_wakes_on_push(self, lists: ListStore):
        def produce():
            time.sleep(0.2)
            lists.right_push("jobs", "job-1")

        producer = threading.Thread(target=produce)
        producer.start()
        try:
            assert lists.left_pop("jobs", timeout=5) == "job-1"
        finally:
            producer.join()

    def test_non_positive_timeout(self, lists: ListStore):
        with pytest.raises(PreconditionError):
            lists.right_pop("jobs", timeout=0)


class TestListAccess:
    def test_index(self, lists: ListStore):
        lists.right_push("q", "a", "b", "c")
        assert lists.index("q", 0) == "a"
        assert lists.index("q", -1) == "c"
        assert lists.index("q", 10) is None

    def test_index_of(self, lists: ListStore):
        lists.right_push("q", "a", "b", "a")
        assert lists.index_of("q", "a") == 0
        assert lists.last_index_of("q", "a") == 2
        assert lists.index_of("q", "z") is None

    def test_range(self, lists: ListStore):
        lists.right_push("q", *range(10))
        assert lists.range("q", 2, 4, as_type=int) == [2, 3, 4]
        assert lists.range("q", -2, -1, as_type=int) == [8, 9]
        assert lists.range("missing", 0, -1) == []

    def test_size(self, lists: ListStore):
        assert lists.size("q") == 0
        lists.right_push("q", "a", "b")
        assert lists.size("q") == 2


class TestListModify:
    def test_trim(self, lists: ListStore):
        lists.right_push("log", *range(10))
        lists.trim("log", -3, -1)
        assert lists.range_all("log", as_type=int) == [7, 8, 9]

    def test_trim_to_empty(self, lists: ListStore):
        lists.right_push("log", 1, 2)
        lists.trim("log", 1, 0)
        assert lists.size("log") == 0

    def test_remove(self, lists: ListStore):
        lists.right_push("q", "a", "b", "a", "c", "a")
        assert lists.remove("q", "a") == 1
        assert lists.range_all("q") == ["b", "a", "c", "a"]
        assert lists.remove("q", "a", count=-1) == 1
        assert lists.range_all("q") == ["b", "a", "c"]
        assert lists.remove("q", "a", count=0) == 1
        assert lists.range_all("q") == ["b", "c"]

    def test_set_at(self, lists: ListStore):
        lists.right_push("q", "a", "b")
        lists.set_at("q", 1, "B")
        assert lists.range_all("q") == ["a", "B"]

    def test_set_at_out_of_range(self, lists: ListStore):
        lists.right_push("q", "a")
        with pytest.raises(PreconditionError):
            lists.set_at("q", 5, "x")

    def test_set_at_missing_list(self, lists: ListStore):
        with pytest.raises(PreconditionError):
            lists.set_at("missing", 0, "x")


class TestListRequeue:
    def test_rotate(self, lists: ListStore):
        lists.right_push("ring", "a", "b", "c")

        assert lists.pop_and_requeue("ring") == "c"

        assert lists.range_all("ring") == ["c", "a", "b"]

    def test_move_to_other_list(self, lists: ListStore):
        lists.right_push("pending", 1, 2)

        assert lists.pop_and_requeue("pending", "processing", as_type=int) == 2

        assert lists.range_all("pending", as_type=int) == [1]
        assert lists.range_all("processing", as_type=int) == [2]

    def test_empty_source(self, lists: ListStore):
        assert lists.pop_and_requeue("pending", "processing") is None
        assert lists.pop_and_requeue("pending", "processing", timeout=0.1) is None
