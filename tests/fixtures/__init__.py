"""Test fixtures for django-typedkv."""

from tests.fixtures.connection import (
    connection,
    fake_client,
    hashes,
    lists,
    offline_connection,
    sets,
    values,
    zsets,
)
from tests.fixtures.containers import (
    RedisContainerInfo,
    redis_container,
    redis_container_factory,
    redis_images,
)

__all__ = [
    "RedisContainerInfo",
    "connection",
    "fake_client",
    "hashes",
    "lists",
    "offline_connection",
    "redis_container",
    "redis_container_factory",
    "redis_images",
    "sets",
    "values",
    "zsets",
]
