"""Pytest configuration for django-typedkv tests."""

from tests.fixtures import (
    connection,
    fake_client,
    hashes,
    lists,
    offline_connection,
    redis_container,
    redis_container_factory,
    redis_images,
    sets,
    values,
    zsets,
)

# Re-export fixtures so pytest can discover them
__all__ = [
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
