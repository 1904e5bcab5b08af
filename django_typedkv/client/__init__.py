# Connection classes - use these as BACKEND in the TYPEDKV setting
from django_typedkv.client.default import (
    KeyValueConnection,
    RedisConnection,
    ValkeyConnection,
)

__all__ = [
    "KeyValueConnection",
    "RedisConnection",
    "ValkeyConnection",
]
