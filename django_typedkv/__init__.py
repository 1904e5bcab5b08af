VERSION = (1, 0, 0)
__version__ = ".".join(map(str, VERSION))


def get_connection(alias="default"):
    """Helper used for obtaining the shared connection for an alias."""
    from django_typedkv.connections import connections

    return connections[alias]


def get_redis_connection(alias="default", write=True):
    """Helper used for obtaining a raw redis client."""
    return get_connection(alias).get_client(write=write)
