import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class TypedKVConfig(AppConfig):
    """Build configured connections when Django starts.

    Aliases with ``"check_on_startup": True`` in their OPTIONS are pinged, so
    an unreachable server stops the process at startup instead of failing on
    the first request.
    """

    name = "django_typedkv"
    verbose_name = "django-typedkv"

    def ready(self) -> None:
        from django_typedkv.connections import connections

        for alias in connections:
            connection = connections[alias]
            if connections.settings[alias].get("OPTIONS", {}).get("check_on_startup", False):
                connection.ping()
                logger.info("Connection %r is reachable", alias)
