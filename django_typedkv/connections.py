"""Process-wide registry of configured connections.

Connections are built from the ``TYPEDKV`` setting the first time an alias is
requested and reused for the life of the process. Connection pools are thread
safe, so a single connection per alias is shared by every thread.

Settings layout mirrors ``CACHES``::

    TYPEDKV = {
        "default": {
            "BACKEND": "django_typedkv.client.RedisConnection",
            "LOCATION": "redis://127.0.0.1:6379/0",
            "OPTIONS": {...},
        },
    }
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from django.conf import settings as django_settings
from django.core.exceptions import ImproperlyConfigured
from django.core.signals import setting_changed
from django.dispatch import receiver
from django.utils.module_loading import import_string

if TYPE_CHECKING:
    from collections.abc import Iterator

    from django_typedkv.client.default import KeyValueConnection

DEFAULT_CONNECTION_ALIAS = "default"
DEFAULT_BACKEND = "django_typedkv.client.RedisConnection"
DEFAULT_LOCATION = "redis://127.0.0.1:6379/0"

logger = logging.getLogger(__name__)


class ConnectionHandler:
    """Build connections on first use and hand out the same instance afterwards."""

    settings_name = "TYPEDKV"

    def __init__(self, settings: dict[str, dict[str, Any]] | None = None) -> None:
        self._settings = settings
        self._connections: dict[str, KeyValueConnection] = {}
        self._lock = threading.Lock()

    @property
    def settings(self) -> dict[str, dict[str, Any]]:
        if self._settings is None:
            configured = getattr(django_settings, self.settings_name, None)
            if not configured:
                configured = {DEFAULT_CONNECTION_ALIAS: {"BACKEND": DEFAULT_BACKEND, "LOCATION": DEFAULT_LOCATION}}
            if not isinstance(configured, dict):
                raise ImproperlyConfigured(f"The {self.settings_name} setting must be a dict of aliases.")
            self._settings = configured
        return self._settings

    def create_connection(self, alias: str) -> KeyValueConnection:
        try:
            params = self.settings[alias]
        except KeyError:
            raise ImproperlyConfigured(f"The connection {alias!r} is not configured in {self.settings_name}.") from None

        backend = params.get("BACKEND", DEFAULT_BACKEND)
        try:
            backend_cls = import_string(backend)
        except ImportError as e:
            raise ImproperlyConfigured(f"Could not find backend {backend!r}: {e}") from e

        location = params.get("LOCATION", DEFAULT_LOCATION)
        options = params.get("OPTIONS", {})
        logger.debug("Creating %s connection %r for %s", backend, alias, location)
        return backend_cls(location, **options)

    def __getitem__(self, alias: str) -> KeyValueConnection:
        connection = self._connections.get(alias)
        if connection is None:
            with self._lock:
                connection = self._connections.get(alias)
                if connection is None:
                    connection = self.create_connection(alias)
                    self._connections[alias] = connection
        return connection

    def __iter__(self) -> Iterator[str]:
        return iter(self.settings)

    def __contains__(self, alias: object) -> bool:
        return alias in self.settings

    def all(self, *, initialized_only: bool = False) -> list[KeyValueConnection]:
        if initialized_only:
            return list(self._connections.values())
        return [self[alias] for alias in self]

    def close_all(self) -> None:
        for connection in self.all(initialized_only=True):
            connection.close()

    def reset(self) -> None:
        """Drop every connection and re-read settings on next use."""
        with self._lock:
            for connection in self._connections.values():
                connection.close()
            self._connections.clear()
            self._settings = None


connections = ConnectionHandler()


@receiver(setting_changed)
def reset_connections(*, setting: str, **kwargs: Any) -> None:
    if setting == ConnectionHandler.settings_name:
        connections.reset()
