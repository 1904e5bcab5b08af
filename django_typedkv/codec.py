"""Conversion between Python values and the text stored in Redis.

Text is stored as-is and everything else goes through the configured
serializer (JSON by default). The same rules apply to values, hash fields,
list elements and set members, so non-text identifiers round-trip too.
"""

from __future__ import annotations

import types
from typing import TYPE_CHECKING, Any, Union, get_args, get_origin

from django.utils.module_loading import import_string

from django_typedkv.exceptions import DecodingError, EncodingError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from django_typedkv.types import TargetT

DEFAULT_SERIALIZER = "django_typedkv.serializers.json.JSONSerializer"


def is_text_target(as_type: Any) -> bool:
    """Check if a target accepts the stored text as-is.

    True for no target, ``str``, ``Any`` and optional ``str``
    (``str | None``); text values round-trip through these unchanged.
    """
    if as_type is None or as_type is str or as_type is Any:
        return True
    if get_origin(as_type) in (Union, types.UnionType):
        return {arg for arg in get_args(as_type) if arg is not type(None)} == {str}
    return False


def is_serializer_instance(obj: Any) -> bool:
    """Check if an object is a serializer instance (has dumps/loads methods)."""
    if isinstance(obj, type):
        return False
    return callable(getattr(obj, "dumps", None)) and callable(getattr(obj, "loads", None))


def create_serializer(config: str | type | Any | None, **kwargs: Any) -> Any:
    """Create a serializer instance from config.

    Args:
        config: A dotted path string, a class, an instance, or None for JSON
        **kwargs: Keyword arguments to pass to serializer constructor
    """
    if config is None:
        config = DEFAULT_SERIALIZER

    if is_serializer_instance(config):
        return config

    if isinstance(config, type):
        return config(**kwargs)

    cls = import_string(config)
    return cls(**kwargs)


class Codec:
    """Encode values to text and decode text to a requested type.

    ``decode`` follows these rules, in order:

    - ``None`` decodes to ``None`` whatever the target type.
    - A target of ``None`` or ``str`` returns the stored text unchanged.
    - A ``str`` subclass target (``StrEnum`` members, for instance) is built
      directly from the stored text, since such values were stored unencoded.
    - Blank text decodes to ``None`` for any other target.
    - Anything else is handed to the serializer.
    """

    def __init__(self, serializer: str | type | Any | None = None, **serializer_options: Any) -> None:
        self.serializer = create_serializer(serializer, **serializer_options)

    def encode(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        text = self.serializer.dumps(value)
        if not isinstance(text, str):
            raise EncodingError(f"Serializer returned {type(text).__name__}, expected str")
        return text

    def encode_many(self, values: Iterable[Any]) -> list[str]:
        return [self.encode(v) for v in values]

    def encode_mapping(self, mapping: Mapping[Any, Any]) -> dict[str, str]:
        return {self.encode(k): self.encode(v) for k, v in mapping.items()}

    def decode(self, text: str | None, as_type: TargetT = None) -> Any:
        if text is None:
            return None
        if is_text_target(as_type):
            return text
        if isinstance(as_type, type) and issubclass(as_type, str):
            try:
                return as_type(text)
            except ValueError as e:
                raise DecodingError(f"Cannot decode {text!r} as {as_type.__name__}") from e
        if not text.strip():
            return None
        return self.serializer.loads(text, as_type)

    def decode_many(self, texts: Iterable[str | None], as_type: TargetT = None) -> list[Any]:
        """Decode element-wise, keeping ``None`` elements in place."""
        return [self.decode(t, as_type) for t in texts]

    def decode_set(self, texts: Iterable[str | None], as_type: TargetT = None) -> set[Any]:
        """Decode element-wise into a set; decoded members must be hashable."""
        decoded = set()
        for text in texts:
            value = self.decode(text, as_type)
            try:
                decoded.add(value)
            except TypeError as e:
                raise DecodingError(f"Decoded member of type {type(value).__name__} is not hashable") from e
        return decoded

    def decode_mapping(
        self,
        mapping: Mapping[str, str],
        as_type: TargetT = None,
        field_type: TargetT = None,
    ) -> dict[Any, Any]:
        """Decode hash-style mappings; ``field_type`` applies to keys, ``as_type`` to values."""
        decoded = {}
        for field, text in mapping.items():
            decoded_field = self.decode(field, field_type)
            value = self.decode(text, as_type)
            try:
                decoded[decoded_field] = value
            except TypeError as e:
                raise DecodingError(f"Decoded field of type {type(decoded_field).__name__} is not hashable") from e
        return decoded
