import dataclasses
import datetime
import json
from enum import Enum
from functools import lru_cache
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder
from pydantic import BaseModel, TypeAdapter, ValidationError

from django_typedkv.exceptions import DecodingError, EncodingError
from django_typedkv.serializers.base import BaseSerializer


class TypedJSONEncoder(DjangoJSONEncoder):
    """DjangoJSONEncoder that keeps every value decodable back to its type.

    On top of what DjangoJSONEncoder handles, it encodes:
    - datetime and time with full microsecond precision
    - pydantic models (via ``model_dump(mode="json")``)
    - dataclass instances (as objects)
    - set and frozenset (as arrays)
    - Enum members (as their value)
    """

    def default(self, o: Any) -> Any:
        if isinstance(o, (datetime.datetime, datetime.time)):
            # DjangoJSONEncoder truncates to milliseconds
            return o.isoformat()
        if isinstance(o, BaseModel):
            return o.model_dump(mode="json")
        if dataclasses.is_dataclass(o) and not isinstance(o, type):
            return dataclasses.asdict(o)
        if isinstance(o, (set, frozenset)):
            return list(o)
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


@lru_cache(maxsize=512)
def _adapter(as_type: Any) -> TypeAdapter:
    return TypeAdapter(as_type)


def get_type_adapter(as_type: Any) -> TypeAdapter:
    """Return a (cached) pydantic TypeAdapter for ``as_type``."""
    try:
        return _adapter(as_type)
    except TypeError:
        # unhashable typing forms cannot be cached
        return TypeAdapter(as_type)


class JSONSerializer(BaseSerializer):
    """JSON serializer with typed decoding.

    Values are written as compact JSON using ``TypedJSONEncoder``. Reads are
    validated against the requested target type with a pydantic
    ``TypeAdapter``, so ``as_type`` may be a plain class (``int``, a dataclass,
    a pydantic model, a ``TypedDict``) or a typing form (``list[int]``,
    ``dict[str, Decimal]``, ``Order | None``).

    Decoding is lenient: JSON object keys unknown to the target type are
    ignored, so stored values survive schema changes in both directions.

    Attributes:
        encoder_class: The JSON encoder class to use. Defaults to TypedJSONEncoder.
            Can be overridden by subclasses for custom encoding.

    Example:
        Configure in Django settings::

            TYPEDKV = {
                "default": {
                    "BACKEND": "django_typedkv.client.RedisConnection",
                    "LOCATION": "redis://localhost:6379/0",
                    "OPTIONS": {
                        "serializer": "django_typedkv.serializers.json.JSONSerializer",
                    }
                }
            }
    """

    encoder_class = TypedJSONEncoder

    def __init__(self, ensure_ascii: bool = False, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.ensure_ascii = ensure_ascii

    def dumps(self, obj: Any) -> str:
        try:
            return json.dumps(
                obj,
                cls=self.encoder_class,
                separators=(",", ":"),
                ensure_ascii=self.ensure_ascii,
            )
        except (TypeError, ValueError) as e:
            # ValueError covers circular references
            raise EncodingError(f"Cannot encode value of type {type(obj).__name__}: {e}") from e

    def loads(self, data: str, as_type: Any) -> Any:
        try:
            return get_type_adapter(as_type).validate_json(data)
        except ValidationError as e:
            raise DecodingError(f"Cannot decode stored text as {as_type!r}: {e}") from e
