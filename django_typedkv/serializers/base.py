from typing import Any


class BaseSerializer:
    """Base class for value serializers.

    A serializer turns a Python value into text and turns text back into an
    instance of a requested target type. Any object with ``dumps`` and
    ``loads`` methods of these signatures works as a serializer; subclassing
    is optional.

    Text values never reach a serializer: ``Codec`` stores them unchanged and
    hands them back unchanged, so ``dumps`` only sees non-text values and
    ``loads`` only sees non-text targets.

    Serializers accept ``**kwargs`` for configuration. ``create_serializer()``
    in ``django_typedkv.codec`` passes them through when it instantiates a
    class from a dotted path.

    Implementations raise ``EncodingError`` from ``dumps`` and
    ``DecodingError`` from ``loads``.
    """

    def __init__(self, **kwargs: Any) -> None:
        pass

    def dumps(self, obj: Any) -> str:
        raise NotImplementedError

    def loads(self, data: str, as_type: Any) -> Any:
        raise NotImplementedError
