"""Tests for value encoding and typed decoding."""

import dataclasses
import datetime
import uuid
from decimal import Decimal
from enum import Enum, StrEnum
from typing import Any, Optional

import pytest
from pydantic import BaseModel

from django_typedkv.codec import Codec, create_serializer
from django_typedkv.exceptions import DecodingError, EncodingError
from django_typedkv.serializers.json import JSONSerializer


class Color(Enum):
    RED = 1
    GREEN = 2


class Status(StrEnum):
    ACTIVE = "active"
    BANNED = "banned"


@dataclasses.dataclass
class Address:
    street: str
    city: str


@dataclasses.dataclass
class User:
    id: int
    name: str
    address: Address
    joined: datetime.datetime


class Order(BaseModel):
    id: uuid.UUID
    total: Decimal
    items: list[str]


@pytest.fixture
def codec() -> Codec:
    return Codec()


class TestTextIdentity:
    def test_plain_text_is_not_quoted(self, codec: Codec):
        assert codec.encode("abc") == "abc"

    def test_json_looking_text_is_left_alone(self, codec: Codec):
        assert codec.encode('{"a":1}') == '{"a":1}'

    def test_text_decodes_to_itself(self, codec: Codec):
        assert codec.decode("abc") == "abc"
        assert codec.decode("abc", str) == "abc"
        assert codec.decode("", str) == ""

    @pytest.mark.parametrize("as_type", [str | None, Optional[str], Any], ids=["union", "optional", "any"])  # noqa: UP045
    def test_text_accepting_targets(self, codec: Codec, as_type):
        assert codec.decode(codec.encode("abc"), as_type) == "abc"
        assert codec.decode("", as_type) == ""

    def test_wider_unions_still_decode_json(self, codec: Codec):
        assert codec.decode("5", int | None) == 5
        assert codec.decode('"abc"', str | int) == "abc"

    def test_str_enum_round_trip(self, codec: Codec):
        assert codec.encode(Status.BANNED) == "banned"
        assert codec.decode("banned", Status) is Status.BANNED

    def test_unknown_str_enum_value(self, codec: Codec):
        with pytest.raises(DecodingError):
            codec.decode("deleted", Status)


class TestRoundTrip:
    @pytest.mark.parametrize(
        "value",
        [
            42,
            -7,
            3.25,
            True,
            [1, 2, 3],
            {"a": 1, "b": [True, None]},
            Decimal("19.90"),
            uuid.UUID("12345678-1234-5678-1234-567812345678"),
            datetime.date(2024, 2, 29),
            datetime.datetime(2024, 5, 1, 12, 30, 45, 123456),
            datetime.time(8, 15, 0, 999999),
            Color.GREEN,
        ],
        ids=lambda v: type(v).__name__,
    )
    def test_decode_encode_is_identity(self, codec: Codec, value):
        assert codec.decode(codec.encode(value), type(value)) == value

    def test_dataclass(self, codec: Codec):
        user = User(
            id=100,
            name="Ada",
            address=Address(street="1 Loop Rd", city="London"),
            joined=datetime.datetime(2020, 1, 1, 9, 0),
        )
        assert codec.decode(codec.encode(user), User) == user

    def test_pydantic_model(self, codec: Codec):
        order = Order(id=uuid.uuid4(), total=Decimal("12.50"), items=["book", "pen"])
        assert codec.decode(codec.encode(order), Order) == order

    def test_generic_targets(self, codec: Codec):
        assert codec.decode(codec.encode({1, 2, 3}), set[int]) == {1, 2, 3}
        assert codec.decode(codec.encode((1, "a")), tuple[int, str]) == (1, "a")
        assert codec.decode(codec.encode({"x": Decimal("1.5")}), dict[str, Decimal]) == {"x": Decimal("1.5")}

    def test_encoding_is_compact_and_unicode(self, codec: Codec):
        assert codec.encode({"name": "Zoë", "n": [1, 2]}) == '{"name":"Zoë","n":[1,2]}'


class TestLenientDecoding:
    def test_unknown_fields_are_ignored_for_models(self, codec: Codec):
        text = '{"id":"12345678-1234-5678-1234-567812345678","total":"3.00","items":[],"coupon":"XMAS"}'
        order = codec.decode(text, Order)
        assert order.total == Decimal("3.00")
        assert not hasattr(order, "coupon")

    def test_unknown_fields_are_ignored_for_dataclasses(self, codec: Codec):
        assert codec.decode('{"street":"Main St","city":"Oslo","zip":"0150"}', Address) == Address("Main St", "Oslo")


class TestNulls:
    def test_none_decodes_to_none(self, codec: Codec):
        assert codec.decode(None, int) is None
        assert codec.decode(None, User) is None
        assert codec.decode(None) is None

    def test_blank_text_decodes_to_none_for_non_text_types(self, codec: Codec):
        assert codec.decode("", int) is None
        assert codec.decode("   ", Order) is None

    def test_decode_many_keeps_none_in_place(self, codec: Codec):
        assert codec.decode_many(["1", None, "3"], int) == [1, None, 3]

    def test_encode_many_keeps_order(self, codec: Codec):
        assert codec.encode_many(["b", 2, {"c": 3}]) == ["b", "2", '{"c":3}']
        assert codec.encode_many([]) == []

    def test_encode_mapping_encodes_keys_and_values(self, codec: Codec):
        assert codec.encode_mapping({1: {"a": 1}, "k": "v"}) == {"1": '{"a":1}', "k": "v"}


class TestErrors:
    def test_unserializable_value(self, codec: Codec):
        with pytest.raises(EncodingError):
            codec.encode(object())

    def test_circular_structure(self, codec: Codec):
        loop: list = []
        loop.append(loop)
        with pytest.raises(EncodingError) as exc_info:
            codec.encode(loop)
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_invalid_json(self, codec: Codec):
        with pytest.raises(DecodingError):
            codec.decode("{not json", dict)

    def test_wrong_shape(self, codec: Codec):
        with pytest.raises(DecodingError):
            codec.decode('"hello"', int)

    def test_unhashable_set_member(self, codec: Codec):
        with pytest.raises(DecodingError):
            codec.decode_set(['{"a":1}'], dict)


class TestSerializerConfig:
    def test_default_is_json(self):
        assert isinstance(Codec().serializer, JSONSerializer)

    def test_dotted_path(self):
        serializer = create_serializer("django_typedkv.serializers.json.JSONSerializer", ensure_ascii=True)
        assert isinstance(serializer, JSONSerializer)
        assert serializer.dumps(["é"]) == '["\\u00e9"]'

    def test_instance_is_used_as_is(self):
        serializer = JSONSerializer()
        assert Codec(serializer).serializer is serializer

    def test_serializer_must_return_text(self):
        class BytesSerializer:
            def dumps(self, obj):
                return b"raw"

            def loads(self, data, as_type):
                return data

        with pytest.raises(EncodingError):
            Codec(BytesSerializer()).encode(1)
