from dataclasses import dataclass
from typing import Optional

import pytest

from fortrust.bincode import (
    F32,
    F64,
    I32,
    I64,
    U8,
    U16,
    U32,
    U64,
    BincodeError,
    TaggedUnion,
    decode,
    encode,
)


@dataclass
class Sample:
    small: U8
    medium: U16
    word: U32
    large: U64
    signed: I32
    wide: I64
    ratio: F32
    precise: F64
    flag: bool
    name: str
    blob: bytes
    maybe: Optional[str]
    items: list[U32]
    pair: tuple[str, U16]


class Shape(TaggedUnion):
    pass


Shape.variant("Point")
Shape.variant("Circle", radius=U32)
Shape.variant("Label", text=str, inner=Optional[Shape])


@dataclass
class Holder:
    shape: Shape


@dataclass
class Number:
    value: U64


@dataclass
class Signed:
    value: I32


@dataclass
class Short:
    value: U16


@dataclass
class Byte:
    value: U8


@dataclass
class Flag:
    value: bool


@dataclass
class Maybe:
    value: Optional[str]


@dataclass
class Text:
    value: str


def _sample() -> Sample:
    return Sample(
        small=255,
        medium=60000,
        word=70000,
        large=2**64 - 1,
        signed=-12345,
        wide=-(2**63),
        ratio=1.5,
        precise=3.141592653589793,
        flag=True,
        name="héllo",
        blob=b"\x00\x01\xff",
        maybe=None,
        items=[1, 250, 251, 2**32 - 1],
        pair=("k", 513),
    )


@pytest.mark.parametrize("big_endian", [True, False])
def test_sample_round_trip(big_endian):
    sample = _sample()
    assert decode(Sample, encode(sample, big_endian), big_endian) == sample


def test_optional_present_round_trip():
    value = Maybe("present")
    assert decode(Maybe, encode(value)) == value


def test_small_unsigned_is_a_single_byte():
    assert encode(Number(250)) == bytes([250])


def test_u16_marker_big_endian_wire_bytes():
    assert encode(Number(251), big_endian=True) == b"\xfb\x00\xfb"


def test_u16_marker_little_endian_wire_bytes():
    assert encode(Number(251)) == b"\xfb\xfb\x00"


def test_signed_uses_zigzag():
    assert encode(Signed(-1)) == b"\x01"


def test_endianness_reverses_integer_bytes():
    big = encode(Number(65536), big_endian=True)
    little = encode(Number(65536))
    assert big[0] == little[0]
    assert big[1:] == little[1:][::-1]


@pytest.mark.parametrize(
    "value", [0, 250, 251, 65535, 65536, 2**32 - 1, 2**32, 2**64 - 1]
)
@pytest.mark.parametrize("big_endian", [True, False])
def test_unsigned_boundaries_round_trip(value, big_endian):
    assert decode(Number, encode(Number(value), big_endian), big_endian) == Number(value)


@pytest.mark.parametrize("value", [-(2**31), -126, -1, 0, 1, 125, 2**31 - 1])
def test_signed_boundaries_round_trip(value):
    assert decode(Signed, encode(Signed(value))) == Signed(value)


def test_u8_is_written_raw():
    encoded = encode(Byte(255))
    assert encoded == bytes([255])
    assert decode(Byte, encoded) == Byte(255)


@pytest.mark.parametrize(
    "shape",
    [
        Shape.Point(),
        Shape.Circle(radius=7),
        Shape.Label(text="outer", inner=Shape.Label(text="inner", inner=None)),
    ],
)
def test_union_round_trip(shape):
    holder = Holder(shape)
    assert decode(Holder, encode(holder)) == holder
    assert decode(Shape, encode(shape)) == shape


def test_union_tag_is_declaration_index():
    encoded = encode(Holder(Shape.Circle(radius=7)))
    assert encoded[0] == Shape.variants().index(Shape.Circle)


def test_variants_are_encoded_in_declaration_order():
    shapes = [Shape.Point(), Shape.Circle(radius=1), Shape.Label(text="x", inner=None)]
    assert [encode(shape)[0] for shape in shapes] == [0, 1, 2]
    assert Shape.variants() == (Shape.Point, Shape.Circle, Shape.Label)


def test_decode_as_variant_rejects_other_variant():
    with pytest.raises(BincodeError):
        decode(Shape.Point, encode(Shape.Circle(radius=1)))


def test_decode_as_matching_variant():
    assert decode(Shape.Circle, encode(Shape.Circle(radius=9))) == Shape.Circle(radius=9)


def test_variant_cannot_declare_variants():
    with pytest.raises(TypeError):
        TaggedUnion.variant("Nested")
    with pytest.raises(TypeError):
        Shape.Circle.variant("Nested")
    assert len(Shape.variants()) == 3


def test_truncated_input_raises():
    data = encode(_sample())
    with pytest.raises(BincodeError):
        decode(Sample, data[:-1])


def test_invalid_bool_raises():
    with pytest.raises(BincodeError):
        decode(Flag, b"\x02")


def test_invalid_option_tag_raises():
    with pytest.raises(BincodeError):
        decode(Maybe, b"\x02")


def test_unknown_variant_raises():
    with pytest.raises(BincodeError):
        decode(Holder, b"\x09")


def test_invalid_utf8_raises():
    with pytest.raises(BincodeError):
        decode(Text, b"\x01\xff")


def test_invalid_integer_tag_raises():
    with pytest.raises(BincodeError):
        decode(Number, b"\xff")


def test_wider_integer_than_field_raises():
    with pytest.raises(BincodeError):
        decode(Short, b"\xfc\x00\x00\x00\x01")


def test_out_of_range_integer_raises():
    with pytest.raises(BincodeError):
        encode(Byte(256))
    with pytest.raises(BincodeError):
        encode(Number(-1))


def test_wrong_field_type_raises():
    with pytest.raises(BincodeError):
        encode(Number("1"))
    with pytest.raises(BincodeError):
        encode(Holder("not a shape"))


def test_top_level_int_cannot_be_inferred():
    with pytest.raises(BincodeError):
        encode(42)


def test_top_level_primitives_round_trip():
    assert decode(str, encode("text")) == "text"
    assert decode(bytes, encode(b"raw")) == b"raw"
    assert decode(bool, encode(False)) is False