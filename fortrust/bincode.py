"""Binary serialization in the bincode 2 "standard" layout with variable-length integers.

Values are described by dataclasses whose field annotations name the wire
types: the integer and float markers defined here, ``bool``, ``str``,
``bytes``, ``list[...]``, ``tuple[...]``, ``Optional[...]``, nested
dataclasses and :class:`TaggedUnion` sum types. Field annotations must be
type objects, not strings.
"""

import dataclasses
import functools
import struct
import types
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin

__all__ = [
    "BincodeError",
    "TaggedUnion",
    "U8",
    "U16",
    "U32",
    "U64",
    "I8",
    "I16",
    "I32",
    "I64",
    "F32",
    "F64",
    "encode",
    "decode",
]


class BincodeError(ValueError):
    """A value cannot be encoded, or bytes cannot be decoded."""


@dataclass(frozen=True)
class _IntKind:
    bits: int
    signed: bool

    @property
    def bounds(self) -> tuple[int, int]:
        if self.signed:
            half = 1 << (self.bits - 1)
            return -half, half - 1
        return 0, (1 << self.bits) - 1


@dataclass(frozen=True)
class _FloatKind:
    bits: int


U8 = Annotated[int, _IntKind(8, False)]
U16 = Annotated[int, _IntKind(16, False)]
U32 = Annotated[int, _IntKind(32, False)]
U64 = Annotated[int, _IntKind(64, False)]
I8 = Annotated[int, _IntKind(8, True)]
I16 = Annotated[int, _IntKind(16, True)]
I32 = Annotated[int, _IntKind(32, True)]
I64 = Annotated[int, _IntKind(64, True)]
F32 = Annotated[float, _FloatKind(32)]
F64 = Annotated[float, _FloatKind(64)]

_SINGLE_BYTE_LIMIT = 251
_TAG_WIDTHS = {251: 16, 252: 32, 253: 64, 254: 128}
_UNION_TYPES = (Union, getattr(types, "UnionType", Union))


class TaggedUnion:
    """Base for sum types; each variant is encoded by its declaration index."""

    _variants: list

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if TaggedUnion in cls.__bases__:
            cls._variants = []
        else:
            cls._variants.append(cls)

    @classmethod
    def variant(cls, name: str, **fields: Any) -> type:
        """Declare the next variant, with its fields in order, as ``cls.<name>``."""
        if TaggedUnion not in cls.__bases__:
            raise TypeError("variants are declared on the union type itself")
        new = dataclasses.make_dataclass(
            name, list(fields.items()), bases=(cls,), frozen=True
        )
        new.__qualname__ = f"{cls.__qualname__}.{name}"
        new.__module__ = cls.__module__
        setattr(cls, name, new)
        return new

    @classmethod
    def variants(cls) -> tuple:
        return tuple(cls._variants)


@functools.lru_cache(maxsize=None)
def _field_hints(cls: type) -> tuple:
    hints = []
    for field in dataclasses.fields(cls):
        if isinstance(field.type, str):
            raise BincodeError(
                f"field {cls.__name__}.{field.name} has a string annotation; "
                "wire types must be given as type objects"
            )
        hints.append((field.name, field.type))
    return tuple(hints)


def _union_root(cls: type) -> type:
    for klass in cls.__mro__:
        if TaggedUnion in klass.__bases__:
            return klass
    raise TypeError(f"{cls.__name__} is not a tagged union")


def _is_union_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, TaggedUnion) and tp is not TaggedUnion


def _annotated_kind(tp: Any) -> Any:
    for meta in get_args(tp)[1:]:
        if isinstance(meta, (_IntKind, _FloatKind)):
            return meta
    raise BincodeError(f"unsupported annotated type {tp!r}")


def _optional_inner(tp: Any) -> Any:
    inner = [arg for arg in get_args(tp) if arg is not type(None)]
    if len(inner) != 1 or len(get_args(tp)) != 2:
        raise BincodeError(f"unsupported union type {tp!r}")
    return inner[0]


def _write_uint(out: bytearray, value: int, endian: str) -> None:
    if value < _SINGLE_BYTE_LIMIT:
        out.append(value)
        return
    for tag, bits in _TAG_WIDTHS.items():
        if value < (1 << bits):
            out.append(tag)
            out += value.to_bytes(bits // 8, endian)
            return
    raise BincodeError(f"integer {value} is too large to encode")


def _encode_int(kind: _IntKind, value: Any, out: bytearray, endian: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise BincodeError(f"expected an integer, got {type(value).__name__}")
    low, high = kind.bounds
    if not low <= value <= high:
        raise BincodeError(f"{value} does not fit in {kind.bits} bits")
    if kind.bits == 8:
        out += value.to_bytes(1, endian, signed=kind.signed)
        return
    if kind.signed:
        value = value * 2 if value >= 0 else -value * 2 - 1
    _write_uint(out, value, endian)


def _encode_float(kind: _FloatKind, value: Any, out: bytearray, endian: str) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise BincodeError(f"expected a float, got {type(value).__name__}")
    fmt = (">" if endian == "big" else "<") + ("f" if kind.bits == 32 else "d")
    try:
        out += struct.pack(fmt, value)
    except (OverflowError, struct.error) as error:
        raise BincodeError(str(error)) from error


def _encode_fields(cls: type, value: Any, out: bytearray, endian: str) -> None:
    for name, hint in _field_hints(cls):
        _encode_value(hint, getattr(value, name), out, endian)


def _encode_value(tp: Any, value: Any, out: bytearray, endian: str) -> None:
    origin = get_origin(tp)
    if origin is Annotated:
        kind = _annotated_kind(tp)
        if isinstance(kind, _IntKind):
            _encode_int(kind, value, out, endian)
        else:
            _encode_float(kind, value, out, endian)
    elif tp is bool:
        if not isinstance(value, bool):
            raise BincodeError(f"expected a bool, got {type(value).__name__}")
        out.append(1 if value else 0)
    elif tp is str:
        if not isinstance(value, str):
            raise BincodeError(f"expected a str, got {type(value).__name__}")
        try:
            raw = value.encode("utf-8")
        except UnicodeEncodeError as error:
            raise BincodeError(str(error)) from error
        _write_uint(out, len(raw), endian)
        out += raw
    elif tp is bytes:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise BincodeError(f"expected bytes, got {type(value).__name__}")
        raw = bytes(value)
        _write_uint(out, len(raw), endian)
        out += raw
    elif origin is list:
        if not isinstance(value, (list, tuple)):
            raise BincodeError(f"expected a list, got {type(value).__name__}")
        (item_type,) = get_args(tp)
        _write_uint(out, len(value), endian)
        for item in value:
            _encode_value(item_type, item, out, endian)
    elif origin is tuple:
        item_types = get_args(tp)
        if not isinstance(value, (list, tuple)) or len(value) != len(item_types):
            raise BincodeError(f"expected a tuple of {len(item_types)} items")
        for item_type, item in zip(item_types, value):
            _encode_value(item_type, item, out, endian)
    elif origin in _UNION_TYPES:
        inner = _optional_inner(tp)
        if value is None:
            out.append(0)
        else:
            out.append(1)
            _encode_value(inner, value, out, endian)
    elif _is_union_type(tp):
        variants = tp._variants
        if type(value) not in variants:
            raise BincodeError(
                f"{type(value).__name__} is not a variant of {_union_root(tp).__name__}"
            )
        _write_uint(out, variants.index(type(value)), endian)
        _encode_fields(type(value), value, out, endian)
    elif dataclasses.is_dataclass(tp) and isinstance(tp, type):
        if not isinstance(value, tp):
            raise BincodeError(f"expected {tp.__name__}, got {type(value).__name__}")
        _encode_fields(tp, value, out, endian)
    else:
        raise BincodeError(f"unsupported type {tp!r}")


def _infer_type(value: Any) -> Any:
    if isinstance(value, TaggedUnion):
        return _union_root(type(value))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return type(value)
    if isinstance(value, bool):
        return bool
    if isinstance(value, str):
        return str
    if isinstance(value, (bytes, bytearray)):
        return bytes
    raise BincodeError(f"cannot infer the wire type of {type(value).__name__}")


def encode(value: Any, big_endian: bool = False) -> bytes:
    """Encode a dataclass, tagged-union variant, bool, str or bytes value."""
    out = bytearray()
    _encode_value(_infer_type(value), value, out, "big" if big_endian else "little")
    return bytes(out)


class _Reader:
    def __init__(self, data: bytes, endian: str) -> None:
        self.data = data
        self.pos = 0
        self.endian = endian

    def take(self, count: int) -> bytes:
        end = self.pos + count
        if end > len(self.data):
            raise BincodeError("unexpected end of input")
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def uint(self, bits: int) -> int:
        tag = self.take(1)[0]
        if tag < _SINGLE_BYTE_LIMIT:
            return tag
        width = _TAG_WIDTHS.get(tag)
        if width is None:
            raise BincodeError(f"invalid integer tag {tag}")
        if width > bits:
            raise BincodeError(f"integer encoded as {width} bits does not fit {bits} bits")
        return int.from_bytes(self.take(width // 8), self.endian)


def _decode_int(kind: _IntKind, reader: _Reader) -> int:
    if kind.bits == 8:
        return int.from_bytes(reader.take(1), reader.endian, signed=kind.signed)
    raw = reader.uint(kind.bits)
    if kind.signed:
        return (raw >> 1) ^ -(raw & 1)
    return raw


def _decode_fields(cls: type, reader: _Reader) -> Any:
    return cls(*[_decode_value(hint, reader) for _, hint in _field_hints(cls)])


def _decode_value(tp: Any, reader: _Reader) -> Any:
    origin = get_origin(tp)
    if origin is Annotated:
        kind = _annotated_kind(tp)
        if isinstance(kind, _IntKind):
            return _decode_int(kind, reader)
        fmt = (">" if reader.endian == "big" else "<") + ("f" if kind.bits == 32 else "d")
        return struct.unpack(fmt, reader.take(kind.bits // 8))[0]
    if tp is bool:
        byte = reader.take(1)[0]
        if byte > 1:
            raise BincodeError(f"invalid bool value {byte}")
        return byte == 1
    if tp is str:
        raw = reader.take(reader.uint(64))
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as error:
            raise BincodeError(f"invalid UTF-8: {error}") from error
    if tp is bytes:
        return reader.take(reader.uint(64))
    if origin is list:
        (item_type,) = get_args(tp)
        return [_decode_value(item_type, reader) for _ in range(reader.uint(64))]
    if origin is tuple:
        return tuple(_decode_value(item_type, reader) for item_type in get_args(tp))
    if origin in _UNION_TYPES:
        inner = _optional_inner(tp)
        tag = reader.take(1)[0]
        if tag == 0:
            return None
        if tag == 1:
            return _decode_value(inner, reader)
        raise BincodeError(f"invalid option tag {tag}")
    if _is_union_type(tp):
        variants = tp._variants
        index = reader.uint(32)
        if index >= len(variants):
            raise BincodeError(
                f"unknown variant {index} of {_union_root(tp).__name__}"
            )
        return _decode_fields(variants[index], reader)
    if dataclasses.is_dataclass(tp) and isinstance(tp, type):
        return _decode_fields(tp, reader)
    raise BincodeError(f"unsupported type {tp!r}")


def decode(cls: Any, data: bytes, big_endian: bool = False) -> Any:
    """Decode a value of type ``cls`` from the start of ``data``; trailing bytes are ignored."""
    reader = _Reader(bytes(data), "big" if big_endian else "little")
    value = _decode_value(cls, reader)
    if isinstance(cls, type) and not isinstance(value, cls):
        raise BincodeError(f"decoded {type(value).__name__}, expected {cls.__name__}")
    return value