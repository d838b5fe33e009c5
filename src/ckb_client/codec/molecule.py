"""
Molecule schema combinators.

Molecule is the canonical serialization of the CKB ledger. Layout rules:

- fixed-size primitives are little-endian with no padding
- ``Bytes`` (``fixvec<byte>``) and every ``FixVec`` start with a u32 item count
- ``DynVec`` and ``Table`` start with a u32 total size followed by one u32
  offset per item, each relative to the start of the structure
- ``Option`` is empty when absent; presence is decided by the schema, never
  by guessing from the content

Schemas are plain objects with ``encode`` and ``decode``. Fixed-size schemas
expose ``size``; dynamic ones have ``size = None``.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence

from ..runtime.codec import bytes_from
from ..runtime.errors import MalformedEncodingError
from .reader import BinaryReader
from .writer import BinaryWriter


class Codec(ABC):
    """Base schema. ``size`` is the byte width of fixed-size schemas."""

    size: Optional[int] = None

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        pass

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        pass

    @property
    def is_fixed(self) -> bool:
        return self.size is not None


def _check_exact(data: bytes, size: int, what: str) -> None:
    if len(data) != size:
        raise MalformedEncodingError(f"{what}: expected {size} bytes, got {len(data)}")


class Uint(Codec):
    """Unsigned little-endian integer of ``size`` bytes."""

    def __init__(self, size: int):
        self.size = size

    def encode(self, value: int) -> bytes:
        if not 0 <= value < 1 << (8 * self.size):
            raise ValueError(f"Value {value} does not fit in u{self.size * 8}")
        writer = BinaryWriter()
        writer.uint(value, self.size)
        return writer.to_bytes()

    def decode(self, data: bytes) -> int:
        _check_exact(data, self.size, f"u{self.size * 8}")
        return BinaryReader(data).uint(self.size)


class FixedBytes(Codec):
    """Byte array of exactly ``size`` bytes (e.g. ``Byte32``)."""

    def __init__(self, size: int):
        self.size = size

    def encode(self, value: Any) -> bytes:
        raw = bytes_from(value)
        if len(raw) != self.size:
            raise ValueError(f"Expected {self.size} bytes, got {len(raw)}")
        return raw

    def decode(self, data: bytes) -> bytes:
        _check_exact(data, self.size, f"Byte{self.size}")
        return bytes(data)


class BytesCodec(Codec):
    """``fixvec<byte>``: u32 length followed by the raw bytes."""

    def encode(self, value: Any) -> bytes:
        writer = BinaryWriter()
        writer.len_prefixed_bytes(bytes_from(value))
        return writer.to_bytes()

    def decode(self, data: bytes) -> bytes:
        reader = BinaryReader(data)
        out = reader.len_prefixed_bytes()
        reader.expect_eof()
        return out


class FixVec(Codec):
    """Vector of fixed-size items: u32 item count then the items."""

    def __init__(self, item: Codec):
        if not item.is_fixed:
            raise TypeError("FixVec items must be fixed size")
        self.item = item

    def encode(self, value: Sequence[Any]) -> bytes:
        writer = BinaryWriter()
        writer.u32le(len(value))
        for v in value:
            writer.bytes(self.item.encode(v))
        return writer.to_bytes()

    def decode(self, data: bytes) -> List[Any]:
        reader = BinaryReader(data)
        count = reader.u32le()
        if count * self.item.size != reader.remaining:
            raise MalformedEncodingError(
                f"FixVec: {count} items of {self.item.size} bytes do not match "
                f"{reader.remaining} remaining bytes"
            )
        return [self.item.decode(reader.bytes(self.item.size)) for _ in range(count)]


def encode_offset_table(parts: Sequence[bytes]) -> bytes:
    """Frame already-encoded parts with a total size and an offset table."""
    header = 4 + 4 * len(parts)
    total = header + sum(len(p) for p in parts)
    writer = BinaryWriter()
    writer.u32le(total)
    offset = header
    for part in parts:
        writer.u32le(offset)
        offset += len(part)
    for part in parts:
        writer.bytes(part)
    return writer.to_bytes()


def decode_offset_table(data: bytes, what: str) -> List[bytes]:
    """
    Split an offset-table framed structure into its raw parts.

    Validates the total size, the header size implied by the first offset,
    that offsets never decrease and that every offset stays within bounds.
    """
    reader = BinaryReader(data)
    total = reader.u32le()
    if total != len(data):
        raise MalformedEncodingError(f"{what}: header size {total} != actual size {len(data)}")
    if total == 4:
        return []

    first = reader.u32le()
    if first < 8 or first % 4 != 0 or first > total:
        raise MalformedEncodingError(f"{what}: invalid first offset {first}")

    count = first // 4 - 1
    offsets = [first]
    for _ in range(count - 1):
        offsets.append(reader.u32le())
    offsets.append(total)

    for start, end in zip(offsets, offsets[1:]):
        if start > end:
            raise MalformedEncodingError(f"{what}: offsets are decreasing ({start} > {end})")

    return [bytes(data[offsets[i]:offsets[i + 1]]) for i in range(count)]


class DynVec(Codec):
    """Vector of dynamically sized items, offset-table framed."""

    def __init__(self, item: Codec):
        self.item = item

    def encode(self, value: Sequence[Any]) -> bytes:
        return encode_offset_table([self.item.encode(v) for v in value])

    def decode(self, data: bytes) -> List[Any]:
        return [self.item.decode(part) for part in decode_offset_table(data, "DynVec")]


class Table(Codec):
    """Heterogeneous record of fields, offset-table framed."""

    def __init__(self, fields: Sequence[Codec]):
        self.fields = list(fields)

    def encode(self, value: Sequence[Any]) -> bytes:
        if len(value) != len(self.fields):
            raise ValueError(f"Table expects {len(self.fields)} fields, got {len(value)}")
        return encode_offset_table([f.encode(v) for f, v in zip(self.fields, value)])

    def decode(self, data: bytes) -> List[Any]:
        parts = decode_offset_table(data, "Table")
        if len(parts) != len(self.fields):
            raise MalformedEncodingError(
                f"Table: expected {len(self.fields)} fields, got {len(parts)}"
            )
        return [f.decode(part) for f, part in zip(self.fields, parts)]


class Struct(Codec):
    """Concatenation of fixed-size fields."""

    def __init__(self, fields: Sequence[Codec]):
        if not all(f.is_fixed for f in fields):
            raise TypeError("Struct fields must be fixed size")
        self.fields = list(fields)
        self.size = sum(f.size for f in fields)

    def encode(self, value: Sequence[Any]) -> bytes:
        if len(value) != len(self.fields):
            raise ValueError(f"Struct expects {len(self.fields)} fields, got {len(value)}")
        return b"".join(f.encode(v) for f, v in zip(self.fields, value))

    def decode(self, data: bytes) -> List[Any]:
        _check_exact(data, self.size, "Struct")
        reader = BinaryReader(data)
        return [f.decode(reader.bytes(f.size)) for f in self.fields]


class Raw(Codec):
    """Opaque, already-encoded bytes whose inner schema is not interpreted."""

    def encode(self, value: Any) -> bytes:
        return bytes_from(value)

    def decode(self, data: bytes) -> bytes:
        return bytes(data)


class Option(Codec):
    """Optional value: zero bytes when absent, the inner encoding otherwise."""

    def __init__(self, inner: Codec):
        self.inner = inner

    def encode(self, value: Any) -> bytes:
        if value is None:
            return b""
        return self.inner.encode(value)

    def decode(self, data: bytes) -> Any:
        if len(data) == 0:
            return None
        return self.inner.decode(data)


class Adapter(Codec):
    """Binds a schema to a domain type via pack/unpack functions."""

    def __init__(self, inner: Codec, pack: Callable[[Any], Any], unpack: Callable[[Any], Any]):
        self.inner = inner
        self.pack = pack
        self.unpack = unpack
        self.size = inner.size

    def encode(self, value: Any) -> bytes:
        return self.inner.encode(self.pack(value))

    def decode(self, data: bytes) -> Any:
        return self.unpack(self.inner.decode(data))


Byte = Uint(1)
U32 = Uint(4)
U64 = Uint(8)
U128 = Uint(16)
Byte32 = FixedBytes(32)
Bytes = BytesCodec()
Byte32Vec = FixVec(Byte32)
BytesVec = DynVec(Bytes)
BytesOpt = Option(Bytes)


__all__ = [
    "Codec",
    "Uint",
    "FixedBytes",
    "BytesCodec",
    "FixVec",
    "DynVec",
    "Table",
    "Struct",
    "Option",
    "Raw",
    "Adapter",
    "encode_offset_table",
    "decode_offset_table",
    "Byte",
    "U32",
    "U64",
    "U128",
    "Byte32",
    "Bytes",
    "Byte32Vec",
    "BytesVec",
    "BytesOpt",
]
