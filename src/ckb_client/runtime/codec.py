"""
Hex, bytes and number conversions

The node speaks JSON with every number and byte string hex encoded
("0x"-prefixed). These helpers normalize the loose inputs accepted by the
public API into canonical Python values and back.
"""

from __future__ import annotations
from typing import Iterable, Union

BytesLike = Union[bytes, bytearray, memoryview, str, Iterable[int]]
NumLike = Union[int, str]


def bytes_from(value: BytesLike) -> bytes:
    """
    Convert a bytes-like value into immutable bytes.

    Strings are parsed as hex, with or without the "0x" prefix.

    Args:
        value: bytes, bytearray, memoryview, hex string or iterable of ints

    Returns:
        Bytes value
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        text = value[2:] if value.startswith(("0x", "0X")) else value
        if len(text) % 2:
            raise ValueError(f"Odd-length hex string: {value!r}")
        return bytes.fromhex(text)
    return bytes(value)


def hex_from(value: BytesLike) -> str:
    """Encode bytes as a 0x-prefixed lowercase hex string."""
    return "0x" + bytes_from(value).hex()


def num_from(value: NumLike) -> int:
    """Parse an int or a 0x-prefixed hex number."""
    if isinstance(value, bool):
        raise TypeError("bool is not a number")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if value.startswith(("0x", "0X")):
            return int(value, 16)
        return int(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to int")


def num_to_hex(value: NumLike) -> str:
    """Encode a non-negative number as the node's compact hex form."""
    n = num_from(value)
    if n < 0:
        raise ValueError("Negative numbers have no hex wire form")
    return hex(n)


__all__ = [
    "BytesLike",
    "NumLike",
    "bytes_from",
    "hex_from",
    "num_from",
    "num_to_hex",
]
