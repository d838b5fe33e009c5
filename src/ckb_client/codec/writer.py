"""
Binary Writer

Primitive little-endian encoding used by the molecule schema layer.
"""

import struct
from typing import List


class BinaryWriter:
    """
    Append-only byte buffer with fixed-width little-endian primitives.
    """

    def __init__(self):
        """Initialize writer with empty byte buffer."""
        self._bb: List[int] = []

    def u32le(self, v: int) -> None:
        """
        Write unsigned 32-bit integer in little-endian format.

        Args:
            v: Integer value to write as 32-bit little-endian
        """
        self._bb.extend(struct.pack('<I', v))

    def uint(self, v: int, size: int) -> None:
        """Write an unsigned integer of arbitrary fixed width (e.g. u128)."""
        self._bb.extend(v.to_bytes(size, 'little'))

    def bytes(self, v: bytes) -> None:
        """
        Write raw bytes without length prefix.

        Args:
            v: Bytes to write directly
        """
        self._bb.extend(v)

    def len_prefixed_bytes(self, v: bytes) -> None:
        """
        Write bytes with a u32 little-endian length prefix.

        Args:
            v: Bytes to write with length prefix
        """
        self.u32le(len(v))
        self.bytes(v)

    def __len__(self) -> int:
        return len(self._bb)

    def to_bytes(self) -> bytes:
        """
        Return accumulated bytes as immutable bytes object.

        Returns:
            Bytes containing all written data
        """
        return bytes(self._bb)
