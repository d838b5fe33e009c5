"""
Binary Reader

Primitive little-endian decoding used by the molecule schema layer.
Every read is bounds checked and reports MalformedEncodingError.
"""

import builtins
import struct

from ..runtime.errors import MalformedEncodingError


class BinaryReader:
    """
    Cursor over an immutable byte buffer.
    """

    def __init__(self, buf: builtins.bytes):
        """
        Initialize reader with byte buffer.

        Args:
            buf: Byte buffer to read from
        """
        self._buf = builtins.bytes(buf)
        self._off = 0

    @property
    def eof(self) -> bool:
        """True if at end of buffer."""
        return self._off >= len(self._buf)

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._off

    def _need(self, n: int, what: str) -> None:
        if self._off + n > len(self._buf):
            raise MalformedEncodingError(
                f"Truncated input: need {n} bytes for {what} at offset {self._off}, "
                f"have {len(self._buf) - self._off}"
            )

    def u32le(self) -> int:
        """Read unsigned 32-bit integer in little-endian format."""
        self._need(4, "u32")
        val = struct.unpack("<I", self._buf[self._off : self._off + 4])[0]
        self._off += 4
        return val

    def uint(self, size: int) -> int:
        """Read an unsigned little-endian integer of the given width."""
        self._need(size, f"u{size * 8}")
        val = int.from_bytes(self._buf[self._off : self._off + size], "little")
        self._off += size
        return val

    def bytes(self, n: int) -> builtins.bytes:
        """
        Read n bytes from buffer.

        Args:
            n: Number of bytes to read

        Returns:
            Bytes of specified length
        """
        self._need(n, f"{n} bytes")
        out = self._buf[self._off : self._off + n]
        self._off += n
        return out

    def len_prefixed_bytes(self) -> builtins.bytes:
        """Read bytes with a u32 little-endian length prefix."""
        n = self.u32le()
        return self.bytes(n)

    def expect_eof(self) -> None:
        """Fail if unread bytes remain."""
        if not self.eof:
            raise MalformedEncodingError(
                f"Trailing data: {self.remaining} unread bytes at offset {self._off}"
            )
