"""
User-defined token cell data helpers.

A UDT cell stores its amount as the first 16 bytes of cell data, little-endian.
"""

from ..runtime.codec import BytesLike, bytes_from
from ..runtime.errors import MalformedEncodingError

UDT_AMOUNT_SIZE = 16


def udt_balance_from(data: BytesLike) -> int:
    """Read the token amount from UDT cell data."""
    raw = bytes_from(data)
    if len(raw) < UDT_AMOUNT_SIZE:
        raise MalformedEncodingError(
            f"UDT cell data must hold at least {UDT_AMOUNT_SIZE} bytes, got {len(raw)}"
        )
    return int.from_bytes(raw[:UDT_AMOUNT_SIZE], "little")


def udt_data_from(amount: int, extra: BytesLike = b"") -> bytes:
    """Build UDT cell data carrying ``amount`` followed by ``extra``."""
    if not 0 <= amount < 1 << 128:
        raise ValueError(f"UDT amount out of u128 range: {amount}")
    return amount.to_bytes(UDT_AMOUNT_SIZE, "little") + bytes_from(extra)
