"""
CKB addresses.

An address is a script plus a network prefix ("ckb" mainnet, "ckt" testnet),
encoded in the full format: bech32m over ``0x00 || code_hash || hash_type ||
args``. Full addresses exceed the 90 character limit of BIP-173 decoders, so
the checksum code here is unbounded.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .ckb.script import Script
from .enums import HashType
from .runtime.errors import MalformedEncodingError

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
BECH32_CONST = 1
BECH32M_CONST = 0x2BC830A3

FORMAT_FULL = 0x00
# Deprecated formats, decoded for compatibility
FORMAT_FULL_DATA = 0x02
FORMAT_FULL_TYPE = 0x04


def _polymod(values: Sequence[int]) -> int:
    generator = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
    chk = 1
    for value in values:
        top = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ value
        for i in range(5):
            chk ^= generator[i] if ((top >> i) & 1) else 0
    return chk


def _hrp_expand(hrp: str) -> List[int]:
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def _create_checksum(hrp: str, data: Sequence[int], const: int) -> List[int]:
    values = _hrp_expand(hrp) + list(data)
    polymod = _polymod(values + [0, 0, 0, 0, 0, 0]) ^ const
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def _convert_bits(data: Sequence[int], from_bits: int, to_bits: int, pad: bool) -> List[int]:
    acc = 0
    bits = 0
    ret = []
    maxv = (1 << to_bits) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise MalformedEncodingError(f"Invalid {from_bits}-bit value {value}")
        acc = (acc << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (to_bits - bits)) & maxv)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & maxv):
        raise MalformedEncodingError("Invalid padding in address payload")
    return ret


def _encode(hrp: str, data: Sequence[int], const: int) -> str:
    combined = list(data) + _create_checksum(hrp, data, const)
    return hrp + "1" + "".join(CHARSET[d] for d in combined)


def bech32m_encode(hrp: str, payload: bytes) -> str:
    return _encode(hrp, _convert_bits(payload, 8, 5, True), BECH32M_CONST)


def segwit_encode(hrp: str, witness_version: int, program: bytes) -> str:
    """Bitcoin segwit address (bech32 for v0, bech32m for v1+)."""
    const = BECH32_CONST if witness_version == 0 else BECH32M_CONST
    return _encode(hrp, [witness_version] + _convert_bits(program, 8, 5, True), const)


def bech32_decode(address: str) -> Tuple[str, bytes, bool]:
    """
    Decode a bech32 or bech32m string.

    Returns:
        (hrp, payload, is_bech32m)

    Raises:
        MalformedEncodingError: Bad characters, mixed case or bad checksum
    """
    if address.lower() != address and address.upper() != address:
        raise MalformedEncodingError("Mixed-case address")
    address = address.lower()
    pos = address.rfind("1")
    if pos < 1 or pos + 7 > len(address):
        raise MalformedEncodingError("Missing bech32 separator")
    hrp = address[:pos]
    try:
        data = [CHARSET.index(c) for c in address[pos + 1:]]
    except ValueError:
        raise MalformedEncodingError("Invalid bech32 character") from None

    checksum = _polymod(_hrp_expand(hrp) + data)
    if checksum == BECH32M_CONST:
        is_bech32m = True
    elif checksum == BECH32_CONST:
        is_bech32m = False
    else:
        raise MalformedEncodingError("Invalid address checksum")
    return hrp, bytes(_convert_bits(data[:-6], 5, 8, False)), is_bech32m


@dataclass(frozen=True)
class Address:
    """A script bound to a network prefix."""

    script: Script
    prefix: str

    @classmethod
    def from_script(cls, script: Script, prefix: str) -> Address:
        return cls(script=script, prefix=prefix)

    @classmethod
    def from_string(cls, address: str, expected_prefix: Optional[str] = None) -> Address:
        """
        Parse a full-format address.

        Raises:
            MalformedEncodingError: Not a valid full-format address, or the
                prefix differs from ``expected_prefix``
        """
        prefix, payload, is_bech32m = bech32_decode(address)
        if expected_prefix is not None and prefix != expected_prefix:
            raise MalformedEncodingError(f"Address prefix {prefix} != expected {expected_prefix}")
        if not payload:
            raise MalformedEncodingError("Empty address payload")

        fmt = payload[0]
        if fmt == FORMAT_FULL:
            if not is_bech32m:
                raise MalformedEncodingError("Full format addresses must use bech32m")
            if len(payload) < 34:
                raise MalformedEncodingError("Full format address too short")
            script = Script(
                code_hash=payload[1:33],
                hash_type=HashType.from_byte(payload[33]),
                args=payload[34:],
            )
        elif fmt in (FORMAT_FULL_DATA, FORMAT_FULL_TYPE):
            if len(payload) < 33:
                raise MalformedEncodingError("Full format address too short")
            script = Script(
                code_hash=payload[1:33],
                hash_type=HashType.DATA if fmt == FORMAT_FULL_DATA else HashType.TYPE,
                args=payload[33:],
            )
        else:
            raise MalformedEncodingError(f"Unsupported address format 0x{fmt:02x}")
        return cls(script=script, prefix=prefix)

    def to_string(self) -> str:
        s = self.script
        payload = bytes([FORMAT_FULL]) + s.code_hash + bytes([int(s.hash_type)]) + s.args
        return bech32m_encode(self.prefix, payload)

    def __str__(self) -> str:
        return self.to_string()


__all__ = ["Address", "bech32m_encode", "bech32_decode", "segwit_encode"]
