"""
Hash utilities used by the signers.

CKB hashing (blake2b) lives in ``codec.hashes``; this module holds the hashes
of the Bitcoin and Ethereum ecosystems.
"""

import hashlib

from Crypto.Hash import RIPEMD160, keccak

from ..codec.hashes import blake160, ckb_hash


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def double_sha256(data: bytes) -> bytes:
    """SHA-256 applied twice, as Bitcoin hashes messages."""
    return sha256(sha256(data))


def ripemd160(data: bytes) -> bytes:
    # OpenSSL 3 builds of hashlib may not ship ripemd160
    return RIPEMD160.new(data).digest()


def hash160(data: bytes) -> bytes:
    """
    Bitcoin-style public key hash: RIPEMD-160 of SHA-256.

    Args:
        data: Compressed public key bytes

    Returns:
        20-byte hash
    """
    return ripemd160(sha256(data))


def keccak256(data: bytes) -> bytes:
    """
    Keccak-256 hash (Ethereum's hash function).

    Note: This is different from SHA3-256. Ethereum uses the original Keccak padding.
    """
    return keccak.new(digest_bits=256).update(data).digest()


__all__ = [
    "sha256",
    "double_sha256",
    "ripemd160",
    "hash160",
    "keccak256",
    "blake160",
    "ckb_hash",
]
