"""
Cryptographic primitives for CKB, Bitcoin and Ethereum style keys.
"""

from .hash_utils import double_sha256, hash160, keccak256, ripemd160, sha256
from .secp256k1 import SIGNATURE_SIZE, Secp256k1Error, Secp256k1PrivateKey, Secp256k1PublicKey

__all__ = [
    "SIGNATURE_SIZE",
    "Secp256k1Error",
    "Secp256k1PrivateKey",
    "Secp256k1PublicKey",
    "double_sha256",
    "hash160",
    "keccak256",
    "ripemd160",
    "sha256",
]
