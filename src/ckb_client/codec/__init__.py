"""
CKB Binary Codec Module

Canonical molecule encoding/decoding and CKB hashing.

Key components:
- writer.py / reader.py: little-endian primitives with bounds checking
- molecule.py: schema combinators (FixVec, DynVec, Table, Struct, Option)
- hashes.py: blake2b-based Hasher and ckb_hash
"""

from .hashes import CKB_BLAKE2B_PERSONAL, Hasher, HasherFinalizedError, blake160, ckb_hash, hash_witness_to_hasher
from .reader import BinaryReader
from .writer import BinaryWriter
from . import molecule

__all__ = [
    "BinaryReader",
    "BinaryWriter",
    "CKB_BLAKE2B_PERSONAL",
    "Hasher",
    "HasherFinalizedError",
    "blake160",
    "ckb_hash",
    "hash_witness_to_hasher",
    "molecule",
]
