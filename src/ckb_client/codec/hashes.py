"""
Hash Functions

CKB hashes are blake2b with a 32-byte output and the personalization string
``ckb-default-hash``. They identify transactions and scripts and are the
basis of the sighash-all signing digest.
"""

import hashlib
from typing import Optional

from ..runtime.codec import BytesLike, bytes_from

CKB_BLAKE2B_PERSONAL = b"ckb-default-hash"


class HasherFinalizedError(RuntimeError):
    """update() was called on a hasher whose digest was already taken."""


class Hasher:
    """
    Streaming CKB hasher.

    ``digest()`` finalizes the hasher: any later ``update()`` raises
    HasherFinalizedError, while ``digest()`` keeps returning the same value.

    Example:
        digest = Hasher().update(b"some data").update(b"more data").digest()
    """

    def __init__(self, out_length: int = 32, personal: bytes = CKB_BLAKE2B_PERSONAL):
        """
        Args:
            out_length: Output length of the hash in bytes
            personal: Personalization string (at most 16 bytes)
        """
        self._hasher = hashlib.blake2b(digest_size=out_length, person=personal)
        self._digest: Optional[bytes] = None

    @property
    def finalized(self) -> bool:
        return self._digest is not None

    def update(self, data: BytesLike) -> "Hasher":
        """
        Feed data into the hash.

        Returns:
            The hasher itself, for chaining
        """
        if self._digest is not None:
            raise HasherFinalizedError("Hasher already finalized")
        self._hasher.update(bytes_from(data))
        return self

    def digest(self) -> bytes:
        """Finalize and return the digest."""
        if self._digest is None:
            self._digest = self._hasher.digest()
        return self._digest

    def hexdigest(self) -> str:
        """Finalize and return the digest as 0x-prefixed hex."""
        return "0x" + self.digest().hex()


def ckb_hash(*data: BytesLike) -> bytes:
    """
    Compute the CKB hash of the concatenation of the inputs.

    Args:
        *data: Byte-like inputs, hashed in order

    Returns:
        32-byte digest
    """
    hasher = Hasher()
    for d in data:
        hasher.update(d)
    return hasher.digest()


def blake160(data: BytesLike) -> bytes:
    """First 20 bytes of the CKB hash, used as lock args for public keys."""
    return ckb_hash(data)[:20]


def hash_witness_to_hasher(witness: BytesLike, hasher: Hasher) -> None:
    """Feed a witness as u64 little-endian length followed by its bytes."""
    raw = bytes_from(witness)
    hasher.update(len(raw).to_bytes(8, "little"))
    hasher.update(raw)
