"""
SECP256K1 recoverable ECDSA.

All three signing ecosystems (CKB, Bitcoin, Ethereum) sign a 32-byte digest
and ship a 65-byte ``r || s || recovery_id`` signature from which the public
key can be recovered. Signatures are deterministic (RFC 6979) and low-S.
"""

from __future__ import annotations
from typing import Optional

import coincurve

from ..runtime.errors import SignerError

SIGNATURE_SIZE = 65


class Secp256k1Error(SignerError):
    """Invalid key or signature material."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, cause=cause)


def _check_digest(digest: bytes) -> None:
    if len(digest) != 32:
        raise Secp256k1Error(f"Digest must be 32 bytes, got {len(digest)}")


class Secp256k1PublicKey:
    """SECP256K1 public key for verification and addressing."""

    def __init__(self, public_key_bytes: bytes):
        """
        Initialize public key.

        Args:
            public_key_bytes: Public key bytes (33 compressed or 65 uncompressed)
        """
        try:
            self._key = coincurve.PublicKey(bytes(public_key_bytes))
        except (ValueError, TypeError) as e:
            raise Secp256k1Error(f"Invalid public key: {e}", e) from e

    @classmethod
    def recover(cls, signature: bytes, digest: bytes) -> Secp256k1PublicKey:
        """
        Recover the signer's public key from a recoverable signature.

        Raises:
            Secp256k1Error: The signature is malformed or recovers no key
        """
        _check_digest(digest)
        if len(signature) != SIGNATURE_SIZE:
            raise Secp256k1Error(f"Signature must be {SIGNATURE_SIZE} bytes, got {len(signature)}")
        if signature[64] > 3:
            raise Secp256k1Error(f"Invalid recovery id {signature[64]}")
        try:
            key = coincurve.PublicKey.from_signature_and_message(bytes(signature), digest, hasher=None)
        except (ValueError, TypeError) as e:
            raise Secp256k1Error(f"Public key recovery failed: {e}", e) from e
        return cls(key.format(compressed=True))

    def to_bytes(self, compressed: bool = True) -> bytes:
        return self._key.format(compressed=compressed)

    def to_hex(self, compressed: bool = True) -> str:
        return self.to_bytes(compressed).hex()

    def verify_recoverable(self, signature: bytes, digest: bytes) -> bool:
        """True iff ``signature`` over ``digest`` recovers to this key."""
        try:
            return Secp256k1PublicKey.recover(signature, digest) == self
        except Secp256k1Error:
            return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secp256k1PublicKey):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __str__(self) -> str:
        return f"Secp256k1PublicKey({self.to_hex()[:16]}...)"


class Secp256k1PrivateKey:
    """SECP256K1 private key producing recoverable signatures."""

    def __init__(self, private_key_bytes: Optional[bytes] = None):
        """
        Initialize private key.

        Args:
            private_key_bytes: 32-byte private key; a random key is generated when omitted
        """
        if private_key_bytes is not None and len(private_key_bytes) != 32:
            raise Secp256k1Error(f"Private key must be 32 bytes, got {len(private_key_bytes)}")
        try:
            self._key = coincurve.PrivateKey(bytes(private_key_bytes) if private_key_bytes else None)
        except ValueError as e:
            raise Secp256k1Error(f"Invalid private key: {e}", e) from e

    @classmethod
    def generate(cls) -> Secp256k1PrivateKey:
        """Generate a new random key."""
        return cls()

    @classmethod
    def from_hex(cls, private_key_hex: str) -> Secp256k1PrivateKey:
        text = private_key_hex[2:] if private_key_hex.startswith("0x") else private_key_hex
        try:
            return cls(bytes.fromhex(text))
        except ValueError as e:
            raise Secp256k1Error(f"Invalid hex string: {e}", e) from e

    def public_key(self) -> Secp256k1PublicKey:
        return Secp256k1PublicKey(self._key.public_key.format(compressed=True))

    def sign_recoverable(self, digest: bytes) -> bytes:
        """
        Sign a 32-byte digest.

        Returns:
            65 bytes: r (32) || s (32) || recovery id (0..3)
        """
        _check_digest(digest)
        return self._key.sign_recoverable(digest, hasher=None)

    def to_bytes(self) -> bytes:
        return self._key.secret

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    def __str__(self) -> str:
        return f"Secp256k1PrivateKey(public={self.public_key().to_hex()[:16]}...)"


__all__ = [
    "SIGNATURE_SIZE",
    "Secp256k1Error",
    "Secp256k1PrivateKey",
    "Secp256k1PublicKey",
]
