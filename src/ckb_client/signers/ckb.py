"""
Native CKB signers for the secp256k1-blake160 sighash-all lock.

The lock args are blake160 of the compressed public key; the witness lock is
the bare 65-byte recoverable signature.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, List, Union

from ..address import Address
from ..codec.hashes import blake160, ckb_hash
from ..crypto.secp256k1 import SIGNATURE_SIZE, Secp256k1Error, Secp256k1PrivateKey, Secp256k1PublicKey
from ..enums import KnownScript, SignerSignType, SignerType
from ..runtime.codec import BytesLike, bytes_from, hex_from
from ..runtime.errors import SignerError
from .signer import Message, Signer, message_bytes

if TYPE_CHECKING:
    from ..client.client import Client

CKB_MESSAGE_PREFIX = b"Nervos Message:"


def message_hash_ckb_secp256k1(message: Message) -> bytes:
    return ckb_hash(CKB_MESSAGE_PREFIX + message_bytes(message))


def verify_message_ckb_secp256k1(message: Message, signature: str, public_key: str) -> bool:
    """
    Verify a CKB message signature.

    Args:
        message: Signed message
        signature: Hex 65-byte recoverable signature
        public_key: Hex compressed public key of the claimed signer
    """
    try:
        expected = Secp256k1PublicKey(bytes_from(public_key))
        return expected.verify_recoverable(bytes_from(signature), message_hash_ckb_secp256k1(message))
    except (Secp256k1Error, ValueError):
        return False


class SignerCkbPublicKey(Signer):
    """Read-only CKB signer: knows its addresses but holds no key."""

    lock_script = KnownScript.SECP256K1_BLAKE160
    witness_lock_size = SIGNATURE_SIZE

    def __init__(self, client: Client, public_key: BytesLike):
        super().__init__(client)
        self.public_key = Secp256k1PublicKey(bytes_from(public_key))

    @property
    def type(self) -> SignerType:
        return SignerType.CKB

    @property
    def sign_type(self) -> SignerSignType:
        return SignerSignType.CKB_SECP256K1

    async def get_identity(self) -> str:
        return hex_from(self.public_key.to_bytes())

    async def get_internal_address(self) -> str:
        return await self.get_recommended_address()

    async def get_address_objs(self) -> List[Address]:
        script = await self.client.resolve_known_script(
            KnownScript.SECP256K1_BLAKE160, blake160(self.public_key.to_bytes())
        )
        return [Address.from_script(script, self.client.address_prefix)]

    async def sign_sighash(self, message: bytes) -> bytes:
        raise SignerError("Signer holds no private key")

    async def sign_message_raw(self, message: Message) -> str:
        raise SignerError("Signer holds no private key")


class SignerCkbPrivateKey(SignerCkbPublicKey):
    """
    CKB signer holding a secp256k1 private key.

    Example:
        signer = SignerCkbPrivateKey(client, "0x...")
        signed = await signer.sign_transaction(tx)
    """

    def __init__(self, client: Client, private_key: Union[BytesLike, Secp256k1PrivateKey]):
        if not isinstance(private_key, Secp256k1PrivateKey):
            private_key = Secp256k1PrivateKey(bytes_from(private_key))
        self.private_key = private_key
        super().__init__(client, private_key.public_key().to_bytes())

    async def sign_sighash(self, message: bytes) -> bytes:
        return self.private_key.sign_recoverable(message)

    async def sign_message_raw(self, message: Message) -> str:
        return hex_from(self.private_key.sign_recoverable(message_hash_ckb_secp256k1(message)))
