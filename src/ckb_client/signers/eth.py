"""
Ethereum-style signers for OmniLock.

Implements EIP-191 personal-sign over secp256k1 with Keccak-256 hashing.
The OmniLock args carry the 20-byte Ethereum address under the Ethereum auth
flag, and the sighash-all digest is personal-signed as raw 32 bytes.
"""

from __future__ import annotations
from abc import abstractmethod
from typing import TYPE_CHECKING, List, Union

from ..address import Address
from ..crypto.hash_utils import keccak256
from ..crypto.secp256k1 import SIGNATURE_SIZE, Secp256k1Error, Secp256k1PrivateKey, Secp256k1PublicKey
from ..enums import KnownScript, SignerSignType, SignerType
from ..runtime.codec import BytesLike, bytes_from, hex_from
from .omni_lock import (
    OMNI_LOCK_AUTH_EVM,
    OMNI_LOCK_WITNESS_LOCK_SIZE,
    omni_lock_args,
    pack_omni_lock_signature,
)
from .signer import Message, Signer, message_bytes

if TYPE_CHECKING:
    from ..client.client import Client

EVM_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"

# Legacy Ethereum recovery ids are offset by 27
_V_OFFSET = 27


def evm_message_hash(message: Message) -> bytes:
    """
    EIP-191 personal message hash.

    Args:
        message: Text (signed as UTF-8) or raw bytes

    Returns:
        32-byte Keccak-256 digest
    """
    data = message_bytes(message)
    return keccak256(EVM_MESSAGE_PREFIX + str(len(data)).encode("ascii") + data)


def evm_address(public_key: Secp256k1PublicKey) -> str:
    """
    Ethereum address of a public key: last 20 bytes of the Keccak-256 hash of
    the uncompressed key without its 0x04 prefix.

    Returns:
        Lowercase 0x-prefixed address
    """
    uncompressed = public_key.to_bytes(compressed=False)
    return hex_from(keccak256(uncompressed[1:])[-20:])


def verify_message_evm_personal(message: Message, signature: str, address: str) -> bool:
    """
    Verify a personal-sign signature against an Ethereum address.

    Args:
        message: Signed message
        signature: Hex ``r || s || v`` signature, v in {0, 1, 27, 28}
        address: 0x-prefixed Ethereum address of the claimed signer
    """
    try:
        raw = bytearray(bytes_from(signature))
        if len(raw) != SIGNATURE_SIZE:
            return False
        if raw[64] >= _V_OFFSET:
            raw[64] -= _V_OFFSET
        recovered = Secp256k1PublicKey.recover(bytes(raw), evm_message_hash(message))
    except (Secp256k1Error, ValueError):
        return False
    return evm_address(recovered) == address.lower()


class SignerEvm(Signer):
    """
    Base class of Ethereum-style signers.

    Subclasses provide the Ethereum account and personal-sign messages;
    OmniLock address derivation and witness packing live here.
    """

    lock_script = KnownScript.OMNI_LOCK
    witness_lock_size = OMNI_LOCK_WITNESS_LOCK_SIZE

    @property
    def type(self) -> SignerType:
        return SignerType.EVM

    @property
    def sign_type(self) -> SignerSignType:
        return SignerSignType.EVM_PERSONAL

    @abstractmethod
    async def get_evm_account(self) -> str:
        """0x-prefixed Ethereum address of the signer."""

    async def get_internal_address(self) -> str:
        return await self.get_evm_account()

    async def get_address_objs(self) -> List[Address]:
        args = omni_lock_args(OMNI_LOCK_AUTH_EVM, await self.get_evm_account())
        script = await self.client.resolve_known_script(KnownScript.OMNI_LOCK, args)
        return [Address.from_script(script, self.client.address_prefix)]

    async def sign_sighash(self, message: bytes) -> bytes:
        signature = bytearray(bytes_from(await self.sign_message_raw(bytes(message))))
        if signature[64] >= _V_OFFSET:
            signature[64] -= _V_OFFSET
        return pack_omni_lock_signature(bytes(signature))


class SignerEvmPrivateKey(SignerEvm):
    """Ethereum-style signer holding a secp256k1 private key."""

    def __init__(self, client: Client, private_key: Union[BytesLike, Secp256k1PrivateKey]):
        super().__init__(client)
        if not isinstance(private_key, Secp256k1PrivateKey):
            private_key = Secp256k1PrivateKey(bytes_from(private_key))
        self.private_key = private_key

    async def get_evm_account(self) -> str:
        return evm_address(self.private_key.public_key())

    async def sign_message_raw(self, message: Message) -> str:
        """Hex ``r || s || v`` with v = 27 + recovery id, as wallets return it."""
        signature = bytearray(self.private_key.sign_recoverable(evm_message_hash(message)))
        signature[64] += _V_OFFSET
        return hex_from(signature)


__all__ = [
    "SignerEvm",
    "SignerEvmPrivateKey",
    "evm_address",
    "evm_message_hash",
    "verify_message_evm_personal",
]
