"""
Bitcoin-style signers for OmniLock.

The OmniLock args carry hash160 of the compressed public key under the
Bitcoin auth flag. Transactions are authorized by signing the text
``CKB (Bitcoin Layer) transaction: 0x<digest>`` with Bitcoin message
signing, the way Bitcoin wallets sign messages.
"""

from __future__ import annotations
import base64
import binascii
from abc import abstractmethod
from typing import TYPE_CHECKING, List, Union

from ..address import Address, segwit_encode
from ..crypto.hash_utils import double_sha256, hash160
from ..crypto.secp256k1 import Secp256k1Error, Secp256k1PrivateKey, Secp256k1PublicKey
from ..enums import KnownScript, SignerSignType, SignerType
from ..runtime.codec import BytesLike, bytes_from, hex_from
from .omni_lock import (
    OMNI_LOCK_AUTH_BTC,
    OMNI_LOCK_WITNESS_LOCK_SIZE,
    omni_lock_args,
    pack_omni_lock_signature,
)
from .signer import Message, Signer

if TYPE_CHECKING:
    from ..client.client import Client

BTC_MESSAGE_MAGIC = b"\x18Bitcoin Signed Message:\n"
BTC_TRANSACTION_PREFIX = "CKB (Bitcoin Layer) transaction: "

# Compact signature header: 27 + recovery id, +4 for compressed keys
_HEADER_BASE = 27
_HEADER_COMPRESSED = 31


def _varint(n: int) -> bytes:
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    if n <= 0xFFFFFFFF:
        return b"\xfe" + n.to_bytes(4, "little")
    return b"\xff" + n.to_bytes(8, "little")


def btc_message_challenge(message: Message) -> bytes:
    """Text actually signed: strings as-is, raw bytes as hex without prefix."""
    if isinstance(message, str):
        return message.encode("utf-8")
    return bytes(message).hex().encode("ascii")


def btc_magic_hash(message: Message) -> bytes:
    """Double SHA-256 of the Bitcoin signed-message envelope."""
    challenge = btc_message_challenge(message)
    return double_sha256(BTC_MESSAGE_MAGIC + _varint(len(challenge)) + challenge)


def verify_message_btc_ecdsa(message: Message, signature: str, public_key: str) -> bool:
    """
    Verify a Bitcoin message signature.

    Args:
        message: Signed message
        signature: Base64 compact signature (header || r || s)
        public_key: Hex compressed public key of the claimed signer
    """
    try:
        raw = base64.b64decode(signature, validate=True)
        if len(raw) != 65:
            return False
        recovery_id = (raw[0] - _HEADER_BASE) % 4
        expected = Secp256k1PublicKey(bytes_from(public_key))
        return expected.verify_recoverable(raw[1:] + bytes([recovery_id]), btc_magic_hash(message))
    except (Secp256k1Error, ValueError, binascii.Error):
        return False


class SignerBtc(Signer):
    """
    Base class of Bitcoin-style signers.

    Subclasses provide the Bitcoin account and public key and sign messages;
    OmniLock address derivation and witness packing live here.
    """

    lock_script = KnownScript.OMNI_LOCK
    witness_lock_size = OMNI_LOCK_WITNESS_LOCK_SIZE

    @property
    def type(self) -> SignerType:
        return SignerType.BTC

    @property
    def sign_type(self) -> SignerSignType:
        return SignerSignType.BTC_ECDSA

    @abstractmethod
    async def get_btc_account(self) -> str:
        """Bitcoin address of the signer."""

    @abstractmethod
    async def get_btc_public_key(self) -> bytes:
        """Compressed public key of the signer."""

    async def get_internal_address(self) -> str:
        return await self.get_btc_account()

    async def get_identity(self) -> str:
        return hex_from(await self.get_btc_public_key())[2:]

    async def get_address_objs(self) -> List[Address]:
        args = omni_lock_args(OMNI_LOCK_AUTH_BTC, hash160(await self.get_btc_public_key()))
        script = await self.client.resolve_known_script(KnownScript.OMNI_LOCK, args)
        return [Address.from_script(script, self.client.address_prefix)]

    async def sign_sighash(self, message: bytes) -> bytes:
        signature = bytearray(base64.b64decode(
            await self.sign_message_raw(BTC_TRANSACTION_PREFIX + hex_from(message))
        ))
        signature[0] = _HEADER_COMPRESSED + (signature[0] - _HEADER_BASE) % 4
        return pack_omni_lock_signature(bytes(signature))


class SignerBtcPrivateKey(SignerBtc):
    """Bitcoin-style signer holding a secp256k1 private key."""

    def __init__(self, client: Client, private_key: Union[BytesLike, Secp256k1PrivateKey]):
        super().__init__(client)
        if not isinstance(private_key, Secp256k1PrivateKey):
            private_key = Secp256k1PrivateKey(bytes_from(private_key))
        self.private_key = private_key

    async def get_btc_public_key(self) -> bytes:
        return self.private_key.public_key().to_bytes(compressed=True)

    async def get_btc_account(self) -> str:
        """Native segwit (P2WPKH) address on the client's network."""
        hrp = "bc" if self.client.network == "mainnet" else "tb"
        return segwit_encode(hrp, 0, hash160(await self.get_btc_public_key()))

    async def sign_message_raw(self, message: Message) -> str:
        """Base64 compact signature, as Bitcoin wallets return it."""
        signature = self.private_key.sign_recoverable(btc_magic_hash(message))
        header = _HEADER_COMPRESSED + signature[64]
        return base64.b64encode(bytes([header]) + signature[:64]).decode("ascii")


__all__ = [
    "SignerBtc",
    "SignerBtcPrivateKey",
    "btc_magic_hash",
    "verify_message_btc_ecdsa",
]
