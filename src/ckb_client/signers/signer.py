"""
Base signer interface.

A signer controls one or more lock scripts. It prepares transactions (cell
deps and placeholder witnesses sized to its real signature envelope), signs
every lock group it controls with a sighash-all digest and signs messages.
Every transaction operation works on a copy and returns it.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Union

from ..address import Address
from ..ckb.transaction import Transaction
from ..ckb.witness import WitnessArgs
from ..enums import KnownScript, SignerSignType, SignerType
from ..runtime.errors import SignerError

if TYPE_CHECKING:
    from ..client.client import Client

logger = logging.getLogger(__name__)

Message = Union[str, bytes]


@dataclass(frozen=True)
class Signature:
    """A message signature together with who made it and how."""
    signature: str
    identity: str
    sign_type: SignerSignType


class Signer(ABC):
    """
    Base signer.

    Subclasses name the known script their locks are built from
    (``lock_script``) and the exact byte size of the witness lock they
    produce (``witness_lock_size``), then implement ``sign_sighash``.
    """

    lock_script: Optional[KnownScript] = None
    witness_lock_size: int = 0

    def __init__(self, client: Client):
        self._client = client

    @property
    def client(self) -> Client:
        return self._client

    @property
    @abstractmethod
    def type(self) -> SignerType:
        pass

    @property
    @abstractmethod
    def sign_type(self) -> SignerSignType:
        pass

    # Identity and addresses

    @abstractmethod
    async def get_internal_address(self) -> str:
        """Address in the signer's own ecosystem (e.g. a Bitcoin account)."""

    async def get_identity(self) -> str:
        """Public identity used to verify this signer's message signatures."""
        return await self.get_internal_address()

    @abstractmethod
    async def get_address_objs(self) -> List[Address]:
        """CKB addresses of every lock this signer controls."""

    async def get_recommended_address_obj(self) -> Address:
        return (await self.get_address_objs())[0]

    async def get_recommended_address(self) -> str:
        return str(await self.get_recommended_address_obj())

    async def get_addresses(self) -> List[str]:
        return [str(address) for address in await self.get_address_objs()]

    # Transactions

    async def prepare_transaction(self, tx: Transaction) -> Transaction:
        """
        Add the lock's cell deps and reserve a zero-filled witness lock of
        the real envelope size in each controlled lock group.
        """
        tx = tx.clone()
        if self.lock_script is None:
            return tx
        await tx.add_cell_deps_of_known_scripts(self.client, self.lock_script)
        for address in await self.get_address_objs():
            await tx.prepare_sighash_all_witness(address.script, self.witness_lock_size, self.client)
        return tx

    async def sign_only_transaction(self, tx: Transaction) -> Transaction:
        """
        Sign every lock group this signer controls.

        Returns an unchanged copy when no input is locked by this signer.
        """
        tx = tx.clone()
        for address in await self.get_address_objs():
            info = await tx.get_sign_hash_info(address.script, self.client)
            if info is None:
                continue
            lock = await self.sign_sighash(info.message)
            witness = tx.get_witness_args_at(info.position) or WitnessArgs()
            tx.set_witness_args_at(info.position, witness.model_copy(update={"lock": lock}))
            logger.debug(f"Signed lock group at witness {info.position} for {address}")
        return tx

    async def sign_transaction(self, tx: Transaction) -> Transaction:
        return await self.sign_only_transaction(await self.prepare_transaction(tx))

    async def send_transaction(self, tx: Transaction) -> bytes:
        """Sign and submit. Returns the transaction hash."""
        return await self.client.send_transaction(await self.sign_transaction(tx))

    @abstractmethod
    async def sign_sighash(self, message: bytes) -> bytes:
        """
        Produce the witness lock for a sighash-all digest.

        Args:
            message: 32-byte sighash-all digest

        Returns:
            Witness lock bytes, exactly ``witness_lock_size`` long
        """

    # Messages

    async def sign_message(self, message: Message) -> Signature:
        return Signature(
            signature=await self.sign_message_raw(message),
            identity=await self.get_identity(),
            sign_type=self.sign_type,
        )

    @abstractmethod
    async def sign_message_raw(self, message: Message) -> str:
        """Signature of ``message`` in the ecosystem's own text encoding."""

    @staticmethod
    def verify_message(message: Message, signature: Signature) -> bool:
        """
        Check a message signature against its claimed identity. No network.

        Raises:
            SignerError: The signature type has no verifier
        """
        verifier = _verifiers().get(signature.sign_type)
        if verifier is None:
            raise SignerError(f"Unsupported sign type {signature.sign_type}",
                              {"sign_type": str(signature.sign_type)})
        return verifier(message, signature.signature, signature.identity)


def _verifiers() -> Dict[SignerSignType, Callable[[Message, str, str], bool]]:
    from .btc import verify_message_btc_ecdsa
    from .ckb import verify_message_ckb_secp256k1
    from .eth import verify_message_evm_personal

    return {
        SignerSignType.CKB_SECP256K1: verify_message_ckb_secp256k1,
        SignerSignType.BTC_ECDSA: verify_message_btc_ecdsa,
        SignerSignType.EVM_PERSONAL: verify_message_evm_personal,
    }


def message_bytes(message: Message) -> bytes:
    """Messages given as text are signed as their UTF-8 bytes."""
    return message.encode("utf-8") if isinstance(message, str) else bytes(message)


__all__ = ["Message", "Signature", "Signer", "SignerError", "message_bytes"]
