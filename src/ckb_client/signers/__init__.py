"""
Signers for CKB transactions and messages.

Provides native CKB keys plus Bitcoin-style and Ethereum-style keys that
control OmniLock cells.
"""

from .signer import Message, Signature, Signer, SignerError
from .omni_lock import (
    OMNI_LOCK_AUTH_BTC,
    OMNI_LOCK_AUTH_EVM,
    OMNI_LOCK_WITNESS_LOCK_SIZE,
    OmniLockWitnessLock,
    omni_lock_args,
    pack_omni_lock_signature,
    unpack_omni_lock_witness,
)
from .ckb import SignerCkbPrivateKey, SignerCkbPublicKey, verify_message_ckb_secp256k1
from .btc import SignerBtc, SignerBtcPrivateKey, btc_magic_hash, verify_message_btc_ecdsa
from .eth import SignerEvm, SignerEvmPrivateKey, evm_address, evm_message_hash, verify_message_evm_personal

__all__ = [
    # Base classes
    "Message",
    "Signature",
    "Signer",
    "SignerError",
    # OmniLock
    "OMNI_LOCK_AUTH_BTC",
    "OMNI_LOCK_AUTH_EVM",
    "OMNI_LOCK_WITNESS_LOCK_SIZE",
    "OmniLockWitnessLock",
    "omni_lock_args",
    "pack_omni_lock_signature",
    "unpack_omni_lock_witness",
    # CKB
    "SignerCkbPrivateKey",
    "SignerCkbPublicKey",
    "verify_message_ckb_secp256k1",
    # Bitcoin
    "SignerBtc",
    "SignerBtcPrivateKey",
    "btc_magic_hash",
    "verify_message_btc_ecdsa",
    # Ethereum
    "SignerEvm",
    "SignerEvmPrivateKey",
    "evm_address",
    "evm_message_hash",
    "verify_message_evm_personal",
]
