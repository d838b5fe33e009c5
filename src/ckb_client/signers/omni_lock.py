"""
OmniLock witness lock envelope.

OmniLock reads its signature from a table
``{signature: BytesOpt, omni_identity: IdentityOpt, preimage: BytesOpt}``
stored in the lock slot of WitnessArgs. Signers fill only ``signature``.
"""

from dataclasses import dataclass
from typing import Optional

from ..codec import molecule
from ..runtime.codec import BytesLike, bytes_from

# Auth flags, first byte of OmniLock args
OMNI_LOCK_AUTH_BTC = 0x04
OMNI_LOCK_AUTH_EVM = 0x12

# OmniLock flags, trailing byte of OmniLock args (no extra modes)
OMNI_LOCK_FLAGS_NONE = 0x00

OMNI_LOCK_SIGNATURE_SIZE = 65


@dataclass(frozen=True)
class OmniLockWitnessLock:
    signature: Optional[bytes] = None
    omni_identity: Optional[bytes] = None
    preimage: Optional[bytes] = None


OMNI_LOCK_WITNESS_LOCK_CODEC = molecule.Adapter(
    molecule.Table([molecule.BytesOpt, molecule.Option(molecule.Raw()), molecule.BytesOpt]),
    lambda w: [w.signature, w.omni_identity, w.preimage],
    lambda v: OmniLockWitnessLock(signature=v[0], omni_identity=v[1], preimage=v[2]),
)


def omni_lock_args(auth_flag: int, auth_content: BytesLike) -> bytes:
    """Args of an OmniLock script: auth flag, 20-byte auth content, omni flags."""
    content = bytes_from(auth_content)
    if len(content) != 20:
        raise ValueError(f"OmniLock auth content must be 20 bytes, got {len(content)}")
    return bytes([auth_flag]) + content + bytes([OMNI_LOCK_FLAGS_NONE])


def pack_omni_lock_signature(signature: BytesLike) -> bytes:
    """Wrap a raw signature into the witness lock envelope."""
    return OMNI_LOCK_WITNESS_LOCK_CODEC.encode(OmniLockWitnessLock(signature=bytes_from(signature)))


def unpack_omni_lock_witness(data: BytesLike) -> OmniLockWitnessLock:
    return OMNI_LOCK_WITNESS_LOCK_CODEC.decode(bytes_from(data))


# Size of the envelope carrying one 65-byte signature, reserved as placeholder
OMNI_LOCK_WITNESS_LOCK_SIZE = len(pack_omni_lock_signature(bytes(OMNI_LOCK_SIGNATURE_SIZE)))
