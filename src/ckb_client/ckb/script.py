"""
Script: the ``{code_hash, hash_type, args}`` triple naming on-chain logic.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Union

from pydantic import BaseModel, ConfigDict, field_validator

from ..codec import ckb_hash, molecule
from ..enums import HashType, KnownScript
from ..runtime.codec import BytesLike, bytes_from, hex_from

if TYPE_CHECKING:
    from ..client.client import Client


class Script(BaseModel):
    """
    Immutable script value.

    A lock script gates spending of a cell, a type script gates the shape and
    transitions of its data. Two scripts are equal iff all fields are equal.
    """

    model_config = ConfigDict(frozen=True)

    code_hash: bytes
    hash_type: HashType
    args: bytes = b""

    @field_validator("code_hash", "args", mode="before")
    @classmethod
    def _coerce_bytes(cls, v: Any) -> bytes:
        return bytes_from(v)

    @field_validator("hash_type", mode="before")
    @classmethod
    def _coerce_hash_type(cls, v: Any) -> HashType:
        return HashType.parse(v)

    @field_validator("code_hash")
    @classmethod
    def _check_code_hash(cls, v: bytes) -> bytes:
        if len(v) != 32:
            raise ValueError(f"code_hash must be 32 bytes, got {len(v)}")
        return v

    @classmethod
    async def from_known_script(cls, client: Client, name: Union[KnownScript, str],
                                args: BytesLike = b"") -> Script:
        """Resolve a well-known template on the client's network."""
        return await client.resolve_known_script(name, args)

    @property
    def occupied_size(self) -> int:
        """Bytes this script occupies in a cell: code_hash + hash_type + args."""
        return 32 + 1 + len(self.args)

    def to_bytes(self) -> bytes:
        return SCRIPT_CODEC.encode(self)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> Script:
        return SCRIPT_CODEC.decode(bytes_from(data))

    def hash(self) -> bytes:
        """Script hash: the identity of this script value."""
        return ckb_hash(self.to_bytes())

    def __repr__(self) -> str:
        return (f"Script(code_hash={hex_from(self.code_hash)}, "
                f"hash_type={self.hash_type.to_json()}, args={hex_from(self.args)})")


SCRIPT_CODEC = molecule.Adapter(
    molecule.Table([molecule.Byte32, molecule.Byte, molecule.Bytes]),
    lambda s: [s.code_hash, int(s.hash_type), s.args],
    lambda v: Script(code_hash=v[0], hash_type=HashType.from_byte(v[1]), args=v[2]),
)
