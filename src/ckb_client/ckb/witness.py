"""
WitnessArgs: the conventional structure of a transaction witness.
"""

from __future__ import annotations
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ..codec import molecule
from ..runtime.codec import BytesLike, bytes_from


class WitnessArgs(BaseModel):
    """
    Witness split into the lock script's slot and the input/output type
    scripts' slots. Each slot is independently optional.
    """

    lock: Optional[bytes] = None
    input_type: Optional[bytes] = None
    output_type: Optional[bytes] = None

    @field_validator("lock", "input_type", "output_type", mode="before")
    @classmethod
    def _coerce_bytes(cls, v: Any) -> Optional[bytes]:
        return None if v is None else bytes_from(v)

    def to_bytes(self) -> bytes:
        return WITNESS_ARGS_CODEC.encode(self)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> WitnessArgs:
        return WITNESS_ARGS_CODEC.decode(bytes_from(data))


WITNESS_ARGS_CODEC = molecule.Adapter(
    molecule.Table([molecule.BytesOpt, molecule.BytesOpt, molecule.BytesOpt]),
    lambda w: [w.lock, w.input_type, w.output_type],
    lambda v: WitnessArgs(lock=v[0], input_type=v[1], output_type=v[2]),
)
